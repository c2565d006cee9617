"""
Goal Schemas

Request/response models for goals.
"""
from pydantic import BaseModel, ConfigDict, Field
from typing import ClassVar, Optional
from datetime import date, datetime
import enum

from roadmapper.schemas.common import ColumnModel, ChangesModel


class GoalStatus(str, enum.Enum):
    ACTIVE = "active"
    PLANNED = "planned"
    COMPLETED = "completed"


class GoalCreate(ColumnModel):
    """Schema for creating a goal."""
    title: str = Field(..., min_length=1, max_length=255)
    description: str = ""
    status: GoalStatus = GoalStatus.ACTIVE
    target_date: Optional[date] = None


class GoalRecord(GoalCreate):
    tenant_id: str


class GoalUpdate(ChangesModel):
    """Schema for updating a goal. All fields optional."""
    not_null: ClassVar[frozenset] = frozenset({"title", "description", "status"})

    title: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = None
    status: Optional[GoalStatus] = None
    target_date: Optional[date] = None


class GoalResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    tenant_id: str
    title: str
    description: str
    status: GoalStatus
    target_date: Optional[date] = None
    created_at: datetime
    updated_at: datetime
