"""
Initiative Schemas

Priority is a rank from 1 (highest) to 5.
"""
from pydantic import BaseModel, ConfigDict, Field, field_validator
from typing import ClassVar, Optional
from datetime import datetime
import enum

from roadmapper.schemas.common import ColumnModel, ChangesModel, blank_to_none


class InitiativeStatus(str, enum.Enum):
    ACTIVE = "active"
    PLANNED = "planned"
    COMPLETED = "completed"


class InitiativeCreate(ColumnModel):
    title: str = Field(..., min_length=1, max_length=255)
    description: str = ""
    status: InitiativeStatus
    priority: int = Field(..., ge=1, le=5)
    goal_id: Optional[str] = None

    @field_validator("goal_id", mode="before")
    @classmethod
    def empty_goal(cls, value):
        return blank_to_none(value)


class InitiativeRecord(InitiativeCreate):
    tenant_id: str


class InitiativeUpdate(ChangesModel):
    not_null: ClassVar[frozenset] = frozenset({"title", "description", "status", "priority"})

    title: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = None
    status: Optional[InitiativeStatus] = None
    priority: Optional[int] = Field(None, ge=1, le=5)
    goal_id: Optional[str] = None

    @field_validator("goal_id", mode="before")
    @classmethod
    def empty_goal(cls, value):
        return blank_to_none(value)


class InitiativeResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    tenant_id: str
    goal_id: Optional[str] = None
    title: str
    description: str
    status: InitiativeStatus
    priority: int
    created_at: datetime
    updated_at: datetime
