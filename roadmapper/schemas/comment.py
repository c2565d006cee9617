"""
Comment Schemas
"""
from pydantic import BaseModel, ConfigDict, Field
from typing import ClassVar, Optional
from datetime import datetime
import enum

from roadmapper.schemas.common import ColumnModel, ChangesModel


class CommentEntityType(str, enum.Enum):
    IDEA = "idea"
    FEEDBACK = "feedback"
    INITIATIVE = "initiative"


class CommentCreate(ColumnModel):
    entity_type: CommentEntityType
    entity_id: str = Field(..., min_length=1, max_length=36)
    content: str = Field(..., min_length=1)


class CommentRecord(CommentCreate):
    tenant_id: str
    user_id: str


class CommentUpdate(ChangesModel):
    """Only the text of a comment can change."""
    not_null: ClassVar[frozenset] = frozenset({"content"})

    content: Optional[str] = Field(None, min_length=1)


class CommentResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    tenant_id: str
    user_id: str
    entity_type: CommentEntityType
    entity_id: str
    content: str
    created_at: datetime
    updated_at: datetime
