"""
Idea Schemas

Column fields and link fields are kept apart: IdeaFields/IdeaChanges are
what gets written to the ideas table, customer_ids only exists on the
request bodies and is applied through the ideas_customers junction.
"""
from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from typing import ClassVar, List, Optional
from datetime import datetime, timezone
import enum

from roadmapper.schemas.common import ColumnModel, ChangesModel, blank_to_none
from roadmapper.schemas.customer import CustomerResponse


class IdeaStatus(str, enum.Enum):
    NEW = "new"
    PLANNED = "planned"
    COMPLETED = "completed"
    REJECTED = "rejected"


class IdeaPriority(str, enum.Enum):
    URGENT = "urgent"
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class IdeaEffort(str, enum.Enum):
    XS = "xs"
    S = "s"
    M = "m"
    L = "l"
    XL = "xl"


class IdeaFields(ColumnModel):
    title: str = Field(..., min_length=1, max_length=255)
    description: str = ""
    priority: IdeaPriority = IdeaPriority.MEDIUM
    effort: IdeaEffort = IdeaEffort.M
    status: IdeaStatus = IdeaStatus.NEW
    source: str = Field("internal", min_length=1, max_length=50)
    initiative_id: Optional[str] = None

    @field_validator("initiative_id", mode="before")
    @classmethod
    def empty_initiative(cls, value):
        return blank_to_none(value)

    @model_validator(mode="before")
    @classmethod
    def default_title(cls, data):
        """Quick-capture ideas often arrive with only a description."""
        if isinstance(data, dict) and not (data.get("title") or "").strip():
            data = dict(data)
            description = (data.get("description") or "").strip()
            if description:
                data["title"] = description[:100]
            else:
                data["title"] = f"New idea {datetime.now(timezone.utc):%Y-%m-%d %H:%M}"
        return data


class IdeaRecord(IdeaFields):
    tenant_id: str


class IdeaCreate(IdeaFields):
    """Request body for POST /ideas."""
    customer_ids: List[str] = Field(default_factory=list)


class IdeaChanges(ChangesModel):
    not_null: ClassVar[frozenset] = frozenset({"title", "description", "priority", "effort", "status", "source"})

    title: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = None
    priority: Optional[IdeaPriority] = None
    effort: Optional[IdeaEffort] = None
    status: Optional[IdeaStatus] = None
    source: Optional[str] = Field(None, min_length=1, max_length=50)
    initiative_id: Optional[str] = None

    @field_validator("initiative_id", mode="before")
    @classmethod
    def empty_initiative(cls, value):
        return blank_to_none(value)


class IdeaUpdate(IdeaChanges):
    """
    Request body for PUT /ideas/{id}.

    customer_ids replaces the full set of linked customers when present
    (an empty list unlinks all of them). Omit it to leave links untouched.
    """
    customer_ids: Optional[List[str]] = None


class IdeaResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    tenant_id: str
    initiative_id: Optional[str] = None
    title: str
    description: str
    priority: IdeaPriority
    effort: IdeaEffort
    status: IdeaStatus
    source: str
    created_at: datetime
    updated_at: datetime


class IdeaDetailResponse(IdeaResponse):
    customers: List[CustomerResponse] = []
