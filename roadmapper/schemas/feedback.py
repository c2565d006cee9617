"""
Feedback Schemas

Feedback links to customers and initiatives through junction tables, so
the request bodies carry customer_ids / initiative_ids while the column
models never see them.
"""
from pydantic import BaseModel, ConfigDict, Field, model_validator
from typing import ClassVar, List, Optional
from datetime import datetime
import enum

from roadmapper.schemas.common import ColumnModel, ChangesModel
from roadmapper.schemas.customer import CustomerResponse
from roadmapper.schemas.initiative import InitiativeResponse


class Sentiment(str, enum.Enum):
    POSITIVE = "positive"
    NEUTRAL = "neutral"
    NEGATIVE = "negative"


class FeedbackFields(ColumnModel):
    title: str = Field(..., min_length=1, max_length=255)
    description: str = ""
    sentiment: Sentiment = Sentiment.NEUTRAL

    @model_validator(mode="before")
    @classmethod
    def title_from_content(cls, data):
        # Widget submissions send the text as "content"
        if isinstance(data, dict) and not data.get("title") and data.get("content"):
            data = dict(data)
            data["title"] = str(data["content"])[:255]
        return data


class FeedbackRecord(FeedbackFields):
    tenant_id: str


class FeedbackCreate(FeedbackFields):
    """Request body for POST /feedback."""
    customer_ids: List[str] = Field(default_factory=list)
    initiative_ids: List[str] = Field(default_factory=list)


class FeedbackChanges(ChangesModel):
    not_null: ClassVar[frozenset] = frozenset({"title", "description", "sentiment"})

    title: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = None
    sentiment: Optional[Sentiment] = None


class FeedbackUpdate(FeedbackChanges):
    """Link lists replace the current links when present."""
    customer_ids: Optional[List[str]] = None
    initiative_ids: Optional[List[str]] = None


class FeedbackResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    tenant_id: str
    title: str
    description: str
    sentiment: Sentiment
    created_at: datetime
    updated_at: datetime


class FeedbackDetailResponse(FeedbackResponse):
    customers: List[CustomerResponse] = []
    initiatives: List[InitiativeResponse] = []
