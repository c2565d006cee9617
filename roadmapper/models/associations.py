"""
Association (junction) tables

Pure pairs with a composite primary key, which is also the uniqueness
constraint ON CONFLICT DO NOTHING relies on. No tenant_id: both endpoints
are tenant-checked before a pair is written.
"""
from sqlalchemy import Column, String, ForeignKey, Table
from roadmapper.database import Base

ideas_customers = Table(
    "ideas_customers",
    Base.metadata,
    Column("idea_id", String(36), ForeignKey("ideas.id", ondelete="CASCADE"), primary_key=True),
    Column("customer_id", String(36), ForeignKey("customers.id", ondelete="CASCADE"), primary_key=True, index=True),
)

feedback_customers = Table(
    "feedback_customers",
    Base.metadata,
    Column("feedback_id", String(36), ForeignKey("feedback.id", ondelete="CASCADE"), primary_key=True),
    Column("customer_id", String(36), ForeignKey("customers.id", ondelete="CASCADE"), primary_key=True, index=True),
)

feedback_initiatives = Table(
    "feedback_initiatives",
    Base.metadata,
    Column("feedback_id", String(36), ForeignKey("feedback.id", ondelete="CASCADE"), primary_key=True),
    Column("initiative_id", String(36), ForeignKey("initiatives.id", ondelete="CASCADE"), primary_key=True, index=True),
)
