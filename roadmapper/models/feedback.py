"""Feedback Model"""
from sqlalchemy import Column, String, Text, DateTime, ForeignKey, Index, func
from roadmapper.database import Base


class Feedback(Base):
    __tablename__ = "feedback"

    id = Column(String(36), primary_key=True)
    tenant_id = Column(
        String(36),
        ForeignKey("tenants.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )

    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=False, server_default="")
    sentiment = Column(String(20), nullable=False, server_default="neutral")  # positive, neutral, negative

    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    __table_args__ = (
        Index("ix_feedback_tenant_created", "tenant_id", "created_at"),
    )
