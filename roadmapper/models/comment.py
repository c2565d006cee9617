"""
Comment Model

Comments hang off ideas, feedback or initiatives. entity_id is polymorphic
so it has no foreign key; handlers verify the target belongs to the tenant
before a comment is written.
"""
from sqlalchemy import Column, String, Text, DateTime, ForeignKey, Index, func
from roadmapper.database import Base


class Comment(Base):
    __tablename__ = "comments"

    id = Column(String(36), primary_key=True)
    tenant_id = Column(
        String(36),
        ForeignKey("tenants.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )
    user_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)

    entity_type = Column(String(20), nullable=False)  # idea, feedback, initiative
    entity_id = Column(String(36), nullable=False)
    content = Column(Text, nullable=False)

    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    __table_args__ = (
        Index("ix_comments_entity", "tenant_id", "entity_type", "entity_id"),
    )
