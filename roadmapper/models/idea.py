"""
Idea Model

Ideas may be attached to one initiative and linked to any number of
customers through the ideas_customers junction table.
"""
from sqlalchemy import Column, String, Text, DateTime, ForeignKey, Index, func
from roadmapper.database import Base


class Idea(Base):
    __tablename__ = "ideas"

    id = Column(String(36), primary_key=True)
    tenant_id = Column(
        String(36),
        ForeignKey("tenants.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )
    initiative_id = Column(
        String(36),
        ForeignKey("initiatives.id", ondelete="SET NULL"),
        nullable=True,
        index=True
    )

    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=False, server_default="")
    priority = Column(String(20), nullable=False, server_default="medium")  # urgent, high, medium, low
    effort = Column(String(4), nullable=False, server_default="m")  # xs, s, m, l, xl
    status = Column(String(20), nullable=False, server_default="new")  # new, planned, completed, rejected
    source = Column(String(50), nullable=False, server_default="internal")

    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    __table_args__ = (
        Index("ix_ideas_tenant_status", "tenant_id", "status"),
        Index("ix_ideas_tenant_created", "tenant_id", "created_at"),
    )
