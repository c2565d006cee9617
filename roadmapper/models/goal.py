"""Goal Model"""
from sqlalchemy import Column, String, Text, Date, DateTime, ForeignKey, Index, func
from roadmapper.database import Base


class Goal(Base):
    __tablename__ = "goals"

    id = Column(String(36), primary_key=True)
    tenant_id = Column(
        String(36),
        ForeignKey("tenants.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )

    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=False, server_default="")
    status = Column(String(20), nullable=False, server_default="active")  # active, planned, completed
    target_date = Column(Date, nullable=True)

    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    __table_args__ = (
        Index("ix_goals_tenant_status", "tenant_id", "status"),
    )
