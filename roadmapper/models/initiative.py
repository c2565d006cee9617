"""
Initiative Model

Initiatives roll up to an optional goal. Deleting the goal detaches
its initiatives instead of deleting them.
"""
from sqlalchemy import Column, String, Text, Integer, DateTime, ForeignKey, Index, func
from roadmapper.database import Base


class Initiative(Base):
    __tablename__ = "initiatives"

    id = Column(String(36), primary_key=True)
    tenant_id = Column(
        String(36),
        ForeignKey("tenants.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )
    goal_id = Column(String(36), ForeignKey("goals.id", ondelete="SET NULL"), nullable=True, index=True)

    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=False, server_default="")
    status = Column(String(20), nullable=False)  # active, planned, completed
    priority = Column(Integer, nullable=False)  # 1 (highest) .. 5

    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    __table_args__ = (
        Index("ix_initiatives_tenant_status", "tenant_id", "status"),
    )
