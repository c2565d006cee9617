"""
Customer Model

Revenue is stored as NUMERIC, never as float. Currency strings typed into
the UI ("$1,234.56") are normalized by the customer validator.
"""
from sqlalchemy import Column, String, Numeric, DateTime, ForeignKey, Index, func
from roadmapper.database import Base


class Customer(Base):
    __tablename__ = "customers"

    id = Column(String(36), primary_key=True)
    tenant_id = Column(
        String(36),
        ForeignKey("tenants.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )

    name = Column(String(255), nullable=False)
    status = Column(String(20), nullable=False, server_default="active")  # active, inactive, prospect
    revenue = Column(Numeric(14, 2), nullable=True)

    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    __table_args__ = (
        Index("ix_customers_tenant_name", "tenant_id", "name"),
    )
