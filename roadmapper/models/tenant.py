"""
Tenant Model

The tenant is the isolation boundary: one organization, identified by the
e-mail domain its users sign up with. Every other table carries a tenant_id
pointing here.
"""
from sqlalchemy import Column, String, DateTime, func
from roadmapper.database import Base

PLAN_TIERS = ("basic", "pro", "enterprise")


class Tenant(Base):
    __tablename__ = "tenants"

    # UUIDs avoid enumeration and are generated by the record store
    id = Column(String(36), primary_key=True)

    # Company domain (acme.com). Also matched against the Host header.
    domain_name = Column(String(255), unique=True, nullable=False, index=True)

    # basic, pro, enterprise
    plan_tier = Column(String(20), nullable=False, server_default="basic")

    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
