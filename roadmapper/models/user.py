"""
User Model

Users belong to exactly one tenant. E-mail is unique per tenant, not
globally: the same address may exist in two organizations.
"""
from sqlalchemy import Column, String, DateTime, ForeignKey, Index, func
from roadmapper.database import Base
import enum


class UserRole(str, enum.Enum):
    USER = "user"
    ADMIN = "admin"


class User(Base):
    __tablename__ = "users"

    id = Column(String(36), primary_key=True)

    # CRITICAL: tenant_id for isolation
    tenant_id = Column(
        String(36),
        ForeignKey("tenants.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )

    email = Column(String(255), nullable=False)
    password_hash = Column(String(255), nullable=False)
    name = Column(String(255), nullable=False)
    role = Column(String(20), nullable=False, server_default=UserRole.USER.value)

    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    __table_args__ = (
        # Login looks users up by (tenant_id, email)
        Index("ix_users_tenant_email", "tenant_id", "email", unique=True),
    )
