"""
Authentication Schemas

Request/response models for authentication endpoints.

Registration needs no tenant identifier: the tenant is derived from the
e-mail domain and created on first sign-up.
"""
from pydantic import BaseModel, ConfigDict, EmailStr, Field
from typing import ClassVar, Optional
from datetime import datetime

from roadmapper.models.user import UserRole
from roadmapper.schemas.common import ColumnModel, ChangesModel
from roadmapper.schemas.tenant import TenantResponse


class Token(BaseModel):
    """JWT token response."""
    access_token: str
    token_type: str = "bearer"


class LoginRequest(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=1)


class RegisterRequest(BaseModel):
    """User registration request."""
    email: EmailStr
    password: str = Field(..., min_length=8, max_length=72)
    name: str = Field(..., min_length=1, max_length=255)

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "email": "jamie@acme.io",
                "password": "securepassword123",
                "name": "Jamie Rivera",
            }
        }
    )


class ChangePasswordRequest(BaseModel):
    current_password: str = Field(..., min_length=1)
    new_password: str = Field(..., min_length=8, max_length=72)


class UserRecord(ColumnModel):
    """Columns written when a user row is created."""
    tenant_id: str
    email: str = Field(..., max_length=255)
    password_hash: str
    name: str = Field(..., min_length=1, max_length=255)
    role: UserRole = UserRole.USER


class UserChanges(ChangesModel):
    not_null: ClassVar[frozenset] = frozenset({"password_hash", "name", "role"})

    password_hash: Optional[str] = None
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    role: Optional[UserRole] = None


class UserResponse(BaseModel):
    """User response schema (excludes the password hash)."""
    model_config = ConfigDict(from_attributes=True)

    id: str
    tenant_id: str
    email: str
    name: str
    role: UserRole
    created_at: datetime


class RegisterResponse(BaseModel):
    user: UserResponse
    tenant: TenantResponse
    access_token: str
    token_type: str = "bearer"
