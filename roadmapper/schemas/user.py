"""
User Management Schemas

Profile and admin updates. Reads reuse UserResponse from schemas.auth.
"""
from pydantic import Field
from typing import ClassVar, Optional

from roadmapper.models.user import UserRole
from roadmapper.schemas.common import ChangesModel


class UserProfileUpdate(ChangesModel):
    """
    What a user may change about themselves.

    SECURITY: email, role and tenant are not fields here, so they are
    dropped from the request body rather than applied.
    """
    not_null: ClassVar[frozenset] = frozenset({"name"})

    name: Optional[str] = Field(None, min_length=1, max_length=255)


class UserAdminUpdate(ChangesModel):
    """Admin changes to another user of the same tenant."""
    not_null: ClassVar[frozenset] = frozenset({"name", "role"})

    name: Optional[str] = Field(None, min_length=1, max_length=255)
    role: Optional[UserRole] = None
