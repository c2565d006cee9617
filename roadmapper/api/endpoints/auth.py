"""
Authentication Endpoints

Registration, login and the current user.

Tenants are derived from the e-mail domain: the first person to sign up
with @acme.io creates the acme.io tenant and becomes its admin, everyone
after that joins it as a regular user.
"""
from fastapi import APIRouter, Depends, status
from datetime import timedelta

from roadmapper.api.deps import get_stores, get_tenant_directory, require_principal
from roadmapper.config import get_settings
from roadmapper.core.context import Principal
from roadmapper.core.exceptions import AuthenticationError, InvalidInputError
from roadmapper.core.security import create_access_token, get_password_hash, verify_password
from roadmapper.core.tenancy import TenantDirectory, extract_email_domain
from roadmapper.data.registry import Stores
from roadmapper.models.user import UserRole
from roadmapper.schemas.auth import (
    ChangePasswordRequest,
    LoginRequest,
    RegisterRequest,
    RegisterResponse,
    Token,
    UserResponse,
)
from roadmapper.utils.logging import get_logger, log_security_event

logger = get_logger(__name__)
settings = get_settings()

router = APIRouter(prefix="/auth", tags=["authentication"])


def _issue_token(user: dict) -> str:
    return create_access_token(
        user_id=user["id"],
        tenant_id=user["tenant_id"],
        role=user["role"],
        expires_delta=timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES),
    )


@router.post("/register", response_model=RegisterResponse, status_code=status.HTTP_201_CREATED)
async def register(
    registration: RegisterRequest,
    stores: Stores = Depends(get_stores),
    directory: TenantDirectory = Depends(get_tenant_directory),
):
    """
    Register a user, creating the tenant for their e-mail domain if needed.

    NOTE: This is simplified. In production, you'd want e-mail verification
    before letting someone join an existing tenant.
    """
    email = registration.email.lower()
    tenant, created = await directory.find_or_create_for_email(email)

    existing_user = await stores.users.find_one_for_tenant(tenant["id"], {"email": email})
    if existing_user:
        raise InvalidInputError("User with this email already exists")

    # First user of a tenant administers it
    is_first_user = await stores.users.count({"tenant_id": tenant["id"]}) == 0

    user = await stores.users.create({
        "tenant_id": tenant["id"],
        "email": email,
        "password_hash": get_password_hash(registration.password),
        "name": registration.name,
        "role": UserRole.ADMIN.value if is_first_user else UserRole.USER.value,
    })

    logger.info(
        f"New user registered: {user['id']} in {'new' if created else 'existing'} tenant {tenant['id']}",
        extra={"tenant_id": tenant["id"], "user_id": user["id"]}
    )

    return RegisterResponse(user=user, tenant=tenant, access_token=_issue_token(user))


@router.post("/login", response_model=Token)
async def login(
    credentials: LoginRequest,
    stores: Stores = Depends(get_stores),
    directory: TenantDirectory = Depends(get_tenant_directory),
):
    """
    Authenticate and return a JWT carrying user id and tenant id.

    SECURITY: Every failure returns the same message to prevent user and
    tenant enumeration. The reason is only logged.
    """
    email = credentials.email.lower()
    tenant = await directory.find_by_domain(extract_email_domain(email) or "")

    if not tenant:
        log_security_event("failed_login", {"reason": "tenant_not_found", "email": email}, logger)
        raise AuthenticationError("Invalid credentials")

    user = await stores.users.find_one_for_tenant(tenant["id"], {"email": email})
    if not user:
        log_security_event(
            "failed_login",
            {"reason": "user_not_found", "email": email, "tenant_id": tenant["id"]},
            logger
        )
        raise AuthenticationError("Invalid credentials")

    if not verify_password(credentials.password, user["password_hash"]):
        log_security_event(
            "failed_login",
            {"reason": "invalid_password", "user_id": user["id"], "tenant_id": tenant["id"]},
            logger
        )
        raise AuthenticationError("Invalid credentials")

    logger.info(f"Successful login: user={user['id']}, tenant={tenant['id']}")
    return Token(access_token=_issue_token(user))


@router.get("/me", response_model=UserResponse)
async def read_me(
    principal: Principal = Depends(require_principal),
    stores: Stores = Depends(get_stores),
):
    user = await stores.users.find_by_id(principal.user_id)
    if not user:
        raise AuthenticationError("User not found")
    return user


@router.post("/change-password", status_code=status.HTTP_204_NO_CONTENT)
async def change_password(
    passwords: ChangePasswordRequest,
    principal: Principal = Depends(require_principal),
    stores: Stores = Depends(get_stores),
):
    user = await stores.users.find_by_id(principal.user_id)
    if not user or not verify_password(passwords.current_password, user["password_hash"]):
        log_security_event(
            "failed_login",
            {"reason": "change_password_mismatch", "user_id": principal.user_id, "tenant_id": principal.tenant_id},
            logger
        )
        raise AuthenticationError("Current password is incorrect")

    await stores.users.update(user["id"], {"password_hash": get_password_hash(passwords.new_password)})
    logger.info(f"Password changed: user={user['id']}", extra={"tenant_id": principal.tenant_id})
    return None
