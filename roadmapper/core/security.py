"""
Security Module

Password hashing and JWT handling (passlib with bcrypt, python-jose).

The tenant id inside a verified token is the only tenant signal that the
resolver trusts without looking it up again, so the signature check here is
what makes that shortcut safe.
"""
from datetime import datetime, timedelta, timezone
from typing import Optional, Dict, Any
from jose import JWTError, jwt
from passlib.context import CryptContext
from roadmapper.config import get_settings

settings = get_settings()

# bcrypt with default rounds (12)
pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify a password against its bcrypt hash (constant time)."""
    return pwd_context.verify(plain_password, hashed_password)


def get_password_hash(password: str) -> str:
    """
    Hash a password using bcrypt.

    NOTE: This is intentionally slow (100ms+). Don't call it in hot paths.
    """
    return pwd_context.hash(password)


def create_access_token(
    user_id: str,
    tenant_id: str,
    role: str,
    expires_delta: Optional[timedelta] = None
) -> str:
    """
    Create a signed access token.

    Payload:
    - sub: user id
    - tenant_id: tenant the user belongs to
    - role: user role at issue time (re-read from the database on use)
    - exp / iat
    """
    now = datetime.now(timezone.utc)
    expire = now + (expires_delta or timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES))

    claims = {
        "sub": user_id,
        "tenant_id": tenant_id,
        "role": role,
        "exp": expire,
        "iat": now,
    }
    return jwt.encode(claims, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


def decode_access_token(token: str) -> Optional[Dict[str, Any]]:
    """
    Decode and verify a JWT token.

    Returns the payload if valid, None if invalid/expired/tampered with.
    A payload without both sub and tenant_id is treated as invalid.
    """
    try:
        payload = jwt.decode(
            token,
            settings.SECRET_KEY,
            algorithms=[settings.ALGORITHM]
        )
    except JWTError:
        return None

    if not payload.get("sub") or not payload.get("tenant_id"):
        return None
    return payload
