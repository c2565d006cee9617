"""
Exceptions

Every error type the application raises on purpose.

Two families live here:
- HTTPException subclasses raised by endpoints and dependencies. FastAPI
  turns these into responses directly.
- Data layer exceptions raised by the stores and the query builder. These
  know nothing about HTTP; main.py maps them to responses.
"""
from fastapi import HTTPException, status


class TenantNotFoundError(HTTPException):
    """Raised when no tenant could be resolved for the request."""

    def __init__(self, tenant_identifier: str = ""):
        super().__init__(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Tenant not found: {tenant_identifier}" if tenant_identifier else "Tenant not found"
        )


class RecordNotFoundError(HTTPException):
    """
    Raised when a record does not exist OR belongs to another tenant.

    SECURITY: Both cases must produce the exact same response so callers
    cannot probe for ids that exist in other tenants.
    """

    def __init__(self, entity: str = "Record", record_id: str = ""):
        label = entity.capitalize()
        super().__init__(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"{label} not found: {record_id}" if record_id else f"{label} not found"
        )


class AuthenticationError(HTTPException):
    """Missing, invalid or expired credentials."""

    def __init__(self, detail: str = "Could not validate credentials"):
        super().__init__(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=detail,
            headers={"WWW-Authenticate": "Bearer"},
        )


class PermissionDenied(HTTPException):
    """Raised when the principal may not perform an action inside its own tenant."""

    def __init__(self, detail: str = "Insufficient permissions"):
        super().__init__(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=detail
        )


class PlanUpgradeRequired(HTTPException):
    """Raised when the tenant's plan tier does not include a feature."""

    def __init__(self, allowed_tiers: tuple = ()):
        tiers = ", ".join(allowed_tiers)
        super().__init__(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=f"This feature requires one of these plans: {tiers}" if tiers else "Plan upgrade required"
        )


class InvalidInputError(HTTPException):
    """Request data rejected by an endpoint check (duplicate e-mail, foreign reference)."""

    def __init__(self, detail: str = "Invalid input"):
        super().__init__(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=detail
        )


# ============================================================================
# DATA LAYER
# ============================================================================

class DataLayerError(Exception):
    """
    Database or connection failure.

    Always fatal for the request. Never converted into "not found".
    """


class ConstraintViolationError(DataLayerError):
    """
    A database constraint rejected a write.

    Duplicate association inserts never get here (they are absorbed with
    ON CONFLICT DO NOTHING), so reaching this means validation missed something.
    """


class QueryTimeoutError(DataLayerError):
    """The request deadline expired before a statement finished."""


class RecordValidationError(Exception):
    """Raised by entity validators before anything is written."""

    def __init__(self, field: str, message: str):
        self.field = field
        self.message = message
        super().__init__(f"{field}: {message}")


class InvalidColumnError(ValueError):
    """A column name that is not on the table's allow-list reached the query builder."""


class TenantIsolationError(Exception):
    """
    Raised when a statement that must be tenant-scoped is about to run
    without a tenant_id condition.

    This is a CRITICAL programming error and should be logged/alerted on.
    """
