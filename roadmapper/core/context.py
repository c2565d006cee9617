"""
Request Context

The immutable bundle a handler works with once the tenant is known: the
resolved tenant, the stores bound to this request's transaction and the
authenticated principal, if any.

Handlers get it as a parameter (FastAPI dependency), never from
request.state.
"""
from dataclasses import dataclass
from typing import Any, Dict, Optional

from roadmapper.core.exceptions import RecordNotFoundError
from roadmapper.core.tenancy import ResolvedTenant
from roadmapper.data.registry import Stores
from roadmapper.models.user import UserRole
from roadmapper.utils.logging import get_logger, log_security_event

logger = get_logger(__name__)


@dataclass(frozen=True)
class Principal:
    """Authenticated user, loaded from the database after token verification."""
    user_id: str
    tenant_id: str
    role: str
    email: str
    name: str = ""

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN.value

    @classmethod
    def from_record(cls, user: Dict[str, Any]) -> "Principal":
        return cls(
            user_id=user["id"],
            tenant_id=user["tenant_id"],
            role=user["role"],
            email=user["email"],
            name=user.get("name") or "",
        )


@dataclass(frozen=True)
class RequestContext:
    tenant: ResolvedTenant
    stores: Stores
    principal: Optional[Principal] = None

    @property
    def tenant_id(self) -> str:
        return self.tenant.tenant_id

    @property
    def plan_tier(self) -> Optional[str]:
        return self.tenant.plan_tier

    def owns(self, record: Optional[Dict[str, Any]]) -> bool:
        return record is not None and record.get("tenant_id") == self.tenant_id

    def require_owned(self, record: Optional[Dict[str, Any]], entity: str = "record") -> Dict[str, Any]:
        """
        Return record if it belongs to this request's tenant.

        Missing and foreign rows both raise the same 404.
        """
        if record is None:
            raise RecordNotFoundError(entity)
        if not self.owns(record):
            log_security_event(
                "cross_tenant_access",
                {
                    "entity": entity,
                    "record_id": record.get("id"),
                    "tenant_id": self.tenant_id,
                    "user_id": self.principal.user_id if self.principal else None,
                    "tenant_source": self.tenant.source.value,
                },
                logger
            )
            raise RecordNotFoundError(entity)
        return record
