"""
Tenant Resolution

Decides which tenant a request belongs to.

Signals, highest priority first:
1. tenant id from a verified bearer token (trusted, it is signed)
2. X-Tenant-ID header
3. tenantId query parameter
4. tenant_id cookie
5. tenant_id field of a JSON body (POST/PUT/PATCH)
6. Host header, matched against tenants.domain_name

Signals 2-5 are client controlled. Each one is looked up and, if it does not
name an existing tenant (or is not even shaped like an id), resolution
falls through to the next signal instead of failing. Database errors are
NOT misses: they propagate.

The result is an immutable ResolvedTenant (or a falsy Unresolved). Nothing
is written onto the request object.
"""
import enum
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Tuple, Union

from starlette.requests import Request

from roadmapper.core.exceptions import RecordValidationError
from roadmapper.core.tenant_cache import TenantCache
from roadmapper.core.validation import is_valid_uuid
from roadmapper.data.records import RecordStore
from roadmapper.utils.logging import get_logger

logger = get_logger(__name__)

TENANT_HEADER = "X-Tenant-ID"
TENANT_QUERY_PARAM = "tenantId"
TENANT_COOKIE = "tenant_id"
TENANT_BODY_FIELD = "tenant_id"

BODY_METHODS = ("POST", "PUT", "PATCH")

# Free mail providers: a shared domain must never become one tenant
RESTRICTED_DOMAINS = frozenset({
    "gmail.com",
    "yahoo.com",
    "hotmail.com",
    "outlook.com",
    "aol.com",
    "icloud.com",
    "mail.com",
    "protonmail.com",
    "zoho.com",
    "yandex.com",
    "live.com",
    "msn.com",
})


class TenantSource(str, enum.Enum):
    CONTEXT = "context"
    HEADER = "header"
    QUERY = "query"
    COOKIE = "cookie"
    BODY = "body"
    HOST = "host"


def normalize_host(host: Optional[str]) -> Optional[str]:
    """
    Host header to bare lower-case domain.

    "Acme.io:8080" -> "acme.io", "[::1]:8000" -> "::1", "acme.io." -> "acme.io"
    """
    host = (host or "").strip().lower()
    if not host:
        return None
    if host.startswith("["):
        end = host.find("]")
        if end <= 1:
            return None
        return host[1:end]
    if host.count(":") == 1:
        host = host.split(":", 1)[0]
    return host.rstrip(".") or None


def extract_email_domain(email: str) -> Optional[str]:
    if not email or "@" not in email:
        return None
    domain = email.rsplit("@", 1)[1].strip().lower()
    return domain or None


@dataclass(frozen=True)
class TenantSignals:
    """Everything a request says about its tenant, before verification."""
    context_tenant_id: Optional[str] = None
    header: Optional[str] = None
    query: Optional[str] = None
    cookie: Optional[str] = None
    body: Optional[str] = None
    host: Optional[str] = None

    def id_candidates(self) -> List[Tuple[TenantSource, str]]:
        """Client-supplied ids in priority order, blanks dropped."""
        candidates = [
            (TenantSource.HEADER, self.header),
            (TenantSource.QUERY, self.query),
            (TenantSource.COOKIE, self.cookie),
            (TenantSource.BODY, self.body),
        ]
        return [(source, value.strip()) for source, value in candidates if isinstance(value, str) and value.strip()]

    @classmethod
    async def from_request(cls, request: Request, context_tenant_id: Optional[str] = None) -> "TenantSignals":
        body_tenant = None
        if request.method in BODY_METHODS and "json" in request.headers.get("content-type", ""):
            try:
                payload = await request.json()
            except ValueError:
                payload = None
            if isinstance(payload, dict) and isinstance(payload.get(TENANT_BODY_FIELD), str):
                body_tenant = payload[TENANT_BODY_FIELD]

        return cls(
            context_tenant_id=context_tenant_id,
            header=request.headers.get(TENANT_HEADER),
            query=request.query_params.get(TENANT_QUERY_PARAM),
            cookie=request.cookies.get(TENANT_COOKIE),
            body=body_tenant,
            host=request.headers.get("host"),
        )


@dataclass(frozen=True)
class ResolvedTenant:
    """The authoritative tenant of a request and where it came from."""
    tenant_id: str
    source: TenantSource
    tenant: Optional[Dict[str, Any]] = None

    @property
    def plan_tier(self) -> Optional[str]:
        return self.tenant.get("plan_tier") if self.tenant else None


@dataclass(frozen=True)
class Unresolved:
    """No signal named an existing tenant."""
    tried: Tuple[TenantSource, ...] = ()

    def __bool__(self) -> bool:
        return False


Resolution = Union[ResolvedTenant, Unresolved]


class TenantDirectory:
    """
    Tenant lookups and tenant lifecycle.

    Reads go through the Redis cache when one is configured.
    """

    def __init__(self, tenants: RecordStore, cache: Optional[TenantCache] = None):
        self.tenants = tenants
        self.cache = cache

    async def _remember(self, tenant: Optional[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
        if tenant and self.cache:
            await self.cache.store(tenant)
        return tenant

    async def find_by_id(self, tenant_id: str) -> Optional[Dict[str, Any]]:
        """Tenant row, or None. Malformed ids are a miss and never reach the database."""
        if not is_valid_uuid(tenant_id):
            return None
        if self.cache:
            cached = await self.cache.get_by_id(tenant_id)
            if cached:
                return cached
        return await self._remember(await self.tenants.find_by_id(tenant_id))

    async def find_by_domain(self, host: str) -> Optional[Dict[str, Any]]:
        domain = normalize_host(host)
        if not domain:
            return None
        if self.cache:
            cached = await self.cache.get_by_domain(domain)
            if cached:
                return cached
        return await self._remember(await self.tenants.find_one({"domain_name": domain}))

    async def update_plan_tier(self, tenant: Dict[str, Any], plan_tier: str) -> Dict[str, Any]:
        updated = await self.tenants.update(tenant["id"], {"plan_tier": plan_tier})
        if self.cache:
            cache = self.cache
            # invalidated once the row change is committed
            self.tenants.executor.after_commit(lambda: cache.invalidate(tenant))
        logger.info(
            f"Tenant {tenant['id']} plan tier changed: {tenant['plan_tier']} -> {updated['plan_tier']}",
            extra={"tenant_id": tenant["id"]}
        )
        return updated

    async def find_or_create_for_email(self, email: str) -> Tuple[Dict[str, Any], bool]:
        """
        Tenant owning the e-mail's domain, created on first sign-up.

        Returns (tenant, created). Free mail domains are rejected because
        they would put unrelated people into one tenant.
        """
        domain = extract_email_domain(email)
        if not domain:
            raise RecordValidationError("email", "Invalid email address")
        if domain in RESTRICTED_DOMAINS:
            raise RecordValidationError(
                "email",
                f"Please register with your company email address ({domain} is a public email provider)"
            )

        tenant = await self.tenants.find_one({"domain_name": domain})
        if tenant:
            return tenant, False

        tenant = await self.tenants.create({"domain_name": domain, "plan_tier": "basic"})
        logger.info(f"Created tenant {tenant['id']} for domain {domain}", extra={"tenant_id": tenant["id"]})
        return tenant, True


class TenantResolver:
    """Turns TenantSignals into a ResolvedTenant or Unresolved."""

    def __init__(self, directory: TenantDirectory):
        self.directory = directory

    async def resolve(self, signals: TenantSignals) -> Resolution:
        if signals.context_tenant_id:
            # From a verified token: accepted as is, the row is loaded for plan checks
            tenant = await self.directory.find_by_id(signals.context_tenant_id)
            return ResolvedTenant(signals.context_tenant_id, TenantSource.CONTEXT, tenant)

        tried = []
        for source, candidate in signals.id_candidates():
            tried.append(source)
            tenant = await self.directory.find_by_id(candidate)
            if tenant:
                logger.debug(f"Tenant resolved from {source.value}", extra={"tenant_id": tenant["id"]})
                return ResolvedTenant(tenant["id"], source, tenant)
            logger.debug(f"Tenant {source.value} signal matched no tenant, falling through")

        if signals.host:
            tried.append(TenantSource.HOST)
            tenant = await self.directory.find_by_domain(signals.host)
            if tenant:
                logger.debug(f"Tenant resolved from host {signals.host}", extra={"tenant_id": tenant["id"]})
                return ResolvedTenant(tenant["id"], TenantSource.HOST, tenant)

        return Unresolved(tuple(tried))
