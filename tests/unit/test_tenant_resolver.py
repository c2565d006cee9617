"""
Tenant resolution tests.

The directory runs against an in-memory stand-in for the tenants store so
the priority rules can be checked without a database.
"""

import json
import uuid

import pytest
from starlette.requests import Request

from roadmapper.core.exceptions import DataLayerError, RecordValidationError
from roadmapper.core.tenancy import (
    ResolvedTenant,
    TenantDirectory,
    TenantResolver,
    TenantSignals,
    TenantSource,
    Unresolved,
    extract_email_domain,
    normalize_host,
)


def make_tenant(domain):
    return {"id": str(uuid.uuid4()), "domain_name": domain, "plan_tier": "basic"}


class FakeTenantStore:
    """Just enough of RecordStore for TenantDirectory."""

    def __init__(self, *tenants):
        self.rows = {tenant["id"]: tenant for tenant in tenants}
        self.lookups = []
        self.fail = False

    async def find_by_id(self, record_id):
        self.lookups.append(("id", record_id))
        if self.fail:
            raise DataLayerError("connection reset")
        return self.rows.get(record_id)

    async def find_one(self, filters):
        self.lookups.append(("domain", filters["domain_name"]))
        if self.fail:
            raise DataLayerError("connection reset")
        return next((t for t in self.rows.values() if t["domain_name"] == filters["domain_name"]), None)

    async def create(self, data):
        tenant = {"id": str(uuid.uuid4()), **data}
        self.rows[tenant["id"]] = tenant
        return tenant


@pytest.fixture
def acme():
    return make_tenant("acme.io")


@pytest.fixture
def globex():
    return make_tenant("globex.io")


@pytest.fixture
def store(acme, globex):
    return FakeTenantStore(acme, globex)


@pytest.fixture
def resolver(store):
    return TenantResolver(TenantDirectory(store))


@pytest.mark.asyncio
async def test_header_beats_cookie(resolver, acme, globex):
    resolution = await resolver.resolve(TenantSignals(header=acme["id"], cookie=globex["id"]))

    assert resolution == ResolvedTenant(acme["id"], TenantSource.HEADER, acme)


@pytest.mark.asyncio
async def test_priority_order(resolver, acme, globex):
    resolution = await resolver.resolve(
        TenantSignals(query=acme["id"], cookie=globex["id"], body=globex["id"], host="globex.io")
    )

    assert resolution.source == TenantSource.QUERY
    assert resolution.tenant_id == acme["id"]


@pytest.mark.asyncio
async def test_unknown_header_falls_through_to_cookie(resolver, globex):
    resolution = await resolver.resolve(TenantSignals(header=str(uuid.uuid4()), cookie=globex["id"]))

    assert resolution.source == TenantSource.COOKIE
    assert resolution.tenant_id == globex["id"]


@pytest.mark.asyncio
async def test_malformed_id_is_a_miss_without_a_lookup(resolver, store, acme):
    resolution = await resolver.resolve(TenantSignals(header="not-a-uuid' OR 1=1", body=acme["id"]))

    assert resolution.source == TenantSource.BODY
    assert store.lookups == [("id", acme["id"])]


@pytest.mark.asyncio
async def test_host_is_last_and_port_is_stripped(resolver, acme):
    resolution = await resolver.resolve(TenantSignals(header="garbage", host="ACME.io:8443"))

    assert resolution.source == TenantSource.HOST
    assert resolution.tenant_id == acme["id"]


@pytest.mark.asyncio
async def test_context_tenant_wins(resolver, acme, globex):
    resolution = await resolver.resolve(TenantSignals(context_tenant_id=acme["id"], header=globex["id"]))

    assert resolution.source == TenantSource.CONTEXT
    assert resolution.tenant_id == acme["id"]
    assert resolution.plan_tier == "basic"


@pytest.mark.asyncio
async def test_nothing_matches(resolver):
    resolution = await resolver.resolve(
        TenantSignals(header=str(uuid.uuid4()), query="   ", host="unknown.io")
    )

    assert isinstance(resolution, Unresolved)
    assert not resolution
    assert resolution.tried == (TenantSource.HEADER, TenantSource.HOST)


@pytest.mark.asyncio
async def test_data_layer_error_is_not_a_miss(resolver, store, acme):
    store.fail = True

    with pytest.raises(DataLayerError):
        await resolver.resolve(TenantSignals(header=acme["id"]))


def test_resolved_tenant_is_immutable(acme):
    resolution = ResolvedTenant(acme["id"], TenantSource.HEADER, acme)

    with pytest.raises(AttributeError):
        resolution.tenant_id = "other"


class TestDirectory:
    @pytest.mark.asyncio
    async def test_find_or_create_joins_existing_tenant(self, store, acme):
        tenant, created = await TenantDirectory(store).find_or_create_for_email("Kim@acme.io")

        assert tenant == acme
        assert created is False

    @pytest.mark.asyncio
    async def test_find_or_create_creates_new_tenant(self, store):
        tenant, created = await TenantDirectory(store).find_or_create_for_email("kim@initech.io")

        assert created is True
        assert tenant["domain_name"] == "initech.io"
        assert tenant["plan_tier"] == "basic"

    @pytest.mark.asyncio
    async def test_public_mail_domains_are_rejected(self, store):
        with pytest.raises(RecordValidationError) as exc_info:
            await TenantDirectory(store).find_or_create_for_email("kim@gmail.com")

        assert exc_info.value.field == "email"


@pytest.mark.parametrize(
    "host, expected",
    [
        ("acme.io", "acme.io"),
        ("Acme.IO:8080", "acme.io"),
        ("acme.io.", "acme.io"),
        ("[::1]:8000", "::1"),
        ("", None),
        (None, None),
        ("[]", None),
    ],
)
def test_normalize_host(host, expected):
    assert normalize_host(host) == expected


def test_extract_email_domain():
    assert extract_email_domain("pat@Acme.io") == "acme.io"
    assert extract_email_domain("no-at-sign") is None
    assert extract_email_domain("trailing@") is None


# ============================================================================
# SIGNALS FROM A REQUEST
# ============================================================================

def make_request(method="GET", headers=None, body=b"", query_string=b""):
    raw_headers = [(name.lower().encode("latin-1"), value.encode("latin-1")) for name, value in (headers or {}).items()]
    scope = {
        "type": "http",
        "method": method,
        "path": "/api/v1/goals",
        "query_string": query_string,
        "headers": raw_headers,
    }

    async def receive():
        return {"type": "http.request", "body": body, "more_body": False}

    return Request(scope, receive)


def json_request(method, payload, content_type="application/json"):
    return make_request(method, {"Content-Type": content_type}, json.dumps(payload).encode())


@pytest.mark.asyncio
async def test_signals_from_headers_query_and_cookie():
    request = make_request(
        headers={"X-Tenant-ID": "h-1", "Cookie": "tenant_id=c-1", "Host": "acme.io:8000"},
        query_string=b"tenantId=q-1",
    )

    signals = await TenantSignals.from_request(request, context_tenant_id="ctx-1")

    assert signals == TenantSignals(
        context_tenant_id="ctx-1", header="h-1", query="q-1", cookie="c-1", body=None, host="acme.io:8000"
    )


@pytest.mark.asyncio
@pytest.mark.parametrize("method", ["POST", "PUT", "PATCH"])
async def test_body_tenant_is_read_on_writes(method):
    signals = await TenantSignals.from_request(json_request(method, {"title": "x", "tenant_id": "b-1"}))

    assert signals.body == "b-1"


@pytest.mark.asyncio
async def test_body_is_ignored_on_get_and_delete():
    for method in ("GET", "DELETE"):
        signals = await TenantSignals.from_request(json_request(method, {"tenant_id": "b-1"}))

        assert signals.body is None


@pytest.mark.asyncio
async def test_body_needs_json_content_type():
    signals = await TenantSignals.from_request(json_request("POST", {"tenant_id": "b-1"}, content_type="text/plain"))

    assert signals.body is None


@pytest.mark.asyncio
async def test_invalid_json_body_is_no_signal():
    request = make_request("POST", {"Content-Type": "application/json", "X-Tenant-ID": "h-1"}, b"{not json")

    signals = await TenantSignals.from_request(request)

    assert signals.body is None
    assert signals.header == "h-1"


@pytest.mark.asyncio
@pytest.mark.parametrize("payload", [{"tenant_id": 42}, {"tenant_id": None}, {"tenant_id": ["b-1"]}, ["b-1"]])
async def test_non_string_body_tenant_is_ignored(payload):
    signals = await TenantSignals.from_request(json_request("POST", payload))

    assert signals.body is None


@pytest.mark.asyncio
async def test_body_tenant_resolves_when_nothing_else_does(resolver, acme):
    signals = await TenantSignals.from_request(json_request("POST", {"tenant_id": acme["id"]}))

    resolution = await resolver.resolve(signals)

    assert resolution.source == TenantSource.BODY
    assert resolution.tenant_id == acme["id"]
