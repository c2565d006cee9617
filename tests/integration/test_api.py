"""
End-to-end API tests.

Requests go through the real dependency stack (tenant resolution, request
context, one transaction per request) against an in-memory database.
"""

import uuid
from decimal import Decimal

import pytest

API = "/api/v1"


@pytest.fixture
def create(client, auth_headers):
    """POST as a user and return the created body."""

    async def post(path, user, body):
        response = await client.post(f"{API}/{path}", json=body, headers=auth_headers(user))
        assert response.status_code == 201, response.text
        return response.json()

    return post


# ============================================================================
# TENANT RESOLUTION
# ============================================================================

@pytest.mark.asyncio
async def test_header_beats_cookie(client, seeded, create):
    await create("goals", seeded.acme_admin, {"title": "Acme goal"})
    await create("goals", seeded.globex_admin, {"title": "Globex goal"})

    response = await client.get(
        f"{API}/goals",
        headers={"X-Tenant-ID": seeded.acme["id"], "Cookie": f"tenant_id={seeded.globex['id']}"},
    )

    assert response.status_code == 200
    assert [goal["title"] for goal in response.json()] == ["Acme goal"]


@pytest.mark.asyncio
async def test_unknown_header_falls_through_to_cookie(client, seeded, create):
    await create("goals", seeded.globex_admin, {"title": "Globex goal"})

    response = await client.get(
        f"{API}/goals",
        headers={"X-Tenant-ID": str(uuid.uuid4()), "Cookie": f"tenant_id={seeded.globex['id']}"},
    )

    assert [goal["title"] for goal in response.json()] == ["Globex goal"]


@pytest.mark.asyncio
async def test_query_parameter_and_host(client, seeded, create):
    await create("goals", seeded.acme_admin, {"title": "Acme goal"})

    by_query = await client.get(f"{API}/goals", params={"tenantId": seeded.acme["id"]})
    by_host = await client.get(f"{API}/goals", headers={"Host": "acme.io:8000"})

    assert [goal["title"] for goal in by_query.json()] == ["Acme goal"]
    assert [goal["title"] for goal in by_host.json()] == ["Acme goal"]


@pytest.mark.asyncio
async def test_token_tenant_beats_header(client, seeded, create, auth_headers):
    await create("goals", seeded.acme_admin, {"title": "Acme goal"})

    response = await client.get(
        f"{API}/goals",
        headers={**auth_headers(seeded.acme_user), "X-Tenant-ID": seeded.globex["id"]},
    )

    assert [goal["title"] for goal in response.json()] == ["Acme goal"]


@pytest.mark.asyncio
@pytest.mark.parametrize("path", ["goals", "initiatives", "ideas", "feedback", "customers"])
async def test_unresolved_tenant_lists_are_empty(client, seeded, path):
    response = await client.get(f"{API}/{path}", headers={"X-Tenant-ID": "nope"})

    assert response.status_code == 200
    assert response.json() == []


@pytest.mark.asyncio
async def test_unresolved_tenant_is_404_elsewhere(client, seeded):
    detail = await client.get(f"{API}/goals/{uuid.uuid4()}")
    comments = await client.get(f"{API}/comments", params={"entity_type": "idea", "entity_id": "x"})
    tenant = await client.get(f"{API}/tenants/current")

    assert detail.status_code == 404
    assert detail.json()["detail"] == "Tenant not found"
    assert comments.status_code == 404
    assert tenant.status_code == 404


# ============================================================================
# AUTHENTICATION AND ISOLATION
# ============================================================================

@pytest.mark.asyncio
async def test_writes_require_authentication(client, seeded):
    response = await client.post(
        f"{API}/goals", json={"title": "Anonymous"}, headers={"X-Tenant-ID": seeded.acme["id"]}
    )

    assert response.status_code == 401


@pytest.mark.asyncio
async def test_anonymous_write_resolves_tenant_from_body(client, seeded, monkeypatch):
    from roadmapper.api import deps

    monkeypatch.setattr(deps.settings, "REQUIRE_AUTH_FOR_WRITES", False)

    response = await client.post(f"{API}/goals", json={"title": "From body", "tenant_id": seeded.acme["id"]})

    assert response.status_code == 201
    assert response.json()["tenant_id"] == seeded.acme["id"]


@pytest.mark.asyncio
async def test_body_tenant_yields_to_header(client, seeded, monkeypatch):
    from roadmapper.api import deps

    monkeypatch.setattr(deps.settings, "REQUIRE_AUTH_FOR_WRITES", False)

    response = await client.post(
        f"{API}/goals",
        json={"title": "Header wins", "tenant_id": seeded.acme["id"]},
        headers={"X-Tenant-ID": seeded.globex["id"]},
    )

    assert response.status_code == 201
    assert response.json()["tenant_id"] == seeded.globex["id"]


@pytest.mark.asyncio
async def test_invalid_token_is_rejected(client, seeded):
    response = await client.get(f"{API}/goals", headers={"Authorization": "Bearer not-a-jwt"})

    assert response.status_code == 401


@pytest.mark.asyncio
async def test_cross_tenant_record_is_not_found(client, seeded, create, auth_headers):
    idea = await create("ideas", seeded.globex_admin, {"title": "Globex secret"})
    url = f"{API}/ideas/{idea['id']}"
    acme = auth_headers(seeded.acme_admin)

    assert (await client.get(url, headers={"X-Tenant-ID": seeded.acme["id"]})).status_code == 404
    assert (await client.get(url, headers=acme)).status_code == 404
    assert (await client.put(url, json={"title": "Hijacked"}, headers=acme)).status_code == 404
    assert (await client.delete(url, headers=acme)).status_code == 404

    response = await client.get(url, headers={"X-Tenant-ID": seeded.globex["id"]})
    assert response.status_code == 200
    assert response.json()["title"] == "Globex secret"


@pytest.mark.asyncio
async def test_missing_record_is_not_found(client, seeded, auth_headers):
    response = await client.get(f"{API}/customers/{uuid.uuid4()}", headers=auth_headers(seeded.acme_user))

    assert response.status_code == 404


# ============================================================================
# ENTITIES
# ============================================================================

@pytest.mark.asyncio
async def test_customer_revenue_accepts_currency_strings(client, seeded, create, auth_headers):
    customer = await create("customers", seeded.acme_admin, {"name": "Initech", "revenue": "$1,234.56"})

    assert Decimal(str(customer["revenue"])) == Decimal("1234.56")

    response = await client.get(f"{API}/customers/{customer['id']}", headers=auth_headers(seeded.acme_user))
    assert Decimal(str(response.json()["revenue"])) == Decimal("1234.56")


@pytest.mark.asyncio
async def test_invalid_revenue_is_a_validation_error(client, seeded, auth_headers):
    response = await client.post(
        f"{API}/customers", json={"name": "Initech", "revenue": "a lot"}, headers=auth_headers(seeded.acme_admin)
    )

    assert response.status_code == 422


@pytest.mark.asyncio
async def test_search_matches_title_or_description(client, seeded, create):
    await create("feedback", seeded.acme_admin, {"title": "Dashboard loads slowly"})
    await create("feedback", seeded.acme_admin, {"title": "Export", "description": "I want the DASHBOARD as PDF"})
    await create("feedback", seeded.acme_admin, {"title": "SSO please"})
    await create("feedback", seeded.globex_admin, {"title": "dashboard"})

    response = await client.get(
        f"{API}/feedback",
        params={"search": "dashboard", "sort": "title:asc"},
        headers={"X-Tenant-ID": seeded.acme["id"]},
    )

    assert response.status_code == 200
    assert [item["title"] for item in response.json()] == ["Dashboard loads slowly", "Export"]


@pytest.mark.asyncio
async def test_unknown_sort_key_is_ignored(client, seeded, create):
    await create("goals", seeded.acme_admin, {"title": "Only"})

    response = await client.get(
        f"{API}/goals", params={"sort": "title; DROP TABLE goals"}, headers={"X-Tenant-ID": seeded.acme["id"]}
    )

    assert response.status_code == 200
    assert len(response.json()) == 1


@pytest.mark.asyncio
async def test_enum_filter_is_validated(client, seeded):
    response = await client.get(f"{API}/ideas", params={"status": "bogus"}, headers={"X-Tenant-ID": seeded.acme["id"]})

    assert response.status_code == 422


@pytest.mark.asyncio
@pytest.mark.parametrize("params", [{"offset": str(10**20)}, {"page": str(10**19)}, {"offset": "-1"}, {"page": "0"}])
async def test_out_of_range_paging_is_rejected(client, seeded, params):
    response = await client.get(f"{API}/goals", params=params, headers={"X-Tenant-ID": seeded.acme["id"]})

    assert response.status_code == 422


@pytest.mark.asyncio
async def test_deepest_page_is_empty(client, seeded, create):
    await create("goals", seeded.acme_admin, {"title": "Only"})

    response = await client.get(
        f"{API}/goals", params={"page": "1000000", "limit": "100"}, headers={"X-Tenant-ID": seeded.acme["id"]}
    )

    assert response.status_code == 200
    assert response.json() == []


@pytest.mark.asyncio
async def test_goal_crud(client, seeded, create, auth_headers):
    headers = auth_headers(seeded.acme_admin)
    goal = await create("goals", seeded.acme_admin, {"title": "Grow EMEA", "target_date": "2027-01-31"})

    updated = await client.put(f"{API}/goals/{goal['id']}", json={"status": "completed"}, headers=headers)
    assert updated.status_code == 200
    assert updated.json()["status"] == "completed"
    assert updated.json()["title"] == "Grow EMEA"
    assert updated.json()["target_date"] == "2027-01-31"

    null_title = await client.put(f"{API}/goals/{goal['id']}", json={"title": None}, headers=headers)
    assert null_title.status_code == 422

    assert (await client.delete(f"{API}/goals/{goal['id']}", headers=headers)).status_code == 204
    assert (await client.get(f"{API}/goals/{goal['id']}", headers=headers)).status_code == 404


@pytest.mark.asyncio
async def test_initiative_with_foreign_goal_is_rejected(client, seeded, create, auth_headers):
    goal = await create("goals", seeded.globex_admin, {"title": "Globex goal"})

    response = await client.post(
        f"{API}/initiatives",
        json={"title": "Launch", "status": "active", "priority": 1, "goal_id": goal["id"]},
        headers=auth_headers(seeded.acme_admin),
    )

    assert response.status_code == 400


# ============================================================================
# ASSOCIATIONS
# ============================================================================

@pytest.mark.asyncio
async def test_adding_a_customer_twice_keeps_one_link(client, seeded, create, auth_headers):
    headers = auth_headers(seeded.acme_admin)
    idea = await create("ideas", seeded.acme_admin, {"title": "Dark mode"})
    customer = await create("customers", seeded.acme_admin, {"name": "Initech"})
    url = f"{API}/ideas/{idea['id']}/customers/{customer['id']}"

    assert (await client.post(url, headers=headers)).status_code == 204
    assert (await client.post(url, headers=headers)).status_code == 204

    linked = await client.get(f"{API}/ideas/{idea['id']}/customers", headers=headers)
    assert [row["id"] for row in linked.json()] == [customer["id"]]

    assert (await client.delete(url, headers=headers)).status_code == 204
    assert (await client.delete(url, headers=headers)).status_code == 204
    assert (await client.get(f"{API}/ideas/{idea['id']}/customers", headers=headers)).json() == []


@pytest.mark.asyncio
async def test_cannot_link_a_foreign_customer(client, seeded, create, auth_headers):
    idea = await create("ideas", seeded.acme_admin, {"title": "Dark mode"})
    customer = await create("customers", seeded.globex_admin, {"name": "Globex buyer"})

    response = await client.post(
        f"{API}/ideas/{idea['id']}/customers/{customer['id']}", headers=auth_headers(seeded.acme_admin)
    )
    created = await client.post(
        f"{API}/ideas",
        json={"title": "Other", "customer_ids": [customer["id"]]},
        headers=auth_headers(seeded.acme_admin),
    )

    assert response.status_code == 404
    assert created.status_code == 400


@pytest.mark.asyncio
async def test_idea_customer_links(client, seeded, create, auth_headers):
    headers = auth_headers(seeded.acme_admin)
    first = await create("customers", seeded.acme_admin, {"name": "Initech"})
    second = await create("customers", seeded.acme_admin, {"name": "Hooli"})
    idea = await create("ideas", seeded.acme_admin, {"title": "Dark mode", "customer_ids": [first["id"]]})
    await create("ideas", seeded.acme_admin, {"title": "Unlinked"})

    assert [c["id"] for c in idea["customers"]] == [first["id"]]

    by_customer = await client.get(f"{API}/ideas", params={"customer_id": first["id"]}, headers=headers)
    assert [row["title"] for row in by_customer.json()] == ["Dark mode"]

    # title only: links untouched
    renamed = await client.put(f"{API}/ideas/{idea['id']}", json={"title": "Night mode"}, headers=headers)
    assert [c["id"] for c in renamed.json()["customers"]] == [first["id"]]

    replaced = await client.put(f"{API}/ideas/{idea['id']}", json={"customer_ids": [second["id"]]}, headers=headers)
    assert [c["id"] for c in replaced.json()["customers"]] == [second["id"]]


@pytest.mark.asyncio
async def test_failed_update_rolls_back(client, seeded, create, auth_headers):
    headers = auth_headers(seeded.acme_admin)
    foreign = await create("customers", seeded.globex_admin, {"name": "Globex buyer"})
    idea = await create("ideas", seeded.acme_admin, {"title": "Dark mode"})

    # the row update runs before the customer ids are checked
    response = await client.put(
        f"{API}/ideas/{idea['id']}",
        json={"title": "Changed", "customer_ids": [foreign["id"]]},
        headers=headers,
    )

    assert response.status_code == 400
    unchanged = await client.get(f"{API}/ideas/{idea['id']}", headers=headers)
    assert unchanged.json()["title"] == "Dark mode"


@pytest.mark.asyncio
async def test_feedback_links(client, seeded, create, auth_headers):
    headers = auth_headers(seeded.acme_admin)
    customer = await create("customers", seeded.acme_admin, {"name": "Initech"})
    initiative = await create(
        "initiatives", seeded.acme_admin, {"title": "Reporting", "status": "active", "priority": 2}
    )
    feedback = await create(
        "feedback",
        seeded.acme_admin,
        {"content": "Need better reports", "customer_ids": [customer["id"]], "initiative_ids": [initiative["id"]]},
    )

    assert feedback["title"] == "Need better reports"
    assert [c["id"] for c in feedback["customers"]] == [customer["id"]]
    assert [i["id"] for i in feedback["initiatives"]] == [initiative["id"]]

    by_initiative = await client.get(f"{API}/feedback", params={"initiative_id": initiative["id"]}, headers=headers)
    assert [row["id"] for row in by_initiative.json()] == [feedback["id"]]

    # deleting the initiative drops its links
    assert (await client.delete(f"{API}/initiatives/{initiative['id']}", headers=headers)).status_code == 204
    detail = await client.get(f"{API}/feedback/{feedback['id']}", headers=headers)
    assert detail.json()["initiatives"] == []
    assert [c["id"] for c in detail.json()["customers"]] == [customer["id"]]


@pytest.mark.asyncio
async def test_deleting_a_customer_unlinks_it(client, seeded, create, auth_headers):
    headers = auth_headers(seeded.acme_admin)
    customer = await create("customers", seeded.acme_admin, {"name": "Initech"})
    idea = await create("ideas", seeded.acme_admin, {"title": "Dark mode", "customer_ids": [customer["id"]]})

    assert (await client.delete(f"{API}/customers/{customer['id']}", headers=headers)).status_code == 204

    detail = await client.get(f"{API}/ideas/{idea['id']}", headers=headers)
    assert detail.json()["customers"] == []


# ============================================================================
# COMMENTS
# ============================================================================

@pytest.mark.asyncio
async def test_comment_permissions(client, seeded, create, auth_headers):
    idea = await create("ideas", seeded.acme_admin, {"title": "Dark mode"})
    comment = await create(
        "comments", seeded.acme_user, {"entity_type": "idea", "entity_id": idea["id"], "content": "+1"}
    )
    url = f"{API}/comments/{comment['id']}"

    other = await client.put(url, json={"content": "edited"}, headers=auth_headers(seeded.acme_other))
    admin = await client.put(url, json={"content": "moderated"}, headers=auth_headers(seeded.acme_admin))

    assert other.status_code == 403
    assert admin.status_code == 200
    assert admin.json()["content"] == "moderated"

    listed = await client.get(
        f"{API}/comments",
        params={"entity_type": "idea", "entity_id": idea["id"]},
        headers=auth_headers(seeded.acme_other),
    )
    assert [(c["content"], c["author_name"]) for c in listed.json()] == [("moderated", "Ben")]

    assert (await client.delete(url, headers=auth_headers(seeded.acme_user))).status_code == 204


@pytest.mark.asyncio
async def test_cannot_comment_on_foreign_record(client, seeded, create, auth_headers):
    idea = await create("ideas", seeded.globex_admin, {"title": "Globex idea"})

    response = await client.post(
        f"{API}/comments",
        json={"entity_type": "idea", "entity_id": idea["id"], "content": "hello"},
        headers=auth_headers(seeded.acme_user),
    )

    assert response.status_code == 404


# ============================================================================
# TENANTS AND PLANS
# ============================================================================

@pytest.mark.asyncio
async def test_usage_requires_pro_plan(client, seeded, auth_headers):
    basic = await client.get(f"{API}/tenants/current/usage", headers=auth_headers(seeded.globex_admin))
    pro = await client.get(f"{API}/tenants/current/usage", headers=auth_headers(seeded.acme_user))

    assert basic.status_code == 403
    assert pro.status_code == 200
    assert pro.json()["counts"]["users"] == 3
    assert pro.json()["counts"]["ideas"] == 0


@pytest.mark.asyncio
async def test_plan_change_is_admin_only(client, seeded, auth_headers):
    url = f"{API}/tenants/current/plan"

    denied = await client.put(url, json={"plan_tier": "basic"}, headers=auth_headers(seeded.acme_user))
    upgraded = await client.put(url, json={"plan_tier": "pro"}, headers=auth_headers(seeded.globex_admin))

    assert denied.status_code == 403
    assert upgraded.status_code == 200
    assert upgraded.json()["plan_tier"] == "pro"

    usage = await client.get(f"{API}/tenants/current/usage", headers=auth_headers(seeded.globex_admin))
    assert usage.status_code == 200


@pytest.mark.asyncio
async def test_current_tenant(client, seeded):
    response = await client.get(f"{API}/tenants/current", headers={"Host": "globex.io"})

    assert response.status_code == 200
    assert response.json()["domain_name"] == "globex.io"


# ============================================================================
# REGISTRATION AND LOGIN
# ============================================================================

@pytest.mark.asyncio
async def test_register_login_and_me(client, engine):
    first = await client.post(
        f"{API}/auth/register", json={"email": "Pat@Initech.io", "password": "correct-horse", "name": "Pat"}
    )
    second = await client.post(
        f"{API}/auth/register", json={"email": "sam@initech.io", "password": "battery-staple", "name": "Sam"}
    )

    assert first.status_code == 201, first.text
    assert first.json()["user"]["role"] == "admin"
    assert first.json()["user"]["email"] == "pat@initech.io"
    assert first.json()["tenant"]["domain_name"] == "initech.io"
    assert second.json()["user"]["role"] == "user"
    assert second.json()["tenant"]["id"] == first.json()["tenant"]["id"]

    duplicate = await client.post(
        f"{API}/auth/register", json={"email": "sam@initech.io", "password": "whatever-else", "name": "Sam"}
    )
    assert duplicate.status_code == 400

    login = await client.post(f"{API}/auth/login", json={"email": "sam@initech.io", "password": "battery-staple"})
    assert login.status_code == 200

    me = await client.get(f"{API}/auth/me", headers={"Authorization": f"Bearer {login.json()['access_token']}"})
    assert me.status_code == 200
    assert me.json()["name"] == "Sam"
    assert "password_hash" not in me.json()


@pytest.mark.asyncio
async def test_login_failures_look_the_same(client, engine):
    await client.post(
        f"{API}/auth/register", json={"email": "pat@initech.io", "password": "correct-horse", "name": "Pat"}
    )

    wrong_password = await client.post(f"{API}/auth/login", json={"email": "pat@initech.io", "password": "nope"})
    unknown_user = await client.post(f"{API}/auth/login", json={"email": "kim@initech.io", "password": "nope"})
    unknown_tenant = await client.post(f"{API}/auth/login", json={"email": "kim@hooli.io", "password": "nope"})

    for response in (wrong_password, unknown_user, unknown_tenant):
        assert response.status_code == 401
        assert response.json()["detail"] == "Invalid credentials"


@pytest.mark.asyncio
async def test_register_with_public_email_domain(client, engine):
    response = await client.post(
        f"{API}/auth/register", json={"email": "pat@gmail.com", "password": "correct-horse", "name": "Pat"}
    )

    assert response.status_code == 400
    assert response.json()["field"] == "email"


@pytest.mark.asyncio
async def test_change_password(client, engine):
    registered = await client.post(
        f"{API}/auth/register", json={"email": "pat@initech.io", "password": "correct-horse", "name": "Pat"}
    )
    headers = {"Authorization": f"Bearer {registered.json()['access_token']}"}

    wrong = await client.post(
        f"{API}/auth/change-password",
        json={"current_password": "nope", "new_password": "battery-staple"},
        headers=headers,
    )
    changed = await client.post(
        f"{API}/auth/change-password",
        json={"current_password": "correct-horse", "new_password": "battery-staple"},
        headers=headers,
    )
    login = await client.post(f"{API}/auth/login", json={"email": "pat@initech.io", "password": "battery-staple"})

    assert wrong.status_code == 401
    assert changed.status_code == 204
    assert login.status_code == 200


# ============================================================================
# USER MANAGEMENT
# ============================================================================

@pytest.mark.asyncio
async def test_admin_lists_users_of_own_tenant(client, seeded, auth_headers):
    everyone = await client.get(
        f"{API}/users", params={"sort": "name", "order": "asc"}, headers=auth_headers(seeded.acme_admin)
    )
    admins = await client.get(f"{API}/users", params={"role": "admin"}, headers=auth_headers(seeded.acme_admin))

    assert everyone.status_code == 200
    assert [user["name"] for user in everyone.json()] == ["Ada", "Ben", "Cy"]
    assert all("password_hash" not in user for user in everyone.json())
    assert [user["name"] for user in admins.json()] == ["Ada"]


@pytest.mark.asyncio
async def test_user_management_is_admin_only(client, seeded, auth_headers):
    as_user = await client.get(f"{API}/users", headers=auth_headers(seeded.acme_user))
    anonymous = await client.get(f"{API}/users", headers={"X-Tenant-ID": seeded.acme["id"]})
    delete = await client.delete(f"{API}/users/{seeded.acme_other['id']}", headers=auth_headers(seeded.acme_user))

    assert as_user.status_code == 403
    assert anonymous.status_code == 401
    assert delete.status_code == 403


@pytest.mark.asyncio
async def test_users_of_other_tenants_are_not_found(client, seeded, auth_headers):
    url = f"{API}/users/{seeded.globex_admin['id']}"
    headers = auth_headers(seeded.acme_admin)

    get = await client.get(url, headers=headers)
    put = await client.put(url, json={"role": "user"}, headers=headers)
    delete = await client.delete(url, headers=headers)

    assert [get.status_code, put.status_code, delete.status_code] == [404, 404, 404]

    still_admin = await client.get(url, headers=auth_headers(seeded.globex_admin))
    assert still_admin.json()["role"] == "admin"


@pytest.mark.asyncio
async def test_admin_changes_role(client, seeded, auth_headers):
    url = f"{API}/users/{seeded.acme_user['id']}"

    promoted = await client.put(url, json={"role": "admin"}, headers=auth_headers(seeded.acme_admin))
    null_role = await client.put(url, json={"role": None}, headers=auth_headers(seeded.acme_admin))
    own_role = await client.put(
        f"{API}/users/{seeded.acme_admin['id']}", json={"role": "user"}, headers=auth_headers(seeded.acme_admin)
    )

    assert promoted.status_code == 200
    assert promoted.json()["role"] == "admin"
    assert null_role.status_code == 422
    assert own_role.status_code == 400


@pytest.mark.asyncio
async def test_admin_deletes_user_but_not_self(client, seeded, auth_headers):
    headers = auth_headers(seeded.acme_admin)

    self_delete = await client.delete(f"{API}/users/{seeded.acme_admin['id']}", headers=headers)
    deleted = await client.delete(f"{API}/users/{seeded.acme_other['id']}", headers=headers)
    gone = await client.get(f"{API}/users/{seeded.acme_other['id']}", headers=headers)

    assert self_delete.status_code == 400
    assert deleted.status_code == 204
    assert gone.status_code == 404


@pytest.mark.asyncio
async def test_profile_update_changes_name_only(client, seeded, auth_headers):
    headers = auth_headers(seeded.acme_user)

    response = await client.put(
        f"{API}/users/me",
        json={"name": "Benjamin", "role": "admin", "email": "boss@acme.io", "tenant_id": seeded.globex["id"]},
        headers=headers,
    )
    profile = await client.get(f"{API}/users/me", headers=headers)

    assert response.status_code == 200
    assert profile.json()["name"] == "Benjamin"
    assert profile.json()["role"] == "user"
    assert profile.json()["email"] == "ben@acme.io"
    assert profile.json()["tenant_id"] == seeded.acme["id"]


@pytest.mark.asyncio
async def test_health(client):
    response = await client.get("/health")

    assert response.status_code == 200
    assert response.json()["status"] == "healthy"


@pytest.mark.asyncio
async def test_request_id_is_echoed_or_generated(client):
    given = await client.get("/health", headers={"X-Request-ID": "req-123"})
    generated = await client.get("/health")

    assert given.headers["X-Request-ID"] == "req-123"
    assert len(generated.headers["X-Request-ID"]) == 32
    assert "X-Process-Time" in generated.headers
