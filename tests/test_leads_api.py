"""Tests for the operator lead routes and tenant isolation."""

import pytest

from leadpipe.domain.services.lead_ingestion_service import LeadIngestionService
from leadpipe.domain.services.lead_normalizer import from_web_form


@pytest.fixture
async def lead_id(db_session, tenant) -> int:
    result = await LeadIngestionService(db_session).ingest(
        tenant, from_web_form({"first_name": "Jane", "email": "jane@example.com", "utm_source": "fb"})
    )
    return result.lead.id


@pytest.fixture
async def other_lead_id(db_session, other_tenant) -> int:
    result = await LeadIngestionService(db_session).ingest(
        other_tenant, from_web_form({"first_name": "Other", "email": "other@example.com"})
    )
    return result.lead.id


@pytest.mark.asyncio
async def test_list_only_own_tenant(client, member, lead_id, other_lead_id, auth_headers):
    response = await client.get("/api/v1/leads", headers=auth_headers(member))

    assert response.status_code == 200
    data = response.json()
    assert data["total"] == 1
    assert [item["id"] for item in data["items"]] == [lead_id]


@pytest.mark.asyncio
async def test_other_tenant_lead_is_not_found(client, member, other_lead_id, auth_headers):
    headers = auth_headers(member)

    get_response = await client.get(f"/api/v1/leads/{other_lead_id}", headers=headers)
    put_response = await client.put(f"/api/v1/leads/{other_lead_id}", json={"stage": "contacted"}, headers=headers)

    assert get_response.status_code == 404
    assert put_response.status_code == 404


@pytest.mark.asyncio
async def test_lead_detail_includes_timeline(client, member, lead_id, auth_headers):
    response = await client.get(f"/api/v1/leads/{lead_id}", headers=auth_headers(member))

    assert response.status_code == 200
    data = response.json()
    assert data["lead"]["source"] == "fb"
    assert sorted(activity["type"] for activity in data["activities"]) == ["note", "utm_snapshot"]


@pytest.mark.asyncio
async def test_stage_update_via_api(client, member, lead_id, auth_headers):
    headers = auth_headers(member)

    same = await client.put(f"/api/v1/leads/{lead_id}", json={"stage": "new"}, headers=headers)
    moved = await client.put(
        f"/api/v1/leads/{lead_id}",
        json={"stage": "contacted", "stage_change_note": "Reached by phone"},
        headers=headers,
    )
    invalid = await client.put(f"/api/v1/leads/{lead_id}", json={"stage": "bogus"}, headers=headers)
    detail = await client.get(f"/api/v1/leads/{lead_id}", headers=headers)

    assert same.status_code == 200
    assert moved.status_code == 200
    assert moved.json()["stage"] == "contacted"
    assert invalid.status_code == 400
    changes = [a for a in detail.json()["activities"] if a["type"] == "status_change"]
    assert len(changes) == 1
    assert changes[0]["stage"] == "contacted"
    assert changes[0]["content"] == {"text": "Reached by phone"}


@pytest.mark.asyncio
async def test_null_spam_flag_via_api(client, member, lead_id, auth_headers):
    response = await client.put(f"/api/v1/leads/{lead_id}", json={"spam_flag": None}, headers=auth_headers(member))

    assert response.status_code == 200
    assert response.json()["spam_flag"] is False


@pytest.mark.asyncio
async def test_overlong_update_values_rejected(client, member, lead_id, auth_headers):
    response = await client.put(f"/api/v1/leads/{lead_id}", json={"city": "x" * 500}, headers=auth_headers(member))

    assert response.status_code == 422


@pytest.mark.asyncio
async def test_api_key_cannot_update_leads(client, api_key, lead_id):
    response = await client.put(
        f"/api/v1/leads/{lead_id}", json={"stage": "contacted"}, headers={"X-Tenant-Key": api_key}
    )

    assert response.status_code == 401


@pytest.mark.asyncio
async def test_log_activity(client, member, lead_id, auth_headers):
    response = await client.post(
        f"/api/v1/leads/{lead_id}/activity",
        json={"type": "call", "content": {"text": "Left voicemail"}},
        headers=auth_headers(member),
    )
    invalid = await client.post(
        f"/api/v1/leads/{lead_id}/activity", json={"type": "utm_snapshot"}, headers=auth_headers(member)
    )

    assert response.status_code == 201
    assert response.json()["content"] == {"text": "Left voicemail", "logged_by": member.email}
    assert invalid.status_code == 400


@pytest.mark.asyncio
async def test_delete_requires_tenant_admin(client, member, client_admin, lead_id, auth_headers):
    as_member = await client.delete(f"/api/v1/leads/{lead_id}", headers=auth_headers(member))
    as_admin = await client.delete(f"/api/v1/leads/{lead_id}", headers=auth_headers(client_admin))
    after = await client.get(f"/api/v1/leads/{lead_id}", headers=auth_headers(member))

    assert as_member.status_code == 403
    assert as_admin.status_code == 204
    assert after.status_code == 404


@pytest.mark.asyncio
async def test_super_admin_selects_tenant_by_header(client, super_admin, tenant, lead_id, auth_headers):
    without_tenant = await client.get("/api/v1/leads", headers=auth_headers(super_admin))
    with_tenant = await client.get(
        "/api/v1/leads", headers=auth_headers(super_admin, **{"X-Tenant-Id": str(tenant.id)})
    )
    malformed = await client.get("/api/v1/leads", headers=auth_headers(super_admin, **{"X-Tenant-Id": "x"}))

    assert without_tenant.status_code == 403
    assert with_tenant.status_code == 200
    assert with_tenant.json()["total"] == 1
    assert malformed.status_code == 400


@pytest.mark.asyncio
async def test_member_cannot_switch_tenant_by_header(client, member, other_tenant, other_lead_id, auth_headers):
    response = await client.get(
        "/api/v1/leads", headers=auth_headers(member, **{"X-Tenant-Id": str(other_tenant.id)})
    )

    assert response.status_code == 200
    assert response.json()["total"] == 0


@pytest.mark.asyncio
async def test_export_csv_route(client, member, lead_id, auth_headers):
    response = await client.get("/api/v1/leads/export.csv", headers=auth_headers(member))

    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/csv")
    assert "attachment" in response.headers["content-disposition"]
    lines = response.text.strip().splitlines()
    assert lines[0].startswith("Name,Email,Phone")
    assert len(lines) == 2


@pytest.mark.asyncio
async def test_dashboard_stats_route(client, member, lead_id, auth_headers):
    response = await client.get("/api/v1/dashboard/stats", headers=auth_headers(member))

    assert response.status_code == 200
    data = response.json()
    assert data["total_leads"] == 1
    assert data["stage_distribution"] == {"new": 1}
    assert data["source_distribution"] == [{"source": "fb", "count": 1}]
