"""Tests for the scheduler endpoints and the SLA overdue report route."""

from datetime import timedelta
from unittest.mock import AsyncMock, patch

import pytest

from leadpipe.core.clock import utc_now
from leadpipe.domain.services.meta_lead_service import MetaLeadService
from leadpipe.infrastructure.meta_graph_client import MetaGraphClient
from leadpipe.persistence.models.lead import Lead


async def _stale_lead(db_session, tenant_id: int, stage: str = "contacted", hours: int = 50) -> Lead:
    touched = utc_now() - timedelta(hours=hours)
    lead = Lead(tenant_id=tenant_id, stage=stage, created_at=touched, latest_activity_at=touched)
    db_session.add(lead)
    await db_session.commit()
    return lead


@pytest.mark.asyncio
async def test_workers_require_cron_secret(client):
    for path in ("/workers/sla-check", "/workers/meta-fetch"):
        missing = await client.post(path)
        wrong = await client.post(path, headers={"Authorization": "Bearer wrong"})
        assert missing.status_code == 401
        assert wrong.status_code == 401


@pytest.mark.asyncio
async def test_sla_check_counts_overdue(client, db_session, tenant, other_tenant, cron_headers):
    await _stale_lead(db_session, tenant.id)
    await _stale_lead(db_session, tenant.id, stage="licensed")
    # 30 hours is within the other tenant's 48h SLA
    await _stale_lead(db_session, other_tenant.id, hours=30)

    response = await client.get("/workers/sla-check", headers=cron_headers)

    assert response.status_code == 200
    data = response.json()
    assert data["success"] is True
    assert data["tenants_with_overdue"] == 1
    assert data["total_overdue"] == 1


@pytest.mark.asyncio
async def test_meta_fetch_sweep(client, db_session, tenant, cron_headers):
    tenant.meta_access_token = "page-token"
    await db_session.commit()
    await MetaLeadService(db_session).record_webhook(
        tenant.id,
        {"object": "page", "entry": [{"changes": [{"field": "leadgen", "value": {"leadgen_id": "lg-9"}}]}]},
    )
    graph_lead = {"id": "lg-9", "field_data": [{"name": "email", "values": ["fb@example.com"]}]}

    with patch.object(MetaGraphClient, "fetch_lead", new=AsyncMock(return_value=graph_lead)) as mock_fetch:
        response = await client.post("/workers/meta-fetch", headers=cron_headers)

    mock_fetch.assert_awaited_once_with("lg-9", "page-token")
    assert response.status_code == 200
    data = response.json()
    assert data["found"] == 1
    assert data["succeeded"] == 1
    assert data["results"][0]["leadgen_id"] == "lg-9"
    assert data["results"][0]["created"] is True


@pytest.mark.asyncio
async def test_overdue_report_for_member(client, db_session, member, tenant, other_tenant, auth_headers):
    lead = await _stale_lead(db_session, tenant.id)
    await _stale_lead(db_session, other_tenant.id, hours=100)

    own = await client.get("/api/v1/sla/overdue", headers=auth_headers(member))
    other = await client.get(
        "/api/v1/sla/overdue", params={"tenant_id": other_tenant.id}, headers=auth_headers(member)
    )

    assert own.status_code == 200
    data = own.json()
    assert data["total_overdue"] == 1
    assert data["tenants"][0]["tenant_id"] == tenant.id
    assert data["tenants"][0]["leads"][0]["lead_id"] == lead.id
    assert data["tenants"][0]["leads"][0]["hours_overdue"] in (49, 50)
    assert other.status_code == 404


@pytest.mark.asyncio
async def test_overdue_report_for_super_admin(client, db_session, super_admin, tenant, other_tenant, auth_headers):
    await _stale_lead(db_session, tenant.id)
    await _stale_lead(db_session, other_tenant.id, hours=100)

    everything = await client.get("/api/v1/sla/overdue", headers=auth_headers(super_admin))
    one = await client.get(
        "/api/v1/sla/overdue", params={"tenant_id": other_tenant.id}, headers=auth_headers(super_admin)
    )

    assert sorted(t["tenant_id"] for t in everything.json()["tenants"]) == sorted([tenant.id, other_tenant.id])
    assert [t["tenant_id"] for t in one.json()["tenants"]] == [other_tenant.id]
