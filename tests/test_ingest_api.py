"""Tests for the ingestion endpoints."""

from datetime import datetime

import pytest
from sqlalchemy import func, select

from leadpipe.persistence.models.api_key import ApiKey
from leadpipe.persistence.models.lead import Lead
from leadpipe.persistence.models.meta_lead_ref import MetaLeadRef


async def _lead_count(db_session, tenant_id: int) -> int:
    result = await db_session.execute(select(func.count(Lead.id)).where(Lead.tenant_id == tenant_id))
    return result.scalar_one()


@pytest.mark.asyncio
async def test_web_form_create_then_update(client, tenant, api_key):
    headers = {"X-Tenant-Key": api_key}

    created = await client.post(
        "/api/v1/ingest/lead",
        json={"first_name": "Jane", "email": "Jane@Example.com", "utm_source": "newsletter"},
        headers=headers,
    )
    updated = await client.post(
        "/api/v1/ingest/lead",
        json={"email": "jane@example.com", "city": "Austin"},
        headers=headers,
    )

    assert created.status_code == 201
    assert created.json()["created"] is True
    assert created.json()["success"] is True
    assert updated.status_code == 200
    assert updated.json()["created"] is False
    assert updated.json()["lead_id"] == created.json()["lead_id"]


@pytest.mark.asyncio
async def test_ingest_rejects_missing_or_invalid_key(client, db_session, tenant):
    tenant_id = tenant.id

    missing = await client.post("/api/v1/ingest/lead", json={"email": "a@example.com"})
    invalid = await client.post(
        "/api/v1/ingest/lead", json={"email": "a@example.com"}, headers={"X-Tenant-Key": "bf_nope"}
    )

    assert missing.status_code == 401
    assert invalid.status_code == 401
    assert await _lead_count(db_session, tenant_id) == 0


@pytest.mark.asyncio
async def test_api_key_use_is_stamped(client, db_session, tenant, api_key):
    await client.post("/api/v1/ingest/lead", json={"email": "a@example.com"}, headers={"X-Tenant-Key": api_key})

    key = (await db_session.execute(select(ApiKey).where(ApiKey.tenant_id == tenant.id))).scalar_one()
    assert key.last_used_at is not None


@pytest.mark.asyncio
async def test_spam_flag_returned(client, tenant, api_key):
    response = await client.post(
        "/api/v1/ingest/lead",
        json={"email": "spam@example.com", "message": "Claim your casino bonus"},
        headers={"X-Tenant-Key": api_key},
    )

    assert response.status_code == 201
    assert response.json()["spam_flag"] is True


@pytest.mark.asyncio
async def test_google_lead_requires_contact(client, tenant, api_key):
    response = await client.post(
        "/api/v1/ingest/google-lead",
        json={"firstName": "No", "lastName": "Contact"},
        headers={"X-Tenant-Key": api_key},
    )

    assert response.status_code == 400


@pytest.mark.asyncio
async def test_google_lead_camel_case(client, db_session, tenant, api_key):
    response = await client.post(
        "/api/v1/ingest/google-lead",
        json={"firstName": "Sam", "phoneNumber": "281 555 0100", "campaignId": "42"},
        headers={"X-Tenant-Key": api_key},
    )

    assert response.status_code == 201
    lead = (await db_session.execute(select(Lead).where(Lead.id == response.json()["lead_id"]))).scalar_one()
    assert lead.source == "google"
    assert lead.phone == "+12815550100"
    assert lead.campaign_name == "Google Ad 42"


@pytest.mark.asyncio
async def test_operator_session_can_ingest(client, db_session, member, auth_headers):
    response = await client.post(
        "/api/v1/ingest/lead", json={"first_name": "Walk-in", "phone": "2815550111"}, headers=auth_headers(member)
    )

    assert response.status_code == 201
    lead = (await db_session.execute(select(Lead).where(Lead.id == response.json()["lead_id"]))).scalar_one()
    assert lead.tenant_id == member.tenant_id


@pytest.mark.asyncio
async def test_super_admin_picks_tenant_in_body(client, db_session, super_admin, other_tenant, auth_headers):
    other_tenant_id = other_tenant.id

    without_tenant = await client.post(
        "/api/v1/ingest/lead", json={"email": "x@example.com"}, headers=auth_headers(super_admin)
    )
    with_tenant = await client.post(
        "/api/v1/ingest/lead",
        json={"email": "x@example.com", "tenant_id": other_tenant_id},
        headers=auth_headers(super_admin),
    )
    bad_tenant = await client.post(
        "/api/v1/ingest/lead",
        json={"email": "x@example.com", "tenant_id": "abc"},
        headers=auth_headers(super_admin),
    )

    assert without_tenant.status_code == 400
    assert with_tenant.status_code == 201
    assert bad_tenant.status_code == 400
    assert await _lead_count(db_session, other_tenant_id) == 1


@pytest.mark.asyncio
async def test_body_tenant_ignored_for_api_key(client, db_session, tenant, other_tenant, api_key):
    other_tenant_id = other_tenant.id

    response = await client.post(
        "/api/v1/ingest/lead",
        json={"email": "x@example.com", "tenant_id": other_tenant_id},
        headers={"X-Tenant-Key": api_key},
    )

    assert response.status_code == 201
    assert await _lead_count(db_session, other_tenant_id) == 0


@pytest.mark.asyncio
async def test_meta_verification_handshake(client):
    ok = await client.get(
        "/api/v1/ingest/meta-lead",
        params={"hub.mode": "subscribe", "hub.verify_token": "test-verify-token", "hub.challenge": "8675309"},
    )
    mismatch = await client.get(
        "/api/v1/ingest/meta-lead",
        params={"hub.mode": "subscribe", "hub.verify_token": "wrong", "hub.challenge": "8675309"},
    )
    missing = await client.get("/api/v1/ingest/meta-lead")

    assert ok.status_code == 200
    assert ok.text == "8675309"
    assert mismatch.status_code == 403
    assert missing.status_code == 400


@pytest.mark.asyncio
async def test_meta_webhook_records_references(client, db_session, tenant, api_key):
    body = {
        "object": "page",
        "entry": [
            {
                "id": "page-1",
                "changes": [{"field": "leadgen", "value": {"leadgen_id": "lg-100", "ad_id": "ad-7"}}],
            }
        ],
    }
    headers = {"X-Tenant-Key": api_key}

    first = await client.post("/api/v1/ingest/meta-lead", json=body, headers=headers)
    retry = await client.post("/api/v1/ingest/meta-lead", json=body, headers=headers)

    assert first.status_code == 200
    assert first.json() == {"success": True, "received": 1}
    assert retry.json() == {"success": True, "received": 0}
    refs = (await db_session.execute(select(MetaLeadRef))).scalars().all()
    assert [ref.leadgen_id for ref in refs] == ["lg-100"]


@pytest.mark.asyncio
async def test_meta_webhook_acknowledges_malformed_body(client, tenant, api_key):
    response = await client.post(
        "/api/v1/ingest/meta-lead",
        content=b"not json",
        headers={"X-Tenant-Key": api_key, "Content-Type": "application/json"},
    )

    assert response.status_code == 200
    assert response.json()["success"] is False


@pytest.mark.asyncio
async def test_epoch_millisecond_backfill(client, db_session, tenant, api_key):
    response = await client.post(
        "/api/v1/ingest/lead",
        json={"email": "ms@example.com", "created_at": "1700000000000"},
        headers={"X-Tenant-Key": api_key},
    )

    assert response.status_code == 201
    lead = (await db_session.execute(select(Lead).where(Lead.id == response.json()["lead_id"]))).scalar_one()
    assert lead.created_at == datetime(2023, 11, 14, 22, 13, 20)


@pytest.mark.asyncio
async def test_out_of_range_submitted_at_is_ignored(client, db_session, tenant, api_key):
    response = await client.post(
        "/api/v1/ingest/google-lead",
        json={"email": "huge@example.com", "submitted_at": 10**20},
        headers={"X-Tenant-Key": api_key},
    )

    assert response.status_code == 201
    lead = (await db_session.execute(select(Lead).where(Lead.id == response.json()["lead_id"]))).scalar_one()
    assert lead.created_at.year >= 2024


@pytest.mark.asyncio
async def test_overlong_free_text_is_truncated(client, db_session, tenant, api_key):
    response = await client.post(
        "/api/v1/ingest/lead",
        json={"email": "long@example.com", "city": "x" * 500, "utm_source": "u" * 300},
        headers={"X-Tenant-Key": api_key},
    )

    assert response.status_code == 201
    lead = (await db_session.execute(select(Lead).where(Lead.id == response.json()["lead_id"]))).scalar_one()
    assert lead.city == "x" * 100
    assert lead.source == "u" * 100
