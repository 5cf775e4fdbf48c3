"""Tests for tenant isolation."""

import uuid

import pytest

from leadpipe.persistence.repositories.activity_repository import ActivityRepository
from leadpipe.persistence.repositories.lead_repository import LeadRepository
from leadpipe.persistence.repositories.tenant_repository import TenantRepository


@pytest.mark.asyncio
async def test_tenant_isolation_in_queries(db_session):
    """Test that queries are properly isolated by tenant_id."""
    tenant_repo = TenantRepository(db_session)

    # Create two tenants with unique slugs
    unique_id = uuid.uuid4().hex[:8]
    tenant1 = await tenant_repo.create(None, name="Tenant 1", slug=f"tenant1-{unique_id}")
    tenant2 = await tenant_repo.create(None, name="Tenant 2", slug=f"tenant2-{unique_id}")

    # Create leads for each tenant
    lead_repo = LeadRepository(db_session)
    lead1 = await lead_repo.create(tenant1.id, email="same@example.com")
    lead2 = await lead_repo.create(tenant2.id, email="same@example.com")

    # Verify tenant1 can only see their lead
    tenant1_leads = await lead_repo.list(tenant1.id)
    assert len(tenant1_leads) == 1
    assert tenant1_leads[0].id == lead1.id

    # Verify tenant2 can only see their lead
    tenant2_leads = await lead_repo.list(tenant2.id)
    assert len(tenant2_leads) == 1
    assert tenant2_leads[0].id == lead2.id

    # Verify tenant1 cannot access tenant2's lead
    assert await lead_repo.get_by_id(tenant1.id, lead2.id) is None
    assert await lead_repo.find_by_email_or_phone(tenant1.id, email="same@example.com") == [lead1]


@pytest.mark.asyncio
async def test_activities_are_tenant_scoped(db_session, tenant, other_tenant):
    lead_repo = LeadRepository(db_session)
    activity_repo = ActivityRepository(db_session)
    lead = await lead_repo.create(tenant.id, email="a@example.com")
    await activity_repo.create(tenant.id, lead_id=lead.id, type="note", content={"text": "hi"})

    assert len(await activity_repo.list_for_lead(tenant.id, lead.id)) == 1
    assert await activity_repo.list_for_lead(other_tenant.id, lead.id) == []


@pytest.mark.asyncio
async def test_delete_is_tenant_scoped(db_session, tenant, other_tenant):
    lead_repo = LeadRepository(db_session)
    lead = await lead_repo.create(tenant.id, email="keep@example.com")

    assert await lead_repo.delete(other_tenant.id, lead.id) is False
    assert await lead_repo.get_by_id(tenant.id, lead.id) is not None
