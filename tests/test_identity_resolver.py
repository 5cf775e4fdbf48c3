"""Tests for identity resolution."""

from datetime import datetime

import pytest

from leadpipe.domain.services.identity_resolver import IdentityResolver
from leadpipe.persistence.models.lead import Lead


async def _lead(db_session, tenant_id, created_at, **fields) -> Lead:
    lead = Lead(tenant_id=tenant_id, stage="new", created_at=created_at, latest_activity_at=created_at, **fields)
    db_session.add(lead)
    await db_session.commit()
    return lead


@pytest.mark.asyncio
async def test_resolve_returns_none_without_contact(db_session, tenant):
    await _lead(db_session, tenant.id, datetime(2024, 1, 1), email=None, phone=None)

    assert await IdentityResolver(db_session).resolve(tenant.id, None, None) is None


@pytest.mark.asyncio
async def test_resolve_matches_email_or_phone(db_session, tenant):
    lead = await _lead(db_session, tenant.id, datetime(2024, 1, 1), email="jane@example.com", phone="+12815550100")
    resolver = IdentityResolver(db_session)

    by_email = await resolver.resolve(tenant.id, "jane@example.com", "+19995550000")
    by_phone = await resolver.resolve(tenant.id, "someone-else@example.com", "+12815550100")
    phone_only = await resolver.resolve(tenant.id, None, "+12815550100")

    assert by_email.id == lead.id
    assert by_phone.id == lead.id
    assert phone_only.id == lead.id
    assert await resolver.resolve(tenant.id, "nobody@example.com", None) is None


@pytest.mark.asyncio
async def test_resolve_prefers_oldest_when_several_match(db_session, tenant):
    newer = await _lead(db_session, tenant.id, datetime(2024, 5, 1), email="a@example.com")
    older = await _lead(db_session, tenant.id, datetime(2024, 1, 1), phone="+12815550100")

    match = await IdentityResolver(db_session).resolve(tenant.id, "a@example.com", "+12815550100")

    assert match.id == older.id
    assert match.id != newer.id


@pytest.mark.asyncio
async def test_resolve_is_tenant_scoped(db_session, tenant, other_tenant):
    await _lead(db_session, other_tenant.id, datetime(2024, 1, 1), email="jane@example.com")

    assert await IdentityResolver(db_session).resolve(tenant.id, "jane@example.com", None) is None
