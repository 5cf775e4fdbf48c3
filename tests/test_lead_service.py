"""Tests for lead updates, stage changes and activities."""

import pytest
from sqlalchemy import select

from leadpipe.core.exceptions import InvalidStageError, LeadNotFoundError, ValidationError
from leadpipe.domain.services.lead_ingestion_service import LeadIngestionService
from leadpipe.domain.services.lead_normalizer import from_web_form
from leadpipe.domain.services.lead_service import LeadService
from leadpipe.persistence.models.activity import ACTIVITY_NOTE, ACTIVITY_STATUS_CHANGE, Activity
from leadpipe.persistence.repositories.lead_repository import LeadFilters


async def _status_changes(db_session, lead_id: int) -> list[Activity]:
    result = await db_session.execute(
        select(Activity)
        .where(Activity.lead_id == lead_id, Activity.type == ACTIVITY_STATUS_CHANGE)
        .order_by(Activity.id)
    )
    return list(result.scalars().all())


@pytest.fixture
async def lead(db_session, tenant):
    result = await LeadIngestionService(db_session).ingest(
        tenant, from_web_form({"first_name": "Jane", "email": "jane@example.com", "phone": "2815550100"})
    )
    return result.lead


@pytest.mark.asyncio
async def test_same_stage_creates_no_activity(db_session, tenant, lead):
    await LeadService(db_session).update_lead(tenant.id, lead.id, {"stage": "new"})

    assert await _status_changes(db_session, lead.id) == []


@pytest.mark.asyncio
async def test_stage_change_creates_exactly_one_activity(db_session, tenant, lead):
    before = lead.latest_activity_at

    updated = await LeadService(db_session).update_lead(tenant.id, lead.id, {"stage": "contacted"})

    changes = await _status_changes(db_session, lead.id)
    assert updated.stage == "contacted"
    assert updated.latest_activity_at >= before
    assert len(changes) == 1
    assert changes[0].stage == "contacted"
    assert changes[0].content == {"text": "Stage changed from new to contacted"}


@pytest.mark.asyncio
async def test_stage_change_with_explicit_note(db_session, tenant, lead):
    await LeadService(db_session).update_lead(
        tenant.id, lead.id, {"stage": "qualified"}, stage_change_note="Met at info session"
    )

    changes = await _status_changes(db_session, lead.id)
    assert changes[0].content == {"text": "Met at info session"}


@pytest.mark.asyncio
async def test_invalid_stage_rejected_without_writes(db_session, tenant, lead):
    with pytest.raises(InvalidStageError):
        await LeadService(db_session).update_lead(tenant.id, lead.id, {"stage": "archived", "city": "Austin"})

    assert lead.stage == "new"
    assert lead.city is None
    assert await _status_changes(db_session, lead.id) == []


@pytest.mark.asyncio
async def test_partial_update_leaves_other_fields(db_session, tenant, lead):
    updated = await LeadService(db_session).update_lead(
        tenant.id, lead.id, {"city": "Austin", "phone": "(512) 555-0111", "spam_flag": True}
    )

    assert updated.city == "Austin"
    assert updated.phone == "+15125550111"
    assert updated.spam_flag is True
    assert updated.first_name == "Jane"
    assert updated.email == "jane@example.com"


@pytest.mark.asyncio
async def test_assignment_is_logged(db_session, tenant, lead):
    await LeadService(db_session).update_lead(tenant.id, lead.id, {"assigned_to": "Maria Lopez"})

    result = await db_session.execute(
        select(Activity).where(Activity.lead_id == lead.id, Activity.type == ACTIVITY_NOTE).order_by(Activity.id)
    )
    notes = list(result.scalars().all())
    assert notes[-1].content == {"text": "Assigned to Maria Lopez", "assigned_to": "Maria Lopez"}


@pytest.mark.asyncio
async def test_update_to_email_of_other_lead_is_rejected(db_session, tenant, lead):
    other = await LeadIngestionService(db_session).ingest(tenant, from_web_form({"email": "other@example.com"}))
    tenant_id = tenant.id
    other_id = other.lead.id

    with pytest.raises(ValidationError, match="Email already belongs to another lead"):
        await LeadService(db_session).update_lead(tenant_id, other_id, {"email": "Jane@Example.com"})
    with pytest.raises(ValidationError, match="Phone already belongs to another lead"):
        await LeadService(db_session).update_lead(tenant_id, other_id, {"phone": "281-555-0100"})


@pytest.mark.asyncio
async def test_null_spam_flag_is_stored_as_false(db_session, tenant, lead):
    service = LeadService(db_session)
    await service.update_lead(tenant.id, lead.id, {"spam_flag": True})

    updated = await service.update_lead(tenant.id, lead.id, {"spam_flag": None, "city": "Austin"})

    assert updated.spam_flag is False
    assert updated.city == "Austin"


@pytest.mark.asyncio
async def test_lead_of_other_tenant_is_not_found(db_session, tenant, other_tenant, lead):
    service = LeadService(db_session)

    with pytest.raises(LeadNotFoundError):
        await service.update_lead(other_tenant.id, lead.id, {"stage": "contacted"})
    with pytest.raises(LeadNotFoundError):
        await service.get_lead_detail(other_tenant.id, lead.id)
    with pytest.raises(LeadNotFoundError):
        await service.delete_lead(other_tenant.id, lead.id)


@pytest.mark.asyncio
async def test_manual_status_change_activity_moves_stage(db_session, tenant, lead):
    service = LeadService(db_session)

    activity = await service.add_activity(
        tenant.id, lead.id, ACTIVITY_STATUS_CHANGE, content={"text": "Called back"}, stage="orientation"
    )

    assert activity.stage == "orientation"
    refreshed = await service.get_lead(tenant.id, lead.id)
    assert refreshed.stage == "orientation"


@pytest.mark.asyncio
async def test_add_activity_validation(db_session, tenant, lead):
    service = LeadService(db_session)

    with pytest.raises(ValidationError):
        await service.add_activity(tenant.id, lead.id, "utm_snapshot", content={})
    with pytest.raises(ValidationError):
        await service.add_activity(tenant.id, lead.id, ACTIVITY_STATUS_CHANGE, content={})
    with pytest.raises(InvalidStageError):
        await service.add_activity(tenant.id, lead.id, ACTIVITY_STATUS_CHANGE, stage="nope")


@pytest.mark.asyncio
async def test_call_activity_does_not_set_stage(db_session, tenant, lead):
    activity = await LeadService(db_session).add_activity(
        tenant.id, lead.id, "call", content={"text": "Left voicemail"}, stage="licensed"
    )

    assert activity.stage is None
    assert lead.stage == "new"


@pytest.mark.asyncio
async def test_list_leads_filters(db_session, tenant, lead):
    ingestion = LeadIngestionService(db_session)
    await ingestion.ingest(tenant, from_web_form({"first_name": "Bob", "email": "bob@example.com", "source": "referral"}))
    service = LeadService(db_session)

    items, total = await service.list_leads(tenant.id, LeadFilters(source="referral"))
    assert total == 1
    assert items[0].first_name == "Bob"

    items, total = await service.list_leads(tenant.id, LeadFilters(q="JANE"))
    assert total == 1
    assert items[0].id == lead.id

    items, total = await service.list_leads(tenant.id, LeadFilters(), skip=0, limit=1)
    assert total == 2
    assert len(items) == 1


@pytest.mark.asyncio
async def test_delete_lead_removes_activities(db_session, tenant, lead):
    lead_id = lead.id
    await LeadService(db_session).delete_lead(tenant.id, lead_id)

    result = await db_session.execute(select(Activity).where(Activity.lead_id == lead_id))
    assert result.scalars().all() == []


@pytest.mark.asyncio
async def test_unusable_phone_rejected_without_writes(db_session, tenant, lead):
    with pytest.raises(ValidationError, match="Invalid phone"):
        await LeadService(db_session).update_lead(
            tenant.id, lead.id, {"phone": "1" * 40, "city": "Austin"}
        )

    assert lead.phone == "+12815550100"
    assert lead.city is None
