"""Tests for dashboard statistics and the CSV export."""

import csv
import io
from datetime import datetime, timedelta

import pytest

from leadpipe.domain.services.dashboard_service import DashboardService
from leadpipe.domain.services.export_service import CSV_HEADERS, LeadExportService
from leadpipe.domain.services.lead_ingestion_service import LeadIngestionService
from leadpipe.domain.services.lead_normalizer import from_web_form
from leadpipe.domain.services.lead_service import LeadService
from leadpipe.persistence.models.activity import Activity
from leadpipe.persistence.models.lead import Lead
from leadpipe.persistence.repositories.lead_repository import LeadFilters

NOW = datetime(2024, 6, 1, 12, 0, 0)


async def _lead(db_session, tenant_id, stage, source, created_at, latest_activity_at) -> Lead:
    lead = Lead(
        tenant_id=tenant_id,
        stage=stage,
        source=source,
        created_at=created_at,
        latest_activity_at=latest_activity_at,
    )
    db_session.add(lead)
    await db_session.flush()
    return lead


@pytest.mark.asyncio
async def test_dashboard_stats(db_session, tenant):
    a_created = NOW - timedelta(hours=10)
    a = await _lead(db_session, tenant.id, "contacted", "website", a_created, a_created + timedelta(hours=2))
    await _lead(db_session, tenant.id, "new", "website", NOW - timedelta(hours=1), NOW - timedelta(hours=1))
    c_created = NOW - timedelta(days=40)
    c = await _lead(db_session, tenant.id, "qualified", "google", c_created, c_created + timedelta(hours=30))
    db_session.add_all(
        [
            Activity(tenant_id=tenant.id, lead_id=a.id, type="note", content={}, created_at=a_created),
            Activity(tenant_id=tenant.id, lead_id=a.id, type="call", content={}, created_at=a_created + timedelta(hours=2)),
            Activity(
                tenant_id=tenant.id,
                lead_id=c.id,
                type="status_change",
                stage="qualified",
                content={},
                created_at=c_created + timedelta(hours=4),
            ),
        ]
    )
    await db_session.commit()

    stats = await DashboardService(db_session).get_stats(tenant, NOW)

    assert stats.total_leads == 3
    assert stats.leads_this_week == 2
    assert stats.avg_hours_to_contact == 3.0
    assert stats.pct_within_sla == 66.7
    assert stats.stage_distribution == {"contacted": 1, "new": 1, "qualified": 1}
    assert {"source": "website", "count": 2} in stats.source_distribution
    assert {"source": "google", "count": 1} in stats.source_distribution


@pytest.mark.asyncio
async def test_dashboard_stats_empty_tenant(db_session, tenant):
    stats = await DashboardService(db_session).get_stats(tenant, NOW)

    assert stats.total_leads == 0
    assert stats.avg_hours_to_contact is None
    assert stats.pct_within_sla == 0.0


@pytest.mark.asyncio
async def test_export_csv(db_session, tenant):
    ingestion = LeadIngestionService(db_session)
    first = await ingestion.ingest(
        tenant,
        from_web_form(
            {"first_name": "Jane", "last_name": "Doe", "email": "jane@example.com", "utm_source": "fb", "city": "Austin"}
        ),
    )
    await ingestion.ingest(tenant, from_web_form({"first_name": "Spam", "email": "spam@example.com", "interest": "crypto"}))
    await LeadService(db_session).update_lead(tenant.id, first.lead.id, {"stage": "home_study"})

    text = await LeadExportService(db_session).export_csv(tenant.id, LeadFilters())
    rows = list(csv.reader(io.StringIO(text)))

    assert rows[0] == CSV_HEADERS
    assert len(rows) == 3
    by_name = {row[0]: dict(zip(CSV_HEADERS, row)) for row in rows[1:]}
    jane = by_name["Jane Doe"]
    assert jane["Email"] == "jane@example.com"
    assert jane["Source"] == "fb"
    assert jane["Stage"] == "home study"
    # Attribution note plus the stage change; the UTM snapshot is not an attempt
    assert jane["Attempts"] == "2"
    assert jane["Spam Flag"] == "No"
    assert by_name["Spam"]["Spam Flag"] == "Yes"


@pytest.mark.asyncio
async def test_export_csv_honours_filters(db_session, tenant):
    ingestion = LeadIngestionService(db_session)
    await ingestion.ingest(tenant, from_web_form({"email": "a@example.com", "source": "referral"}))
    await ingestion.ingest(tenant, from_web_form({"email": "b@example.com"}))

    text = await LeadExportService(db_session).export_csv(tenant.id, LeadFilters(source="referral"))
    rows = list(csv.reader(io.StringIO(text)))

    assert len(rows) == 2
    assert rows[1][1] == "a@example.com"
