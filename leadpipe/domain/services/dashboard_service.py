"""Dashboard statistics for a tenant."""

from dataclasses import dataclass, field
from datetime import datetime, timedelta

from sqlalchemy.ext.asyncio import AsyncSession

from leadpipe.core.clock import utc_now
from leadpipe.domain.services.sla_service import sla_hours_for
from leadpipe.persistence.models.activity import (
    ACTIVITY_CALL,
    ACTIVITY_EMAIL,
    ACTIVITY_SMS,
    ACTIVITY_STATUS_CHANGE,
)
from leadpipe.persistence.models.lead import Lead
from leadpipe.persistence.models.tenant import Tenant
from leadpipe.persistence.repositories.activity_repository import ActivityRepository
from leadpipe.persistence.repositories.lead_repository import LeadRepository

CONTACT_ACTIVITY_TYPES = (ACTIVITY_CALL, ACTIVITY_EMAIL, ACTIVITY_SMS, ACTIVITY_STATUS_CHANGE)


@dataclass
class DashboardStats:
    total_leads: int
    leads_this_week: int
    avg_hours_to_contact: float | None
    pct_within_sla: float
    stage_distribution: dict[str, int] = field(default_factory=dict)
    source_distribution: list[dict] = field(default_factory=list)


class DashboardService:
    """Aggregates lead counts and response-time metrics."""

    def __init__(self, session: AsyncSession) -> None:
        self.lead_repo = LeadRepository(session)
        self.activity_repo = ActivityRepository(session)

    async def get_stats(self, tenant: Tenant, now: datetime | None = None) -> DashboardStats:
        now = now or utc_now()
        sla = timedelta(hours=sla_hours_for(tenant))

        stages = await self.lead_repo.count_by(tenant.id, Lead.stage)
        sources = await self.lead_repo.count_by(tenant.id, Lead.source)
        leads_this_week = await self.lead_repo.count_created_since(tenant.id, now - timedelta(days=7))
        leads = await self.lead_repo.list_for_tenant(tenant.id)

        # Time to first contact, for leads that left the new stage
        worked = [lead for lead in leads if lead.stage != "new"]
        first_contacts = await self.activity_repo.first_contact_times(
            tenant.id, [lead.id for lead in worked], CONTACT_ACTIVITY_TYPES
        )
        waits = [
            (first_contacts[lead.id] - lead.created_at).total_seconds() / 3600
            for lead in worked
            if lead.id in first_contacts
        ]
        avg_hours_to_contact = round(sum(waits) / len(waits), 1) if waits else None

        within_sla = sum(1 for lead in leads if lead.latest_activity_at - lead.created_at <= sla)
        pct_within_sla = round(within_sla / len(leads) * 100, 1) if leads else 0.0

        return DashboardStats(
            total_leads=len(leads),
            leads_this_week=leads_this_week,
            avg_hours_to_contact=avg_hours_to_contact,
            pct_within_sla=pct_within_sla,
            stage_distribution={stage: count for stage, count in stages.items() if stage is not None},
            source_distribution=[{"source": source, "count": count} for source, count in sources.items()],
        )
