"""SLA overdue scan.

A lead is overdue when nobody has touched it for longer than the tenant's
SLA hours and it is not in a closed stage. The scan is read-only.
"""

import logging
import math
from dataclasses import dataclass, field
from datetime import datetime, timedelta

from sqlalchemy.ext.asyncio import AsyncSession

from leadpipe.core.clock import utc_now
from leadpipe.persistence.models.tenant import Tenant
from leadpipe.persistence.repositories.lead_repository import LeadRepository
from leadpipe.persistence.repositories.tenant_repository import TenantRepository
from leadpipe.settings import settings

logger = logging.getLogger(__name__)

TERMINAL_STAGES = ("licensed", "placement", "not_fit", "approved", "denied")


@dataclass
class OverdueLead:
    lead_id: int
    first_name: str | None
    last_name: str | None
    email: str | None
    phone: str | None
    stage: str
    assigned_to: str | None
    latest_activity_at: datetime
    hours_overdue: int


@dataclass
class TenantOverdueReport:
    tenant_id: int
    tenant_name: str
    sla_hours: int
    leads: list[OverdueLead] = field(default_factory=list)

    @property
    def overdue_count(self) -> int:
        return len(self.leads)


def sla_hours_for(tenant: Tenant) -> int:
    if tenant.sla_hours is None:
        return settings.default_sla_hours
    return tenant.sla_hours


def hours_since(moment: datetime, now: datetime) -> int:
    return math.floor((now - moment).total_seconds() / 3600)


class SlaService:
    """Computes overdue leads per tenant."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session
        self.lead_repo = LeadRepository(session)
        self.tenant_repo = TenantRepository(session)

    async def overdue_for_tenant(self, tenant: Tenant, now: datetime | None = None) -> TenantOverdueReport:
        now = now or utc_now()
        sla_hours = sla_hours_for(tenant)
        threshold = now - timedelta(hours=sla_hours)
        stale = await self.lead_repo.list_stale(tenant.id, threshold, TERMINAL_STAGES)

        report = TenantOverdueReport(tenant_id=tenant.id, tenant_name=tenant.name, sla_hours=sla_hours)
        for lead in stale:
            report.leads.append(
                OverdueLead(
                    lead_id=lead.id,
                    first_name=lead.first_name,
                    last_name=lead.last_name,
                    email=lead.email,
                    phone=lead.phone,
                    stage=lead.stage,
                    assigned_to=lead.assigned_to,
                    latest_activity_at=lead.latest_activity_at,
                    hours_overdue=hours_since(lead.latest_activity_at, now),
                )
            )
        return report

    async def scan_all(self, now: datetime | None = None) -> list[TenantOverdueReport]:
        """Reports for tenants that have overdue leads. Each run re-evaluates current state."""
        now = now or utc_now()
        reports = []
        for tenant in await self.tenant_repo.list_all():
            report = await self.overdue_for_tenant(tenant, now)
            if report.overdue_count:
                reports.append(report)
                logger.info(
                    "Tenant has overdue leads",
                    extra={
                        "tenant_id": tenant.id,
                        "overdue_count": report.overdue_count,
                        "sla_hours": report.sla_hours,
                    },
                )
        return reports
