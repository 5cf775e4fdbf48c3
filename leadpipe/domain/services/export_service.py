"""CSV export of a tenant's leads."""

import csv
import io

from sqlalchemy.ext.asyncio import AsyncSession

from leadpipe.persistence.repositories.activity_repository import ActivityRepository
from leadpipe.persistence.repositories.lead_repository import LeadFilters, LeadRepository

CSV_HEADERS = [
    "Name",
    "Email",
    "Phone",
    "City",
    "Source",
    "Campaign",
    "Stage",
    "Office",
    "Assigned To",
    "Attempts",
    "Spam Flag",
    "Created At",
    "Latest Activity",
]


def _iso(value) -> str:
    return value.isoformat() if value else ""


class LeadExportService:
    """Builds the leads CSV with the same filters as the lead list."""

    def __init__(self, session: AsyncSession) -> None:
        self.lead_repo = LeadRepository(session)
        self.activity_repo = ActivityRepository(session)

    async def export_csv(self, tenant_id: int, filters: LeadFilters) -> str:
        leads, _ = await self.lead_repo.search(tenant_id, filters, limit=None)
        attempts = await self.activity_repo.count_contact_attempts(tenant_id, [lead.id for lead in leads])

        buffer = io.StringIO()
        writer = csv.writer(buffer, lineterminator="\n")
        writer.writerow(CSV_HEADERS)
        for lead in leads:
            writer.writerow(
                [
                    lead.full_name,
                    lead.email or "",
                    lead.phone or "",
                    lead.city or "",
                    lead.source or "",
                    lead.campaign_name or "",
                    (lead.stage or "").replace("_", " "),
                    lead.office or "",
                    lead.assigned_to or "",
                    attempts.get(lead.id, 0),
                    "Yes" if lead.spam_flag else "No",
                    _iso(lead.created_at),
                    _iso(lead.latest_activity_at),
                ]
            )
        return buffer.getvalue()
