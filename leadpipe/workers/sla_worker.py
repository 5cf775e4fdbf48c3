"""Scheduled SLA check, called by an external cron."""

import logging
from typing import Annotated, Any

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from leadpipe.api.deps import verify_cron_secret
from leadpipe.core.clock import utc_now
from leadpipe.domain.services.sla_service import SlaService
from leadpipe.persistence.database import get_db

logger = logging.getLogger(__name__)

router = APIRouter()


@router.api_route("/sla-check", methods=["GET", "POST"], dependencies=[Depends(verify_cron_secret)])
async def run_sla_check(
    db: Annotated[AsyncSession, Depends(get_db)],
) -> dict[str, Any]:
    """Scan every tenant for overdue leads and log the result.

    The scan only reports; notifying assignees is left to a downstream
    alerting integration.
    """
    now = utc_now()
    reports = await SlaService(db).scan_all(now)
    total_overdue = sum(report.overdue_count for report in reports)

    for report in reports:
        logger.warning(
            "SLA breached",
            extra={
                "tenant_id": report.tenant_id,
                "tenant_name": report.tenant_name,
                "sla_hours": report.sla_hours,
                "overdue_count": report.overdue_count,
                "lead_ids": [lead.lead_id for lead in report.leads],
            },
        )
    logger.info("SLA check complete", extra={"tenants_with_overdue": len(reports), "total_overdue": total_overdue})

    return {
        "success": True,
        "timestamp": now.isoformat(),
        "tenants_with_overdue": len(reports),
        "total_overdue": total_overdue,
    }
