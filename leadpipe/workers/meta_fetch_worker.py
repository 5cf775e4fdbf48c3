"""Scheduled follow-up fetch of Facebook Lead Ads data."""

import logging
from dataclasses import asdict
from typing import Annotated, Any

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from leadpipe.api.deps import verify_cron_secret
from leadpipe.core.clock import utc_now
from leadpipe.domain.services.meta_lead_service import MetaLeadService
from leadpipe.persistence.database import get_db

logger = logging.getLogger(__name__)

router = APIRouter()


@router.api_route("/meta-fetch", methods=["GET", "POST"], dependencies=[Depends(verify_cron_secret)])
async def run_meta_fetch(
    db: Annotated[AsyncSession, Depends(get_db)],
    limit: Annotated[int | None, Query(ge=1, le=500)] = None,
) -> dict[str, Any]:
    """Fetch pending leadgen references from the Graph API.

    Individual failures are recorded on the reference and do not fail the
    sweep.
    """
    report = await MetaLeadService(db).fetch_pending(limit=limit)
    return {
        "success": True,
        "timestamp": utc_now().isoformat(),
        "found": report.found,
        "succeeded": report.succeeded,
        "failed": report.failed,
        "results": [asdict(outcome) for outcome in report.outcomes],
    }
