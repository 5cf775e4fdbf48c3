"""Dashboard statistics route."""

from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession

from leadpipe.api.deps import get_current_tenant
from leadpipe.domain.services.dashboard_service import DashboardService
from leadpipe.persistence.database import get_db
from leadpipe.persistence.repositories.tenant_repository import TenantRepository

router = APIRouter()


class SourceCount(BaseModel):
    source: str | None
    count: int


class DashboardStatsResponse(BaseModel):
    total_leads: int
    leads_this_week: int
    avg_hours_to_contact: float | None
    pct_within_sla: float
    stage_distribution: dict[str, int]
    source_distribution: list[SourceCount]


@router.get("/stats", response_model=DashboardStatsResponse)
async def get_dashboard_stats(
    tenant_id: Annotated[int, Depends(get_current_tenant)],
    db: Annotated[AsyncSession, Depends(get_db)],
) -> DashboardStatsResponse:
    """Lead totals, stage/source distribution and response-time metrics."""
    tenant = await TenantRepository(db).get_by_id(None, tenant_id)
    if tenant is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Tenant not found")

    stats = await DashboardService(db).get_stats(tenant)
    return DashboardStatsResponse(
        total_leads=stats.total_leads,
        leads_this_week=stats.leads_this_week,
        avg_hours_to_contact=stats.avg_hours_to_contact,
        pct_within_sla=stats.pct_within_sla,
        stage_distribution=stats.stage_distribution,
        source_distribution=[SourceCount(**item) for item in stats.source_distribution],
    )
