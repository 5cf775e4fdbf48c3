"""SLA overdue report."""

from dataclasses import asdict
from datetime import datetime
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Query, status
from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession

from leadpipe.api.deps import AuthContext, get_auth_context
from leadpipe.core.clock import utc_now
from leadpipe.domain.services.sla_service import SlaService, TenantOverdueReport
from leadpipe.persistence.database import get_db
from leadpipe.persistence.repositories.tenant_repository import TenantRepository

router = APIRouter()


class OverdueLeadResponse(BaseModel):
    lead_id: int
    first_name: str | None
    last_name: str | None
    email: str | None
    phone: str | None
    stage: str
    assigned_to: str | None
    latest_activity_at: datetime
    hours_overdue: int


class TenantOverdueResponse(BaseModel):
    tenant_id: int
    tenant_name: str
    sla_hours: int
    overdue_count: int
    leads: list[OverdueLeadResponse]


class OverdueReportResponse(BaseModel):
    timestamp: datetime
    total_overdue: int
    tenants: list[TenantOverdueResponse]


def overdue_response(reports: list[TenantOverdueReport], now: datetime) -> OverdueReportResponse:
    return OverdueReportResponse(
        timestamp=now,
        total_overdue=sum(report.overdue_count for report in reports),
        tenants=[
            TenantOverdueResponse(
                tenant_id=report.tenant_id,
                tenant_name=report.tenant_name,
                sla_hours=report.sla_hours,
                overdue_count=report.overdue_count,
                leads=[OverdueLeadResponse(**asdict(lead)) for lead in report.leads],
            )
            for report in reports
        ],
    )


@router.get("/overdue", response_model=OverdueReportResponse)
async def get_overdue_leads(
    auth: Annotated[AuthContext, Depends(get_auth_context)],
    db: Annotated[AsyncSession, Depends(get_db)],
    tenant_id: Annotated[int | None, Query()] = None,
) -> OverdueReportResponse:
    """Leads past their tenant's SLA without activity.

    Super admins without a selected tenant get every tenant; everyone else
    only their own.
    """
    now = utc_now()
    service = SlaService(db)

    if auth.is_super_admin:
        tenant_id = tenant_id or auth.tenant_id
    elif tenant_id is not None and tenant_id != auth.tenant_id:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Tenant not found")
    else:
        tenant_id = auth.tenant_id

    if tenant_id is None:
        return overdue_response(await service.scan_all(now), now)

    tenant = await TenantRepository(db).get_by_id(None, tenant_id)
    if tenant is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Tenant not found")
    report = await service.overdue_for_tenant(tenant, now)
    return overdue_response([report] if report.overdue_count else [], now)
