"""Lead routes for the admin dashboard."""

import logging
from datetime import datetime
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Query, status
from fastapi.responses import Response
from sqlalchemy.ext.asyncio import AsyncSession

from leadpipe.api.deps import get_current_tenant, get_current_user, require_tenant_admin
from leadpipe.api.schemas.lead import (
    ActivityCreate,
    ActivityResponse,
    LeadDetailResponse,
    LeadResponse,
    LeadsListResponse,
    LeadUpdate,
)
from leadpipe.core.clock import parse_timestamp, utc_now
from leadpipe.core.exceptions import InvalidStageError, LeadNotFoundError, ValidationError
from leadpipe.domain.services.export_service import LeadExportService
from leadpipe.domain.services.lead_service import LeadService
from leadpipe.persistence.database import get_db
from leadpipe.persistence.models.tenant import User
from leadpipe.persistence.repositories.lead_repository import LeadFilters

logger = logging.getLogger(__name__)

router = APIRouter()


def _filters(
    stage: Annotated[str | None, Query()] = None,
    source: Annotated[str | None, Query()] = None,
    spam_flag: Annotated[bool | None, Query()] = None,
    q: Annotated[str | None, Query(max_length=200)] = None,
    date_from: Annotated[datetime | None, Query()] = None,
    date_to: Annotated[datetime | None, Query()] = None,
) -> LeadFilters:
    return LeadFilters(
        stage=stage or None,
        source=source or None,
        spam_flag=spam_flag,
        q=q.strip() if q and q.strip() else None,
        date_from=parse_timestamp(date_from),
        date_to=parse_timestamp(date_to),
    )


def _not_found() -> HTTPException:
    return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Lead not found")


@router.get("", response_model=LeadsListResponse)
async def list_leads(
    tenant_id: Annotated[int, Depends(get_current_tenant)],
    db: Annotated[AsyncSession, Depends(get_db)],
    filters: Annotated[LeadFilters, Depends(_filters)],
    page: Annotated[int, Query(ge=1)] = 1,
    page_size: Annotated[int, Query(ge=1, le=200)] = 50,
) -> LeadsListResponse:
    """List leads, newest first, with optional filters."""
    items, total = await LeadService(db).list_leads(
        tenant_id, filters, skip=(page - 1) * page_size, limit=page_size
    )
    return LeadsListResponse(
        items=[LeadResponse.model_validate(lead) for lead in items],
        total=total,
        page=page,
        page_size=page_size,
    )


@router.get("/export.csv")
async def export_leads(
    tenant_id: Annotated[int, Depends(get_current_tenant)],
    db: Annotated[AsyncSession, Depends(get_db)],
    filters: Annotated[LeadFilters, Depends(_filters)],
) -> Response:
    """Export leads matching the list filters as CSV."""
    csv_text = await LeadExportService(db).export_csv(tenant_id, filters)
    filename = f"leads-export-{utc_now().strftime('%Y%m%d%H%M%S')}.csv"
    return Response(
        content=csv_text,
        media_type="text/csv",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@router.get("/{lead_id}", response_model=LeadDetailResponse)
async def get_lead(
    lead_id: int,
    tenant_id: Annotated[int, Depends(get_current_tenant)],
    db: Annotated[AsyncSession, Depends(get_db)],
) -> LeadDetailResponse:
    """Get a lead with its activity timeline."""
    try:
        lead, activities = await LeadService(db).get_lead_detail(tenant_id, lead_id)
    except LeadNotFoundError:
        raise _not_found()
    return LeadDetailResponse(
        lead=LeadResponse.model_validate(lead),
        activities=[ActivityResponse.model_validate(activity) for activity in activities],
    )


@router.put("/{lead_id}", response_model=LeadResponse)
async def update_lead(
    lead_id: int,
    lead_data: LeadUpdate,
    current_user: Annotated[User, Depends(get_current_user)],
    tenant_id: Annotated[int, Depends(get_current_tenant)],
    db: Annotated[AsyncSession, Depends(get_db)],
) -> LeadResponse:
    """Partially update a lead, including stage changes."""
    changes = lead_data.model_dump(exclude_unset=True)
    stage_change_note = changes.pop("stage_change_note", None)
    try:
        lead = await LeadService(db).update_lead(
            tenant_id, lead_id, changes, stage_change_note=stage_change_note
        )
    except LeadNotFoundError:
        raise _not_found()
    except ValidationError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    return LeadResponse.model_validate(lead)


@router.post("/{lead_id}/activity", response_model=ActivityResponse, status_code=status.HTTP_201_CREATED)
async def add_activity(
    lead_id: int,
    activity_data: ActivityCreate,
    current_user: Annotated[User, Depends(get_current_user)],
    tenant_id: Annotated[int, Depends(get_current_tenant)],
    db: Annotated[AsyncSession, Depends(get_db)],
) -> ActivityResponse:
    """Log a note, call, email, SMS or status change on a lead."""
    content = dict(activity_data.content or {})
    content.setdefault("logged_by", current_user.email)
    try:
        activity = await LeadService(db).add_activity(
            tenant_id, lead_id, activity_data.type, content=content, stage=activity_data.stage
        )
    except LeadNotFoundError:
        raise _not_found()
    except (InvalidStageError, ValidationError) as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    return ActivityResponse.model_validate(activity)


@router.delete("/{lead_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_lead(
    lead_id: int,
    admin: Annotated[tuple[User, int], Depends(require_tenant_admin)],
    db: Annotated[AsyncSession, Depends(get_db)],
) -> None:
    """Hard delete a lead and its activities."""
    current_user, tenant_id = admin
    try:
        await LeadService(db).delete_lead(tenant_id, lead_id)
    except LeadNotFoundError:
        raise _not_found()
    logger.info("Lead deleted by operator", extra={"lead_id": lead_id, "user_id": current_user.id})
