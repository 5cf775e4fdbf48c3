"""Lead ingestion endpoints: web forms, Google Ads and Facebook Lead Ads."""

import logging
from typing import Annotated, Any

from fastapi import APIRouter, Body, Depends, HTTPException, Query, Request, Response, status
from fastapi.responses import JSONResponse, PlainTextResponse
from sqlalchemy.ext.asyncio import AsyncSession

from leadpipe.api.deps import AuthContext, get_auth_context, parse_id
from leadpipe.api.schemas.lead import IngestResponse
from leadpipe.core.exceptions import MissingContactError
from leadpipe.core.tenant_context import set_tenant_context
from leadpipe.domain.services.lead_ingestion_service import IngestResult, LeadIngestionService
from leadpipe.domain.services.lead_normalizer import LeadSubmission, from_google_lead, from_web_form
from leadpipe.domain.services.meta_lead_service import MetaLeadService
from leadpipe.persistence.database import get_db
from leadpipe.persistence.models.tenant import Tenant
from leadpipe.persistence.repositories.tenant_repository import TenantRepository
from leadpipe.settings import settings

logger = logging.getLogger(__name__)

router = APIRouter()

GOOGLE_UPDATE_NOTE = "Lead Updated from Google Ads"


async def _target_tenant(auth: AuthContext, payload: dict[str, Any], db: AsyncSession) -> Tenant:
    """Tenant the submission belongs to.

    Super admins may direct a submission to any tenant with ``tenant_id``
    in the body.
    """
    tenant_id = auth.tenant_id
    if auth.is_super_admin and payload.get("tenant_id") not in (None, ""):
        tenant_id = parse_id(payload.get("tenant_id"), "tenant_id")
        set_tenant_context(tenant_id)
    if tenant_id is None:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="tenant_id is required",
        )
    tenant = await TenantRepository(db).get_by_id(None, tenant_id)
    if tenant is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Tenant not found",
        )
    return tenant


async def _ingest(
    db: AsyncSession,
    tenant: Tenant,
    submission: LeadSubmission,
    response: Response,
    require_contact: bool = False,
    update_note: str | None = None,
) -> IngestResponse:
    try:
        result: IngestResult = await LeadIngestionService(db).ingest(
            tenant, submission, require_contact=require_contact, update_note=update_note
        )
    except MissingContactError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(e),
        )

    response.status_code = status.HTTP_201_CREATED if result.created else status.HTTP_200_OK
    return IngestResponse(
        lead_id=result.lead.id,
        created=result.created,
        spam_flag=result.lead.spam_flag,
    )


@router.post("/lead", response_model=IngestResponse, status_code=status.HTTP_201_CREATED)
async def ingest_lead(
    response: Response,
    auth: Annotated[AuthContext, Depends(get_auth_context)],
    db: Annotated[AsyncSession, Depends(get_db)],
    payload: Annotated[dict[str, Any], Body()],
) -> IngestResponse:
    """Ingest a website form submission or a manually entered lead.

    Email and phone may both be missing; such submissions always create a
    new lead. Returns 201 when a lead was created and 200 when an existing
    lead matched by email or phone was updated.
    """
    tenant = await _target_tenant(auth, payload, db)
    return await _ingest(db, tenant, from_web_form(payload), response)


@router.post("/google-lead", response_model=IngestResponse, status_code=status.HTTP_201_CREATED)
async def ingest_google_lead(
    response: Response,
    auth: Annotated[AuthContext, Depends(get_auth_context)],
    db: Annotated[AsyncSession, Depends(get_db)],
    payload: Annotated[dict[str, Any], Body()],
) -> IngestResponse:
    """Ingest a Google Ads lead form submission (snake_case or camelCase).

    Either email or phone is required.
    """
    tenant = await _target_tenant(auth, payload, db)
    return await _ingest(
        db,
        tenant,
        from_google_lead(payload),
        response,
        require_contact=True,
        update_note=GOOGLE_UPDATE_NOTE,
    )


@router.get("/meta-lead", response_class=PlainTextResponse)
async def verify_meta_webhook(
    hub_mode: Annotated[str | None, Query(alias="hub.mode")] = None,
    hub_verify_token: Annotated[str | None, Query(alias="hub.verify_token")] = None,
    hub_challenge: Annotated[str | None, Query(alias="hub.challenge")] = None,
) -> PlainTextResponse:
    """Meta webhook subscription handshake: echo hub.challenge on a matching token."""
    if not hub_mode or not hub_verify_token:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Missing verification parameters",
        )
    if hub_mode != "subscribe" or hub_verify_token != settings.meta_verify_token:
        logger.warning("Meta webhook verification failed")
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Verification token mismatch",
        )
    logger.info("Meta webhook verified")
    return PlainTextResponse(hub_challenge or "")


@router.post("/meta-lead")
async def receive_meta_webhook(
    request: Request,
    auth: Annotated[AuthContext, Depends(get_auth_context)],
    db: Annotated[AsyncSession, Depends(get_db)],
) -> JSONResponse:
    """Record Facebook Lead Ads notifications for the follow-up fetch.

    Once the caller is authenticated the response is always 200: Meta
    retries non-2xx deliveries aggressively, so processing errors are
    logged instead of returned.
    """
    if auth.tenant_id is None:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Tenant context required",
        )
    try:
        body = await request.json()
        if not isinstance(body, dict):
            body = {}
        refs = await MetaLeadService(db).record_webhook(auth.tenant_id, body)
    except Exception as e:
        logger.exception("Error processing Meta webhook", extra={"tenant_id": auth.tenant_id})
        return JSONResponse(content={"success": False, "received": 0, "error": str(e)}, status_code=200)

    return JSONResponse(content={"success": True, "received": len(refs)}, status_code=200)
