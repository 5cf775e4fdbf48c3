"""Pipeline configuration of the current tenant."""

from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from leadpipe.api.deps import get_current_tenant, require_tenant_admin
from leadpipe.api.routes.tenants import tenant_config_response
from leadpipe.api.schemas.tenant import TenantConfigResponse, TenantConfigUpdate
from leadpipe.core.exceptions import TenantNotFoundError, ValidationError
from leadpipe.domain.services.tenant_service import TenantService
from leadpipe.persistence.database import get_db
from leadpipe.persistence.models.tenant import User

router = APIRouter()


@router.get("/config", response_model=TenantConfigResponse)
async def get_tenant_config(
    tenant_id: Annotated[int, Depends(get_current_tenant)],
    db: Annotated[AsyncSession, Depends(get_db)],
) -> TenantConfigResponse:
    """Stages, team roster, spam keywords and SLA of the current tenant."""
    try:
        tenant = await TenantService(db).get_tenant(tenant_id)
    except TenantNotFoundError:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Tenant not found")
    return tenant_config_response(tenant)


@router.put("/config", response_model=TenantConfigResponse)
async def update_tenant_config(
    config_data: TenantConfigUpdate,
    admin: Annotated[tuple[User, int], Depends(require_tenant_admin)],
    db: Annotated[AsyncSession, Depends(get_db)],
) -> TenantConfigResponse:
    """Update the current tenant's configuration (tenant admins)."""
    _, tenant_id = admin
    changes = config_data.model_dump(exclude_unset=True)
    if changes.get("team_members") is not None:
        changes["team_members"] = [member.model_dump() for member in config_data.team_members]
    try:
        tenant = await TenantService(db).update_config(tenant_id, changes)
    except TenantNotFoundError:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Tenant not found")
    except ValidationError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    return tenant_config_response(tenant)
