"""Tenant management and tenant API keys."""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from leadpipe.api.deps import ensure_tenant_admin, get_current_user, require_super_admin
from leadpipe.api.schemas.tenant import (
    ApiKeyCreate,
    ApiKeyCreateResponse,
    ApiKeyResponse,
    ApiKeyRevealResponse,
    TenantConfigResponse,
    TenantCreate,
    TenantCreateResponse,
    TenantResponse,
    TenantUpdate,
)
from leadpipe.core.exceptions import (
    ApiKeyNotFoundError,
    ConflictError,
    TenantNotFoundError,
    ValidationError,
)
from leadpipe.domain.services.api_key_service import ApiKeyService
from leadpipe.domain.services.sla_service import sla_hours_for
from leadpipe.domain.services.tenant_service import TenantService
from leadpipe.persistence.database import get_db
from leadpipe.persistence.models.api_key import ApiKey
from leadpipe.persistence.models.tenant import Tenant, User

logger = logging.getLogger(__name__)

router = APIRouter()


def tenant_config_response(tenant: Tenant) -> TenantConfigResponse:
    return TenantConfigResponse(
        stages=tenant.pipeline_stages(),
        team_members=list(tenant.team_members or []),
        spam_keywords=list(tenant.spam_keywords or []),
        sla_hours=sla_hours_for(tenant),
        allowed_origins=list(tenant.allowed_origins or []),
        has_meta_access_token=bool(tenant.meta_access_token),
    )


def tenant_response(tenant: Tenant) -> TenantResponse:
    return TenantResponse(
        id=tenant.id,
        name=tenant.name,
        slug=tenant.slug,
        created_at=tenant.created_at,
        config=tenant_config_response(tenant),
    )


def api_key_response(api_key: ApiKey) -> ApiKeyResponse:
    return ApiKeyResponse(
        id=api_key.id,
        name=api_key.name,
        is_active=api_key.is_active,
        created_at=api_key.created_at,
        revoked_at=api_key.revoked_at,
        last_used_at=api_key.last_used_at,
        revealable=bool(api_key.encrypted_key),
    )


async def _existing_tenant(db: AsyncSession, tenant_id: int) -> Tenant:
    try:
        return await TenantService(db).get_tenant(tenant_id)
    except TenantNotFoundError:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Tenant not found",
        )


@router.get("", response_model=list[TenantResponse])
async def list_tenants(
    admin_user: Annotated[User, Depends(require_super_admin)],
    db: Annotated[AsyncSession, Depends(get_db)],
) -> list[TenantResponse]:
    """List all tenants (super admin only)."""
    tenants = await TenantService(db).list_tenants()
    return [tenant_response(tenant) for tenant in tenants]


@router.post("", response_model=TenantCreateResponse, status_code=status.HTTP_201_CREATED)
async def create_tenant(
    tenant_data: TenantCreate,
    admin_user: Annotated[User, Depends(require_super_admin)],
    db: Annotated[AsyncSession, Depends(get_db)],
) -> TenantCreateResponse:
    """Create a tenant and its default API key.

    The raw API key is only returned in this response.
    """
    try:
        tenant, issued = await TenantService(db).create_tenant(
            name=tenant_data.name,
            slug=tenant_data.slug,
            stages=tenant_data.stages,
            team_members=[member.model_dump() for member in tenant_data.team_members or []],
            spam_keywords=tenant_data.spam_keywords,
            sla_hours=tenant_data.sla_hours,
        )
    except ValidationError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except ConflictError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))
    return TenantCreateResponse(tenant=tenant_response(tenant), api_key=issued.raw_key)


@router.get("/{tenant_id}", response_model=TenantResponse)
async def get_tenant(
    tenant_id: int,
    current_user: Annotated[User, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db)],
) -> TenantResponse:
    """Get a tenant. Non super admins only see their own tenant."""
    if not current_user.is_super_admin and current_user.tenant_id != tenant_id:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Tenant not found")
    return tenant_response(await _existing_tenant(db, tenant_id))


@router.put("/{tenant_id}", response_model=TenantResponse)
async def update_tenant(
    tenant_id: int,
    tenant_data: TenantUpdate,
    admin_user: Annotated[User, Depends(require_super_admin)],
    db: Annotated[AsyncSession, Depends(get_db)],
) -> TenantResponse:
    """Update a tenant's name, slug or configuration (super admin only)."""
    changes = tenant_data.model_dump(exclude_unset=True)
    if "team_members" in changes and changes["team_members"] is not None:
        changes["team_members"] = [member.model_dump() for member in tenant_data.team_members]
    try:
        tenant = await TenantService(db).update_tenant(tenant_id, changes)
    except TenantNotFoundError:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Tenant not found")
    except ValidationError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except ConflictError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))
    return tenant_response(tenant)


@router.delete("/{tenant_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_tenant(
    tenant_id: int,
    admin_user: Annotated[User, Depends(require_super_admin)],
    db: Annotated[AsyncSession, Depends(get_db)],
) -> None:
    """Delete a tenant and everything it owns (super admin only)."""
    try:
        await TenantService(db).delete_tenant(tenant_id)
    except TenantNotFoundError:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Tenant not found")
    logger.warning("Tenant deleted", extra={"tenant_id": tenant_id, "user_id": admin_user.id})


@router.get("/{tenant_id}/api-keys", response_model=list[ApiKeyResponse])
async def list_api_keys(
    tenant_id: int,
    current_user: Annotated[User, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db)],
) -> list[ApiKeyResponse]:
    """List a tenant's API keys without secrets."""
    ensure_tenant_admin(current_user, tenant_id)
    await _existing_tenant(db, tenant_id)
    keys = await ApiKeyService(db).list_keys(tenant_id)
    return [api_key_response(api_key) for api_key in keys]


@router.post("/{tenant_id}/api-keys", response_model=ApiKeyCreateResponse, status_code=status.HTTP_201_CREATED)
async def create_api_key(
    tenant_id: int,
    key_data: ApiKeyCreate,
    current_user: Annotated[User, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db)],
) -> ApiKeyCreateResponse:
    """Issue a new API key. The raw key is only returned in this response."""
    ensure_tenant_admin(current_user, tenant_id)
    tenant = await _existing_tenant(db, tenant_id)
    issued = await ApiKeyService(db).issue(tenant, name=key_data.name)
    return ApiKeyCreateResponse(api_key=api_key_response(issued.api_key), raw_key=issued.raw_key)


@router.post("/{tenant_id}/api-keys/{key_id}/reveal", response_model=ApiKeyRevealResponse)
async def reveal_api_key(
    tenant_id: int,
    key_id: int,
    current_user: Annotated[User, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db)],
) -> ApiKeyRevealResponse:
    """Decrypt and return a stored API key. Every reveal is logged."""
    ensure_tenant_admin(current_user, tenant_id)
    try:
        raw_key = await ApiKeyService(db).reveal(tenant_id, key_id, revealed_by=current_user.id)
    except ApiKeyNotFoundError:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="API key not found")
    except ValidationError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    return ApiKeyRevealResponse(id=key_id, raw_key=raw_key)


@router.post("/{tenant_id}/api-keys/{key_id}/revoke", response_model=ApiKeyResponse)
async def revoke_api_key(
    tenant_id: int,
    key_id: int,
    current_user: Annotated[User, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db)],
) -> ApiKeyResponse:
    """Deactivate an API key."""
    ensure_tenant_admin(current_user, tenant_id)
    try:
        api_key = await ApiKeyService(db).revoke(tenant_id, key_id)
    except ApiKeyNotFoundError:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="API key not found")
    return api_key_response(api_key)
