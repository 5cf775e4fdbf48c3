"""Tenant administration and per-tenant pipeline configuration."""

import logging
import re
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from leadpipe.core.exceptions import ConflictError, TenantNotFoundError, ValidationError
from leadpipe.domain.services.api_key_service import ApiKeyService, IssuedApiKey
from leadpipe.persistence.models.tenant import DEFAULT_PIPELINE_STAGES, Tenant
from leadpipe.persistence.repositories.tenant_repository import TenantRepository
from leadpipe.settings import settings

logger = logging.getLogger(__name__)

SLUG_PATTERN = re.compile(r"^[a-z0-9][a-z0-9-]*$")

CONFIG_FIELDS = (
    "stages",
    "team_members",
    "spam_keywords",
    "sla_hours",
    "allowed_origins",
    "meta_access_token",
)


def _clean_stages(stages: list[str]) -> list[str]:
    cleaned = []
    for stage in stages:
        stage = str(stage).strip()
        if stage and stage not in cleaned:
            cleaned.append(stage)
    if not cleaned:
        raise ValidationError("At least one pipeline stage is required")
    return cleaned


def _clean_keywords(keywords: list[str]) -> list[str]:
    return [str(keyword).strip() for keyword in keywords if str(keyword).strip()]


class TenantService:
    def __init__(self, session: AsyncSession) -> None:
        self.session = session
        self.repo = TenantRepository(session)

    async def get_tenant(self, tenant_id: int) -> Tenant:
        tenant = await self.repo.get_by_id(None, tenant_id)
        if tenant is None:
            raise TenantNotFoundError(f"Tenant {tenant_id} not found")
        return tenant

    async def list_tenants(self) -> list[Tenant]:
        return await self.repo.list_all()

    async def create_tenant(
        self,
        name: str,
        slug: str,
        stages: list[str] | None = None,
        team_members: list[dict] | None = None,
        spam_keywords: list[str] | None = None,
        sla_hours: int | None = None,
    ) -> tuple[Tenant, IssuedApiKey]:
        """Create a tenant together with its default API key.

        Raises:
            ValidationError: If the slug is malformed or sla_hours is not positive
            ConflictError: If the slug is already used
        """
        slug = slug.strip().lower()
        if not SLUG_PATTERN.match(slug):
            raise ValidationError("Slug may only contain lowercase letters, digits and dashes")
        if sla_hours is not None and sla_hours <= 0:
            raise ValidationError("sla_hours must be positive")
        if await self.repo.get_by_slug(slug) is not None:
            raise ConflictError(f"Slug '{slug}' already exists")

        tenant = await self.repo.add(
            None,
            name=name.strip(),
            slug=slug,
            stages=_clean_stages(stages) if stages else list(DEFAULT_PIPELINE_STAGES),
            team_members=team_members or [],
            spam_keywords=_clean_keywords(spam_keywords or []),
            sla_hours=settings.default_sla_hours if sla_hours is None else sla_hours,
            allowed_origins=[],
        )
        issued = await ApiKeyService(self.session).issue(tenant, commit=False)
        await self.session.commit()
        logger.info("Tenant created", extra={"tenant_id": tenant.id, "slug": slug})
        return tenant, issued

    async def update_tenant(self, tenant_id: int, changes: dict[str, Any]) -> Tenant:
        """Update name, slug and configuration of a tenant."""
        tenant = await self.get_tenant(tenant_id)

        if "slug" in changes and changes["slug"] is not None:
            slug = changes["slug"].strip().lower()
            if not SLUG_PATTERN.match(slug):
                raise ValidationError("Slug may only contain lowercase letters, digits and dashes")
            other = await self.repo.get_by_slug(slug)
            if other is not None and other.id != tenant.id:
                raise ConflictError(f"Slug '{slug}' already exists")
            tenant.slug = slug
        if changes.get("name"):
            tenant.name = changes["name"].strip()

        self._apply_config(tenant, changes)
        await self.session.commit()
        return tenant

    async def update_config(self, tenant_id: int, changes: dict[str, Any]) -> Tenant:
        """Update only the pipeline configuration of a tenant."""
        tenant = await self.get_tenant(tenant_id)
        self._apply_config(tenant, changes)
        await self.session.commit()
        logger.info(
            "Tenant config updated",
            extra={"tenant_id": tenant_id, "fields": sorted(key for key in changes if key in CONFIG_FIELDS)},
        )
        return tenant

    def _apply_config(self, tenant: Tenant, changes: dict[str, Any]) -> None:
        if changes.get("stages") is not None:
            tenant.stages = _clean_stages(changes["stages"])
        if changes.get("team_members") is not None:
            tenant.team_members = list(changes["team_members"])
        if changes.get("spam_keywords") is not None:
            tenant.spam_keywords = _clean_keywords(changes["spam_keywords"])
        if changes.get("sla_hours") is not None:
            if changes["sla_hours"] <= 0:
                raise ValidationError("sla_hours must be positive")
            tenant.sla_hours = changes["sla_hours"]
        if changes.get("allowed_origins") is not None:
            tenant.allowed_origins = [origin.strip() for origin in changes["allowed_origins"] if origin.strip()]
        if "meta_access_token" in changes:
            # Empty string clears the token
            tenant.meta_access_token = changes["meta_access_token"] or None

    async def delete_tenant(self, tenant_id: int) -> None:
        """Delete a tenant with its leads, activities, API keys, Meta references and users."""
        deleted = await self.repo.delete(None, tenant_id)
        if not deleted:
            raise TenantNotFoundError(f"Tenant {tenant_id} not found")
        logger.info("Tenant deleted", extra={"tenant_id": tenant_id})
