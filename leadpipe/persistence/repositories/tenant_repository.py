"""Tenant repository."""

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from leadpipe.persistence.models.tenant import Tenant
from leadpipe.persistence.repositories.base import BaseRepository


class TenantRepository(BaseRepository[Tenant]):
    """Repository for Tenant entities (not tenant-scoped)."""

    def __init__(self, session: AsyncSession):
        super().__init__(Tenant, session)

    async def get_by_id(self, tenant_id: int | None, id: int) -> Tenant | None:
        """Get tenant by ID. The tenant_id argument is ignored."""
        result = await self.session.execute(select(Tenant).where(Tenant.id == id))
        return result.scalar_one_or_none()

    async def get_by_slug(self, slug: str) -> Tenant | None:
        result = await self.session.execute(select(Tenant).where(Tenant.slug == slug))
        return result.scalar_one_or_none()

    async def list_all(self) -> list[Tenant]:
        result = await self.session.execute(select(Tenant).order_by(Tenant.id))
        return list(result.scalars().all())
