"""API key repository."""

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from leadpipe.persistence.models.api_key import ApiKey
from leadpipe.persistence.repositories.base import BaseRepository


class ApiKeyRepository(BaseRepository[ApiKey]):
    """Repository for ApiKey entities."""

    def __init__(self, session: AsyncSession):
        super().__init__(ApiKey, session)

    async def get_active_by_hash(self, key_hash: str) -> ApiKey | None:
        """Look up an active key by its peppered hash (not tenant scoped)."""
        stmt = select(ApiKey).where(ApiKey.key_hash == key_hash, ApiKey.is_active.is_(True))
        result = await self.session.execute(stmt)
        return result.scalars().first()

    async def list_for_tenant(self, tenant_id: int) -> list[ApiKey]:
        stmt = (
            select(ApiKey)
            .where(ApiKey.tenant_id == tenant_id)
            .order_by(ApiKey.created_at.desc(), ApiKey.id.desc())
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())
