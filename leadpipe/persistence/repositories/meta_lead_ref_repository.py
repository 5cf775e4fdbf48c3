"""Repository for pending Meta lead references."""

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from leadpipe.persistence.models.meta_lead_ref import META_REF_PENDING, MetaLeadRef
from leadpipe.persistence.repositories.base import BaseRepository


class MetaLeadRefRepository(BaseRepository[MetaLeadRef]):
    """Repository for MetaLeadRef entities."""

    def __init__(self, session: AsyncSession):
        super().__init__(MetaLeadRef, session)

    async def get_by_leadgen_id(self, tenant_id: int, leadgen_id: str) -> MetaLeadRef | None:
        stmt = select(MetaLeadRef).where(
            MetaLeadRef.tenant_id == tenant_id,
            MetaLeadRef.leadgen_id == leadgen_id,
        )
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def list_pending(self, limit: int = 50) -> list[MetaLeadRef]:
        """Pending references across all tenants, oldest first."""
        stmt = (
            select(MetaLeadRef)
            .where(MetaLeadRef.status == META_REF_PENDING)
            .order_by(MetaLeadRef.received_at.asc(), MetaLeadRef.id.asc())
            .limit(limit)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())
