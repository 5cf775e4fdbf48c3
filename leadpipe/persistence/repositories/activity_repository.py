"""Activity repository."""

from datetime import datetime

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from leadpipe.persistence.models.activity import ACTIVITY_UTM_SNAPSHOT, Activity
from leadpipe.persistence.repositories.base import BaseRepository


class ActivityRepository(BaseRepository[Activity]):
    """Repository for Activity entities.

    Activities are append-only: there is no update path here.
    """

    def __init__(self, session: AsyncSession):
        super().__init__(Activity, session)

    async def list_for_lead(self, tenant_id: int, lead_id: int) -> list[Activity]:
        """All activities of a lead, newest first."""
        stmt = (
            select(Activity)
            .where(Activity.tenant_id == tenant_id, Activity.lead_id == lead_id)
            .order_by(Activity.created_at.desc(), Activity.id.desc())
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def first_contact_times(
        self, tenant_id: int, lead_ids: list[int], types: tuple[str, ...]
    ) -> dict[int, datetime]:
        """Earliest activity time per lead among the given activity types."""
        if not lead_ids:
            return {}
        stmt = (
            select(Activity.lead_id, func.min(Activity.created_at))
            .where(
                Activity.tenant_id == tenant_id,
                Activity.lead_id.in_(lead_ids),
                Activity.type.in_(types),
            )
            .group_by(Activity.lead_id)
        )
        result = await self.session.execute(stmt)
        return {lead_id: first_at for lead_id, first_at in result.all()}

    async def count_contact_attempts(self, tenant_id: int, lead_ids: list[int]) -> dict[int, int]:
        """Number of non-snapshot activities per lead."""
        if not lead_ids:
            return {}
        stmt = (
            select(Activity.lead_id, func.count(Activity.id))
            .where(
                Activity.tenant_id == tenant_id,
                Activity.lead_id.in_(lead_ids),
                Activity.type != ACTIVITY_UTM_SNAPSHOT,
            )
            .group_by(Activity.lead_id)
        )
        result = await self.session.execute(stmt)
        return {lead_id: count for lead_id, count in result.all()}
