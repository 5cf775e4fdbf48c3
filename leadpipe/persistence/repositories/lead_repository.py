"""Lead repository."""

from dataclasses import dataclass
from datetime import datetime

from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from leadpipe.persistence.models.lead import Lead
from leadpipe.persistence.repositories.base import BaseRepository


@dataclass
class LeadFilters:
    """Filters shared by the lead list and the CSV export."""

    stage: str | None = None
    source: str | None = None
    spam_flag: bool | None = None
    q: str | None = None
    date_from: datetime | None = None
    date_to: datetime | None = None


def _escape_like(value: str) -> str:
    return value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


class LeadRepository(BaseRepository[Lead]):
    """Repository for Lead entities."""

    def __init__(self, session: AsyncSession):
        """Initialize lead repository."""
        super().__init__(Lead, session)

    async def find_by_email_or_phone(
        self, tenant_id: int, email: str | None = None, phone: str | None = None
    ) -> list[Lead]:
        """Find leads of a tenant matching the email OR the phone.

        Args:
            tenant_id: Tenant ID
            email: Optional normalized email to match
            phone: Optional normalized phone to match

        Returns:
            Matching leads, oldest first
        """
        if not email and not phone:
            return []

        conditions = []
        if email:
            conditions.append(Lead.email == email)
        if phone:
            conditions.append(Lead.phone == phone)

        stmt = (
            select(Lead)
            .where(Lead.tenant_id == tenant_id, or_(*conditions))
            .order_by(Lead.created_at.asc(), Lead.id.asc())
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    def _filtered(self, tenant_id: int, filters: LeadFilters):
        stmt = select(Lead).where(Lead.tenant_id == tenant_id)
        if filters.stage:
            stmt = stmt.where(Lead.stage == filters.stage)
        if filters.source:
            stmt = stmt.where(Lead.source == filters.source)
        if filters.spam_flag is not None:
            stmt = stmt.where(Lead.spam_flag == filters.spam_flag)
        if filters.q:
            pattern = f"%{_escape_like(filters.q.lower())}%"
            stmt = stmt.where(
                or_(
                    func.lower(Lead.first_name).like(pattern, escape="\\"),
                    func.lower(Lead.last_name).like(pattern, escape="\\"),
                    func.lower(Lead.email).like(pattern, escape="\\"),
                    func.lower(Lead.phone).like(pattern, escape="\\"),
                    func.lower(Lead.city).like(pattern, escape="\\"),
                )
            )
        if filters.date_from:
            stmt = stmt.where(Lead.created_at >= filters.date_from)
        if filters.date_to:
            stmt = stmt.where(Lead.created_at <= filters.date_to)
        return stmt

    async def search(
        self,
        tenant_id: int,
        filters: LeadFilters,
        skip: int = 0,
        limit: int | None = 50,
    ) -> tuple[list[Lead], int]:
        """Filtered leads, newest first, with the total match count."""
        base = self._filtered(tenant_id, filters)

        count_stmt = select(func.count()).select_from(base.subquery())
        total = int((await self.session.execute(count_stmt)).scalar_one())

        stmt = base.order_by(Lead.created_at.desc(), Lead.id.desc()).offset(skip)
        if limit is not None:
            stmt = stmt.limit(limit)
        result = await self.session.execute(stmt)
        return list(result.scalars().all()), total

    async def count_by(self, tenant_id: int, column) -> dict[str | None, int]:
        """Lead counts grouped by a column (stage, source)."""
        stmt = (
            select(column, func.count(Lead.id))
            .where(Lead.tenant_id == tenant_id)
            .group_by(column)
            .order_by(func.count(Lead.id).desc())
        )
        result = await self.session.execute(stmt)
        return {key: count for key, count in result.all()}

    async def count_created_since(self, tenant_id: int, since: datetime) -> int:
        stmt = select(func.count(Lead.id)).where(
            Lead.tenant_id == tenant_id, Lead.created_at >= since
        )
        return int((await self.session.execute(stmt)).scalar_one())

    async def list_stale(
        self, tenant_id: int, threshold: datetime, exclude_stages: tuple[str, ...]
    ) -> list[Lead]:
        """Leads whose latest activity is older than threshold, outside the given stages."""
        stmt = (
            select(Lead)
            .where(
                Lead.tenant_id == tenant_id,
                Lead.latest_activity_at < threshold,
                Lead.stage.notin_(exclude_stages),
            )
            .order_by(Lead.latest_activity_at.asc())
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def list_for_tenant(self, tenant_id: int, exclude_stage: str | None = None) -> list[Lead]:
        stmt = select(Lead).where(Lead.tenant_id == tenant_id)
        if exclude_stage is not None:
            stmt = stmt.where(Lead.stage != exclude_stage)
        result = await self.session.execute(stmt)
        return list(result.scalars().all())
