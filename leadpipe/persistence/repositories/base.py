"""Base repository with tenant-scoped queries."""

from typing import Generic, Type, TypeVar

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from leadpipe.persistence.database import Base

ModelType = TypeVar("ModelType", bound=Base)


class BaseRepository(Generic[ModelType]):
    """Base repository with tenant-scoped query methods.

    Passing ``tenant_id=None`` skips tenant scoping; that is reserved for
    super admin operations and models without a tenant column.
    """

    def __init__(self, model: Type[ModelType], session: AsyncSession):
        """Initialize repository with model and session."""
        self.model = model
        self.session = session

    def _scoped(self, stmt, tenant_id: int | None):
        if tenant_id is not None:
            stmt = stmt.where(self.model.tenant_id == tenant_id)
        return stmt

    async def get_by_id(self, tenant_id: int | None, id: int) -> ModelType | None:
        """Get entity by ID, scoped to tenant."""
        stmt = self._scoped(select(self.model).where(self.model.id == id), tenant_id)
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def list(
        self,
        tenant_id: int | None,
        skip: int = 0,
        limit: int = 100,
        **filters
    ) -> list[ModelType]:
        """List entities, scoped to tenant."""
        stmt = self._scoped(select(self.model), tenant_id)

        for key, value in filters.items():
            if hasattr(self.model, key):
                stmt = stmt.where(getattr(self.model, key) == value)

        stmt = stmt.order_by(self.model.id).offset(skip).limit(limit)
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def count(self, tenant_id: int | None, **filters) -> int:
        """Count entities, scoped to tenant."""
        stmt = self._scoped(select(func.count()).select_from(self.model), tenant_id)
        for key, value in filters.items():
            if hasattr(self.model, key):
                stmt = stmt.where(getattr(self.model, key) == value)
        result = await self.session.execute(stmt)
        return int(result.scalar_one())

    async def add(self, tenant_id: int | None, **data) -> ModelType:
        """Stage a new entity and flush it without committing."""
        if tenant_id is not None:
            data["tenant_id"] = tenant_id
        instance = self.model(**data)
        self.session.add(instance)
        await self.session.flush()
        return instance

    async def create(self, tenant_id: int | None, **data) -> ModelType:
        """Create new entity with tenant_id and commit."""
        instance = await self.add(tenant_id, **data)
        await self.session.commit()
        await self.session.refresh(instance)
        return instance

    async def update(self, tenant_id: int | None, id: int, **data) -> ModelType | None:
        """Update entity, scoped to tenant."""
        instance = await self.get_by_id(tenant_id, id)
        if instance is None:
            return None

        for key, value in data.items():
            setattr(instance, key, value)

        await self.session.commit()
        await self.session.refresh(instance)
        return instance

    async def delete(self, tenant_id: int | None, id: int) -> bool:
        """Delete entity (and its ORM cascades), scoped to tenant."""
        instance = await self.get_by_id(tenant_id, id)
        if instance is None:
            return False

        await self.session.delete(instance)
        await self.session.commit()
        return True
