"""Database connection and session management.

A single ``Database`` is created at application startup (see
``leadpipe.main``) and stored on ``app.state``; request handlers receive
sessions from it through the ``get_db`` dependency.
"""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import Request
from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import declarative_base

from leadpipe.settings import to_async_database_url

# Base class for models
Base = declarative_base()


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record) -> None:
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


class Database:
    """Owns the async engine and session factory for the process."""

    def __init__(self, url: str, echo: bool = False) -> None:
        self.url = to_async_database_url(url)
        self.engine: AsyncEngine = create_async_engine(self.url, echo=echo, future=True)
        if self.engine.dialect.name == "sqlite":
            event.listen(self.engine.sync_engine, "connect", _enable_sqlite_foreign_keys)
        self.session_factory = async_sessionmaker(
            self.engine,
            class_=AsyncSession,
            expire_on_commit=False,
            autoflush=False,
        )

    @asynccontextmanager
    async def session(self) -> AsyncIterator[AsyncSession]:
        """Open a session that is always closed on exit."""
        async with self.session_factory() as session:
            yield session

    async def create_all(self) -> None:
        """Create all tables (local development and tests)."""
        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    async def dispose(self) -> None:
        await self.engine.dispose()


async def get_db(request: Request) -> AsyncIterator[AsyncSession]:
    """Dependency for getting a database session."""
    database: Database = request.app.state.database
    async with database.session() as session:
        yield session
