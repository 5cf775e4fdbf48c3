"""Pytest configuration and fixtures."""

import os

os.environ["ENVIRONMENT"] = "test"
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["JWT_SECRET_KEY"] = "test-jwt-secret"
os.environ["API_KEY_PEPPER"] = "test-pepper"
os.environ["FIELD_ENCRYPTION_KEY"] = "YWFhYWFhYWFhYWFhYWFhYWFhYWFhYWFhYWFhYWFhYWE="
os.environ["CRON_SECRET"] = "test-cron-secret"
os.environ["META_VERIFY_TOKEN"] = "test-verify-token"

import httpx
import pytest

from leadpipe.core.auth import create_access_token
from leadpipe.core.password import hash_password
from leadpipe.domain.services.api_key_service import ApiKeyService
from leadpipe.domain.services.auth_service import access_claims
from leadpipe.persistence.database import Database, get_db
from leadpipe.persistence.models import *  # noqa: F401, F403
from leadpipe.persistence.models.tenant import (
    ROLE_CLIENT_ADMIN,
    ROLE_MEMBER,
    ROLE_SUPER_ADMIN,
    Tenant,
    User,
)

CRON_HEADERS = {"Authorization": "Bearer test-cron-secret"}
TEST_PASSWORD = "correct-horse-battery"


@pytest.fixture
async def db_session():
    """Create a test database session."""
    # Use in-memory SQLite for testing
    database = Database("sqlite+aiosqlite:///:memory:")
    await database.create_all()

    async with database.session() as session:
        yield session

    await database.dispose()


@pytest.fixture
async def tenant(db_session) -> Tenant:
    tenant = Tenant(
        name="Bright Futures Foster Care",
        slug="bright-futures",
        spam_keywords=["crypto", "Casino Bonus"],
        sla_hours=24,
        team_members=[{"id": "tm1", "name": "Maria Lopez", "email": "maria@brightfutures.org"}],
    )
    db_session.add(tenant)
    await db_session.commit()
    return tenant


@pytest.fixture
async def other_tenant(db_session) -> Tenant:
    tenant = Tenant(name="Harbor Homes", slug="harbor-homes", sla_hours=48)
    db_session.add(tenant)
    await db_session.commit()
    return tenant


async def make_user(db_session, email: str, role: str, tenant_id: int | None) -> User:
    user = User(
        email=email,
        hashed_password=hash_password(TEST_PASSWORD),
        role=role,
        tenant_id=tenant_id,
        first_name="Test",
        last_name="User",
    )
    db_session.add(user)
    await db_session.commit()
    return user


def _auth_headers(user: User, **extra: str) -> dict[str, str]:
    token = create_access_token(access_claims(user))
    return {"Authorization": f"Bearer {token}", **extra}


@pytest.fixture
async def super_admin(db_session) -> User:
    return await make_user(db_session, "root@leadpipe.local", ROLE_SUPER_ADMIN, None)


@pytest.fixture
async def client_admin(db_session, tenant) -> User:
    return await make_user(db_session, "admin@brightfutures.org", ROLE_CLIENT_ADMIN, tenant.id)


@pytest.fixture
async def member(db_session, tenant) -> User:
    return await make_user(db_session, "caseworker@brightfutures.org", ROLE_MEMBER, tenant.id)


@pytest.fixture
async def api_key(db_session, tenant) -> str:
    """Raw API key for the tenant."""
    issued = await ApiKeyService(db_session).issue(tenant)
    return issued.raw_key


@pytest.fixture
async def client(db_session):
    """Create a test FastAPI client."""
    from leadpipe.main import create_app

    app = create_app()
    app.dependency_overrides[get_db] = lambda: db_session

    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as test_client:
        yield test_client

    app.dependency_overrides.clear()


@pytest.fixture
def auth_headers():
    """Build Authorization headers for a user's access token."""
    return _auth_headers


@pytest.fixture
def password() -> str:
    return TEST_PASSWORD


@pytest.fixture
def cron_headers() -> dict[str, str]:
    return dict(CRON_HEADERS)
