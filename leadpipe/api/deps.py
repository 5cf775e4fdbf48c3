"""FastAPI dependencies for auth and tenant resolution.

Every handler authenticates through ``get_auth_context``: an operator
session (Bearer JWT) is tried first, then a tenant API key in the
``X-Tenant-Key`` header. The result names the tenant scope and, for
sessions, the operator.
"""

import hmac
from dataclasses import dataclass
from typing import Annotated

from fastapi import Depends, Header, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from leadpipe.core.auth import decode_token
from leadpipe.core.tenant_context import set_tenant_context
from leadpipe.domain.services.api_key_service import ApiKeyService
from leadpipe.persistence.database import get_db
from leadpipe.persistence.models.tenant import ROLE_CLIENT_ADMIN, User
from leadpipe.persistence.repositories.user_repository import UserRepository
from leadpipe.settings import settings

AUTH_VIA_SESSION = "session"
AUTH_VIA_API_KEY = "api_key"

security = HTTPBearer(auto_error=False)


@dataclass
class AuthContext:
    """Who is calling and which tenant the call is scoped to.

    ``tenant_id`` is None only for a super admin that did not pick a
    tenant. ``user`` is None for API key callers.
    """

    tenant_id: int | None
    user: User | None
    via: str

    @property
    def is_super_admin(self) -> bool:
        return self.user is not None and self.user.is_super_admin


def parse_id(value: str | int | None, name: str) -> int | None:
    """Parse an integer identifier from a header, query or body value."""
    if value is None or value == "":
        return None
    try:
        parsed = int(value)
    except (TypeError, ValueError):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Invalid {name}",
        )
    if parsed <= 0:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Invalid {name}",
        )
    return parsed


async def _user_from_token(token: str, db: AsyncSession) -> User | None:
    payload = decode_token(token)
    if payload is None:
        return None
    try:
        user_id = int(payload.get("sub"))
    except (TypeError, ValueError):
        return None
    user = await UserRepository(db).get_by_id(None, user_id)
    if user is None or not user.is_active:
        return None
    return user


async def get_auth_context(
    db: Annotated[AsyncSession, Depends(get_db)],
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(security)],
    x_tenant_key: Annotated[str | None, Header(alias="X-Tenant-Key")] = None,
    x_tenant_id: Annotated[str | None, Header(alias="X-Tenant-Id")] = None,
) -> AuthContext:
    """Resolve the caller from a session token or a tenant API key.

    Super admins may pick a tenant with the X-Tenant-Id header.

    Raises:
        HTTPException: 401 if neither credential is valid
    """
    if credentials is not None:
        user = await _user_from_token(credentials.credentials, db)
        if user is not None:
            tenant_id = user.tenant_id
            if user.is_super_admin and x_tenant_id:
                tenant_id = parse_id(x_tenant_id, "X-Tenant-Id header value")
            set_tenant_context(tenant_id)
            return AuthContext(tenant_id=tenant_id, user=user, via=AUTH_VIA_SESSION)

    if x_tenant_key:
        tenant_id = await ApiKeyService(db).authenticate(x_tenant_key)
        if tenant_id is not None:
            set_tenant_context(tenant_id)
            return AuthContext(tenant_id=tenant_id, user=None, via=AUTH_VIA_API_KEY)
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or missing API key",
        )

    raise HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Invalid authentication credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )


async def get_current_user(
    auth: Annotated[AuthContext, Depends(get_auth_context)],
) -> User:
    """Require an operator session.

    Raises:
        HTTPException: 401 for API key callers
    """
    if auth.user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="User session required",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return auth.user


async def get_current_tenant(
    auth: Annotated[AuthContext, Depends(get_auth_context)],
) -> int:
    """Require a tenant scope.

    Raises:
        HTTPException: If a super admin did not select a tenant
    """
    if auth.tenant_id is None:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Tenant context required",
        )
    return auth.tenant_id


async def require_super_admin(
    current_user: Annotated[User, Depends(get_current_user)],
) -> User:
    if not current_user.is_super_admin:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Super admin access required",
        )
    return current_user


async def require_user_admin(
    current_user: Annotated[User, Depends(get_current_user)],
) -> User:
    """Super admin or client admin."""
    if not (current_user.is_super_admin or current_user.role == ROLE_CLIENT_ADMIN):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Admin access required",
        )
    return current_user


def ensure_tenant_admin(user: User, tenant_id: int) -> None:
    """Super admin, or client admin of the given tenant.

    Raises:
        HTTPException: 403 otherwise
    """
    if user.is_super_admin:
        return
    if user.role != ROLE_CLIENT_ADMIN or user.tenant_id != tenant_id:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Tenant admin access required",
        )


async def require_tenant_admin(
    current_user: Annotated[User, Depends(get_current_user)],
    tenant_id: Annotated[int, Depends(get_current_tenant)],
) -> tuple[User, int]:
    """Require an admin of the current tenant."""
    ensure_tenant_admin(current_user, tenant_id)
    return current_user, tenant_id


async def verify_cron_secret(
    authorization: Annotated[str | None, Header()] = None,
) -> None:
    """Authenticate scheduler calls with ``Authorization: Bearer <CRON_SECRET>``."""
    expected = f"Bearer {settings.cron_secret}" if settings.cron_secret else None
    if expected is None or authorization is None or not hmac.compare_digest(authorization, expected):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Unauthorized",
        )
