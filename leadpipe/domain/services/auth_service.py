"""Operator login, token refresh and logout."""

import logging
from dataclasses import dataclass

from sqlalchemy.ext.asyncio import AsyncSession

from leadpipe.core.auth import REFRESH_TOKEN_TYPE, create_access_token, create_refresh_token, decode_token
from leadpipe.core.clock import utc_now
from leadpipe.core.exceptions import AuthenticationError
from leadpipe.core.password import verify_password
from leadpipe.persistence.models.tenant import User
from leadpipe.persistence.repositories.user_repository import UserRepository

logger = logging.getLogger(__name__)


@dataclass
class TokenPair:
    access_token: str
    refresh_token: str
    user: User


def access_claims(user: User) -> dict:
    return {"sub": str(user.id), "role": user.role, "tenant_id": user.tenant_id}


class AuthService:
    def __init__(self, session: AsyncSession) -> None:
        self.session = session
        self.user_repo = UserRepository(session)

    async def login(self, email: str, password: str) -> TokenPair:
        user = await self.user_repo.get_by_email(email)
        # Same error for unknown email and wrong password
        if user is None or not verify_password(password, user.hashed_password):
            logger.info("Failed login attempt")
            raise AuthenticationError("Invalid credentials")
        if not user.is_active:
            raise AuthenticationError("Account is deactivated")

        refresh_token = create_refresh_token(user.id)
        user.refresh_token = refresh_token
        user.last_login_at = utc_now()
        await self.session.commit()
        logger.info("User logged in", extra={"user_id": user.id, "tenant_id": user.tenant_id})
        return TokenPair(
            access_token=create_access_token(access_claims(user)),
            refresh_token=refresh_token,
            user=user,
        )

    async def refresh(self, refresh_token: str) -> TokenPair:
        """Exchange a refresh token for a new token pair.

        Only the most recently issued refresh token of a user is accepted,
        so logging out or logging in elsewhere revokes older ones.
        """
        payload = decode_token(refresh_token, expected_type=REFRESH_TOKEN_TYPE)
        if payload is None:
            raise AuthenticationError("Invalid refresh token")
        try:
            user_id = int(payload.get("sub"))
        except (TypeError, ValueError):
            raise AuthenticationError("Invalid refresh token")

        user = await self.user_repo.get_by_id(None, user_id)
        if user is None or not user.is_active or user.refresh_token != refresh_token:
            raise AuthenticationError("Invalid refresh token")

        new_refresh_token = create_refresh_token(user.id)
        user.refresh_token = new_refresh_token
        await self.session.commit()
        return TokenPair(
            access_token=create_access_token(access_claims(user)),
            refresh_token=new_refresh_token,
            user=user,
        )

    async def logout(self, user: User) -> None:
        user.refresh_token = None
        await self.session.commit()
        logger.info("User logged out", extra={"user_id": user.id})
