"""Operator account management with role rules.

super_admin manages every account. client_admin manages the members of
its own tenant only and can neither promote users nor move them between
tenants.
"""

import logging
from typing import Any

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from leadpipe.core.exceptions import ConflictError, PermissionDeniedError, UserNotFoundError, ValidationError
from leadpipe.core.password import hash_password
from leadpipe.persistence.models.tenant import (
    ROLE_CLIENT_ADMIN,
    ROLE_MEMBER,
    ROLE_SUPER_ADMIN,
    ROLES,
    User,
)
from leadpipe.persistence.repositories.tenant_repository import TenantRepository
from leadpipe.persistence.repositories.user_repository import UserRepository

logger = logging.getLogger(__name__)

MIN_PASSWORD_LENGTH = 8


class UserService:
    def __init__(self, session: AsyncSession) -> None:
        self.session = session
        self.repo = UserRepository(session)
        self.tenant_repo = TenantRepository(session)

    async def list_users(self, actor: User, tenant_id: int | None = None) -> list[User]:
        stmt = select(User).order_by(User.id)
        if not actor.is_super_admin:
            stmt = stmt.where(User.tenant_id == actor.tenant_id)
        elif tenant_id is not None:
            stmt = stmt.where(User.tenant_id == tenant_id)
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def _get_visible(self, actor: User, user_id: int) -> User:
        user = await self.repo.get_by_id(None, user_id)
        if user is None or (not actor.is_super_admin and user.tenant_id != actor.tenant_id):
            raise UserNotFoundError(f"User {user_id} not found")
        return user

    async def create_user(
        self,
        actor: User,
        email: str,
        password: str,
        role: str,
        first_name: str | None = None,
        last_name: str | None = None,
        tenant_id: int | None = None,
    ) -> User:
        if role not in ROLES:
            raise ValidationError(f"Invalid role '{role}'. Allowed: {', '.join(ROLES)}")
        if len(password) < MIN_PASSWORD_LENGTH:
            raise ValidationError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters")

        if actor.is_super_admin:
            if role == ROLE_SUPER_ADMIN:
                tenant_id = None
            elif tenant_id is None:
                raise ValidationError("tenant_id is required for tenant users")
            elif await self.tenant_repo.get_by_id(None, tenant_id) is None:
                raise ValidationError(f"Tenant {tenant_id} does not exist")
        elif actor.role == ROLE_CLIENT_ADMIN:
            if role != ROLE_MEMBER:
                raise PermissionDeniedError("Client admins can only create members")
            tenant_id = actor.tenant_id
        else:
            raise PermissionDeniedError("Not allowed to create users")

        email = email.strip().lower()
        if await self.repo.get_by_email(email) is not None:
            raise ConflictError("User with this email already exists")

        user = await self.repo.create(
            tenant_id,
            email=email,
            hashed_password=hash_password(password),
            role=role,
            first_name=first_name,
            last_name=last_name,
        )
        logger.info("User created", extra={"user_id": user.id, "tenant_id": tenant_id, "role": role})
        return user

    async def update_user(self, actor: User, user_id: int, changes: dict[str, Any]) -> User:
        user = await self._get_visible(actor, user_id)

        if not actor.is_super_admin:
            if changes.get("role") not in (None, user.role):
                raise PermissionDeniedError("Cannot change user role")
            if changes.get("tenant_id") not in (None, user.tenant_id):
                raise PermissionDeniedError("Cannot change user tenant")
        else:
            if changes.get("role") is not None:
                if changes["role"] not in ROLES:
                    raise ValidationError(f"Invalid role '{changes['role']}'")
                user.role = changes["role"]
            if "tenant_id" in changes and changes["tenant_id"] != user.tenant_id:
                user.tenant_id = changes["tenant_id"]
            if user.role != ROLE_SUPER_ADMIN and user.tenant_id is None:
                raise ValidationError("tenant_id is required for tenant users")

        for field in ("first_name", "last_name"):
            if field in changes:
                setattr(user, field, changes[field])
        if changes.get("is_active") is not None:
            user.is_active = changes["is_active"]
            if not user.is_active:
                user.refresh_token = None
        if changes.get("password"):
            if len(changes["password"]) < MIN_PASSWORD_LENGTH:
                raise ValidationError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters")
            user.hashed_password = hash_password(changes["password"])

        await self.session.commit()
        return user

    async def deactivate_user(self, actor: User, user_id: int) -> User:
        if actor.id == user_id:
            raise ValidationError("Cannot deactivate your own account")
        user = await self._get_visible(actor, user_id)
        user.is_active = False
        user.refresh_token = None
        await self.session.commit()
        logger.info("User deactivated", extra={"user_id": user_id, "by_user_id": actor.id})
        return user
