"""Tenant API keys: issue, list, reveal, revoke and authenticate."""

import logging
from dataclasses import dataclass

from sqlalchemy.ext.asyncio import AsyncSession

from leadpipe.core.api_keys import generate_api_key, hash_api_key
from leadpipe.core.clock import utc_now
from leadpipe.core.encryption import EncryptionError, get_encryption_service
from leadpipe.core.exceptions import ApiKeyNotFoundError, ValidationError
from leadpipe.persistence.models.api_key import ApiKey
from leadpipe.persistence.models.tenant import Tenant
from leadpipe.persistence.repositories.api_key_repository import ApiKeyRepository

logger = logging.getLogger(__name__)

DEFAULT_KEY_NAME = "Default key"


@dataclass
class IssuedApiKey:
    """A freshly created key. ``raw_key`` is never available again."""

    api_key: ApiKey
    raw_key: str


class ApiKeyService:
    def __init__(self, session: AsyncSession) -> None:
        self.session = session
        self.repo = ApiKeyRepository(session)

    async def issue(self, tenant: Tenant, name: str = DEFAULT_KEY_NAME, commit: bool = True) -> IssuedApiKey:
        """Create a key for the tenant.

        The peppered hash is stored for lookup; an encrypted copy is stored
        only when field encryption is configured.
        """
        raw_key = generate_api_key(tenant.slug)
        encryption = get_encryption_service()
        api_key = await self.repo.add(
            tenant.id,
            key_hash=hash_api_key(raw_key),
            encrypted_key=encryption.encrypt(raw_key) if encryption.is_enabled else None,
            name=name,
        )
        if commit:
            await self.session.commit()
        logger.info("API key created", extra={"tenant_id": tenant.id, "api_key_id": api_key.id})
        return IssuedApiKey(api_key=api_key, raw_key=raw_key)

    async def list_keys(self, tenant_id: int) -> list[ApiKey]:
        return await self.repo.list_for_tenant(tenant_id)

    async def _get(self, tenant_id: int, key_id: int) -> ApiKey:
        api_key = await self.repo.get_by_id(tenant_id, key_id)
        if api_key is None:
            raise ApiKeyNotFoundError(f"API key {key_id} not found")
        return api_key

    async def reveal(self, tenant_id: int, key_id: int, revealed_by: int | None = None) -> str:
        """Decrypt the stored copy of a key.

        Raises:
            ApiKeyNotFoundError: If the key does not belong to the tenant
            ValidationError: If no encrypted copy was stored
        """
        api_key = await self._get(tenant_id, key_id)
        if not api_key.encrypted_key:
            raise ValidationError("This key was created without an encrypted copy and cannot be revealed")
        try:
            raw_key = get_encryption_service().decrypt(api_key.encrypted_key)
        except EncryptionError as e:
            raise ValidationError(str(e)) from e

        logger.warning(
            "API key revealed",
            extra={"tenant_id": tenant_id, "api_key_id": key_id, "revealed_by": revealed_by},
        )
        return raw_key

    async def revoke(self, tenant_id: int, key_id: int) -> ApiKey:
        """Deactivate a key. Keys are never deleted."""
        api_key = await self._get(tenant_id, key_id)
        if api_key.is_active:
            api_key.is_active = False
            api_key.revoked_at = utc_now()
            await self.session.commit()
            logger.info("API key revoked", extra={"tenant_id": tenant_id, "api_key_id": key_id})
        return api_key

    async def authenticate(self, raw_key: str | None) -> int | None:
        """Tenant id for an active key, stamping its last use. None if unknown."""
        if not raw_key:
            return None
        api_key = await self.repo.get_active_by_hash(hash_api_key(raw_key.strip()))
        if api_key is None:
            return None
        api_key.last_used_at = utc_now()
        await self.session.commit()
        return api_key.tenant_id
