"""Field-level encryption for secrets stored in the database.

Uses Fernet symmetric encryption for tenant access tokens and the
reversible copy of API keys kept for the reveal operation.
"""

import logging
from typing import Optional

from cryptography.fernet import Fernet, InvalidToken

logger = logging.getLogger(__name__)

ENCRYPTED_PREFIX = "enc:"


class EncryptionError(Exception):
    """Raised when encryption/decryption fails."""


class EncryptionService:
    """Encrypts and decrypts sensitive values.

    Fernet provides AES-128-CBC encryption with HMAC-SHA256 authentication.
    When no key is configured the service is disabled: ``encrypt`` returns
    the plaintext and callers that need a real ciphertext must check
    ``is_enabled`` first.
    """

    def __init__(self, key: str | None = None) -> None:
        self._fernet: Optional[Fernet] = None
        if key is None:
            # Import here to avoid circular import
            from leadpipe.settings import settings
            key = settings.field_encryption_key

        if key:
            try:
                self._fernet = Fernet(key.encode())
                logger.info("Encryption service initialized")
            except (ValueError, TypeError) as e:
                logger.error(f"Invalid FIELD_ENCRYPTION_KEY format: {e}")
        else:
            logger.warning("No encryption key configured - encryption disabled")

    @property
    def is_enabled(self) -> bool:
        """Check if encryption is enabled (key is configured)."""
        return self._fernet is not None

    def encrypt(self, plaintext: str) -> str:
        """Encrypt a plaintext string.

        Returns:
            Encrypted string prefixed with the 'enc:' marker

        Raises:
            EncryptionError: If encryption fails
        """
        if not plaintext:
            return plaintext

        if not self._fernet:
            logger.warning("Encryption not enabled - storing plaintext")
            return plaintext

        try:
            encrypted_bytes = self._fernet.encrypt(plaintext.encode())
        except Exception as e:
            raise EncryptionError(f"Failed to encrypt value: {e}") from e
        return f"{ENCRYPTED_PREFIX}{encrypted_bytes.decode()}"

    def decrypt(self, ciphertext: str) -> str:
        """Decrypt a value produced by ``encrypt``.

        Values without the 'enc:' prefix are returned unchanged.

        Raises:
            EncryptionError: If decryption fails or no key is configured
        """
        if not ciphertext or not ciphertext.startswith(ENCRYPTED_PREFIX):
            return ciphertext

        if not self._fernet:
            raise EncryptionError("Cannot decrypt: encryption key not configured")

        try:
            decrypted_bytes = self._fernet.decrypt(ciphertext[len(ENCRYPTED_PREFIX):].encode())
        except InvalidToken:
            raise EncryptionError("Failed to decrypt: invalid token or wrong key")
        return decrypted_bytes.decode()

    def is_encrypted(self, value: str | None) -> bool:
        """Check if a value is already encrypted."""
        return value.startswith(ENCRYPTED_PREFIX) if value else False


_encryption_service: Optional[EncryptionService] = None


def get_encryption_service() -> EncryptionService:
    """Get the shared encryption service instance."""
    global _encryption_service
    if _encryption_service is None:
        _encryption_service = EncryptionService()
    return _encryption_service


def encrypt_field(value: Optional[str]) -> Optional[str]:
    """Convenience function to encrypt a field value."""
    if value is None:
        return None
    return get_encryption_service().encrypt(value)


def decrypt_field(value: Optional[str]) -> Optional[str]:
    """Convenience function to decrypt a field value."""
    if value is None:
        return None
    return get_encryption_service().decrypt(value)


def generate_encryption_key() -> str:
    """Generate a new Fernet key suitable for FIELD_ENCRYPTION_KEY."""
    return Fernet.generate_key().decode()
