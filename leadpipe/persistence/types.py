"""Custom SQLAlchemy types for the application."""

from typing import Optional

from sqlalchemy import Text, TypeDecorator

from leadpipe.core.encryption import decrypt_field, encrypt_field


class EncryptedText(TypeDecorator):
    """SQLAlchemy type for transparently encrypting/decrypting secrets.

    Usage:
        meta_access_token = Column(EncryptedText, nullable=True)

    The value is encrypted before being stored and decrypted when read.
    The 'enc:' prefix identifies encrypted values, so rows written while
    encryption was disabled are still readable.
    """

    impl = Text
    cache_ok = True

    def process_bind_param(self, value: Optional[str], dialect) -> Optional[str]:
        """Encrypt value before storing in database."""
        if value is None:
            return None
        return encrypt_field(value)

    def process_result_value(self, value: Optional[str], dialect) -> Optional[str]:
        """Decrypt value when reading from database."""
        if value is None:
            return None
        return decrypt_field(value)
