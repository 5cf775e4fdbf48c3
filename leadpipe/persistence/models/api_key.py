"""Tenant API key model."""

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import relationship

from leadpipe.core.clock import utc_now
from leadpipe.persistence.database import Base


class ApiKey(Base):
    """Bearer credential for tenant-scoped ingestion endpoints.

    Only the peppered hash is used for lookup. ``encrypted_key`` holds a
    Fernet ciphertext of the raw key when field encryption is configured.
    """

    __tablename__ = "api_keys"

    id = Column(Integer, primary_key=True, index=True)
    tenant_id = Column(Integer, ForeignKey("tenants.id", ondelete="CASCADE"), nullable=False, index=True)
    key_hash = Column(String(64), nullable=False, index=True)
    encrypted_key = Column(Text, nullable=True)
    name = Column(String(100), nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime, default=utc_now, nullable=False)
    revoked_at = Column(DateTime, nullable=True)
    last_used_at = Column(DateTime, nullable=True)

    # Relationships
    tenant = relationship("Tenant", back_populates="api_keys")

    def __repr__(self) -> str:
        return f"<ApiKey(id={self.id}, tenant_id={self.tenant_id}, name={self.name}, active={self.is_active})>"
