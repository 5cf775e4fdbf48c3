"""Tenant and User models."""

from sqlalchemy import JSON, Boolean, Column, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import relationship

from leadpipe.core.clock import utc_now
from leadpipe.persistence.database import Base
from leadpipe.persistence.types import EncryptedText

DEFAULT_PIPELINE_STAGES = [
    "new",
    "contacted",
    "qualified",
    "orientation",
    "application",
    "home_study",
    "licensed",
    "placement",
    "not_fit",
]

ROLE_SUPER_ADMIN = "super_admin"
ROLE_CLIENT_ADMIN = "client_admin"
ROLE_MEMBER = "member"
ROLES = (ROLE_SUPER_ADMIN, ROLE_CLIENT_ADMIN, ROLE_MEMBER)


class Tenant(Base):
    """Tenant model representing an agency and its pipeline configuration."""

    __tablename__ = "tenants"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False)
    slug = Column(String(100), unique=True, nullable=False, index=True)
    stages = Column(JSON, nullable=False, default=lambda: list(DEFAULT_PIPELINE_STAGES))
    # [{"id": "...", "name": "...", "email": "..."}]
    team_members = Column(JSON, nullable=False, default=list)
    spam_keywords = Column(JSON, nullable=False, default=list)
    sla_hours = Column(Integer, nullable=True, default=24)
    allowed_origins = Column(JSON, nullable=False, default=list)
    meta_access_token = Column(EncryptedText, nullable=True)
    created_at = Column(DateTime, default=utc_now, nullable=False)
    updated_at = Column(DateTime, default=utc_now, onupdate=utc_now, nullable=False)

    # Relationships
    users = relationship("User", back_populates="tenant", cascade="all, delete-orphan", passive_deletes=True)
    leads = relationship("Lead", back_populates="tenant", cascade="all, delete-orphan", passive_deletes=True)
    api_keys = relationship("ApiKey", back_populates="tenant", cascade="all, delete-orphan", passive_deletes=True)
    meta_lead_refs = relationship("MetaLeadRef", back_populates="tenant", cascade="all, delete-orphan", passive_deletes=True)

    def pipeline_stages(self) -> list[str]:
        """Configured stages, falling back to the defaults."""
        return list(self.stages or DEFAULT_PIPELINE_STAGES)

    def default_stage(self) -> str:
        stages = self.pipeline_stages()
        return "new" if "new" in stages else stages[0]

    def __repr__(self) -> str:
        return f"<Tenant(id={self.id}, name={self.name}, slug={self.slug})>"


class User(Base):
    """Operator account for the admin dashboard."""

    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    tenant_id = Column(Integer, ForeignKey("tenants.id", ondelete="CASCADE"), nullable=True, index=True)
    email = Column(String(255), unique=True, nullable=False, index=True)
    hashed_password = Column(String(255), nullable=False)
    role = Column(String(50), nullable=False, default=ROLE_MEMBER)
    first_name = Column(String(100), nullable=True)
    last_name = Column(String(100), nullable=True)
    is_active = Column(Boolean, default=True, nullable=False)
    refresh_token = Column(Text, nullable=True)
    last_login_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=utc_now, nullable=False)
    updated_at = Column(DateTime, default=utc_now, onupdate=utc_now, nullable=False)

    # Relationships
    tenant = relationship("Tenant", back_populates="users")

    @property
    def is_super_admin(self) -> bool:
        return self.role == ROLE_SUPER_ADMIN

    def __repr__(self) -> str:
        return f"<User(id={self.id}, email={self.email}, tenant_id={self.tenant_id}, role={self.role})>"
