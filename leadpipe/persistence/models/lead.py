"""Lead model."""

from sqlalchemy import JSON, Boolean, Column, DateTime, ForeignKey, Index, Integer, String, Text, text
from sqlalchemy.orm import relationship

from leadpipe.core.clock import utc_now
from leadpipe.persistence.database import Base


class Lead(Base):
    """A prospective foster family captured from some channel."""

    __tablename__ = "leads"
    __table_args__ = (
        # At most one lead per email and per phone within a tenant
        Index(
            "uq_leads_tenant_email",
            "tenant_id",
            "email",
            unique=True,
            postgresql_where=text("email IS NOT NULL"),
            sqlite_where=text("email IS NOT NULL"),
        ),
        Index(
            "uq_leads_tenant_phone",
            "tenant_id",
            "phone",
            unique=True,
            postgresql_where=text("phone IS NOT NULL"),
            sqlite_where=text("phone IS NOT NULL"),
        ),
        Index("ix_leads_tenant_created_at", "tenant_id", "created_at"),
        Index("ix_leads_tenant_stage_latest", "tenant_id", "stage", "latest_activity_at"),
    )

    id = Column(Integer, primary_key=True, index=True)
    tenant_id = Column(Integer, ForeignKey("tenants.id", ondelete="CASCADE"), nullable=False, index=True)
    first_name = Column(String(100), nullable=True)
    last_name = Column(String(100), nullable=True)
    email = Column(String(255), nullable=True)
    phone = Column(String(32), nullable=True)
    city = Column(String(100), nullable=True)
    interest = Column(String(255), nullable=True)
    have_children = Column(Boolean, nullable=True)
    planning_to_foster = Column(Boolean, nullable=True)
    stage = Column(String(50), nullable=False, default="new")
    source = Column(String(100), nullable=True)
    campaign_name = Column(String(255), nullable=True)
    office = Column(String(100), nullable=True)
    assigned_to = Column(String(100), nullable=True)
    notes = Column(Text, nullable=True)
    consent = Column(Boolean, nullable=True)
    spam_flag = Column(Boolean, nullable=False, default=False)
    original_payload = Column(JSON, nullable=True)
    created_at = Column(DateTime, default=utc_now, nullable=False)
    latest_activity_at = Column(DateTime, default=utc_now, nullable=False)
    updated_at = Column(DateTime, default=utc_now, onupdate=utc_now, nullable=False)

    # Relationships
    tenant = relationship("Tenant", back_populates="leads")
    activities = relationship(
        "Activity",
        back_populates="lead",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="Activity.created_at",
    )

    @property
    def full_name(self) -> str:
        return f"{self.first_name or ''} {self.last_name or ''}".strip()

    def __repr__(self) -> str:
        return f"<Lead(id={self.id}, tenant_id={self.tenant_id}, email={self.email}, phone={self.phone}, stage={self.stage})>"
