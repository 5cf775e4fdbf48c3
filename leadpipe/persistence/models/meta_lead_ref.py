"""Pending Facebook Lead Ads references awaiting a Graph API fetch."""

from sqlalchemy import Column, DateTime, ForeignKey, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import relationship

from leadpipe.core.clock import utc_now
from leadpipe.persistence.database import Base

META_REF_PENDING = "pending"
META_REF_FETCHED = "fetched"
META_REF_FAILED = "failed"


class MetaLeadRef(Base):
    """A leadgen notification from Meta.

    The webhook only carries ids; the lead's field data is fetched later
    by the meta-fetch worker and reconciled into a Lead.
    """

    __tablename__ = "meta_lead_refs"
    __table_args__ = (
        UniqueConstraint("tenant_id", "leadgen_id", name="uq_meta_lead_refs_tenant_leadgen"),
    )

    id = Column(Integer, primary_key=True, index=True)
    tenant_id = Column(Integer, ForeignKey("tenants.id", ondelete="CASCADE"), nullable=False, index=True)
    leadgen_id = Column(String(64), nullable=False)
    form_id = Column(String(64), nullable=True)
    ad_id = Column(String(64), nullable=True)
    adgroup_id = Column(String(64), nullable=True)
    page_id = Column(String(64), nullable=True)
    created_time = Column(DateTime, nullable=True)
    status = Column(String(20), nullable=False, default=META_REF_PENDING, index=True)
    attempts = Column(Integer, nullable=False, default=0)
    last_error = Column(Text, nullable=True)
    lead_id = Column(Integer, ForeignKey("leads.id", ondelete="SET NULL"), nullable=True)
    received_at = Column(DateTime, default=utc_now, nullable=False)
    fetched_at = Column(DateTime, nullable=True)

    # Relationships
    tenant = relationship("Tenant", back_populates="meta_lead_refs")

    def __repr__(self) -> str:
        return f"<MetaLeadRef(id={self.id}, tenant_id={self.tenant_id}, leadgen_id={self.leadgen_id}, status={self.status})>"
