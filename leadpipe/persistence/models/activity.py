"""Activity model: append-only timeline events attached to a lead."""

from sqlalchemy import JSON, Column, DateTime, ForeignKey, Index, Integer, String
from sqlalchemy.orm import relationship

from leadpipe.core.clock import utc_now
from leadpipe.persistence.database import Base

ACTIVITY_NOTE = "note"
ACTIVITY_CALL = "call"
ACTIVITY_EMAIL = "email"
ACTIVITY_SMS = "sms"
ACTIVITY_STATUS_CHANGE = "status_change"
ACTIVITY_UTM_SNAPSHOT = "utm_snapshot"

# Types operators may log by hand; utm_snapshot is written by ingestion only
MANUAL_ACTIVITY_TYPES = (
    ACTIVITY_NOTE,
    ACTIVITY_CALL,
    ACTIVITY_EMAIL,
    ACTIVITY_SMS,
    ACTIVITY_STATUS_CHANGE,
)


class Activity(Base):
    """Immutable timestamped event on a lead's timeline."""

    __tablename__ = "activities"
    __table_args__ = (
        Index("ix_activities_tenant_lead_created_at", "tenant_id", "lead_id", "created_at"),
    )

    id = Column(Integer, primary_key=True, index=True)
    tenant_id = Column(Integer, ForeignKey("tenants.id", ondelete="CASCADE"), nullable=False, index=True)
    lead_id = Column(Integer, ForeignKey("leads.id", ondelete="CASCADE"), nullable=False, index=True)
    type = Column(String(32), nullable=False)
    content = Column(JSON, nullable=True)
    # Only set on status_change activities
    stage = Column(String(50), nullable=True)
    created_at = Column(DateTime, default=utc_now, nullable=False)

    # Relationships
    lead = relationship("Lead", back_populates="activities")

    def __repr__(self) -> str:
        return f"<Activity(id={self.id}, lead_id={self.lead_id}, type={self.type})>"
