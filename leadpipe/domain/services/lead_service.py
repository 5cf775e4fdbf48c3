"""Lead service: read, update, stage changes, activities and deletion."""

import logging
from typing import Any

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from leadpipe.core.clock import utc_now
from leadpipe.core.exceptions import InvalidStageError, LeadNotFoundError, TenantNotFoundError, ValidationError
from leadpipe.core.phone import normalize_email, normalize_phone_e164
from leadpipe.persistence.models.activity import (
    ACTIVITY_NOTE,
    ACTIVITY_STATUS_CHANGE,
    MANUAL_ACTIVITY_TYPES,
    Activity,
)
from leadpipe.persistence.models.lead import Lead
from leadpipe.persistence.models.tenant import Tenant
from leadpipe.persistence.repositories.activity_repository import ActivityRepository
from leadpipe.persistence.repositories.lead_repository import LeadFilters, LeadRepository
from leadpipe.persistence.repositories.tenant_repository import TenantRepository

logger = logging.getLogger(__name__)

UPDATABLE_FIELDS = (
    "first_name",
    "last_name",
    "email",
    "phone",
    "city",
    "interest",
    "have_children",
    "planning_to_foster",
    "campaign_name",
    "office",
    "assigned_to",
    "notes",
    "consent",
    "spam_flag",
)


def stage_change_text(old_stage: str | None, new_stage: str) -> str:
    return f"Stage changed from {old_stage} to {new_stage}"


class LeadService:
    """Operator-facing lead operations, always scoped to one tenant."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session
        self.lead_repo = LeadRepository(session)
        self.activity_repo = ActivityRepository(session)
        self.tenant_repo = TenantRepository(session)

    async def _tenant(self, tenant_id: int) -> Tenant:
        tenant = await self.tenant_repo.get_by_id(None, tenant_id)
        if tenant is None:
            raise TenantNotFoundError(f"Tenant {tenant_id} not found")
        return tenant

    async def get_lead(self, tenant_id: int, lead_id: int) -> Lead:
        """Get a lead of the tenant.

        Raises:
            LeadNotFoundError: If the lead does not exist in this tenant
        """
        lead = await self.lead_repo.get_by_id(tenant_id, lead_id)
        if lead is None:
            raise LeadNotFoundError(f"Lead {lead_id} not found")
        return lead

    async def list_leads(
        self, tenant_id: int, filters: LeadFilters, skip: int = 0, limit: int = 50
    ) -> tuple[list[Lead], int]:
        return await self.lead_repo.search(tenant_id, filters, skip=skip, limit=limit)

    async def get_lead_detail(self, tenant_id: int, lead_id: int) -> tuple[Lead, list[Activity]]:
        """Lead with its activity timeline (newest first)."""
        lead = await self.get_lead(tenant_id, lead_id)
        activities = await self.activity_repo.list_for_lead(tenant_id, lead_id)
        return lead, activities

    async def update_lead(
        self,
        tenant_id: int,
        lead_id: int,
        changes: dict[str, Any],
        stage_change_note: str | None = None,
    ) -> Lead:
        """Apply a partial update to a lead.

        Only keys present in ``changes`` are written. A ``stage`` different
        from the current one moves the lead and records exactly one
        status_change activity; the same stage is a no-op.

        Raises:
            LeadNotFoundError: If the lead does not exist in this tenant
            InvalidStageError: If the stage is not configured for the tenant
            ValidationError: If the email or phone is invalid or belongs to another lead
        """
        lead = await self.get_lead(tenant_id, lead_id)
        now = utc_now()

        new_stage = changes.get("stage")
        if new_stage is not None and new_stage != lead.stage:
            tenant = await self._tenant(tenant_id)
            allowed = tenant.pipeline_stages()
            if new_stage not in allowed:
                raise InvalidStageError(new_stage, allowed)

        await self._check_contacts(lead, changes)

        old_assignee = lead.assigned_to
        for field in UPDATABLE_FIELDS:
            if field not in changes:
                continue
            value = changes[field]
            if field == "email":
                value = normalize_email(value)
            elif field == "phone":
                value = normalize_phone_e164(value)
            elif field == "spam_flag":
                value = bool(value)
            setattr(lead, field, value)

        if new_stage is not None and new_stage != lead.stage:
            old_stage = lead.stage
            lead.stage = new_stage
            lead.latest_activity_at = now
            self.session.add(
                Activity(
                    tenant_id=tenant_id,
                    lead_id=lead.id,
                    type=ACTIVITY_STATUS_CHANGE,
                    stage=new_stage,
                    content={"text": stage_change_note or stage_change_text(old_stage, new_stage)},
                    created_at=now,
                )
            )
            logger.info(
                "Lead stage changed",
                extra={"tenant_id": tenant_id, "lead_id": lead.id, "from_stage": old_stage, "to_stage": new_stage},
            )

        if "assigned_to" in changes and lead.assigned_to != old_assignee:
            text = f"Assigned to {lead.assigned_to}" if lead.assigned_to else "Assignment removed"
            self.session.add(
                Activity(
                    tenant_id=tenant_id,
                    lead_id=lead.id,
                    type=ACTIVITY_NOTE,
                    content={"text": text, "assigned_to": lead.assigned_to},
                    created_at=now,
                )
            )

        try:
            await self.session.commit()
        except IntegrityError:
            await self.session.rollback()
            raise ValidationError("Lead update conflicts with existing data")
        return lead

    async def _check_contacts(self, lead: Lead, changes: dict[str, Any]) -> None:
        """Reject an unusable email or phone, or one another lead of the tenant holds."""
        for column, normalize in (("email", normalize_email), ("phone", normalize_phone_e164)):
            raw = changes.get(column)
            value = normalize(raw)
            if value is None and raw is not None and str(raw).strip():
                raise ValidationError(f"Invalid {column}")
            if not value or value == getattr(lead, column):
                continue
            others = await self.lead_repo.find_by_email_or_phone(lead.tenant_id, **{column: value})
            if any(other.id != lead.id for other in others):
                raise ValidationError(f"{column.capitalize()} already belongs to another lead")

    async def add_activity(
        self,
        tenant_id: int,
        lead_id: int,
        activity_type: str,
        content: dict[str, Any] | None = None,
        stage: str | None = None,
    ) -> Activity:
        """Log an activity by hand and refresh the lead's latest activity time.

        A status_change activity with a stage also moves the lead to that stage.

        Raises:
            LeadNotFoundError: If the lead does not exist in this tenant
            ValidationError: If the activity type is not allowed
            InvalidStageError: If a status_change names an unknown stage
        """
        if activity_type not in MANUAL_ACTIVITY_TYPES:
            raise ValidationError(
                f"Invalid activity type '{activity_type}'. Allowed: {', '.join(MANUAL_ACTIVITY_TYPES)}"
            )
        if activity_type != ACTIVITY_STATUS_CHANGE:
            stage = None
        elif not stage:
            raise ValidationError("status_change activities require a stage")

        lead = await self.get_lead(tenant_id, lead_id)
        if stage is not None:
            tenant = await self._tenant(tenant_id)
            allowed = tenant.pipeline_stages()
            if stage not in allowed:
                raise InvalidStageError(stage, allowed)
            lead.stage = stage

        now = utc_now()
        lead.latest_activity_at = now
        activity = Activity(
            tenant_id=tenant_id,
            lead_id=lead.id,
            type=activity_type,
            content=content or {},
            stage=stage,
            created_at=now,
        )
        self.session.add(activity)
        await self.session.commit()
        return activity

    async def delete_lead(self, tenant_id: int, lead_id: int) -> None:
        """Hard delete a lead; its activities go with it.

        Raises:
            LeadNotFoundError: If the lead does not exist in this tenant
        """
        deleted = await self.lead_repo.delete(tenant_id, lead_id)
        if not deleted:
            raise LeadNotFoundError(f"Lead {lead_id} not found")
        logger.info("Lead deleted", extra={"tenant_id": tenant_id, "lead_id": lead_id})
