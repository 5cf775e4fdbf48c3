"""Lead ingestion: resolve, branch create/update, merge attribution, classify spam."""

import logging
from dataclasses import dataclass

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from leadpipe.core.clock import utc_now
from leadpipe.core.exceptions import MissingContactError
from leadpipe.domain.services.attribution import (
    apply_fields,
    build_create_fields,
    build_update_fields,
    first_activities,
    tracking_snapshot,
)
from leadpipe.domain.services.identity_resolver import IdentityResolver
from leadpipe.domain.services.lead_normalizer import LeadSubmission
from leadpipe.domain.services.spam_classifier import matching_keyword
from leadpipe.persistence.models.activity import ACTIVITY_NOTE, ACTIVITY_UTM_SNAPSHOT, Activity
from leadpipe.persistence.models.lead import Lead
from leadpipe.persistence.models.tenant import Tenant
from leadpipe.persistence.repositories.lead_repository import LeadRepository

logger = logging.getLogger(__name__)


@dataclass
class IngestResult:
    lead: Lead
    created: bool


class LeadIngestionService:
    """Reconciles normalized submissions into the tenant's leads."""

    def __init__(self, session: AsyncSession, resolver: IdentityResolver | None = None) -> None:
        self.session = session
        self.resolver = resolver or IdentityResolver(session)
        self.lead_repo = LeadRepository(session)

    async def ingest(
        self,
        tenant: Tenant,
        submission: LeadSubmission,
        require_contact: bool = False,
        update_note: str | None = None,
    ) -> IngestResult:
        """Create or update the lead for a submission and commit.

        Args:
            tenant: Owning tenant
            submission: Normalized submission
            require_contact: Reject submissions with neither email nor phone
            update_note: Note activity to append when an existing lead is updated

        Raises:
            MissingContactError: If require_contact is set and no contact is present
        """
        if require_contact and not submission.has_contact:
            raise MissingContactError("Either email or phone is required")

        # Read tenant configuration up front; a rollback below expires the instance
        tenant_id = tenant.id
        default_stage = tenant.default_stage()
        spam_keyword = matching_keyword(tenant.spam_keywords, submission.raw_payload)
        spam_flag = spam_keyword is not None
        if spam_flag:
            logger.info(
                "Submission flagged as spam",
                extra={"tenant_id": tenant_id, "keyword": spam_keyword, "channel": submission.channel},
            )

        existing = await self.resolver.resolve(tenant_id, submission.email, submission.phone)
        if existing is not None:
            lead = await self._update(existing, submission, spam_flag, update_note)
            return IngestResult(lead=lead, created=False)

        now = utc_now()
        lead = Lead(tenant_id=tenant_id, **build_create_fields(submission, default_stage, spam_flag, now))
        self.session.add(lead)
        try:
            await self.session.flush()
        except IntegrityError:
            # A concurrent submission inserted the same email/phone first
            await self.session.rollback()
            logger.info(
                "Lead insert hit uniqueness constraint, retrying as update",
                extra={"tenant_id": tenant_id, "channel": submission.channel},
            )
            existing = await self.resolver.resolve(tenant_id, submission.email, submission.phone)
            if existing is None:
                raise
            lead = await self._update(existing, submission, spam_flag, update_note)
            return IngestResult(lead=lead, created=False)

        for row in first_activities(submission, lead.source, lead.created_at, now):
            self.session.add(Activity(tenant_id=tenant_id, lead_id=lead.id, **row))

        await self.session.commit()
        logger.info(
            "Lead created",
            extra={"tenant_id": tenant_id, "lead_id": lead.id, "source": lead.source},
        )
        return IngestResult(lead=lead, created=True)

    async def _update(
        self,
        lead: Lead,
        submission: LeadSubmission,
        spam_flag: bool,
        update_note: str | None,
    ) -> Lead:
        now = utc_now()
        fields = build_update_fields(submission, spam_flag, now)
        await self._drop_taken_contacts(lead, fields)
        apply_fields(lead, fields)

        if update_note:
            self.session.add(
                Activity(
                    tenant_id=lead.tenant_id,
                    lead_id=lead.id,
                    type=ACTIVITY_NOTE,
                    content={"text": update_note},
                    created_at=now,
                )
            )
        snapshot = tracking_snapshot(submission)
        if snapshot is not None:
            self.session.add(
                Activity(
                    tenant_id=lead.tenant_id,
                    lead_id=lead.id,
                    type=ACTIVITY_UTM_SNAPSHOT,
                    content=snapshot,
                    created_at=now,
                )
            )

        await self.session.commit()
        logger.info("Lead updated", extra={"tenant_id": lead.tenant_id, "lead_id": lead.id})
        return lead

    async def _drop_taken_contacts(self, lead: Lead, fields: dict) -> None:
        """Keep the matched lead's email/phone when the new value belongs to another lead."""
        for column in ("email", "phone"):
            value = fields.get(column)
            if not value or value == getattr(lead, column):
                continue
            others = await self.lead_repo.find_by_email_or_phone(lead.tenant_id, **{column: value})
            if any(other.id != lead.id for other in others):
                fields.pop(column)
                logger.warning(
                    "Not overwriting contact field already used by another lead",
                    extra={"tenant_id": lead.tenant_id, "lead_id": lead.id, "field": column},
                )
