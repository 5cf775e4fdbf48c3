"""Identity resolution: match a submission to an existing lead of the tenant."""

import logging

from sqlalchemy.ext.asyncio import AsyncSession

from leadpipe.persistence.models.lead import Lead
from leadpipe.persistence.repositories.lead_repository import LeadRepository

logger = logging.getLogger(__name__)


class IdentityResolver:
    """Finds the existing lead for a normalized email and/or phone.

    Matching is a logical OR: a submission that shares only the phone
    number with an existing lead resolves to that lead even when the
    email differs. Two people sharing a phone are merged; this is
    accepted behaviour.
    """

    def __init__(self, session: AsyncSession) -> None:
        self.lead_repo = LeadRepository(session)

    async def resolve(
        self, tenant_id: int, email: str | None, phone: str | None
    ) -> Lead | None:
        """Return the single matching lead, or None.

        No lookup happens when both email and phone are missing; callers
        treat that as an unconditional create.
        """
        if not email and not phone:
            return None

        matches = await self.lead_repo.find_by_email_or_phone(tenant_id, email=email, phone=phone)
        if not matches:
            return None

        if len(matches) > 1:
            # Email matched one lead and phone another; keep the oldest
            logger.warning(
                "Submission matches multiple leads",
                extra={"tenant_id": tenant_id, "lead_ids": [lead.id for lead in matches]},
            )
        return matches[0]
