"""Facebook Lead Ads: webhook bookkeeping and the follow-up fetch sweep."""

import logging
from dataclasses import dataclass, field
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from leadpipe.core.clock import parse_timestamp, utc_now
from leadpipe.domain.services.lead_ingestion_service import LeadIngestionService
from leadpipe.domain.services.lead_normalizer import from_meta_lead
from leadpipe.infrastructure.meta_graph_client import MetaGraphClient
from leadpipe.persistence.models.meta_lead_ref import (
    META_REF_FAILED,
    META_REF_FETCHED,
    MetaLeadRef,
)
from leadpipe.persistence.models.tenant import Tenant
from leadpipe.persistence.repositories.meta_lead_ref_repository import MetaLeadRefRepository
from leadpipe.persistence.repositories.tenant_repository import TenantRepository
from leadpipe.settings import settings

logger = logging.getLogger(__name__)

LEADGEN_FIELD = "leadgen"
PAGE_OBJECT = "page"


@dataclass
class FetchOutcome:
    leadgen_id: str
    status: str
    lead_id: int | None = None
    created: bool | None = None
    error: str | None = None


@dataclass
class FetchReport:
    found: int = 0
    outcomes: list[FetchOutcome] = field(default_factory=list)

    @property
    def succeeded(self) -> int:
        return sum(1 for outcome in self.outcomes if outcome.status == META_REF_FETCHED)

    @property
    def failed(self) -> int:
        return len(self.outcomes) - self.succeeded


def leadgen_changes(body: dict[str, Any]) -> list[dict[str, Any]]:
    """The ``leadgen`` change values of a page webhook delivery."""
    if body.get("object") != PAGE_OBJECT:
        return []
    values = []
    for entry in body.get("entry") or []:
        for change in entry.get("changes") or []:
            if change.get("field") == LEADGEN_FIELD and isinstance(change.get("value"), dict):
                values.append(change["value"])
    return values


def _id(value: Any) -> str | None:
    return str(value) if value not in (None, "") else None


class MetaLeadService:
    """Records leadgen notifications and resolves them into leads."""

    def __init__(self, session: AsyncSession, graph_client: MetaGraphClient | None = None) -> None:
        self.session = session
        self.graph_client = graph_client or MetaGraphClient()
        self.ref_repo = MetaLeadRefRepository(session)
        self.tenant_repo = TenantRepository(session)

    async def record_webhook(self, tenant_id: int, body: dict[str, Any]) -> list[MetaLeadRef]:
        """Store a pending reference for every new leadgen id in the delivery.

        Ids already recorded for the tenant are skipped, so platform retries
        of the same delivery are harmless.
        """
        recorded = []
        for value in leadgen_changes(body):
            leadgen_id = _id(value.get("leadgen_id"))
            if leadgen_id is None:
                logger.warning("Leadgen change without leadgen_id", extra={"tenant_id": tenant_id})
                continue
            if await self.ref_repo.get_by_leadgen_id(tenant_id, leadgen_id) is not None:
                logger.info(
                    "Duplicate leadgen notification ignored",
                    extra={"tenant_id": tenant_id, "leadgen_id": leadgen_id},
                )
                continue
            ref = await self.ref_repo.add(
                tenant_id,
                leadgen_id=leadgen_id,
                form_id=_id(value.get("form_id")),
                ad_id=_id(value.get("ad_id")),
                adgroup_id=_id(value.get("adgroup_id")),
                page_id=_id(value.get("page_id")),
                created_time=parse_timestamp(value.get("created_time")),
            )
            recorded.append(ref)

        await self.session.commit()
        if recorded:
            logger.info(
                "Meta lead references recorded",
                extra={"tenant_id": tenant_id, "count": len(recorded)},
            )
        return recorded

    def _access_token(self, tenant: Tenant) -> str | None:
        return tenant.meta_access_token or settings.meta_page_access_token

    async def fetch_pending(self, limit: int | None = None) -> FetchReport:
        """Fetch a batch of pending references and reconcile them into leads.

        A failing reference is recorded (attempts, last_error) and the sweep
        moves on; it becomes ``failed`` after the configured attempt limit.
        """
        refs = await self.ref_repo.list_pending(limit or settings.meta_fetch_batch_size)
        report = FetchReport(found=len(refs))

        # Snapshot the batch up front; a rollback inside ingestion expires ORM state
        batch = [
            {
                "ref_id": ref.id,
                "tenant_id": ref.tenant_id,
                "leadgen_id": ref.leadgen_id,
                "reference": {
                    "leadgen_id": ref.leadgen_id,
                    "form_id": ref.form_id,
                    "ad_id": ref.ad_id,
                    "adgroup_id": ref.adgroup_id,
                    "page_id": ref.page_id,
                    "created_time": ref.created_time.isoformat() if ref.created_time else None,
                },
            }
            for ref in refs
        ]

        for item in batch:
            report.outcomes.append(await self._fetch_one(item))

        logger.info(
            "Meta fetch sweep complete",
            extra={"found": report.found, "succeeded": report.succeeded, "failed": report.failed},
        )
        return report

    async def _fetch_one(self, item: dict[str, Any]) -> FetchOutcome:
        leadgen_id = item["leadgen_id"]
        try:
            tenant = await self.tenant_repo.get_by_id(None, item["tenant_id"])
            graph_data = await self.graph_client.fetch_lead(leadgen_id, self._access_token(tenant))
            submission = from_meta_lead(graph_data, item["reference"])
            result = await LeadIngestionService(self.session).ingest(tenant, submission)
            lead_id = result.lead.id
        except Exception as e:
            await self.session.rollback()
            return await self._mark_failed(item, str(e))

        ref = await self.ref_repo.get_by_id(None, item["ref_id"])
        ref.status = META_REF_FETCHED
        ref.lead_id = lead_id
        ref.attempts = (ref.attempts or 0) + 1
        ref.last_error = None
        ref.fetched_at = utc_now()
        await self.session.commit()
        logger.info(
            "Meta lead reconciled",
            extra={"tenant_id": item["tenant_id"], "leadgen_id": leadgen_id, "lead_id": lead_id},
        )
        return FetchOutcome(leadgen_id=leadgen_id, status=META_REF_FETCHED, lead_id=lead_id, created=result.created)

    async def _mark_failed(self, item: dict[str, Any], error: str) -> FetchOutcome:
        ref = await self.ref_repo.get_by_id(None, item["ref_id"])
        ref.attempts = (ref.attempts or 0) + 1
        ref.last_error = error[:1000]
        if ref.attempts >= settings.meta_fetch_max_attempts:
            ref.status = META_REF_FAILED
        await self.session.commit()
        logger.warning(
            "Meta lead fetch failed",
            extra={
                "tenant_id": item["tenant_id"],
                "leadgen_id": item["leadgen_id"],
                "attempts": ref.attempts,
                "error": error,
            },
        )
        return FetchOutcome(leadgen_id=item["leadgen_id"], status=ref.status, error=error)
