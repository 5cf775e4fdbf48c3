"""Attribution merge rules for create and update submissions.

First-touch fields (``source`` and ``created_at``) are written once, when
the lead is created. Later touch-points only refresh the contact/profile
fields and ``latest_activity_at``; their tracking parameters are kept as
separate ``utm_snapshot`` activities instead of being merged into the lead.
"""

from datetime import datetime
from typing import Any

from leadpipe.domain.services.lead_normalizer import SOURCE_MAX_LENGTH, LeadSubmission
from leadpipe.persistence.models.activity import ACTIVITY_NOTE, ACTIVITY_UTM_SNAPSHOT

ATTRIBUTION_NOTE_TITLE = "Attribution v1"

# Never written on the update path
FIRST_TOUCH_FIELDS = ("source", "created_at")


def resolve_source(submission: LeadSubmission) -> str:
    """First-touch source: explicit field, then utm_source, then channel default."""
    if submission.source:
        return submission.source
    utm_source = submission.tracking.get("utm_source", "").strip()
    if utm_source:
        return utm_source[:SOURCE_MAX_LENGTH]
    return submission.channel


def build_create_fields(
    submission: LeadSubmission,
    stage: str,
    spam_flag: bool,
    now: datetime,
) -> dict[str, Any]:
    """Column values for a brand new lead."""
    fields = submission.profile_fields()
    fields.update(
        source=resolve_source(submission),
        stage=stage,
        spam_flag=spam_flag,
        created_at=submission.created_at or now,
        latest_activity_at=now,
        original_payload=submission.raw_payload,
    )
    return fields


def build_update_fields(
    submission: LeadSubmission,
    spam_flag: bool,
    now: datetime,
) -> dict[str, Any]:
    """Column values to overwrite on an existing lead.

    Only fields present in the submission are returned; first-touch fields
    are never included.
    """
    fields = submission.profile_fields()
    fields.update(
        spam_flag=spam_flag,
        latest_activity_at=now,
        original_payload=submission.raw_payload,
    )
    for name in FIRST_TOUCH_FIELDS:
        fields.pop(name, None)
    return fields


def apply_fields(lead, fields: dict[str, Any]) -> None:
    for key, value in fields.items():
        setattr(lead, key, value)


def attribution_note(source: str) -> dict[str, Any]:
    """Content of the synthetic first activity written on create."""
    return {"title": ATTRIBUTION_NOTE_TITLE, "text": f"source set to: {source}"}


def tracking_snapshot(submission: LeadSubmission) -> dict[str, Any] | None:
    """Content of the utm_snapshot activity, or None without tracking params."""
    if not submission.tracking:
        return None
    return dict(submission.tracking)


def first_activities(
    submission: LeadSubmission, source: str, created_at: datetime, now: datetime
) -> list[dict[str, Any]]:
    """Activity rows written alongside a newly created lead."""
    activities = [
        {"type": ACTIVITY_NOTE, "content": attribution_note(source), "created_at": created_at}
    ]
    snapshot = tracking_snapshot(submission)
    if snapshot is not None:
        activities.append({"type": ACTIVITY_UTM_SNAPSHOT, "content": snapshot, "created_at": now})
    return activities
