"""Normalize inbound payloads from each channel into one submission shape."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from leadpipe.core.clock import parse_timestamp
from leadpipe.core.phone import normalize_email, normalize_phone_e164

CHANNEL_WEBSITE = "website"
CHANNEL_GOOGLE = "google"
CHANNEL_FACEBOOK = "facebook"

# Attribution parameters captured from web forms
WEB_TRACKING_KEYS = (
    "utm_source",
    "utm_medium",
    "utm_campaign",
    "utm_term",
    "utm_content",
    "gclid",
    "fbclid",
    "referrer",
    "form_id",
)

GOOGLE_TRACKING_KEYS = (
    "gclid",
    "campaign_id",
    "campaign_name",
    "ad_group_id",
    "ad_group_name",
    "form_id",
    "utm_source",
    "utm_medium",
    "utm_campaign",
    "utm_term",
    "utm_content",
    "referrer",
)

META_TRACKING_KEYS = ("leadgen_id", "form_id", "ad_id", "adgroup_id", "page_id")

# Lead column lengths; longer free text is truncated on intake
SHORT_TEXT_MAX_LENGTH = 100
LONG_TEXT_MAX_LENGTH = 255
SOURCE_MAX_LENGTH = 100

_YES_VALUES = {"yes", "y", "true", "1"}
_NO_VALUES = {"no", "n", "false", "0"}


@dataclass
class LeadSubmission:
    """A lead submission after field normalization, independent of channel."""

    channel: str
    first_name: str | None = None
    last_name: str | None = None
    email: str | None = None
    phone: str | None = None
    city: str | None = None
    interest: str | None = None
    have_children: bool | None = None
    planning_to_foster: bool | None = None
    campaign_name: str | None = None
    consent: bool | None = None
    source: str | None = None
    tracking: dict[str, str] = field(default_factory=dict)
    created_at: datetime | None = None
    raw_payload: dict[str, Any] = field(default_factory=dict)

    @property
    def has_contact(self) -> bool:
        return bool(self.email or self.phone)

    def profile_fields(self) -> dict[str, Any]:
        """Contact/profile fields that were actually provided."""
        values = {
            "first_name": self.first_name,
            "last_name": self.last_name,
            "email": self.email,
            "phone": self.phone,
            "city": self.city,
            "interest": self.interest,
            "have_children": self.have_children,
            "planning_to_foster": self.planning_to_foster,
            "campaign_name": self.campaign_name,
            "consent": self.consent,
        }
        return {key: value for key, value in values.items() if value is not None}


def _pick(payload: dict[str, Any], *keys: str) -> Any:
    """First non-empty value among several spellings of the same field."""
    for key in keys:
        value = payload.get(key)
        if value is not None and value != "":
            return value
    return None


def _text(value: Any, max_length: int = SHORT_TEXT_MAX_LENGTH) -> str | None:
    if value is None:
        return None
    text = str(value).strip()[:max_length].rstrip()
    return text or None


def _flag(value: Any) -> bool | None:
    if value is None:
        return None
    if isinstance(value, bool):
        return value
    text = str(value).strip().lower()
    if text in _YES_VALUES:
        return True
    if text in _NO_VALUES:
        return False
    return None


def _tracking(payload: dict[str, Any], keys: tuple[str, ...]) -> dict[str, str]:
    tracking = {}
    for key in keys:
        value = payload.get(key)
        if value is not None and value != "":
            tracking[key] = str(value)
    return tracking


def from_web_form(payload: dict[str, Any]) -> LeadSubmission:
    """Generic website form (WordPress plugins) and manual operator entry.

    Field names are snake_case; camelCase spellings used by the admin
    dashboard are accepted too.
    """
    return LeadSubmission(
        channel=CHANNEL_WEBSITE,
        first_name=_text(_pick(payload, "first_name", "firstName")),
        last_name=_text(_pick(payload, "last_name", "lastName")),
        email=normalize_email(_pick(payload, "email")),
        phone=normalize_phone_e164(_pick(payload, "phone", "phone_number", "phoneNumber")),
        city=_text(_pick(payload, "city")),
        interest=_text(_pick(payload, "interest"), LONG_TEXT_MAX_LENGTH),
        have_children=_flag(_pick(payload, "have_children", "haveChildren")),
        planning_to_foster=_flag(_pick(payload, "planning_to_foster", "planningToFoster")),
        campaign_name=_text(_pick(payload, "campaign_name", "campaignName"), LONG_TEXT_MAX_LENGTH),
        consent=_flag(_pick(payload, "consent")),
        source=_text(_pick(payload, "source"), SOURCE_MAX_LENGTH),
        tracking=_tracking(payload, WEB_TRACKING_KEYS),
        created_at=parse_timestamp(_pick(payload, "created_at", "createdAt")),
        raw_payload=payload,
    )


def from_google_lead(payload: dict[str, Any]) -> LeadSubmission:
    """Google Ads lead form delivered through a webhook (Zapier, Make, n8n).

    Always attributed to ``google`` on first touch.
    """
    campaign_name = _text(_pick(payload, "campaign_name", "campaignName"), LONG_TEXT_MAX_LENGTH)
    if campaign_name is None:
        campaign_id = _text(_pick(payload, "campaign_id", "campaignId"), LONG_TEXT_MAX_LENGTH) or "Unknown"
        campaign_name = _text(f"Google Ad {campaign_id}", LONG_TEXT_MAX_LENGTH)

    return LeadSubmission(
        channel=CHANNEL_GOOGLE,
        first_name=_text(_pick(payload, "first_name", "firstName")),
        last_name=_text(_pick(payload, "last_name", "lastName")),
        email=normalize_email(_pick(payload, "email")),
        phone=normalize_phone_e164(_pick(payload, "phone", "phone_number", "phoneNumber")),
        city=_text(_pick(payload, "city")),
        interest=_text(_pick(payload, "interest"), LONG_TEXT_MAX_LENGTH),
        have_children=_flag(_pick(payload, "have_children", "haveChildren")),
        planning_to_foster=_flag(_pick(payload, "planning_to_foster", "planningToFoster")),
        campaign_name=campaign_name,
        consent=True,
        source=CHANNEL_GOOGLE,
        tracking=_tracking(payload, GOOGLE_TRACKING_KEYS),
        created_at=parse_timestamp(_pick(payload, "submitted_at", "submittedAt")),
        raw_payload=payload,
    )


def graph_field_data(graph_data: dict[str, Any]) -> dict[str, Any]:
    """Flatten Graph API ``field_data`` into {name: first value}."""
    fields: dict[str, Any] = {}
    for item in graph_data.get("field_data") or []:
        name = item.get("name")
        values = item.get("values") or []
        if name and values:
            fields[name] = values[0]
    return fields


def from_meta_lead(graph_data: dict[str, Any], reference: dict[str, Any]) -> LeadSubmission:
    """Facebook Lead Ads lead fetched from the Graph API.

    Args:
        graph_data: Graph API response for the leadgen id
        reference: Ids carried by the original webhook notification
    """
    fields = graph_field_data(graph_data)
    ad_id = reference.get("ad_id") or graph_data.get("ad_id")
    created_at = parse_timestamp(graph_data.get("created_time")) or parse_timestamp(
        reference.get("created_time")
    )
    ids = {**reference, "leadgen_id": graph_data.get("id") or reference.get("leadgen_id")}
    tracking = _tracking(ids, META_TRACKING_KEYS)

    return LeadSubmission(
        channel=CHANNEL_FACEBOOK,
        first_name=_text(_pick(fields, "first_name", "firstName")),
        last_name=_text(_pick(fields, "last_name", "lastName")),
        email=normalize_email(_pick(fields, "email")),
        phone=normalize_phone_e164(_pick(fields, "phone_number", "phone", "phoneNumber")),
        city=_text(_pick(fields, "city")),
        interest=_text(_pick(fields, "interest"), LONG_TEXT_MAX_LENGTH),
        have_children=_flag(_pick(fields, "have_children", "haveChildren")),
        planning_to_foster=_flag(_pick(fields, "planning_to_foster", "planningToFoster")),
        campaign_name=_text(f"FB Ad {ad_id}", LONG_TEXT_MAX_LENGTH) if ad_id else None,
        consent=True,
        source=CHANNEL_FACEBOOK,
        tracking=tracking,
        created_at=created_at,
        raw_payload=graph_data,
    )
