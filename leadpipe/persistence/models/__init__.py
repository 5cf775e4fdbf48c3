"""Database models."""

from leadpipe.persistence.models.activity import Activity
from leadpipe.persistence.models.api_key import ApiKey
from leadpipe.persistence.models.lead import Lead
from leadpipe.persistence.models.meta_lead_ref import MetaLeadRef
from leadpipe.persistence.models.tenant import Tenant, User

__all__ = [
    "Activity",
    "ApiKey",
    "Lead",
    "MetaLeadRef",
    "Tenant",
    "User",
]
