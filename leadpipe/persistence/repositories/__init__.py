"""Repository layer for data access."""

from leadpipe.persistence.repositories.activity_repository import ActivityRepository
from leadpipe.persistence.repositories.api_key_repository import ApiKeyRepository
from leadpipe.persistence.repositories.base import BaseRepository
from leadpipe.persistence.repositories.lead_repository import LeadRepository
from leadpipe.persistence.repositories.meta_lead_ref_repository import MetaLeadRefRepository
from leadpipe.persistence.repositories.tenant_repository import TenantRepository
from leadpipe.persistence.repositories.user_repository import UserRepository

__all__ = [
    "ActivityRepository",
    "ApiKeyRepository",
    "BaseRepository",
    "LeadRepository",
    "MetaLeadRefRepository",
    "TenantRepository",
    "UserRepository",
]
