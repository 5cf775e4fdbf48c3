"""Tenant, tenant config and API key schemas."""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field


class TeamMember(BaseModel):
    id: str
    name: str
    email: str | None = None


class TenantCreate(BaseModel):
    """Tenant creation request."""

    name: str = Field(min_length=1, max_length=255)
    slug: str = Field(min_length=1, max_length=100)
    stages: list[str] | None = None
    team_members: list[TeamMember] | None = None
    spam_keywords: list[str] | None = None
    sla_hours: int | None = Field(default=None, gt=0)


class TenantConfigUpdate(BaseModel):
    """Pipeline configuration update. Only fields sent are written."""

    stages: list[str] | None = None
    team_members: list[TeamMember] | None = None
    spam_keywords: list[str] | None = None
    sla_hours: int | None = Field(default=None, gt=0)
    allowed_origins: list[str] | None = None
    # Write-only; an empty string clears it
    meta_access_token: str | None = None


class TenantUpdate(TenantConfigUpdate):
    """Tenant update request."""

    name: str | None = Field(default=None, min_length=1, max_length=255)
    slug: str | None = Field(default=None, min_length=1, max_length=100)


class TenantConfigResponse(BaseModel):
    stages: list[str]
    team_members: list[dict[str, Any]]
    spam_keywords: list[str]
    sla_hours: int
    allowed_origins: list[str]
    has_meta_access_token: bool


class TenantResponse(BaseModel):
    """Tenant response."""

    id: int
    name: str
    slug: str
    created_at: datetime
    config: TenantConfigResponse


class TenantCreateResponse(BaseModel):
    tenant: TenantResponse
    api_key: str = Field(description="Raw API key, shown only once")


class ApiKeyCreate(BaseModel):
    name: str = Field(default="API key", min_length=1, max_length=100)


class ApiKeyResponse(BaseModel):
    """API key metadata. Never includes the hash or the secret."""

    id: int
    name: str
    is_active: bool
    created_at: datetime
    revoked_at: datetime | None = None
    last_used_at: datetime | None = None
    revealable: bool

    class Config:
        from_attributes = True


class ApiKeyCreateResponse(BaseModel):
    api_key: ApiKeyResponse
    raw_key: str


class ApiKeyRevealResponse(BaseModel):
    id: int
    raw_key: str
