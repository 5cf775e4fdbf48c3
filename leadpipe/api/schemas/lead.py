"""Lead and activity schemas."""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field


class LeadResponse(BaseModel):
    """Lead response."""

    id: int
    tenant_id: int
    first_name: str | None = None
    last_name: str | None = None
    email: str | None = None
    phone: str | None = None
    city: str | None = None
    interest: str | None = None
    have_children: bool | None = None
    planning_to_foster: bool | None = None
    stage: str
    source: str | None = None
    campaign_name: str | None = None
    office: str | None = None
    assigned_to: str | None = None
    notes: str | None = None
    consent: bool | None = None
    spam_flag: bool
    created_at: datetime
    latest_activity_at: datetime

    class Config:
        from_attributes = True


class ActivityResponse(BaseModel):
    """Activity response."""

    id: int
    lead_id: int
    type: str
    content: dict[str, Any] | None = None
    stage: str | None = None
    created_at: datetime

    class Config:
        from_attributes = True


class LeadDetailResponse(BaseModel):
    lead: LeadResponse
    activities: list[ActivityResponse]


class LeadsListResponse(BaseModel):
    """Paginated leads list."""

    items: list[LeadResponse]
    total: int
    page: int
    page_size: int


class LeadUpdate(BaseModel):
    """Partial lead update. Only fields sent are written."""

    first_name: str | None = Field(default=None, max_length=100)
    last_name: str | None = Field(default=None, max_length=100)
    email: str | None = Field(default=None, max_length=255)
    phone: str | None = Field(default=None, max_length=32)
    city: str | None = Field(default=None, max_length=100)
    interest: str | None = Field(default=None, max_length=255)
    have_children: bool | None = None
    planning_to_foster: bool | None = None
    campaign_name: str | None = Field(default=None, max_length=255)
    office: str | None = Field(default=None, max_length=100)
    assigned_to: str | None = Field(default=None, max_length=100)
    notes: str | None = None
    consent: bool | None = None
    spam_flag: bool | None = None
    stage: str | None = Field(default=None, max_length=50)
    stage_change_note: str | None = Field(default=None, max_length=2000)


class ActivityCreate(BaseModel):
    """Manually logged activity."""

    type: str
    content: dict[str, Any] | None = None
    stage: str | None = None


class IngestResponse(BaseModel):
    success: bool = True
    lead_id: int
    created: bool
    spam_flag: bool
