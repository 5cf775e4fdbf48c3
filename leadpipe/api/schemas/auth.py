"""Authentication and user schemas."""

from datetime import datetime

from pydantic import BaseModel, Field


class LoginRequest(BaseModel):
    """Login request."""

    email: str
    password: str


class RefreshRequest(BaseModel):
    refresh_token: str


class UserResponse(BaseModel):
    """User response."""

    id: int
    email: str
    role: str
    tenant_id: int | None = None
    first_name: str | None = None
    last_name: str | None = None
    is_active: bool
    last_login_at: datetime | None = None
    created_at: datetime

    class Config:
        from_attributes = True


class TokenResponse(BaseModel):
    """Login/refresh response."""

    access_token: str
    refresh_token: str
    token_type: str = "bearer"
    user: UserResponse


class UserCreate(BaseModel):
    """User creation request."""

    email: str = Field(min_length=3, max_length=255)
    password: str
    role: str
    first_name: str | None = None
    last_name: str | None = None
    tenant_id: int | None = None


class UserUpdate(BaseModel):
    first_name: str | None = None
    last_name: str | None = None
    role: str | None = None
    tenant_id: int | None = None
    is_active: bool | None = None
    password: str | None = None
