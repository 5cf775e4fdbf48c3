"""JWT authentication utilities."""

from datetime import datetime, timedelta, timezone
from typing import Any

from jose import JWTError, jwt

from leadpipe.settings import settings

# Validate JWT secret key at startup
_DEFAULT_SECRET = "dev-secret-key-change-in-production"

if settings.environment == "production" and settings.jwt_secret_key == _DEFAULT_SECRET:
    raise RuntimeError(
        "SECURITY ERROR: JWT_SECRET_KEY environment variable must be set in production. "
        "Cannot use default secret key."
    )

ACCESS_TOKEN_TYPE = "access"
REFRESH_TOKEN_TYPE = "refresh"


def _encode(data: dict[str, Any], expires_delta: timedelta) -> str:
    to_encode = data.copy()
    to_encode["exp"] = datetime.now(timezone.utc) + expires_delta
    return jwt.encode(to_encode, settings.jwt_secret_key, algorithm=settings.jwt_algorithm)


def create_access_token(data: dict[str, Any], expires_delta: timedelta | None = None) -> str:
    """Create a short-lived JWT access token.

    Args:
        data: Data to encode in the token ("sub" must be a string)
        expires_delta: Optional expiration time delta

    Returns:
        Encoded JWT token
    """
    if expires_delta is None:
        expires_delta = timedelta(minutes=settings.jwt_access_token_expire_minutes)
    return _encode({**data, "type": ACCESS_TOKEN_TYPE}, expires_delta)


def create_refresh_token(user_id: int, expires_delta: timedelta | None = None) -> str:
    """Create a longer-lived refresh token carrying only the user id."""
    if expires_delta is None:
        expires_delta = timedelta(days=settings.jwt_refresh_token_expire_days)
    return _encode({"sub": str(user_id), "type": REFRESH_TOKEN_TYPE}, expires_delta)


def decode_token(token: str, expected_type: str = ACCESS_TOKEN_TYPE) -> dict[str, Any] | None:
    """Decode and verify a JWT.

    Args:
        token: JWT token to decode
        expected_type: Required value of the "type" claim

    Returns:
        Decoded token payload or None if invalid, expired or of the wrong type
    """
    try:
        payload = jwt.decode(token, settings.jwt_secret_key, algorithms=[settings.jwt_algorithm])
    except JWTError:
        return None
    if payload.get("type") != expected_type:
        return None
    return payload
