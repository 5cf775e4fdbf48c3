"""Tenant API key generation and hashing."""

import hashlib
import secrets

from leadpipe.settings import settings

DEFAULT_KEY_PREFIX = "lp"


def generate_api_key(slug: str | None) -> str:
    """Generate a raw API key like ``ab_<32 hex chars>``.

    The prefix is the first two characters of the tenant slug so keys are
    recognizable in plugin settings screens.
    """
    prefix = (slug or "")[:2].lower() or DEFAULT_KEY_PREFIX
    return f"{prefix}_{secrets.token_hex(16)}"


def hash_api_key(raw_key: str, pepper: str | None = None) -> str:
    """One-way hash used to look keys up: sha256(raw + pepper) as hex."""
    if pepper is None:
        pepper = settings.api_key_pepper
    return hashlib.sha256(f"{raw_key}{pepper}".encode()).hexdigest()


def mask_api_key(raw_key: str) -> str:
    """Short display form that never reveals the secret part."""
    if len(raw_key) <= 8:
        return "****"
    return f"{raw_key[:5]}...{raw_key[-4:]}"
