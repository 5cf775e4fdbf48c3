"""Phone number utilities for consistent handling across the application."""

import logging
import re

logger = logging.getLogger(__name__)

MIN_PHONE_DIGITS = 7
# E.164 numbers carry at most 15 digits
MAX_PHONE_DIGITS = 15
MAX_EMAIL_LENGTH = 254


def normalize_phone_e164(phone) -> str | None:
    """Normalize a phone number to an E.164-like string.

    Handles various input formats:
        (281)788-2316   → +12817882316
        281-788-2316    → +12817882316
        +1 281 788 2316 → +12817882316
        +44 20 7946 0958 → +442079460958

    Ten digit numbers are assumed to be US numbers. Anything else with
    seven to fifteen digits is kept as ``+<digits>``.

    Returns:
        Normalized phone or None if empty, too short or too long
    """
    if phone is None:
        return None

    digits = re.sub(r'\D', '', str(phone))
    if not digits:
        return None

    if len(digits) < MIN_PHONE_DIGITS or len(digits) > MAX_PHONE_DIGITS:
        logger.warning("Discarding phone number with invalid length", extra={"digits": len(digits)})
        return None

    if len(digits) == 10:
        return f"+1{digits}"
    return f"+{digits}"


def normalize_email(email) -> str | None:
    """Trim and lowercase an email address. Empty or over-long values become None."""
    if email is None:
        return None
    value = str(email).strip().lower()
    if len(value) > MAX_EMAIL_LENGTH:
        logger.warning("Discarding over-long email address", extra={"length": len(value)})
        return None
    return value or None
