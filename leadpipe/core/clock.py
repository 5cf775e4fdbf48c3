"""Time helpers.

Timestamps are stored as naive UTC datetimes.
"""

from datetime import datetime, timezone

# Epoch values above this are taken as milliseconds (year 5138 in seconds)
EPOCH_MILLIS_THRESHOLD = 100_000_000_000


def utc_now() -> datetime:
    """Current time as a naive UTC datetime."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def _from_epoch(value: int | float) -> datetime | None:
    if abs(value) >= EPOCH_MILLIS_THRESHOLD:
        value = value / 1000
    try:
        return datetime.fromtimestamp(value, tz=timezone.utc)
    except (OverflowError, OSError, ValueError):
        return None


def parse_timestamp(value) -> datetime | None:
    """Parse an ISO-8601 string or epoch seconds/milliseconds into a naive UTC datetime.

    Returns None for empty or unparseable values.
    """
    if value is None or value == "" or isinstance(value, bool):
        return None
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, (int, float)):
        parsed = _from_epoch(value)
    else:
        text = str(value).strip()
        if text.isdigit():
            parsed = _from_epoch(int(text))
        else:
            # Accept trailing Z and +0000 offsets as sent by the ad platforms
            if text.endswith("Z"):
                text = text[:-1] + "+00:00"
            elif len(text) > 5 and text[-5] in "+-" and text[-4:].isdigit() and ":" not in text[-5:]:
                text = f"{text[:-2]}:{text[-2:]}"
            try:
                parsed = datetime.fromisoformat(text)
            except ValueError:
                return None
    if parsed is None:
        return None
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
    return parsed
