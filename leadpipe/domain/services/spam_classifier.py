"""Keyword spam heuristic, configured per tenant."""

from collections.abc import Iterable
from typing import Any


def _iter_text(value: Any) -> Iterable[str]:
    if value is None:
        return
    if isinstance(value, dict):
        for item in value.values():
            yield from _iter_text(item)
    elif isinstance(value, (list, tuple)):
        for item in value:
            yield from _iter_text(item)
    else:
        yield str(value)


def payload_text(payload: Any) -> str:
    """All scalar values of a payload joined into one lowercase string."""
    return " ".join(_iter_text(payload)).lower()


def matching_keyword(keywords: Iterable[str] | None, payload: Any) -> str | None:
    """First configured keyword found in the payload text, if any."""
    if not keywords:
        return None
    text = None
    for keyword in keywords:
        needle = str(keyword).strip().lower() if keyword is not None else ""
        if not needle:
            continue
        if text is None:
            text = payload_text(payload)
        if needle in text:
            return keyword
    return None


def is_spam(keywords: Iterable[str] | None, payload: Any) -> bool:
    """True if any keyword appears (case-insensitive) anywhere in the payload values.

    The whole payload is checked, not just the contact fields, so spam
    pasted into free-text fields is caught as well.
    """
    return matching_keyword(keywords, payload) is not None
