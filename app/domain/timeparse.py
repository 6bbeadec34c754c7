"""Turning caller-supplied scheduled times into UTC datetimes."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

import dateparser

_DATEPARSER_SETTINGS = {
    "RETURN_AS_TIMEZONE_AWARE": True,
    "TIMEZONE": "UTC",
    "TO_TIMEZONE": "UTC",
}


def as_utc(value: datetime) -> datetime:
    """Naive datetimes are taken to be UTC; aware ones are converted."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def _parse_time(raw: str) -> datetime | None:
    """Parse a raw time string, trying ISO-8601 before falling back to dateparser."""
    raw = raw.strip()
    if not raw:
        return None
    try:
        result = datetime.fromisoformat(raw)
    except ValueError:
        result = dateparser.parse(raw, settings=_DATEPARSER_SETTINGS)
    if result is None:
        return None
    return as_utc(result)


def parse_scheduled_time(value: Any) -> Any:
    """Normalise a scheduled time the way a lenient client would send it.

    Accepts datetimes, epoch milliseconds and date strings (ISO-8601 or any
    absolute format ``dateparser`` understands).  Naive values are taken to
    be UTC.  Raises ``ValueError`` for strings that cannot be parsed and for
    epoch values outside the representable range; other types are passed
    through for pydantic to reject.
    """
    if isinstance(value, datetime):
        return as_utc(value)
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        try:
            return datetime.fromtimestamp(value / 1000, tz=timezone.utc)
        except (OverflowError, OSError, ValueError):
            raise ValueError(f"Could not parse scheduled time: {value!r}")
    if isinstance(value, str):
        parsed = _parse_time(value)
        if parsed is None:
            raise ValueError(f"Could not parse scheduled time: {value!r}")
        return parsed
    return value
