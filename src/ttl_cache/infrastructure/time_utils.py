from __future__ import annotations

import math
from datetime import datetime, timezone

UTC_TZ = timezone.utc

_MINUTE = 60.0
_HOUR = 60 * _MINUTE
_DAY = 24 * _HOUR
_MONTH_DAYS = 30.4375
_YEAR_DAYS = 365.25


def now_utc() -> datetime:
    """Return the current wall-clock moment as a timezone-aware UTC datetime."""
    return datetime.now(tz=UTC_TZ)


def to_iso(dt: datetime) -> str:
    """Format a datetime as ISO 8601 in UTC, e.g. "2026-02-24T14:30:00+00:00"."""
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=UTC_TZ)
    return dt.astimezone(UTC_TZ).isoformat()


def parse_iso(s: str) -> datetime:
    """Parse an ISO 8601 timestamp as written by to_iso.

    Naive input is assumed to be UTC. A trailing "Z" is accepted.
    Always returns a timezone-aware datetime in UTC.
    Raises ValueError on empty or unparseable input.
    """
    if not s or not s.strip():
        raise ValueError("Empty datetime string")

    s = s.strip()
    if s.endswith("Z"):
        s = s[:-1] + "+00:00"
    try:
        dt = datetime.fromisoformat(s)
    except ValueError:
        raise ValueError(f"Cannot parse datetime string: {s!r}")
    if dt.tzinfo is None:
        return dt.replace(tzinfo=UTC_TZ)
    return dt.astimezone(UTC_TZ)


def _round(x: float) -> int:
    # Half-up rounding; round() would use banker's rounding.
    return int(math.floor(x + 0.5))


def _describe(abs_seconds: float) -> str:
    if _round(abs_seconds) <= 44:
        return "a few seconds"
    if _round(abs_seconds) <= 89:
        return "a minute"

    minutes = _round(abs_seconds / _MINUTE)
    if minutes <= 44:
        return f"{minutes} minutes"
    if minutes <= 89:
        return "an hour"

    hours = _round(abs_seconds / _HOUR)
    if hours <= 21:
        return f"{hours} hours"
    if hours <= 35:
        return "a day"

    days = _round(abs_seconds / _DAY)
    if days <= 25:
        return f"{days} days"
    if days <= 45:
        return "a month"

    months = _round(abs_seconds / _DAY / _MONTH_DAYS)
    if months <= 10:
        return f"{months} months"
    if months <= 17:
        return "a year"

    years = _round(abs_seconds / _DAY / _YEAR_DAYS)
    return f"{years} years"


def humanize_delta(seconds: float) -> str:
    """Describe a time offset relative to now, e.g. "in 5 minutes" or "2 hours ago".

    Positive (and zero) offsets are in the future. The text is approximate and
    meant for display only.
    """
    text = _describe(abs(seconds))
    if seconds >= 0:
        return f"in {text}"
    return f"{text} ago"
