from __future__ import annotations

import math
from datetime import datetime, timedelta
from typing import Any


def coerce_ttl(value: Any) -> float | None:
    """Normalize a TTL input to a finite, non-negative number of seconds.

    Accepts ints, floats and numeric strings. Anything else (None, booleans,
    NaN, infinities, negative numbers, non-numeric text) yields None, which
    callers treat as "no TTL". Never raises.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, str):
        value = value.strip()
        if not value:
            return None
    try:
        seconds = float(value)
    except (TypeError, ValueError, OverflowError):
        return None
    if not math.isfinite(seconds) or seconds < 0:
        return None
    return seconds


def compute_expiry(now: datetime, ttl_seconds: float | None) -> datetime | None:
    """Return now + ttl_seconds, or None when there is no TTL.

    A TTL reaching past the largest representable datetime also yields None:
    such an entry never expires.
    """
    if ttl_seconds is None:
        return None
    try:
        return now + timedelta(seconds=ttl_seconds)
    except OverflowError:
        return None


def is_expired(expires: datetime | None, now: datetime) -> bool:
    """Return True when expires is set and now is strictly past it."""
    return expires is not None and now > expires


def remaining_seconds(expires: datetime | None, now: datetime) -> float | None:
    """Return seconds left until expires (clamped to 0), or None when it never expires."""
    if expires is None:
        return None
    return max(0.0, (expires - now).total_seconds())
