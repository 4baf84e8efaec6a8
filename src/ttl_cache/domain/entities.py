from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, fields
from datetime import datetime
from pathlib import Path
from typing import Any, Generic, TypeVar

V = TypeVar("V")


@dataclass(frozen=True)
class CacheEntry(Generic[V]):
    """The envelope stored under each key: an optional expiry plus the raw value."""

    expires: datetime | None  # UTC; None means the entry never expires
    value: V


@dataclass
class TTLInfo:
    """Remaining lifetime of a key as reported by TTLCache.ttl.

    ``expires`` is display text such as "in 5 minutes" and is not meant to be
    parsed back; use ``seconds`` for anything programmatic.
    """

    key: str
    expires: str | None = None
    seconds: float | None = None


@dataclass
class CacheOptions:
    """Construction options for a TTLCache."""

    namespace: str = "default"
    directory: str | Path | None = None
    ttl: Any = None  # normalized by coerce_ttl; junk input means "no default TTL"

    @classmethod
    def from_mapping(cls, options: Mapping[str, Any]) -> CacheOptions:
        """Build options from a plain dict, ignoring keys this class does not know."""
        known = {f.name for f in fields(cls)}
        return cls(**{k: v for k, v in options.items() if k in known})
