from __future__ import annotations

from typing import Any, Protocol

from ttl_cache.domain.entities import CacheEntry


class PersistentStore(Protocol):
    """Durable key -> CacheEntry storage that TTLCache delegates to."""

    def get_entry(self, key: str) -> CacheEntry[Any] | None: ...

    def set_entry(self, key: str, entry: CacheEntry[Any]) -> None: ...

    def remove_entry(self, key: str) -> bool: ...

    def all_entries(self) -> dict[str, CacheEntry[Any]]:
        """Return a snapshot copy, safe to iterate while the store is mutated."""
        ...

    def persist(self, compact: bool = False) -> None: ...

    def destroy(self) -> None: ...
