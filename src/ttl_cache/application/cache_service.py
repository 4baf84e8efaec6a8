from __future__ import annotations

import logging
from collections.abc import Mapping
from pathlib import Path
from typing import Any

from ttl_cache.domain.entities import CacheEntry, CacheOptions, TTLInfo
from ttl_cache.domain.ports import PersistentStore
from ttl_cache.domain.services import (
    coerce_ttl,
    compute_expiry,
    is_expired,
    remaining_seconds,
)
from ttl_cache.infrastructure import flat_store
from ttl_cache.infrastructure.time_utils import humanize_delta, now_utc

logger = logging.getLogger(__name__)

DEFAULT_NAMESPACE = "default"


class TTLCache:
    """Namespaced key-value cache with optional per-entry TTL, persisted to disk.

    Expiry is lazy: an entry past its expiry is removed from the store the next
    time get(), ttl() or all() looks at it. Nothing sweeps in the background.

    Two instances bound to the same (namespace, directory) share one store and
    therefore see each other's writes.
    """

    def __init__(
        self,
        namespace: str = DEFAULT_NAMESPACE,
        directory: str | Path | None = None,
        ttl: Any = None,
        store: PersistentStore | None = None,
    ) -> None:
        self._namespace = namespace or DEFAULT_NAMESPACE
        self._directory = flat_store.resolve_directory(self._namespace, directory)
        self._default_ttl = coerce_ttl(ttl)
        self._evictions = 0
        # Storage errors (corrupt file, permissions) propagate to the caller
        self._store: PersistentStore = (
            store if store is not None else flat_store.load(self._namespace, self._directory)
        )

    @property
    def namespace(self) -> str:
        return self._namespace

    @property
    def directory(self) -> Path:
        return self._directory

    @property
    def default_ttl(self) -> float | None:
        return self._default_ttl

    @property
    def store(self) -> PersistentStore:
        return self._store

    @property
    def evictions(self) -> int:
        """Number of expired entries this instance has removed from the store."""
        return self._evictions

    def _live_entry(self, key: str) -> CacheEntry[Any] | None:
        """Return the entry for key, evicting it first if it has expired."""
        entry = self._store.get_entry(key)
        if entry is None:
            return None
        if is_expired(entry.expires, now_utc()):
            self._store.remove_entry(key)
            self._evictions += 1
            logger.debug("Evicted expired key %r from namespace %r", key, self._namespace)
            return None
        return entry

    def get(self, key: str) -> Any | None:
        """Return the cached value, or None if missing or expired."""
        entry = self._live_entry(key)
        return entry.value if entry is not None else None

    def set(self, key: str, value: Any, ttl: Any = None) -> None:
        """Store value under key, replacing any previous entry.

        ttl is in seconds. Falls back to the default TTL when ttl is missing or
        invalid, and to "never expires" when neither is usable. A TTL too large
        to represent as a date also means "never expires".

        The store rejects values it cannot serialize (TypeError) before anything
        is replaced, so one bad value never blocks later saves.
        """
        effective_ttl = coerce_ttl(ttl)
        if effective_ttl is None:
            effective_ttl = self._default_ttl
        entry = CacheEntry(expires=compute_expiry(now_utc(), effective_ttl), value=value)
        self._store.set_entry(key, entry)

    def delete(self, key: str) -> bool:
        """Remove key whether or not it has expired. Returns True if it existed."""
        return self._store.remove_entry(key)

    def ttl(self, key: str) -> TTLInfo:
        """Report the remaining lifetime of key.

        expires and seconds are None when the key is missing, expired (and now
        evicted) or has no expiry.
        """
        entry = self._live_entry(key)
        if entry is None or entry.expires is None:
            return TTLInfo(key=key)
        seconds = remaining_seconds(entry.expires, now_utc()) or 0.0
        return TTLInfo(key=key, expires=humanize_delta(seconds), seconds=seconds)

    def all(self) -> dict[str, Any]:
        """Return every live key mapped to its value, evicting expired entries."""
        now = now_utc()
        result: dict[str, Any] = {}
        for key, entry in self._store.all_entries().items():
            if is_expired(entry.expires, now):
                self._store.remove_entry(key)
                self._evictions += 1
                logger.debug("Evicted expired key %r from namespace %r", key, self._namespace)
                continue
            result[key] = entry.value
        return result

    def save(self, no_prune: bool = True) -> None:
        """Flush the store to disk.

        With no_prune=False, entries not touched since the store was loaded are
        dropped while saving.
        """
        self._store.persist(compact=not no_prune)

    def destroy(self) -> None:
        """Delete the persisted namespace and everything held in memory."""
        self._store.destroy()

    def clear_namespace(self) -> None:
        """Delete this namespace's file under this cache's directory."""
        flat_store.clear_namespace(self._namespace, self._directory)

    def clear_all(self) -> None:
        """Delete every namespace stored in this cache's directory."""
        flat_store.clear_all(self._directory)


def configure(
    options: CacheOptions | Mapping[str, Any] | None = None, **overrides: Any
) -> TTLCache:
    """Build a TTLCache from options, e.g. configure({"namespace": "tokens", "ttl": 60})."""
    if options is None:
        opts = CacheOptions()
    elif isinstance(options, CacheOptions):
        opts = options
    else:
        opts = CacheOptions.from_mapping(options)
    if overrides:
        merged = {"namespace": opts.namespace, "directory": opts.directory, "ttl": opts.ttl}
        merged.update(overrides)
        opts = CacheOptions.from_mapping(merged)
    return TTLCache(namespace=opts.namespace, directory=opts.directory, ttl=opts.ttl)
