from __future__ import annotations

import json
import logging
import shutil
import tempfile
from pathlib import Path
from typing import Any

from ttl_cache.domain.entities import CacheEntry
from ttl_cache.domain.exceptions import StoreCorruptedError
from ttl_cache.infrastructure.time_utils import parse_iso, to_iso

logger = logging.getLogger(__name__)

DEFAULT_CACHE_SEGMENT = "cache"

# One store per resolved file path; repeated loads share the same data
_open_stores: dict[Path, FlatFileStore] = {}


def resolve_directory(namespace: str, directory: str | Path | None = None) -> Path:
    """Pick the directory a namespace is persisted in.

    A caller-supplied directory is used verbatim when its parent exists.
    Otherwise fall back to <tmpdir>/cache/<namespace>, which is stable across
    runs so a restarted process reattaches to the same file.
    """
    if directory:
        candidate = Path(directory)
        if candidate.parent.exists():
            return candidate
    return Path(tempfile.gettempdir()) / DEFAULT_CACHE_SEGMENT / namespace


def _encode_entry(entry: CacheEntry[Any]) -> dict[str, Any]:
    return {
        "expires": to_iso(entry.expires) if entry.expires is not None else None,
        "value": entry.value,
    }


def _decode_entry(raw: Any) -> CacheEntry[Any]:
    if not isinstance(raw, dict):
        raise StoreCorruptedError(f"Cache entry must be an object, got {type(raw).__name__}")
    expires = raw.get("expires")
    if expires is not None and not isinstance(expires, str):
        raise StoreCorruptedError(f"Cache entry expiry must be a string, got {expires!r}")
    return CacheEntry(
        expires=parse_iso(expires) if expires else None,
        value=raw.get("value"),
    )


class FlatFileStore:
    """A namespace persisted as a single JSON file of {key: {expires, value}}.

    All reads and writes happen in memory; nothing reaches disk until persist()
    is called. Not safe for concurrent use by several processes.
    """

    def __init__(self, namespace: str, directory: Path) -> None:
        self.namespace = namespace
        self.directory = directory
        self.path = directory / namespace
        self._entries: dict[str, CacheEntry[Any]] = {}
        self._visited: set[str] = set()  # keys read or written since load
        self._read()

    def _read(self) -> None:
        """Load the file if it exists. Corrupt or unreadable files raise."""
        self._entries = {}
        self._visited = set()
        if not self.path.exists():
            return
        raw = json.loads(self.path.read_text(encoding="utf-8"))
        if not isinstance(raw, dict):
            raise StoreCorruptedError(
                f"Cache file {self.path} must hold a JSON object, got {type(raw).__name__}"
            )
        try:
            self._entries = {key: _decode_entry(item) for key, item in raw.items()}
        except StoreCorruptedError as exc:
            raise StoreCorruptedError(f"Cache file {self.path} is corrupt: {exc}") from exc
        logger.debug("Loaded %d entries from %s", len(self._entries), self.path)

    def get_entry(self, key: str) -> CacheEntry[Any] | None:
        self._visited.add(key)
        return self._entries.get(key)

    def set_entry(self, key: str, entry: CacheEntry[Any]) -> None:
        """Store entry under key.

        Raises TypeError (or ValueError for circular data) when the value cannot
        be written as JSON; the store is left unchanged in that case.
        """
        json.dumps(entry.value, ensure_ascii=False)
        self._visited.add(key)
        self._entries[key] = entry

    def remove_entry(self, key: str) -> bool:
        """Remove key; return True when it was present."""
        self._visited.discard(key)
        return self._entries.pop(key, None) is not None

    def all_entries(self) -> dict[str, CacheEntry[Any]]:
        """Return a shallow copy of every entry."""
        return dict(self._entries)

    def persist(self, compact: bool = False) -> None:
        """Write the store to disk.

        With compact=True, entries that were neither read nor written since the
        store was loaded are dropped before writing.
        """
        if compact:
            stale = [key for key in self._entries if key not in self._visited]
            for key in stale:
                del self._entries[key]
            if stale:
                logger.debug("Pruned %d unvisited entries from %s", len(stale), self.path)

        payload = {key: _encode_entry(entry) for key, entry in self._entries.items()}
        text = json.dumps(payload, ensure_ascii=False)
        self.directory.mkdir(parents=True, exist_ok=True)
        self.path.write_text(text, encoding="utf-8")
        logger.debug("Persisted %d entries to %s", len(payload), self.path)

    def destroy(self) -> None:
        """Drop all in-memory entries and delete the backing file."""
        self._entries.clear()
        self._visited.clear()
        self.path.unlink(missing_ok=True)
        logger.debug("Destroyed store %s", self.path)


def load(namespace: str, directory: str | Path) -> FlatFileStore:
    """Open (or create) the store for namespace under directory.

    Repeated loads of the same (namespace, directory) pair within a process
    return the same instance, however the directory path is spelled.
    """
    root = Path(directory).resolve()
    path = root / namespace
    store = _open_stores.get(path)
    if store is None:
        store = FlatFileStore(namespace, root)
        _open_stores[path] = store
    return store


def clear_namespace(namespace: str, directory: str | Path) -> None:
    """Delete one namespace's file and empty any open store bound to it."""
    path = Path(directory).resolve() / namespace
    store = _open_stores.get(path)
    if store is not None:
        store.destroy()
    else:
        path.unlink(missing_ok=True)


def clear_all(directory: str | Path) -> None:
    """Delete every namespace stored under directory, then the directory itself."""
    root = Path(directory).resolve()
    for path, store in list(_open_stores.items()):
        if path.parent == root:
            store.destroy()
    if root.exists():
        shutil.rmtree(root)
    logger.debug("Cleared cache directory %s", root)
