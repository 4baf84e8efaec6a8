from __future__ import annotations


class CacheError(Exception):
    """Base exception for all ttl_cache errors."""


class ValidationError(CacheError, ValueError):
    """Raised when a tool input fails validation before the cache is touched."""


class StoreCorruptedError(CacheError, ValueError):
    """Raised when a cache file holds valid JSON in a shape the store cannot read."""
