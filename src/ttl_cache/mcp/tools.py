from __future__ import annotations

import dataclasses
import json
import logging
from typing import Any

from mcp import types
from mcp.server.fastmcp import FastMCP

from ttl_cache.application.cache_service import TTLCache
from ttl_cache.domain.exceptions import ValidationError

logger = logging.getLogger(__name__)

_RESULT_URI = "mcp://ttl-cache/result"


def _as_resource(json_str: str) -> list[types.EmbeddedResource]:
    """Wrap a JSON string as an embedded resource so the LLM does not narrate it."""
    return [
        types.EmbeddedResource(
            type="resource",
            resource=types.TextResourceContents(
                uri=_RESULT_URI,  # type: ignore[arg-type]
                mimeType="application/json",
                text=json_str,
            ),
        )
    ]


def _error_json(message: str) -> str:
    return json.dumps({"error": message}, ensure_ascii=False)


def _result_json(payload: Any) -> list[types.EmbeddedResource]:
    return _as_resource(json.dumps(payload, default=str, ensure_ascii=False))


def _handle_exception(exc: Exception) -> list[types.EmbeddedResource]:
    if isinstance(exc, ValueError):
        # Includes ValidationError, StoreCorruptedError and json.JSONDecodeError
        return _as_resource(_error_json(str(exc)))
    if isinstance(exc, OSError):
        logger.warning("Cache storage error: %s", exc)
        return _as_resource(_error_json("Cache storage error. Please try again later."))
    logger.exception("Unexpected error in MCP tool: %s", exc)
    return _as_resource(_error_json("An unexpected error occurred."))


def _save_if_evicted(cache: TTLCache, evictions_before: int) -> None:
    """Flush lazy evictions made by a read so the file drops expired keys too."""
    if cache.evictions != evictions_before:
        cache.save()


def _validate_key(key: str) -> str:
    if not key or not key.strip():
        raise ValidationError("key cannot be empty")
    return key


def register_tools(mcp: FastMCP, cache: TTLCache) -> None:
    """Bind all @mcp.tool decorators. Called once during server setup."""

    @mcp.tool()
    def cache_get(key: str) -> list[types.EmbeddedResource]:
        """Get a cached value. Returns null when the key is missing or expired.

        Args:
            key: Cache key.
        """
        try:
            key = _validate_key(key)
            before = cache.evictions
            value = cache.get(key)
            _save_if_evicted(cache, before)
            return _result_json({"key": key, "value": value})
        except Exception as exc:
            return _handle_exception(exc)

    @mcp.tool()
    def cache_set(
        key: str,
        value: Any,
        ttl_seconds: float | None = None,
    ) -> list[types.EmbeddedResource]:
        """Store a JSON value under a key and flush it to disk.

        Args:
            key: Cache key.
            value: Any JSON-serializable value.
            ttl_seconds: Optional lifetime in seconds. The server default TTL
                         applies when omitted; no expiry when there is none.
        """
        try:
            key = _validate_key(key)
            cache.set(key, value, ttl_seconds)
            cache.save()
            info = cache.ttl(key)
            return _result_json({"key": key, "stored": True, "expires": info.expires})
        except Exception as exc:
            return _handle_exception(exc)

    @mcp.tool()
    def cache_delete(key: str) -> list[types.EmbeddedResource]:
        """Delete a key. Reports whether it existed.

        Args:
            key: Cache key.
        """
        try:
            key = _validate_key(key)
            deleted = cache.delete(key)
            if deleted:
                cache.save()
            return _result_json({"key": key, "deleted": deleted})
        except Exception as exc:
            return _handle_exception(exc)

    @mcp.tool()
    def cache_ttl(key: str) -> list[types.EmbeddedResource]:
        """Get the remaining lifetime of a key, both as text and in seconds.

        Args:
            key: Cache key.
        """
        try:
            key = _validate_key(key)
            before = cache.evictions
            info = cache.ttl(key)
            _save_if_evicted(cache, before)
            return _result_json(dataclasses.asdict(info))
        except Exception as exc:
            return _handle_exception(exc)

    @mcp.tool()
    def cache_all() -> list[types.EmbeddedResource]:
        """List every live key and value in the cache namespace."""
        try:
            before = cache.evictions
            entries = cache.all()
            _save_if_evicted(cache, before)
            return _result_json(
                {"namespace": cache.namespace, "entries": entries, "count": len(entries)}
            )
        except Exception as exc:
            return _handle_exception(exc)

    @mcp.tool()
    def cache_destroy() -> list[types.EmbeddedResource]:
        """Delete the whole cache namespace, on disk and in memory."""
        try:
            cache.destroy()
            return _result_json({"namespace": cache.namespace, "destroyed": True})
        except Exception as exc:
            return _handle_exception(exc)
