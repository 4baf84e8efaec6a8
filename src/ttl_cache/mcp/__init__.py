from __future__ import annotations

from pathlib import Path
from typing import Any

from mcp.server.fastmcp import FastMCP

from ttl_cache.application.cache_service import TTLCache
from ttl_cache.mcp.tools import register_tools


def create_mcp_app(
    namespace: str = "default",
    directory: str | Path | None = None,
    ttl: Any = None,
) -> FastMCP:
    """Create and configure the FastMCP application backed by one TTLCache namespace."""
    cache = TTLCache(namespace=namespace, directory=directory, ttl=ttl)

    mcp = FastMCP("TTL Cache MCP", stateless_http=True)
    register_tools(mcp, cache)
    return mcp
