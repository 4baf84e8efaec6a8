"""Shared pytest fixtures for the TTL cache test suite."""
from __future__ import annotations

from collections.abc import Iterator
from pathlib import Path

import pytest

from ttl_cache.application.cache_service import TTLCache
from ttl_cache.infrastructure import flat_store


@pytest.fixture(autouse=True)
def reset_store_registry() -> Iterator[None]:
    """Forget stores opened by a previous test so each test loads from disk."""
    flat_store._open_stores.clear()
    yield
    flat_store._open_stores.clear()


@pytest.fixture
def cache_dir(tmp_path: Path) -> Path:
    """A cache directory whose parent exists, so it is used verbatim."""
    return tmp_path / "cache"


@pytest.fixture
def cache(cache_dir: Path) -> TTLCache:
    """A TTLCache without a default TTL, in the "default" namespace."""
    return TTLCache(directory=cache_dir)
