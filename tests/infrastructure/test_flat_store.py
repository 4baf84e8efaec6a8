"""Tests for the flat-file JSON store."""
from __future__ import annotations

import json
import tempfile
from datetime import datetime, timezone
from pathlib import Path

import pytest

from ttl_cache.domain.entities import CacheEntry
from ttl_cache.domain.exceptions import StoreCorruptedError
from ttl_cache.infrastructure import flat_store
from ttl_cache.infrastructure.flat_store import (
    FlatFileStore,
    clear_all,
    clear_namespace,
    load,
    resolve_directory,
)

EXPIRES = datetime(2026, 2, 24, 14, 0, tzinfo=timezone.utc)


# ---------------------------------------------------------------------------
# resolve_directory
# ---------------------------------------------------------------------------


def test_resolve_directory_uses_existing_parent(tmp_path: Path) -> None:
    directory = tmp_path / "mycache"
    assert resolve_directory("ns", directory) == directory


def test_resolve_directory_falls_back_when_parent_missing(tmp_path: Path) -> None:
    directory = tmp_path / "missing" / "mycache"
    expected = Path(tempfile.gettempdir()) / "cache" / "ns"
    assert resolve_directory("ns", directory) == expected


def test_resolve_directory_default_is_deterministic() -> None:
    assert resolve_directory("tokens") == resolve_directory("tokens", None)
    assert resolve_directory("tokens") == Path(tempfile.gettempdir()) / "cache" / "tokens"
    assert resolve_directory("tokens") != resolve_directory("sessions")


# ---------------------------------------------------------------------------
# load / entries
# ---------------------------------------------------------------------------


def test_load_missing_file_gives_empty_store(cache_dir: Path) -> None:
    store = load("ns", cache_dir)
    assert store.all_entries() == {}
    assert not store.path.exists()


def test_load_is_idempotent_per_path(cache_dir: Path) -> None:
    first = load("ns", cache_dir)
    first.set_entry("k", CacheEntry(expires=None, value=1))
    second = load("ns", cache_dir)
    assert second is first
    assert second.get_entry("k") == CacheEntry(expires=None, value=1)


def test_load_normalizes_directory_spelling(
    cache_dir: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    cache_dir.mkdir()
    monkeypatch.chdir(cache_dir.parent)
    absolute = load("ns", cache_dir)
    relative = load("ns", "cache")
    dotted = load("ns", "./cache/../cache")
    assert relative is absolute
    assert dotted is absolute


def test_clear_namespace_with_relative_directory(
    cache_dir: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    monkeypatch.chdir(cache_dir.parent)
    store = load("ns", cache_dir)
    store.set_entry("k", CacheEntry(expires=None, value=1))
    store.persist()
    clear_namespace("ns", "./cache")
    assert store.all_entries() == {}
    assert not store.path.exists()


def test_load_different_namespaces_are_separate(cache_dir: Path) -> None:
    a = load("a", cache_dir)
    b = load("b", cache_dir)
    a.set_entry("k", CacheEntry(expires=None, value="a"))
    assert b.get_entry("k") is None


def test_remove_entry_reports_presence(cache_dir: Path) -> None:
    store = load("ns", cache_dir)
    store.set_entry("k", CacheEntry(expires=None, value=1))
    assert store.remove_entry("k") is True
    assert store.remove_entry("k") is False


def test_all_entries_is_a_snapshot(cache_dir: Path) -> None:
    store = load("ns", cache_dir)
    store.set_entry("a", CacheEntry(expires=None, value=1))
    store.set_entry("b", CacheEntry(expires=None, value=2))
    snapshot = store.all_entries()
    for key in snapshot:
        store.remove_entry(key)
    assert set(snapshot) == {"a", "b"}
    assert store.all_entries() == {}


# ---------------------------------------------------------------------------
# persist
# ---------------------------------------------------------------------------


def test_persist_writes_envelope_json(cache_dir: Path) -> None:
    store = load("ns", cache_dir)
    store.set_entry("token", CacheEntry(expires=EXPIRES, value={"id": 7}))
    store.set_entry("forever", CacheEntry(expires=None, value="x"))
    store.persist()

    raw = json.loads((cache_dir / "ns").read_text(encoding="utf-8"))
    assert raw == {
        "token": {"expires": "2026-02-24T14:00:00+00:00", "value": {"id": 7}},
        "forever": {"expires": None, "value": "x"},
    }


def test_persisted_entries_survive_reload(cache_dir: Path) -> None:
    store = load("ns", cache_dir)
    store.set_entry("token", CacheEntry(expires=EXPIRES, value=[1, "two", None]))
    store.persist()

    reopened = FlatFileStore("ns", cache_dir)
    assert reopened.get_entry("token") == CacheEntry(expires=EXPIRES, value=[1, "two", None])


def test_persist_compact_drops_unvisited_keys(cache_dir: Path) -> None:
    store = load("ns", cache_dir)
    store.set_entry("old", CacheEntry(expires=None, value=1))
    store.set_entry("used", CacheEntry(expires=None, value=2))
    store.persist()

    reopened = FlatFileStore("ns", cache_dir)
    reopened.get_entry("used")
    reopened.set_entry("new", CacheEntry(expires=None, value=3))
    reopened.persist(compact=True)

    assert set(reopened.all_entries()) == {"used", "new"}
    assert set(json.loads(reopened.path.read_text(encoding="utf-8"))) == {"used", "new"}


def test_persist_without_compact_keeps_unvisited_keys(cache_dir: Path) -> None:
    store = load("ns", cache_dir)
    store.set_entry("old", CacheEntry(expires=None, value=1))
    store.persist()

    reopened = FlatFileStore("ns", cache_dir)
    reopened.persist()
    assert set(reopened.all_entries()) == {"old"}


def test_corrupt_file_raises(cache_dir: Path) -> None:
    cache_dir.mkdir()
    (cache_dir / "ns").write_text("{not json", encoding="utf-8")
    with pytest.raises(json.JSONDecodeError):
        load("ns", cache_dir)
    assert (cache_dir / "ns") not in flat_store._open_stores


def test_unserializable_value_rejected_on_set(cache_dir: Path) -> None:
    store = load("ns", cache_dir)
    store.set_entry("k", CacheEntry(expires=None, value="kept"))
    with pytest.raises(TypeError):
        store.set_entry("k", CacheEntry(expires=None, value=object()))
    assert store.get_entry("k") == CacheEntry(expires=None, value="kept")


def test_rejected_value_does_not_block_later_persist(cache_dir: Path) -> None:
    store = load("ns", cache_dir)
    with pytest.raises(TypeError):
        store.set_entry("bad", CacheEntry(expires=None, value={1, 2}))
    store.set_entry("good", CacheEntry(expires=None, value=1))
    store.persist()

    raw = json.loads(store.path.read_text(encoding="utf-8"))
    assert raw == {"good": {"expires": None, "value": 1}}


@pytest.mark.parametrize(
    "content",
    [
        '{"k": "plain"}',
        "[1, 2, 3]",
        '"just a string"',
        '{"k": {"expires": 12345, "value": 1}}',
    ],
)
def test_wrong_shape_file_raises_corrupted(cache_dir: Path, content: str) -> None:
    cache_dir.mkdir()
    (cache_dir / "ns").write_text(content, encoding="utf-8")
    with pytest.raises(StoreCorruptedError, match="corrupt|must hold a JSON object"):
        load("ns", cache_dir)


def test_corrupted_error_is_a_value_error() -> None:
    assert issubclass(StoreCorruptedError, ValueError)


# ---------------------------------------------------------------------------
# destroy / clear
# ---------------------------------------------------------------------------


def test_destroy_removes_file_and_memory(cache_dir: Path) -> None:
    store = load("ns", cache_dir)
    store.set_entry("k", CacheEntry(expires=None, value=1))
    store.persist()
    store.destroy()

    assert not store.path.exists()
    assert store.all_entries() == {}


def test_destroy_then_persist_recreates_file(cache_dir: Path) -> None:
    store = load("ns", cache_dir)
    store.destroy()
    store.set_entry("k", CacheEntry(expires=None, value=1))
    store.persist()
    assert store.path.exists()


def test_clear_namespace_without_open_store(cache_dir: Path) -> None:
    cache_dir.mkdir()
    (cache_dir / "ns").write_text("{}", encoding="utf-8")
    clear_namespace("ns", cache_dir)
    assert not (cache_dir / "ns").exists()


def test_clear_namespace_empties_open_store(cache_dir: Path) -> None:
    store = load("ns", cache_dir)
    store.set_entry("k", CacheEntry(expires=None, value=1))
    store.persist()
    clear_namespace("ns", cache_dir)
    assert store.all_entries() == {}
    assert not store.path.exists()


def test_clear_all_removes_directory(cache_dir: Path) -> None:
    a = load("a", cache_dir)
    b = load("b", cache_dir)
    a.set_entry("k", CacheEntry(expires=None, value=1))
    b.set_entry("k", CacheEntry(expires=None, value=2))
    a.persist()
    b.persist()

    clear_all(cache_dir)

    assert not cache_dir.exists()
    assert a.all_entries() == {}
    assert b.all_entries() == {}


def test_clear_all_missing_directory_is_noop(cache_dir: Path) -> None:
    clear_all(cache_dir)
    assert not cache_dir.exists()
