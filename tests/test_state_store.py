"""Tests for the key-value state stores."""

import json
from pathlib import Path

import pytest

from tiercommit.persistence.state_store import InMemoryStore, JsonFileStore


class TestInMemoryStore:
    def test_get_default(self) -> None:
        store = InMemoryStore()
        assert store.get("missing") is None
        assert store.get("missing", {}) == {}
        assert not store.has("missing")

    def test_reads_are_copies(self) -> None:
        store = InMemoryStore()
        store.set("users", {"alice": {"eligible": True}})
        users = store.get("users")
        users["bob"] = {}
        assert "bob" not in store.get("users")

    def test_snapshot_restore(self) -> None:
        store = InMemoryStore({"admin": "a"})
        snapshot = store.snapshot()
        store.set("admin", "b")
        store.set("token", "USDC")
        store.restore(snapshot)
        assert store.get("admin") == "a"
        assert not store.has("token")

    def test_instances_are_independent(self) -> None:
        initial = {"admin": "a"}
        first, second = InMemoryStore(initial), InMemoryStore(initial)
        first.set("admin", "b")
        assert second.get("admin") == "a"


class TestJsonFileStore:
    def test_nothing_written_until_flush(self, tmp_path: Path) -> None:
        path = tmp_path / "state.json"
        store = JsonFileStore(path)
        store.set("admin", "a")
        assert not path.exists()
        store.flush()
        assert json.loads(path.read_text(encoding="utf-8")) == {"admin": "a"}

    def test_reload(self, tmp_path: Path) -> None:
        path = tmp_path / "nested" / "state.json"
        store = JsonFileStore(path)
        store.set("tiers", {"1": {"lock_secs": 60}})
        store.flush()

        reloaded = JsonFileStore(path)
        assert reloaded.get("tiers") == {"1": {"lock_secs": 60}}

    def test_restore_then_flush_discards_changes(self, tmp_path: Path) -> None:
        path = tmp_path / "state.json"
        store = JsonFileStore(path)
        store.set("admin", "a")
        store.flush()
        snapshot = store.snapshot()
        store.set("admin", "b")
        store.restore(snapshot)
        store.flush()
        assert JsonFileStore(path).get("admin") == "a"

    def test_no_temp_file_left(self, tmp_path: Path) -> None:
        store = JsonFileStore(tmp_path / "state.json")
        store.set("admin", "a")
        store.flush()
        assert [p.name for p in tmp_path.iterdir()] == ["state.json"]

    def test_rejects_non_object(self, tmp_path: Path) -> None:
        path = tmp_path / "state.json"
        path.write_text("[1, 2]", encoding="utf-8")
        with pytest.raises(ValueError, match="JSON object"):
            JsonFileStore(path)
