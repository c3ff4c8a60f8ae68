"""Tests for the commitment event log: append-only, hashed, fail-closed on load."""

import json
from pathlib import Path

import pytest

from tiercommit.persistence.event_log import EventKind, EventLog, EventRecord


def _event(n: int, kind: EventKind = EventKind.LOCKED, principal: str = "alice", t: int = 1000) -> EventRecord:
    return EventRecord.create(
        event_id=f"EVT-{n:08d}",
        event_kind=kind,
        principal=principal,
        payload={"user": principal, "unlock_at": t + 60},
        ledger_time=t,
    )


class TestEventRecord:
    def test_hash_is_deterministic(self) -> None:
        assert _event(1).event_hash == _event(1).event_hash
        assert _event(1).event_hash.startswith("sha256:")

    def test_hash_covers_payload(self) -> None:
        assert _event(1, t=1000).event_hash != _event(1, t=1001).event_hash


class TestEventLogInMemory:
    def test_append_and_filter(self) -> None:
        log = EventLog()
        log.append(_event(1, EventKind.LOCKED, "alice", 100))
        log.append(_event(2, EventKind.CLAIM_NOW, "bob", 200))
        log.append(_event(3, EventKind.WITHDRAW, "alice", 300))

        assert log.count == 3
        assert [e.event_id for e in log.events(EventKind.LOCKED)] == ["EVT-00000001"]
        assert len(log.events(principal="alice")) == 2
        assert [e.event_id for e in log.events_since(200)] == ["EVT-00000002", "EVT-00000003"]
        assert [e.event_id for e in log.events_since(200, principal="alice")] == ["EVT-00000003"]
        assert log.last_event.event_kind == EventKind.WITHDRAW

    def test_duplicate_id_rejected(self) -> None:
        log = EventLog()
        log.append(_event(1))
        with pytest.raises(ValueError, match="Duplicate event ID"):
            log.append(_event(1))
        assert log.count == 1

    def test_empty_log(self) -> None:
        log = EventLog()
        assert log.count == 0
        assert log.last_event is None


class TestEventLogPersistence:
    def test_reload_from_file(self, tmp_path: Path) -> None:
        path = tmp_path / "events.jsonl"
        log = EventLog(storage_path=path)
        log.append(_event(1))
        log.append(_event(2, EventKind.WITHDRAW))

        reloaded = EventLog(storage_path=path)
        assert reloaded.count == 2
        assert reloaded.events() == log.events()

    def test_tampered_record_rejected(self, tmp_path: Path) -> None:
        path = tmp_path / "events.jsonl"
        EventLog(storage_path=path).append(_event(1))

        data = json.loads(path.read_text(encoding="utf-8"))
        data["payload"]["unlock_at"] = 1
        path.write_text(json.dumps(data) + "\n", encoding="utf-8")

        with pytest.raises(ValueError, match="Integrity check failed"):
            EventLog(storage_path=path)

    def test_duplicate_on_recovery_rejected(self, tmp_path: Path) -> None:
        path = tmp_path / "events.jsonl"
        line = json.dumps(_event(1).to_dict())
        path.write_text(line + "\n" + line + "\n", encoding="utf-8")
        with pytest.raises(ValueError, match="Duplicate event ID on recovery"):
            EventLog(storage_path=path)

    def test_blank_lines_ignored(self, tmp_path: Path) -> None:
        path = tmp_path / "events.jsonl"
        path.write_text("\n" + json.dumps(_event(1).to_dict()) + "\n\n", encoding="utf-8")
        assert EventLog(storage_path=path).count == 1
