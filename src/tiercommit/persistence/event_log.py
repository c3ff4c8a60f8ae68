"""Append-only audit log of commitment events.

Every successful entry point emits exactly one event: initialization,
tier upserts, eligibility grants, claims, locks, withdrawals and
administrative resets. Failed calls emit nothing. Events are immutable
once written and serve as the off-system indexing feed and the audit
trail for privileged actions such as resets.

The log can be persisted to a JSONL file (one JSON object per line).
Records are hashed over their canonical JSON form and verified on load.
"""

from __future__ import annotations

import enum
import hashlib
import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional


class EventKind(str, enum.Enum):
    """Classification of commitment events."""
    INIT = "init"
    TIER_SET = "tier_set"
    ELIGIBLE_SET = "eligible_set"
    CLAIM_NOW = "claim_now"
    LOCKED = "locked"
    WITHDRAW = "withdraw"
    USER_RESET = "user_reset"


def _canonical_hash(
    event_id: str,
    event_kind: str,
    ledger_time: int,
    principal: str,
    payload: dict[str, Any],
) -> str:
    canonical = json.dumps(
        {
            "event_id": event_id,
            "event_kind": event_kind,
            "ledger_time": ledger_time,
            "principal": principal,
            "payload": payload,
        },
        sort_keys=True,
        ensure_ascii=False,
    ).encode("utf-8")
    return f"sha256:{hashlib.sha256(canonical).hexdigest()}"


@dataclass(frozen=True)
class EventRecord:
    """A single immutable commitment event.

    ``principal`` is the participant or administrator the event is about;
    ``ledger_time`` is the clock reading at the time of the call.
    """
    event_id: str
    event_kind: EventKind
    ledger_time: int
    principal: str
    payload: dict[str, Any]
    event_hash: str

    @staticmethod
    def create(
        event_id: str,
        event_kind: EventKind,
        principal: str,
        payload: dict[str, Any],
        ledger_time: int,
    ) -> EventRecord:
        """Create a new event record with computed hash."""
        return EventRecord(
            event_id=event_id,
            event_kind=event_kind,
            ledger_time=ledger_time,
            principal=principal,
            payload=payload,
            event_hash=_canonical_hash(
                event_id, event_kind.value, ledger_time, principal, payload,
            ),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "event_id": self.event_id,
            "event_kind": self.event_kind.value,
            "ledger_time": self.ledger_time,
            "principal": self.principal,
            "payload": self.payload,
            "event_hash": self.event_hash,
        }


class EventLog:
    """Append-only event log with optional file persistence.

    Usage:
        log = EventLog(storage_path=Path("data/events.jsonl"))
        log.append(EventRecord.create("EVT-00000001", EventKind.INIT, ...))
        withdrawals = log.events(EventKind.WITHDRAW)
    """

    def __init__(self, storage_path: Optional[Path] = None) -> None:
        self._events: list[EventRecord] = []
        self._storage_path = storage_path
        self._event_ids: set[str] = set()

        if storage_path and storage_path.exists():
            self._load_from_file(storage_path)

    def append(self, event: EventRecord) -> None:
        """Append an event to the log.

        Raises ValueError if event_id is a duplicate (replay protection).
        The file write happens before the in-memory append so a failed
        write leaves the log unchanged.
        """
        if event.event_id in self._event_ids:
            raise ValueError(f"Duplicate event ID: {event.event_id}")

        if self._storage_path:
            self._append_to_file(event)

        self._events.append(event)
        self._event_ids.add(event.event_id)

    def events(
        self,
        kind: Optional[EventKind] = None,
        principal: Optional[str] = None,
    ) -> list[EventRecord]:
        """Return events, optionally filtered by kind and principal."""
        result = list(self._events)
        if kind is not None:
            result = [e for e in result if e.event_kind == kind]
        if principal is not None:
            result = [e for e in result if e.principal == principal]
        return result

    def events_since(
        self,
        ledger_time: int,
        kind: Optional[EventKind] = None,
        principal: Optional[str] = None,
    ) -> list[EventRecord]:
        """Return events at or after a ledger time, with the same filters as events()."""
        return [e for e in self.events(kind, principal) if e.ledger_time >= ledger_time]

    @property
    def count(self) -> int:
        return len(self._events)

    @property
    def last_event(self) -> Optional[EventRecord]:
        return self._events[-1] if self._events else None

    def _append_to_file(self, event: EventRecord) -> None:
        self._storage_path.parent.mkdir(parents=True, exist_ok=True)
        with self._storage_path.open("a", encoding="utf-8") as f:
            f.write(json.dumps(event.to_dict(), sort_keys=True, ensure_ascii=False) + "\n")

    def _load_from_file(self, path: Path) -> None:
        """Load events from a JSONL file with integrity verification.

        Fail-closed: rejects tampered records (hash mismatch) and
        duplicate event IDs.
        """
        with path.open("r", encoding="utf-8") as f:
            for line_num, line in enumerate(f, 1):
                line = line.strip()
                if not line:
                    continue
                data = json.loads(line)

                event_id = data["event_id"]
                if event_id in self._event_ids:
                    raise ValueError(
                        f"Duplicate event ID on recovery (line {line_num}): {event_id}"
                    )

                expected_hash = _canonical_hash(
                    event_id,
                    data["event_kind"],
                    data["ledger_time"],
                    data["principal"],
                    data["payload"],
                )
                if data["event_hash"] != expected_hash:
                    raise ValueError(
                        f"Integrity check failed (line {line_num}): event {event_id} "
                        f"stored hash {data['event_hash']} != computed {expected_hash}"
                    )

                event = EventRecord(
                    event_id=event_id,
                    event_kind=EventKind(data["event_kind"]),
                    ledger_time=data["ledger_time"],
                    principal=data["principal"],
                    payload=data["payload"],
                    event_hash=data["event_hash"],
                )
                self._events.append(event)
                self._event_ids.add(event_id)
