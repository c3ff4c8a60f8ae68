"""Persistence: key-value state store and the append-only audit log."""

from tiercommit.persistence.event_log import EventKind, EventLog, EventRecord
from tiercommit.persistence.state_store import InMemoryStore, JsonFileStore

__all__ = [
    "EventKind",
    "EventLog",
    "EventRecord",
    "InMemoryStore",
    "JsonFileStore",
]
