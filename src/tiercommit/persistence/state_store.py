"""Key-value state store: the single home of all mutable commitment state.

Values must be JSON-serialisable (dicts, lists, strings, ints, bools).
Reads return copies so callers can only change state through set().

The store supports snapshot()/restore() so the service layer can run
each entry point as one atomic unit: take a snapshot, apply the call,
and restore the snapshot if any step fails. flush() makes the current
contents durable; it is a no-op for the in-memory store.
"""

from __future__ import annotations

import copy
import json
import os
from pathlib import Path
from typing import Any, Optional


class InMemoryStore:
    """Dict-backed store. Independent instances never share state."""

    def __init__(self, initial: Optional[dict[str, Any]] = None) -> None:
        self._data: dict[str, Any] = copy.deepcopy(initial) if initial else {}

    def get(self, key: str, default: Optional[Any] = None) -> Any:
        if key not in self._data:
            return default
        return copy.deepcopy(self._data[key])

    def set(self, key: str, value: Any) -> None:
        self._data[key] = copy.deepcopy(value)

    def has(self, key: str) -> bool:
        return key in self._data

    def snapshot(self) -> dict[str, Any]:
        return copy.deepcopy(self._data)

    def restore(self, snapshot: dict[str, Any]) -> None:
        self._data = copy.deepcopy(snapshot)

    def flush(self) -> None:
        return None


class JsonFileStore(InMemoryStore):
    """Store persisted as a single JSON document.

    Loaded on construction; flush() writes to a temporary file and
    renames it over the target so a crash never leaves a torn file.
    """

    def __init__(self, storage_path: Path) -> None:
        super().__init__()
        self._storage_path = storage_path
        if storage_path.exists():
            self._data = self._load(storage_path)

    def flush(self) -> None:
        self._storage_path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self._storage_path.with_suffix(self._storage_path.suffix + ".tmp")
        with tmp_path.open("w", encoding="utf-8") as f:
            json.dump(self._data, f, sort_keys=True, indent=2)
            f.write("\n")
        os.replace(tmp_path, self._storage_path)

    @staticmethod
    def _load(path: Path) -> dict[str, Any]:
        with path.open("r", encoding="utf-8") as f:
            data = json.load(f)
        if not isinstance(data, dict):
            raise ValueError(f"State file {path} must contain a JSON object")
        return data
