"""Configuration slot: administrator principal and payment-asset reference.

Both values are written exactly once, by initialize(), and never change
afterwards. Their presence is what "initialized" means.
"""

from __future__ import annotations

import enum

from tiercommit.capabilities import KeyValueStore
from tiercommit.errors import AlreadyInitializedError, NotInitializedError
from tiercommit.models.commitment import ConfigRecord


class StorageKey(str, enum.Enum):
    """Fixed keys of the persisted state layout."""
    ADMIN = "admin"
    TOKEN = "token"
    TIERS = "tiers"
    USERS = "users"


class ConfigStore:
    """Reads and writes the configuration slots of a key-value store."""

    def __init__(self, store: KeyValueStore) -> None:
        self._store = store

    def is_initialized(self) -> bool:
        return self._store.has(StorageKey.ADMIN.value) and self._store.has(
            StorageKey.TOKEN.value
        )

    def ensure_initialized(self) -> None:
        if not self.is_initialized():
            raise NotInitializedError()

    def initialize(self, admin: str, token: str) -> ConfigRecord:
        """Record admin and token. Raises AlreadyInitializedError on a second call."""
        if self._store.has(StorageKey.ADMIN.value):
            raise AlreadyInitializedError()
        self._store.set(StorageKey.ADMIN.value, admin)
        self._store.set(StorageKey.TOKEN.value, token)
        return ConfigRecord(admin=admin, token=token)

    def load(self) -> ConfigRecord:
        self.ensure_initialized()
        return ConfigRecord(
            admin=self._store.get(StorageKey.ADMIN.value),
            token=self._store.get(StorageKey.TOKEN.value),
        )
