"""User ledger: participant principal → UserRecord.

Records are created lazily by the first eligibility grant and are never
deleted. Unknown principals read as the all-default record. Records are
decoded from their stored flag form on every read, so a corrupted entry
with an impossible flag combination fails loudly instead of leaking into
the state machine.
"""

from __future__ import annotations

from collections import Counter
from typing import Optional

from tiercommit.capabilities import KeyValueStore
from tiercommit.models.commitment import UserRecord
from tiercommit.vesting.config_store import StorageKey


class UserLedger:
    """Participant records kept under the ``users`` storage key.

    Usage:
        ledger = UserLedger(store)
        ledger.create_empty()
        ledger.put("alice", UserRecord(eligible=True, tier_id=1))
        record = ledger.get_or_default("alice")
    """

    def __init__(self, store: KeyValueStore) -> None:
        self._store = store

    def create_empty(self) -> None:
        self._store.set(StorageKey.USERS.value, {})

    def get(self, user: str) -> Optional[UserRecord]:
        """Return the stored record, or None if the principal was never touched."""
        raw = self._raw().get(user)
        return UserRecord.from_dict(raw) if raw is not None else None

    def get_or_default(self, user: str) -> UserRecord:
        record = self.get(user)
        return record if record is not None else UserRecord()

    def put(self, user: str, record: UserRecord) -> None:
        users = self._raw()
        users[user] = record.to_dict()
        self._store.set(StorageKey.USERS.value, users)

    def count_by_state(self) -> dict[str, int]:
        counts = Counter(
            UserRecord.from_dict(raw).state.value for raw in self._raw().values()
        )
        return dict(sorted(counts.items()))

    def _raw(self) -> dict:
        return self._store.get(StorageKey.USERS.value, {})
