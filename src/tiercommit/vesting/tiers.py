"""Tier registry: tier id → payout policy.

Upserts are unvalidated; amounts are policy. A tier that is missing when
a transition needs it surfaces as TierNotFoundError at that point, so a
tier removed after assignment only fails that participant's next call.

JSON object keys are strings, so tier ids are stored as decimal strings
and exposed as ints.
"""

from __future__ import annotations

from typing import Optional

from tiercommit.capabilities import KeyValueStore
from tiercommit.errors import TierNotFoundError
from tiercommit.models.commitment import Tier
from tiercommit.vesting.config_store import StorageKey


class TierRegistry:
    """Tier mapping kept under the ``tiers`` storage key."""

    def __init__(self, store: KeyValueStore) -> None:
        self._store = store

    def seed(self, tiers: dict[int, Tier]) -> None:
        """Replace the whole mapping. Used once at initialization."""
        self._store.set(
            StorageKey.TIERS.value,
            {str(tier_id): tier.to_dict() for tier_id, tier in tiers.items()},
        )

    def get(self, tier_id: int) -> Optional[Tier]:
        raw = self._raw().get(str(tier_id))
        return Tier.from_dict(raw) if raw is not None else None

    def require(self, tier_id: int) -> Tier:
        tier = self.get(tier_id)
        if tier is None:
            raise TierNotFoundError(f"Tier not found: {tier_id}")
        return tier

    def set(self, tier_id: int, tier: Tier) -> None:
        """Insert or replace a tier."""
        tiers = self._raw()
        tiers[str(tier_id)] = tier.to_dict()
        self._store.set(StorageKey.TIERS.value, tiers)

    def all(self) -> dict[int, Tier]:
        return {
            int(tier_id): Tier.from_dict(raw)
            for tier_id, raw in sorted(self._raw().items(), key=lambda kv: int(kv[0]))
        }

    def _raw(self) -> dict:
        return self._store.get(StorageKey.TIERS.value, {})
