"""Vesting subsystem: configuration slot, tier registry, user ledger, engine."""

from tiercommit.vesting.config_store import ConfigStore, StorageKey
from tiercommit.vesting.engine import CommitmentEngine, Transition
from tiercommit.vesting.ledger import UserLedger
from tiercommit.vesting.tiers import TierRegistry

__all__ = [
    "CommitmentEngine",
    "ConfigStore",
    "StorageKey",
    "TierRegistry",
    "Transition",
    "UserLedger",
]
