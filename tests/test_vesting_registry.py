"""Tests for the configuration slot, tier registry and user ledger."""

import pytest

from tiercommit.errors import (
    AlreadyInitializedError,
    NotInitializedError,
    TierNotFoundError,
)
from tiercommit.models.commitment import (
    DEFAULT_TIER,
    ParticipantPhase,
    Tier,
    UserRecord,
)
from tiercommit.persistence.state_store import InMemoryStore
from tiercommit.vesting.config_store import ConfigStore, StorageKey
from tiercommit.vesting.ledger import UserLedger
from tiercommit.vesting.tiers import TierRegistry


@pytest.fixture
def store() -> InMemoryStore:
    return InMemoryStore()


class TestConfigStore:
    def test_uninitialized(self, store: InMemoryStore) -> None:
        config = ConfigStore(store)
        assert not config.is_initialized()
        with pytest.raises(NotInitializedError):
            config.ensure_initialized()
        with pytest.raises(NotInitializedError):
            config.load()

    def test_initialize_once(self, store: InMemoryStore) -> None:
        config = ConfigStore(store)
        record = config.initialize("admin", "USDC")
        assert record.admin == "admin"
        assert config.is_initialized()
        assert config.load().admin == "admin"
        assert config.load().token == "USDC"

    def test_second_initialize_fails(self, store: InMemoryStore) -> None:
        config = ConfigStore(store)
        config.initialize("admin", "USDC")
        with pytest.raises(AlreadyInitializedError):
            config.initialize("other", "EURC")
        assert config.load().admin == "admin"

    def test_token_without_admin_is_not_initialized(self, store: InMemoryStore) -> None:
        store.set(StorageKey.TOKEN.value, "USDC")
        assert not ConfigStore(store).is_initialized()


class TestTierRegistry:
    def test_missing_tier(self, store: InMemoryStore) -> None:
        tiers = TierRegistry(store)
        assert tiers.get(1) is None
        with pytest.raises(TierNotFoundError, match="Tier not found: 1"):
            tiers.require(1)

    def test_seed_and_lookup(self, store: InMemoryStore) -> None:
        tiers = TierRegistry(store)
        tiers.seed({1: DEFAULT_TIER})
        assert tiers.require(1) == DEFAULT_TIER

    def test_upsert_replaces(self, store: InMemoryStore) -> None:
        tiers = TierRegistry(store)
        tiers.seed({1: DEFAULT_TIER})
        replacement = Tier(lock_secs=60, payout_now=1, payout_early=2, payout_mature=3)
        tiers.set(1, replacement)
        tiers.set(10, DEFAULT_TIER)
        assert tiers.require(1) == replacement
        assert list(tiers.all()) == [1, 10]

    def test_no_validation_of_amounts(self, store: InMemoryStore) -> None:
        """Early above mature is policy, not an engine error."""
        tiers = TierRegistry(store)
        odd = Tier(lock_secs=0, payout_now=0, payout_early=500, payout_mature=1)
        tiers.set(2, odd)
        assert tiers.require(2) == odd

    def test_ids_stored_as_strings(self, store: InMemoryStore) -> None:
        TierRegistry(store).set(7, DEFAULT_TIER)
        assert "7" in store.get(StorageKey.TIERS.value)


class TestUserLedger:
    def test_unknown_user(self, store: InMemoryStore) -> None:
        ledger = UserLedger(store)
        ledger.create_empty()
        assert ledger.get("alice") is None
        assert ledger.get_or_default("alice") == UserRecord()

    def test_put_and_get(self, store: InMemoryStore) -> None:
        ledger = UserLedger(store)
        record = UserRecord(
            eligible=True, tier_id=1, phase=ParticipantPhase.LOCKED,
            locked_at=5, unlock_at=10,
        )
        ledger.put("alice", record)
        assert ledger.get("alice") == record

    def test_count_by_state(self, store: InMemoryStore) -> None:
        ledger = UserLedger(store)
        ledger.put("a", UserRecord(eligible=True, tier_id=1))
        ledger.put("b", UserRecord(eligible=True, tier_id=1))
        ledger.put("c", UserRecord(eligible=True, tier_id=1, phase=ParticipantPhase.CLAIMED))
        assert ledger.count_by_state() == {"claimed": 1, "eligible": 2}

    def test_corrupted_record_fails_loudly(self, store: InMemoryStore) -> None:
        store.set(StorageKey.USERS.value, {"alice": {"eligible": True, "withdrawn": True}})
        with pytest.raises(ValueError, match="Illegal participant flags"):
            UserLedger(store).get("alice")
