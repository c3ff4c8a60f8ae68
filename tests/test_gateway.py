"""Tests for the admin and participant gateways: authorization and staged writes."""

import pytest

from tiercommit.errors import NotAdminError, NotAuthorizedError, NotInitializedError
from tiercommit.gateway import AdminGateway, ParticipantGateway
from tiercommit.models.commitment import DEFAULT_TIER, ParticipantState
from tiercommit.persistence.event_log import EventKind
from tiercommit.persistence.state_store import InMemoryStore
from tiercommit.sandbox import ManualClock, StaticAuthorizer
from tiercommit.vesting.config_store import ConfigStore
from tiercommit.vesting.engine import CommitmentEngine
from tiercommit.vesting.ledger import UserLedger
from tiercommit.vesting.tiers import TierRegistry


@pytest.fixture
def store() -> InMemoryStore:
    return InMemoryStore()


@pytest.fixture
def authorizer() -> StaticAuthorizer:
    return StaticAuthorizer(["admin", "alice"])


@pytest.fixture
def parts(store: InMemoryStore, authorizer: StaticAuthorizer):
    config = ConfigStore(store)
    tiers = TierRegistry(store)
    ledger = UserLedger(store)
    engine = CommitmentEngine(tiers, ManualClock(1000))
    admin = AdminGateway(config, tiers, ledger, engine, authorizer)
    participants = ParticipantGateway(config, ledger, engine, authorizer)
    return config, tiers, ledger, admin, participants


@pytest.fixture
def ready(parts):
    config, tiers, ledger, admin, participants = parts
    config.initialize("admin", "USDC")
    tiers.seed({1: DEFAULT_TIER})
    return parts


class TestAdminGateway:
    def test_uninitialized(self, parts) -> None:
        _, _, _, admin, _ = parts
        with pytest.raises(NotInitializedError):
            admin.set_eligible("alice", 1)

    def test_set_eligible_stages_record(self, ready) -> None:
        _, _, ledger, admin, _ = ready
        outcome = admin.set_eligible("alice", 1)
        assert outcome.event_kind == EventKind.ELIGIBLE_SET
        assert outcome.payload == {"user": "alice", "tier_id": 1}
        assert outcome.payout == 0
        assert ledger.get("alice").state == ParticipantState.ELIGIBLE

    def test_set_tier_payload(self, ready) -> None:
        _, _, _, admin, _ = ready
        outcome = admin.set_tier(5, DEFAULT_TIER)
        assert outcome.principal == "admin"
        assert outcome.payload["tier_id"] == 5
        assert outcome.payload["lock_secs"] == DEFAULT_TIER.lock_secs

    def test_unsigned_admin(self, ready, authorizer: StaticAuthorizer) -> None:
        _, _, _, admin, _ = ready
        authorizer.revoke("admin")
        with pytest.raises(NotAdminError, match="authorization failed"):
            admin.set_tier(2, DEFAULT_TIER)

    def test_reset_caller_must_be_admin(self, ready) -> None:
        _, _, _, admin, _ = ready
        with pytest.raises(NotAdminError, match="Not the administrator"):
            admin.reset("alice", "alice")

    def test_reset_unknown_user(self, ready) -> None:
        _, _, ledger, admin, _ = ready
        outcome = admin.reset("admin", "ghost")
        assert outcome.payload["previous_state"] == "not_eligible"
        assert outcome.payload["tier_id"] == 0
        assert ledger.get("ghost").eligible


class TestParticipantGateway:
    def test_claim_outcome_carries_payout(self, ready) -> None:
        _, _, _, admin, participants = ready
        admin.set_eligible("alice", 1)
        outcome = participants.claim_now("alice")
        assert outcome.payout == DEFAULT_TIER.payout_now
        assert outcome.principal == "alice"

    def test_lock_outcome(self, ready) -> None:
        _, _, _, admin, participants = ready
        admin.set_eligible("alice", 1)
        outcome = participants.lock("alice")
        assert outcome.payout == 0
        assert outcome.payload == {"user": "alice", "locked_at": 1000, "unlock_at": 7_777_000}

    def test_unsigned_participant(self, ready, authorizer: StaticAuthorizer) -> None:
        _, _, _, admin, participants = ready
        admin.set_eligible("bob", 1)
        with pytest.raises(NotAuthorizedError):
            participants.lock("bob")

    def test_uninitialized_checked_first(self, parts, authorizer: StaticAuthorizer) -> None:
        _, _, _, _, participants = parts
        authorizer.sign_as()
        with pytest.raises(NotInitializedError):
            participants.claim_now("alice")
