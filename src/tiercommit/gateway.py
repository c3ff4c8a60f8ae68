"""Administrator and participant gateways.

Thin orchestration in front of the vesting subsystem. Each entry point:

1. Confirms the store is initialized.
2. Verifies the relevant authorization capability.
3. Reads the affected record (and tier), applies the engine transition.
4. Writes the new record back and describes the event to emit.

Gateways only stage writes in the key-value store. The service layer
owns the transaction: it performs any transfer, appends the audit event,
and rolls the store back if anything fails.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Optional

from tiercommit.capabilities import Authorizer
from tiercommit.errors import AuthorizationError, NotAdminError, NotAuthorizedError
from tiercommit.models.commitment import Tier
from tiercommit.persistence.event_log import EventKind
from tiercommit.vesting.config_store import ConfigStore
from tiercommit.vesting.engine import CommitmentEngine
from tiercommit.vesting.ledger import UserLedger
from tiercommit.vesting.tiers import TierRegistry


@dataclass(frozen=True)
class Outcome:
    """What a successful gateway call changed.

    ``payout`` is the amount to transfer to ``principal`` before the call
    commits (0 for calls that pay nothing).
    """
    event_kind: EventKind
    principal: str
    payload: dict[str, Any] = field(default_factory=dict)
    payout: int = 0


class AdminGateway:
    """Administrator-only mutations: tier upsert, eligibility grant, reset."""

    def __init__(
        self,
        config: ConfigStore,
        tiers: TierRegistry,
        ledger: UserLedger,
        engine: CommitmentEngine,
        authorizer: Authorizer,
    ) -> None:
        self._config = config
        self._tiers = tiers
        self._ledger = ledger
        self._engine = engine
        self._authorizer = authorizer

    def set_tier(self, tier_id: int, tier: Tier) -> Outcome:
        admin = self._require_admin()
        self._tiers.set(tier_id, tier)
        return Outcome(
            event_kind=EventKind.TIER_SET,
            principal=admin,
            payload={"tier_id": tier_id, **tier.to_dict()},
        )

    def set_eligible(self, user: str, tier_id: int) -> Outcome:
        self._require_admin()
        transition = self._engine.grant_eligibility(self._ledger.get(user), tier_id)
        self._ledger.put(user, transition.record)
        return Outcome(
            event_kind=EventKind.ELIGIBLE_SET,
            principal=user,
            payload={"user": user, "tier_id": tier_id},
        )

    def reset(self, admin: str, user: str) -> Outcome:
        """Rewind a participant to ELIGIBLE. Always audited."""
        stored_admin = self._require_admin(caller=admin)
        previous = self._ledger.get_or_default(user)
        transition = self._engine.reset(self._ledger.get(user))
        self._ledger.put(user, transition.record)
        return Outcome(
            event_kind=EventKind.USER_RESET,
            principal=user,
            payload={
                "admin": stored_admin,
                "user": user,
                "previous_state": previous.state.value,
                "tier_id": transition.record.tier_id,
            },
        )

    def _require_admin(self, caller: Optional[str] = None) -> str:
        """Verify the stored administrator signed the call.

        When ``caller`` is given it must also be the stored administrator.
        """
        admin = self._config.load().admin
        if caller is not None and caller != admin:
            raise NotAdminError(f"Not the administrator: {caller}")
        try:
            self._authorizer.require_auth(admin)
        except AuthorizationError as e:
            raise NotAdminError(f"Administrator authorization failed: {e}") from e
        return admin


class ParticipantGateway:
    """Participant-only transitions: claim now, lock, withdraw."""

    def __init__(
        self,
        config: ConfigStore,
        ledger: UserLedger,
        engine: CommitmentEngine,
        authorizer: Authorizer,
    ) -> None:
        self._config = config
        self._ledger = ledger
        self._engine = engine
        self._authorizer = authorizer

    def claim_now(self, user: str) -> Outcome:
        self._require_participant(user)
        transition = self._engine.claim_now(self._ledger.get(user))
        self._ledger.put(user, transition.record)
        return Outcome(
            event_kind=EventKind.CLAIM_NOW,
            principal=user,
            payload={"user": user, "amount": transition.payout},
            payout=transition.payout,
        )

    def lock(self, user: str) -> Outcome:
        self._require_participant(user)
        transition = self._engine.lock(self._ledger.get(user))
        self._ledger.put(user, transition.record)
        return Outcome(
            event_kind=EventKind.LOCKED,
            principal=user,
            payload={
                "user": user,
                "locked_at": transition.record.locked_at,
                "unlock_at": transition.unlock_at,
            },
        )

    def withdraw(self, user: str) -> Outcome:
        self._require_participant(user)
        transition = self._engine.withdraw(self._ledger.get(user))
        self._ledger.put(user, transition.record)
        return Outcome(
            event_kind=EventKind.WITHDRAW,
            principal=user,
            payload={
                "user": user,
                "amount": transition.payout,
                "unlock_at": transition.record.unlock_at,
            },
            payout=transition.payout,
        )

    def _require_participant(self, user: str) -> None:
        self._config.ensure_initialized()
        try:
            self._authorizer.require_auth(user)
        except AuthorizationError as e:
            raise NotAuthorizedError(f"Authorization failed for {user}: {e}") from e
