"""Commitment engine: the participant state machine.

Pure computation over one UserRecord at a time. Every precondition is
checked before a new record is built, and the caller's record is never
mutated, so a failed transition leaves nothing to undo. Transfers, event
logging and persistence are handled by the service layer: the engine
only says how much should be paid.

Preconditions, in the order they are checked:

    claim_now / lock:  eligible → not finalized → tier exists
    withdraw:          eligible → locked → not withdrawn → tier exists

Withdrawal pays ``payout_early`` strictly before ``unlock_at`` and
``payout_mature`` from ``unlock_at`` onwards.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from tiercommit.capabilities import Clock
from tiercommit.errors import (
    AlreadyFinalizedError,
    AlreadyWithdrawnError,
    NotEligibleError,
    NotLockedError,
)
from tiercommit.models.commitment import (
    ParticipantPhase,
    ParticipantState,
    UserRecord,
)
from tiercommit.vesting.tiers import TierRegistry


# Normal-cycle transitions. Reset is an administrative override outside this table.
_TRANSITIONS: dict[ParticipantState, set[ParticipantState]] = {
    ParticipantState.NOT_ELIGIBLE: {ParticipantState.ELIGIBLE},
    ParticipantState.ELIGIBLE: {ParticipantState.CLAIMED, ParticipantState.LOCKED},
    ParticipantState.LOCKED: {ParticipantState.WITHDRAWN},
    ParticipantState.CLAIMED: set(),
    ParticipantState.WITHDRAWN: set(),
}


@dataclass(frozen=True)
class Transition:
    """Outcome of a successful transition.

    ``payout`` is the amount the service must transfer to the participant
    (0 when nothing is paid).
    """
    record: UserRecord
    payout: int = 0
    unlock_at: Optional[int] = None


class CommitmentEngine:
    """Applies participant transitions against the tier registry and clock.

    Usage:
        engine = CommitmentEngine(tiers, clock)
        transition = engine.lock(ledger.get("alice"))
        ledger.put("alice", transition.record)
    """

    def __init__(self, tiers: TierRegistry, clock: Clock) -> None:
        self._tiers = tiers
        self._clock = clock

    def grant_eligibility(self, record: Optional[UserRecord], tier_id: int) -> Transition:
        """Mark eligible and (re)assign the tier.

        Finalize flags of an existing record are kept: a participant who
        already completed a cycle stays blocked until reset.
        """
        self._tiers.require(tier_id)
        if record is None:
            record = UserRecord()
        return Transition(
            record=UserRecord(
                eligible=True,
                tier_id=tier_id,
                phase=record.phase,
                locked_at=record.locked_at,
                unlock_at=record.unlock_at,
            )
        )

    def claim_now(self, record: Optional[UserRecord]) -> Transition:
        record = self._require_transition(record, ParticipantState.CLAIMED)
        tier = self._tiers.require(record.tier_id)
        return Transition(
            record=record.with_phase(ParticipantPhase.CLAIMED),
            payout=tier.payout_now,
        )

    def lock(self, record: Optional[UserRecord]) -> Transition:
        record = self._require_transition(record, ParticipantState.LOCKED)
        tier = self._tiers.require(record.tier_id)
        now = self._clock.now()
        unlock_at = now + tier.lock_secs
        return Transition(
            record=record.with_phase(
                ParticipantPhase.LOCKED, locked_at=now, unlock_at=unlock_at,
            ),
            unlock_at=unlock_at,
        )

    def withdraw(self, record: Optional[UserRecord]) -> Transition:
        record = self._require_transition(record, ParticipantState.WITHDRAWN)
        tier = self._tiers.require(record.tier_id)
        now = self._clock.now()
        payout = tier.payout_early if now < record.unlock_at else tier.payout_mature
        return Transition(
            record=record.with_phase(ParticipantPhase.WITHDRAWN),
            payout=payout,
        )

    @staticmethod
    def reset(record: Optional[UserRecord]) -> Transition:
        """Rewind to ELIGIBLE regardless of history, keeping the tier."""
        tier_id = record.tier_id if record is not None else 0
        return Transition(record=UserRecord(eligible=True, tier_id=tier_id))

    @staticmethod
    def valid_transitions(state: ParticipantState) -> set[ParticipantState]:
        return set(_TRANSITIONS.get(state, set()))

    @classmethod
    def _require_transition(
        cls, record: Optional[UserRecord], target: ParticipantState,
    ) -> UserRecord:
        """Check ``target`` is reachable from the record's state.

        Raises the typed error for the first failed precondition.
        """
        if record is None or not record.eligible:
            raise NotEligibleError()
        if target in cls.valid_transitions(record.state):
            return record
        if target != ParticipantState.WITHDRAWN:
            raise AlreadyFinalizedError()
        if record.state == ParticipantState.WITHDRAWN:
            raise AlreadyWithdrawnError()
        raise NotLockedError()
