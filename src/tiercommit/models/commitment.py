"""Commitment models: tiers, participant records and configuration.

Amounts are integers in the smallest unit of the payment asset and
timestamps are integer ledger seconds. No floats anywhere.

The participant lifecycle is kept as an explicit state value. The legacy
flag form (claimed_now / locked / withdrawn) only exists at the storage
boundary, and illegal flag combinations are rejected when decoding.

State machine:
    NOT_ELIGIBLE → ELIGIBLE              (eligibility granted)
    ELIGIBLE → CLAIMED                   (claim now, paid immediately)
    ELIGIBLE → LOCKED                    (lock, paid later)
    LOCKED → WITHDRAWN                   (early or mature withdrawal)
    any → ELIGIBLE                       (administrative reset)
"""

from __future__ import annotations

import enum
from dataclasses import dataclass, replace
from decimal import Decimal, InvalidOperation
from typing import Any


SECONDS_PER_DAY = 24 * 60 * 60

DEFAULT_TIER_ID = 1
DEFAULT_ASSET_DECIMALS = 7


class ParticipantPhase(str, enum.Enum):
    """Progress of an eligible participant through one payout cycle."""
    FRESH = "fresh"
    CLAIMED = "claimed"
    LOCKED = "locked"
    WITHDRAWN = "withdrawn"


class ParticipantState(str, enum.Enum):
    """Virtual state derived from eligibility and phase."""
    NOT_ELIGIBLE = "not_eligible"
    ELIGIBLE = "eligible"
    CLAIMED = "claimed"
    LOCKED = "locked"
    WITHDRAWN = "withdrawn"


# phase -> (claimed_now, locked, withdrawn)
_PHASE_FLAGS: dict[ParticipantPhase, tuple[bool, bool, bool]] = {
    ParticipantPhase.FRESH: (False, False, False),
    ParticipantPhase.CLAIMED: (True, False, True),
    ParticipantPhase.LOCKED: (False, True, False),
    ParticipantPhase.WITHDRAWN: (False, True, True),
}
_FLAGS_PHASE = {flags: phase for phase, flags in _PHASE_FLAGS.items()}


@dataclass(frozen=True)
class Tier:
    """A payout policy: lock duration plus three payout amounts.

    Amounts are policy and are not validated here.
    """
    lock_secs: int
    payout_now: int
    payout_early: int
    payout_mature: int

    def to_dict(self) -> dict[str, int]:
        return {
            "lock_secs": self.lock_secs,
            "payout_now": self.payout_now,
            "payout_early": self.payout_early,
            "payout_mature": self.payout_mature,
        }

    @staticmethod
    def from_dict(data: dict[str, Any]) -> Tier:
        return Tier(
            lock_secs=int(data["lock_secs"]),
            payout_now=int(data["payout_now"]),
            payout_early=int(data["payout_early"]),
            payout_mature=int(data["payout_mature"]),
        )


# 90 days; 20 / 15 / 35 units of a 7-decimal asset.
DEFAULT_TIER = Tier(
    lock_secs=90 * SECONDS_PER_DAY,
    payout_now=200_000_000,
    payout_early=150_000_000,
    payout_mature=350_000_000,
)


@dataclass(frozen=True)
class UserRecord:
    """A participant's commitment record.

    Immutable: transitions return a new record. The service writes the
    new record back only if the whole call succeeds.
    """
    eligible: bool = False
    tier_id: int = 0
    phase: ParticipantPhase = ParticipantPhase.FRESH
    locked_at: int = 0
    unlock_at: int = 0

    @property
    def state(self) -> ParticipantState:
        if not self.eligible:
            return ParticipantState.NOT_ELIGIBLE
        return ParticipantState(
            "eligible" if self.phase == ParticipantPhase.FRESH else self.phase.value
        )

    @property
    def claimed_now(self) -> bool:
        return _PHASE_FLAGS[self.phase][0]

    @property
    def locked(self) -> bool:
        return _PHASE_FLAGS[self.phase][1]

    @property
    def withdrawn(self) -> bool:
        return _PHASE_FLAGS[self.phase][2]

    def with_phase(self, phase: ParticipantPhase, **changes: Any) -> UserRecord:
        return replace(self, phase=phase, **changes)

    def to_dict(self) -> dict[str, Any]:
        """Flag form used for storage and display."""
        return {
            "eligible": self.eligible,
            "tier_id": self.tier_id,
            "locked_at": self.locked_at,
            "unlock_at": self.unlock_at,
            "claimed_now": self.claimed_now,
            "locked": self.locked,
            "withdrawn": self.withdrawn,
        }

    @staticmethod
    def from_dict(data: dict[str, Any]) -> UserRecord:
        """Decode the flag form, rejecting combinations no transition produces."""
        flags = (
            bool(data.get("claimed_now", False)),
            bool(data.get("locked", False)),
            bool(data.get("withdrawn", False)),
        )
        phase = _FLAGS_PHASE.get(flags)
        if phase is None:
            raise ValueError(
                f"Illegal participant flags: claimed_now={flags[0]}, "
                f"locked={flags[1]}, withdrawn={flags[2]}"
            )
        return UserRecord(
            eligible=bool(data.get("eligible", False)),
            tier_id=int(data.get("tier_id", 0)),
            phase=phase,
            locked_at=int(data.get("locked_at", 0)),
            unlock_at=int(data.get("unlock_at", 0)),
        )


@dataclass(frozen=True)
class ConfigRecord:
    """Administrator principal and payment-asset reference."""
    admin: str
    token: str


def format_amount(amount: int, decimals: int = DEFAULT_ASSET_DECIMALS) -> Decimal:
    """Render a smallest-unit amount as a Decimal in whole asset units."""
    return Decimal(amount).scaleb(-decimals).quantize(Decimal(1).scaleb(-decimals))


def parse_amount(value: str, decimals: int = DEFAULT_ASSET_DECIMALS) -> int:
    """Parse a whole-unit decimal string into a smallest-unit integer.

    Raises ValueError if the value has more precision than the asset.
    """
    try:
        scaled = Decimal(value).scaleb(decimals)
    except InvalidOperation as e:
        raise ValueError(f"Invalid amount: {value!r}") from e
    if scaled != scaled.to_integral_value():
        raise ValueError(f"Amount {value} exceeds {decimals} decimal places")
    return int(scaled)
