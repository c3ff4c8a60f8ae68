"""Commitment service: unified facade for the tiered commitment engine.

This is the primary interface for programmatic access. It wires the
vesting subsystem to the injected capabilities:
- Initialization (administrator, payment asset, default tier)
- Administrator entry points (tier upsert, eligibility grant, reset)
- Participant entry points (claim now, lock, withdraw)
- Read-only queries (participant record, status)

Every entry point runs as one atomic unit. The store is snapshotted
before the call; any typed error, authorization failure or transfer
abort restores the snapshot, so nothing is half-applied and no event is
emitted for a failed call.

Commit ordering for a successful call:
1. Gateway validates and stages writes (fail → rollback, typed error).
2. Transfer, if the call pays out (fail → rollback, transfer_failed).
3. Audit event append (fail before a transfer → rollback, audit_failed;
   after a transfer the payout stands, so the result carries a warning).
4. Store flush (post-audit: never rolls back, warns and marks the
   service as persistence-degraded).
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, Optional

from tiercommit.capabilities import Authorizer, Clock, TokenClient, TransactionalStore
from tiercommit.errors import CommitmentError, ErrorCode, TransferError
from tiercommit.gateway import AdminGateway, Outcome, ParticipantGateway
from tiercommit.models.commitment import Tier
from tiercommit.persistence.event_log import EventKind, EventLog, EventRecord
from tiercommit.persistence.state_store import InMemoryStore
from tiercommit.policy import CommitmentPolicy
from tiercommit.vesting.config_store import ConfigStore
from tiercommit.vesting.engine import CommitmentEngine
from tiercommit.vesting.ledger import UserLedger
from tiercommit.vesting.tiers import TierRegistry


DEFAULT_HOLDING_ACCOUNT = "commitment"


@dataclass(frozen=True)
class ServiceResult:
    """Result of a service operation."""
    success: bool
    errors: list[str] = field(default_factory=list)
    data: dict[str, Any] = field(default_factory=dict)
    error_code: Optional[ErrorCode] = None

    @staticmethod
    def failure(error: CommitmentError) -> ServiceResult:
        return ServiceResult(success=False, errors=[str(error)], error_code=error.code)


class CommitmentService:
    """Tiered commitment facade.

    Usage:
        store = InMemoryStore()
        token = LedgerToken(store, "USDC")
        service = CommitmentService(
            authorizer=authorizer, token=token, clock=clock, store=store,
        )
        service.initialize("admin", "USDC")
        service.set_eligible("alice", 1)
        result = service.lock("alice")          # data["unlock_at"]
        result = service.withdraw("alice")      # data["amount"]

    Persistence (optional):
        service = CommitmentService(..., store=JsonFileStore(path),
                                    event_log=EventLog(storage_path=log_path))
    """

    def __init__(
        self,
        authorizer: Authorizer,
        token: TokenClient,
        clock: Clock,
        store: Optional[TransactionalStore] = None,
        event_log: Optional[EventLog] = None,
        policy: Optional[CommitmentPolicy] = None,
        holding_account: str = DEFAULT_HOLDING_ACCOUNT,
    ) -> None:
        self._store = store if store is not None else InMemoryStore()
        self._event_log = event_log if event_log is not None else EventLog()
        self._policy = policy or CommitmentPolicy()
        self._token = token
        self._clock = clock
        self._holding_account = holding_account

        self._config = ConfigStore(self._store)
        self._tiers = TierRegistry(self._store)
        self._ledger = UserLedger(self._store)
        self._engine = CommitmentEngine(self._tiers, clock)
        self._admin = AdminGateway(
            self._config, self._tiers, self._ledger, self._engine, authorizer,
        )
        self._participants = ParticipantGateway(
            self._config, self._ledger, self._engine, authorizer,
        )

        # Resume from the persisted log to avoid ID collision on restart
        self._event_counter = self._event_log.count

        # Set when a post-commit audit append or store flush fails. The
        # call's effects stand; the durable copies need operator attention.
        self._persistence_degraded: bool = False

    @property
    def holding_account(self) -> str:
        """Account payouts are transferred from."""
        return self._holding_account

    @property
    def policy(self) -> CommitmentPolicy:
        return self._policy

    @property
    def event_log(self) -> EventLog:
        return self._event_log

    @property
    def persistence_degraded(self) -> bool:
        return self._persistence_degraded

    # ------------------------------------------------------------------
    # Initialization
    # ------------------------------------------------------------------

    def initialize(self, admin: str, token: str) -> ServiceResult:
        """Record the administrator and payment asset, seed the default tier."""

        def _initialize() -> Outcome:
            self._config.initialize(admin, token)
            self._tiers.seed({self._policy.default_tier_id: self._policy.default_tier})
            self._ledger.create_empty()
            return Outcome(
                event_kind=EventKind.INIT,
                principal=admin,
                payload={
                    "admin": admin,
                    "token": token,
                    "default_tier_id": self._policy.default_tier_id,
                },
            )

        return self._execute(_initialize)

    # ------------------------------------------------------------------
    # Administrator entry points
    # ------------------------------------------------------------------

    def set_tier(self, tier_id: int, tier: Tier) -> ServiceResult:
        """Insert or replace a tier. Administrator only."""
        return self._execute(lambda: self._admin.set_tier(tier_id, tier))

    def set_eligible(self, user: str, tier_id: int) -> ServiceResult:
        """Grant eligibility and assign a tier. Administrator only."""
        return self._execute(lambda: self._admin.set_eligible(user, tier_id))

    def reset(self, admin: str, user: str) -> ServiceResult:
        """Rewind a participant to the eligible state. Administrator only."""
        return self._execute(lambda: self._admin.reset(admin, user))

    # ------------------------------------------------------------------
    # Participant entry points
    # ------------------------------------------------------------------

    def claim_now(self, user: str) -> ServiceResult:
        """Take the immediate payout. data["amount"] is the amount paid."""
        return self._execute(
            lambda: self._participants.claim_now(user), result_key="amount",
        )

    def lock(self, user: str) -> ServiceResult:
        """Lock for the tier's duration. data["unlock_at"] is the maturity time."""
        return self._execute(
            lambda: self._participants.lock(user), result_key="unlock_at",
        )

    def withdraw(self, user: str) -> ServiceResult:
        """Withdraw a lock. data["amount"] is the early or mature payout."""
        return self._execute(
            lambda: self._participants.withdraw(user), result_key="amount",
        )

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get_user(self, user: str) -> ServiceResult:
        """Return a participant's record; unknown principals get the default record."""
        try:
            self._config.ensure_initialized()
        except CommitmentError as e:
            return ServiceResult.failure(e)
        record = self._ledger.get_or_default(user)
        return ServiceResult(
            success=True,
            data={
                "user": user,
                "record": record,
                "state": record.state.value,
                **record.to_dict(),
            },
        )

    def status(self) -> dict[str, Any]:
        initialized = self._config.is_initialized()
        config = self._config.load() if initialized else None
        return {
            "initialized": initialized,
            "admin": config.admin if config else None,
            "token": config.token if config else None,
            "holding_account": self._holding_account,
            "tiers": {
                str(tier_id): tier.to_dict()
                for tier_id, tier in self._tiers.all().items()
            },
            "users_by_state": self._ledger.count_by_state(),
            "event_count": self._event_log.count,
            "persistence_degraded": self._persistence_degraded,
        }

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _execute(
        self,
        action: Callable[[], Outcome],
        result_key: Optional[str] = None,
    ) -> ServiceResult:
        """Run one entry point atomically. See the module docstring for ordering."""
        snapshot = self._store.snapshot()
        try:
            outcome = action()
        except CommitmentError as e:
            self._store.restore(snapshot)
            return ServiceResult.failure(e)
        except Exception:
            self._store.restore(snapshot)
            raise

        paid = False
        if outcome.payout != 0:
            try:
                self._token.transfer(
                    self._holding_account, outcome.principal, outcome.payout,
                )
            except TransferError as e:
                self._store.restore(snapshot)
                return ServiceResult(
                    success=False,
                    errors=[f"Transfer failed: {e}"],
                    error_code=ErrorCode.TRANSFER_FAILED,
                )
            except Exception:
                self._store.restore(snapshot)
                raise
            paid = True

        warnings: list[str] = []
        err = self._record_event(outcome)
        if err:
            if not paid:
                self._store.restore(snapshot)
                return ServiceResult(
                    success=False, errors=[err], error_code=ErrorCode.AUDIT_FAILED,
                )
            self._persistence_degraded = True
            warnings.append(err)

        persist_warning = self._safe_persist_post_audit()
        if persist_warning:
            warnings.append(persist_warning)

        data: dict[str, Any] = {"event": outcome.event_kind.value}
        if result_key is not None:
            data[result_key] = outcome.payload[result_key]
        if warnings:
            data["warning"] = "; ".join(warnings)
        return ServiceResult(success=True, data=data)

    def _next_event_id(self) -> str:
        """Generate a monotonically increasing unique event ID."""
        self._event_counter += 1
        return f"EVT-{self._event_counter:08d}"

    def _record_event(self, outcome: Outcome) -> Optional[str]:
        """Append the call's audit event. Returns error string or None."""
        try:
            event = EventRecord.create(
                event_id=self._next_event_id(),
                event_kind=outcome.event_kind,
                principal=outcome.principal,
                payload=outcome.payload,
                ledger_time=self._clock.now(),
            )
            self._event_log.append(event)
        except (ValueError, OSError) as e:
            return f"Audit-trail failure: {e}"
        return None

    def _safe_persist_post_audit(self) -> Optional[str]:
        """Flush the store after the audit event has been committed.

        MUST NOT roll back: the audit trail already records the call. On
        failure the in-memory state stays correct, the durable copy is
        stale, and a warning is returned instead of an error.
        """
        try:
            self._store.flush()
            return None
        except OSError as e:
            self._persistence_degraded = True
            return f"Persistence degraded: {e}; call committed in audit trail but state file is stale"
