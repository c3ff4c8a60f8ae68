"""Local sandbox implementations of the external capabilities.

Used by the CLI and the test suite in place of a real identity system,
asset contract and ledger clock:

- LedgerToken keeps balances in a key-value store. Sharing the service's
  store puts transfers inside the same snapshot/restore transaction.
- StaticAuthorizer treats a fixed set of principals as having signed.
- ManualClock returns whatever time it is set to.
"""

from __future__ import annotations

from typing import Iterable, Optional

from tiercommit.capabilities import KeyValueStore
from tiercommit.errors import AuthorizationError, TransferError


class LedgerToken:
    """A minimal fungible asset with mint, balance and transfer.

    Balances live under ``balances:<asset>`` in the given store.
    """

    def __init__(self, store: KeyValueStore, asset: str) -> None:
        self._store = store
        self._asset = asset

    @property
    def asset(self) -> str:
        return self._asset

    def mint(self, to: str, amount: int) -> int:
        """Credit ``amount`` to ``to`` and return the new balance."""
        if amount <= 0:
            raise TransferError("Mint amount must be positive")
        balances = self._balances()
        balances[to] = balances.get(to, 0) + amount
        self._store.set(self._key, balances)
        return balances[to]

    def balance(self, account: str) -> int:
        return self._balances().get(account, 0)

    def transfer(self, source: str, destination: str, amount: int) -> None:
        if amount <= 0:
            raise TransferError(f"Transfer amount must be positive, got {amount}")
        balances = self._balances()
        available = balances.get(source, 0)
        if available < amount:
            raise TransferError(
                f"Insufficient balance in {source}: {available} < {amount}"
            )
        balances[source] = available - amount
        balances[destination] = balances.get(destination, 0) + amount
        self._store.set(self._key, balances)

    @property
    def _key(self) -> str:
        return f"balances:{self._asset}"

    def _balances(self) -> dict[str, int]:
        return self._store.get(self._key, {})


class StaticAuthorizer:
    """Authorizes exactly the principals currently registered as signers."""

    def __init__(self, signers: Optional[Iterable[str]] = None) -> None:
        self._signers: set[str] = set(signers or ())

    def sign_as(self, *principals: str) -> None:
        """Replace the signer set."""
        self._signers = set(principals)

    def allow(self, principal: str) -> None:
        self._signers.add(principal)

    def revoke(self, principal: str) -> None:
        self._signers.discard(principal)

    def require_auth(self, principal: str) -> None:
        if principal not in self._signers:
            raise AuthorizationError(f"{principal} has not signed this call")


class ManualClock:
    """A ledger clock that only moves when told to."""

    def __init__(self, now: int = 0) -> None:
        self._now = now

    def now(self) -> int:
        return self._now

    def set(self, now: int) -> None:
        self._now = now

    def advance(self, seconds: int) -> int:
        self._now += seconds
        return self._now
