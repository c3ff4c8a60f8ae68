"""External capabilities consumed by the commitment engine.

The engine never talks to a concrete identity system, asset contract,
storage backend or clock. Each is injected as a single-operation
interface so tests and the local sandbox can substitute in-memory fakes.

- Authorizer.require_auth(principal): returns, or raises AuthorizationError.
- TokenClient.transfer(source, destination, amount): returns, or raises
  TransferError.
- Clock.now(): ledger-confirmed integer timestamp in seconds.
- KeyValueStore: get / set / has by fixed key.
"""

from __future__ import annotations

import time
from typing import Any, Optional, Protocol


class Authorizer(Protocol):
    def require_auth(self, principal: str) -> None:
        """Confirm the current call is signed by ``principal``."""
        ...


class TokenClient(Protocol):
    def transfer(self, source: str, destination: str, amount: int) -> None:
        """Move ``amount`` smallest units of the payment asset."""
        ...


class Clock(Protocol):
    def now(self) -> int:
        ...


class KeyValueStore(Protocol):
    def get(self, key: str, default: Optional[Any] = None) -> Any:
        ...

    def set(self, key: str, value: Any) -> None:
        ...

    def has(self, key: str) -> bool:
        ...


class TransactionalStore(KeyValueStore, Protocol):
    """A key-value store the service can roll back and make durable."""

    def snapshot(self) -> Any:
        ...

    def restore(self, snapshot: Any) -> None:
        ...

    def flush(self) -> None:
        ...


class SystemClock:
    """Wall-clock time truncated to whole seconds."""

    def now(self) -> int:
        return int(time.time())
