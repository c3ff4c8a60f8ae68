"""Typed errors for the commitment engine.

Every precondition violation has its own error code so callers can tell
exactly which check failed. Errors are raised inside the core and turned
into a failed ServiceResult by the service layer; they never escape the
facade for expected conditions.
"""

from __future__ import annotations

import enum
from typing import Optional


class ErrorCode(str, enum.Enum):
    """Stable, machine-readable failure codes."""
    NOT_INITIALIZED = "not_initialized"
    ALREADY_INITIALIZED = "already_initialized"
    NOT_ADMIN = "not_admin"
    NOT_ELIGIBLE = "not_eligible"
    TIER_NOT_FOUND = "tier_not_found"
    ALREADY_FINALIZED = "already_finalized"
    NOT_LOCKED = "not_locked"
    ALREADY_WITHDRAWN = "already_withdrawn"
    # Capability and infrastructure aborts
    NOT_AUTHORIZED = "not_authorized"
    TRANSFER_FAILED = "transfer_failed"
    AUDIT_FAILED = "audit_failed"


class CommitmentError(ValueError):
    """Base class for every expected, caller-recoverable failure."""

    code: ErrorCode = ErrorCode.NOT_INITIALIZED
    default_message = "Commitment error"

    def __init__(self, message: Optional[str] = None) -> None:
        super().__init__(message or self.default_message)


class NotInitializedError(CommitmentError):
    code = ErrorCode.NOT_INITIALIZED
    default_message = "Commitment store is not initialized"


class AlreadyInitializedError(CommitmentError):
    code = ErrorCode.ALREADY_INITIALIZED
    default_message = "Commitment store is already initialized"


class NotAdminError(CommitmentError):
    code = ErrorCode.NOT_ADMIN
    default_message = "Caller is not the administrator"


class NotEligibleError(CommitmentError):
    code = ErrorCode.NOT_ELIGIBLE
    default_message = "Participant is not eligible"


class TierNotFoundError(CommitmentError):
    code = ErrorCode.TIER_NOT_FOUND
    default_message = "Tier not found"


class AlreadyFinalizedError(CommitmentError):
    code = ErrorCode.ALREADY_FINALIZED
    default_message = "Participant has already claimed or locked"


class NotLockedError(CommitmentError):
    code = ErrorCode.NOT_LOCKED
    default_message = "Participant has not locked"


class AlreadyWithdrawnError(CommitmentError):
    code = ErrorCode.ALREADY_WITHDRAWN
    default_message = "Participant has already withdrawn"


class NotAuthorizedError(CommitmentError):
    code = ErrorCode.NOT_AUTHORIZED
    default_message = "Caller is not authorized for this principal"


class AuthorizationError(Exception):
    """Raised by an Authorizer when a principal has not signed the call."""


class TransferError(Exception):
    """Raised by a TokenClient when a transfer cannot be completed."""
