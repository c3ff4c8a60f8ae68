"""tiercommit: tiered commitment / vesting engine."""

from tiercommit.service import CommitmentService, ServiceResult

__all__ = ["CommitmentService", "ServiceResult"]

__version__ = "0.1.0"
