"""Core data models for tiercommit."""

from tiercommit.models.commitment import (
    DEFAULT_ASSET_DECIMALS,
    DEFAULT_TIER,
    DEFAULT_TIER_ID,
    ConfigRecord,
    ParticipantPhase,
    ParticipantState,
    Tier,
    UserRecord,
    format_amount,
    parse_amount,
)

__all__ = [
    "DEFAULT_ASSET_DECIMALS",
    "DEFAULT_TIER",
    "DEFAULT_TIER_ID",
    "ConfigRecord",
    "ParticipantPhase",
    "ParticipantState",
    "Tier",
    "UserRecord",
    "format_amount",
    "parse_amount",
]
