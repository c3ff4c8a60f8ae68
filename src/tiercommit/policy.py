"""Commitment policy: the parameters seeded at initialization.

Loaded from ``config/commitment_policy.json``. Any key missing from the
file falls back to the built-in default, so an empty object is a valid
policy.

Example file:
    {
      "asset_decimals": 7,
      "default_tier_id": 1,
      "default_tier": {
        "lock_secs": 7776000,
        "payout_now": 200000000,
        "payout_early": 150000000,
        "payout_mature": 350000000
      }
    }
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from tiercommit.models.commitment import (
    DEFAULT_ASSET_DECIMALS,
    DEFAULT_TIER,
    DEFAULT_TIER_ID,
    Tier,
)


POLICY_FILENAME = "commitment_policy.json"


@dataclass(frozen=True)
class CommitmentPolicy:
    """Seed tier and asset display precision."""
    default_tier_id: int = DEFAULT_TIER_ID
    default_tier: Tier = field(default=DEFAULT_TIER)
    asset_decimals: int = DEFAULT_ASSET_DECIMALS

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> CommitmentPolicy:
        tier_data = {**DEFAULT_TIER.to_dict(), **data.get("default_tier", {})}
        decimals = int(data.get("asset_decimals", DEFAULT_ASSET_DECIMALS))
        if decimals < 0:
            raise ValueError(f"asset_decimals must be >= 0, got {decimals}")
        return cls(
            default_tier_id=int(data.get("default_tier_id", DEFAULT_TIER_ID)),
            default_tier=Tier.from_dict(tier_data),
            asset_decimals=decimals,
        )

    @classmethod
    def from_file(cls, path: Path) -> CommitmentPolicy:
        with path.open("r", encoding="utf-8") as handle:
            data = json.load(handle)
        if not isinstance(data, dict):
            raise ValueError(f"Policy file {path} must contain a JSON object")
        return cls.from_dict(data)

    @classmethod
    def from_config_dir(cls, config_dir: Path) -> CommitmentPolicy:
        """Load the policy file from a config directory, or defaults if absent."""
        path = config_dir / POLICY_FILENAME
        if not path.exists():
            return cls()
        return cls.from_file(path)

    def to_dict(self) -> dict[str, Any]:
        return {
            "asset_decimals": self.asset_decimals,
            "default_tier_id": self.default_tier_id,
            "default_tier": self.default_tier.to_dict(),
        }
