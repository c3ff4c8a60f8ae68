"""Policy invariant checks against the commitment policy file.

The engine itself never validates tier amounts. These checks catch a
mis-edited policy before it is seeded: negative amounts, a zero-length
lock, or an early withdrawal that pays more than waiting would.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

from tiercommit.policy import POLICY_FILENAME


ROOT = Path(__file__).resolve().parents[2]
POLICY_PATH = ROOT / "config" / POLICY_FILENAME

_AMOUNT_FIELDS = ("payout_now", "payout_early", "payout_mature")


def load_json(path: Path) -> dict:
    with path.open("r", encoding="utf-8") as handle:
        return json.load(handle)


def check_tier(tier: dict[str, Any], label: str, errors: list[str]) -> None:
    """Validate one tier definition."""
    missing = [name for name in ("lock_secs", *_AMOUNT_FIELDS) if name not in tier]
    if missing:
        errors.extend(f"{label} missing field: {name}" for name in missing)
        return

    if tier["lock_secs"] <= 0:
        errors.append(f"{label}.lock_secs must be > 0")
    for name in _AMOUNT_FIELDS:
        if tier[name] < 0:
            errors.append(f"{label}.{name} must be >= 0")
    if tier["payout_early"] > tier["payout_mature"]:
        errors.append(f"{label}.payout_early must not exceed payout_mature")
    if tier["payout_now"] > tier["payout_mature"]:
        errors.append(f"{label}.payout_now must not exceed payout_mature")


def check_policy(policy: dict[str, Any]) -> list[str]:
    errors: list[str] = []

    decimals = policy.get("asset_decimals", 7)
    if not isinstance(decimals, int) or decimals < 0:
        errors.append(f"asset_decimals must be a non-negative integer, got {decimals!r}")

    tier_id = policy.get("default_tier_id", 1)
    if not isinstance(tier_id, int) or tier_id < 0:
        errors.append(f"default_tier_id must be a non-negative integer, got {tier_id!r}")

    tier = policy.get("default_tier")
    if not isinstance(tier, dict):
        errors.append("default_tier must be an object")
    else:
        check_tier(tier, "default_tier", errors)

    return errors


def check(path: Path = POLICY_PATH) -> int:
    if not path.exists():
        errors = [f"policy file not found: {path}"]
    else:
        errors = check_policy(load_json(path))

    if errors:
        print("Invariant check failed:")
        for err in errors:
            print(f"- {err}")
        return 1

    print("Invariant check passed.")
    return 0
