#!/usr/bin/env python3
"""Commitment policy invariant checks.

Usage:
    python3 tools/check_invariants.py
    python3 tools/check_invariants.py path/to/commitment_policy.json
"""

import sys
from pathlib import Path

# Add src to path for tiercommit imports
ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(ROOT / "src"))

from tiercommit.invariants import POLICY_PATH, check


if __name__ == "__main__":
    target = Path(sys.argv[1]) if len(sys.argv) > 1 else POLICY_PATH
    raise SystemExit(check(target))
