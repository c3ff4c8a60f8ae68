"""tiercommit CLI: drive a local commitment sandbox from the shell.

State lives in a data directory (state.json + events.jsonl). Payouts are
drawn from the service's holding account in a local ledger token, so fund
it with ``mint`` before anyone claims or withdraws.

Usage:
    python -m tiercommit.cli init --admin admin --token USDC
    python -m tiercommit.cli mint --amount 1000
    python -m tiercommit.cli set-eligible --user alice --tier-id 1
    python -m tiercommit.cli lock --user alice --now 1000
    python -m tiercommit.cli withdraw --user alice --now 7777000
    python -m tiercommit.cli get-user --user alice
    python -m tiercommit.cli check-invariants

Calls are signed as the acting principal (the participant, or the stored
administrator) unless ``--as`` names a different signer.

Environment (read from .env at the project root):
    TIERCOMMIT_DATA_DIR    data directory (default: data/)
    TIERCOMMIT_CONFIG_DIR  config directory (default: config/)
"""

from __future__ import annotations

import argparse
import json
import os
import sys
from pathlib import Path
from typing import Any, Optional

from dotenv import load_dotenv

from tiercommit.capabilities import Clock, SystemClock
from tiercommit.errors import NotInitializedError, TransferError
from tiercommit.invariants import check
from tiercommit.models.commitment import Tier, format_amount, parse_amount
from tiercommit.persistence.event_log import EventKind, EventLog
from tiercommit.persistence.state_store import JsonFileStore
from tiercommit.policy import POLICY_FILENAME, CommitmentPolicy
from tiercommit.sandbox import LedgerToken, ManualClock, StaticAuthorizer
from tiercommit.service import CommitmentService, ServiceResult
from tiercommit.vesting.config_store import ConfigStore, StorageKey


ROOT = Path(__file__).resolve().parents[2]
DEFAULT_CONFIG = ROOT / "config"
DEFAULT_DATA = ROOT / "data"
DEFAULT_ASSET = "USDC"


class _Sandbox:
    """Service plus the local token and authorizer it was built with."""

    def __init__(self, args: argparse.Namespace) -> None:
        data_dir: Path = args.data
        data_dir.mkdir(parents=True, exist_ok=True)
        self.store = JsonFileStore(data_dir / "state.json")
        self.policy = CommitmentPolicy.from_config_dir(args.config)

        asset = (
            getattr(args, "token", None)
            or self.store.get(StorageKey.TOKEN.value)
            or DEFAULT_ASSET
        )
        self.token = LedgerToken(self.store, asset)

        self._explicit_signer = args.signer
        self.authorizer = StaticAuthorizer([args.signer] if args.signer else [])

        clock: Clock = ManualClock(args.now) if args.now is not None else SystemClock()
        self.service = CommitmentService(
            authorizer=self.authorizer,
            token=self.token,
            clock=clock,
            store=self.store,
            event_log=EventLog(storage_path=data_dir / "events.jsonl"),
            policy=self.policy,
        )

    def sign_as_default(self, principal: Optional[str]) -> None:
        """Sign as ``principal`` unless --as named an explicit signer."""
        if self._explicit_signer is None and principal:
            self.authorizer.allow(principal)

    @property
    def stored_admin(self) -> Optional[str]:
        return self.store.get(StorageKey.ADMIN.value)


def _report(result: ServiceResult, message: str) -> int:
    if result.success:
        print(message)
        if "warning" in result.data:
            print(f"Warning: {result.data['warning']}", file=sys.stderr)
        return 0
    code = result.error_code.value if result.error_code else "error"
    print(f"Failed [{code}]: {'; '.join(result.errors)}", file=sys.stderr)
    return 1


def _print_json(data: Any) -> None:
    print(json.dumps(data, indent=2, default=str))


def cmd_status(args: argparse.Namespace) -> int:
    sandbox = _Sandbox(args)
    status = sandbox.service.status()
    status["holding_balance"] = sandbox.token.balance(sandbox.service.holding_account)
    _print_json(status)
    return 0


def cmd_init(args: argparse.Namespace) -> int:
    sandbox = _Sandbox(args)
    result = sandbox.service.initialize(args.admin, args.token)
    return _report(result, f"Initialized: admin={args.admin} token={args.token}")


def cmd_set_tier(args: argparse.Namespace) -> int:
    sandbox = _Sandbox(args)
    tier = Tier(
        lock_secs=args.lock_secs,
        payout_now=args.payout_now,
        payout_early=args.payout_early,
        payout_mature=args.payout_mature,
    )
    sandbox.sign_as_default(sandbox.stored_admin)
    result = sandbox.service.set_tier(args.tier_id, tier)
    return _report(result, f"Tier {args.tier_id} set")


def cmd_set_eligible(args: argparse.Namespace) -> int:
    sandbox = _Sandbox(args)
    sandbox.sign_as_default(sandbox.stored_admin)
    result = sandbox.service.set_eligible(args.user, args.tier_id)
    return _report(result, f"Eligible: {args.user} (tier {args.tier_id})")


def cmd_get_user(args: argparse.Namespace) -> int:
    sandbox = _Sandbox(args)
    result = sandbox.service.get_user(args.user)
    if not result.success:
        return _report(result, "")
    data = {k: v for k, v in result.data.items() if k != "record"}
    data["balance"] = sandbox.token.balance(args.user)
    _print_json(data)
    return 0


def cmd_claim_now(args: argparse.Namespace) -> int:
    sandbox = _Sandbox(args)
    sandbox.sign_as_default(args.user)
    result = sandbox.service.claim_now(args.user)
    amount = result.data.get("amount", 0)
    return _report(
        result,
        f"Claimed: {amount} ({format_amount(amount, sandbox.policy.asset_decimals)})",
    )


def cmd_lock(args: argparse.Namespace) -> int:
    sandbox = _Sandbox(args)
    sandbox.sign_as_default(args.user)
    result = sandbox.service.lock(args.user)
    return _report(result, f"Locked until: {result.data.get('unlock_at')}")


def cmd_withdraw(args: argparse.Namespace) -> int:
    sandbox = _Sandbox(args)
    sandbox.sign_as_default(args.user)
    result = sandbox.service.withdraw(args.user)
    amount = result.data.get("amount", 0)
    return _report(
        result,
        f"Withdrawn: {amount} ({format_amount(amount, sandbox.policy.asset_decimals)})",
    )


def cmd_reset_user(args: argparse.Namespace) -> int:
    sandbox = _Sandbox(args)
    sandbox.sign_as_default(args.admin)
    result = sandbox.service.reset(args.admin, args.user)
    return _report(result, f"Reset: {args.user}")


def cmd_mint(args: argparse.Namespace) -> int:
    """Fund an account (the holding account by default) in the local token."""
    sandbox = _Sandbox(args)
    try:
        ConfigStore(sandbox.store).ensure_initialized()
    except NotInitializedError as e:
        print(f"Failed [{e.code.value}]: {e}; run init first", file=sys.stderr)
        return 1
    to = args.to or sandbox.service.holding_account
    try:
        amount = parse_amount(args.amount, sandbox.policy.asset_decimals)
        balance = sandbox.token.mint(to, amount)
    except (ValueError, TransferError) as e:
        print(f"Failed: {e}", file=sys.stderr)
        return 1
    sandbox.store.flush()
    print(f"Minted {amount} to {to}; balance {balance}")
    return 0


def cmd_balance(args: argparse.Namespace) -> int:
    sandbox = _Sandbox(args)
    account = args.account or sandbox.service.holding_account
    amount = sandbox.token.balance(account)
    print(f"{account}: {amount} ({format_amount(amount, sandbox.policy.asset_decimals)})")
    return 0


def cmd_events(args: argparse.Namespace) -> int:
    sandbox = _Sandbox(args)
    kind = EventKind(args.kind) if args.kind else None
    log = sandbox.service.event_log
    if args.since is not None:
        events = log.events_since(args.since, kind=kind, principal=args.user)
    else:
        events = log.events(kind=kind, principal=args.user)
    _print_json([e.to_dict() for e in events])
    return 0


def cmd_check_invariants(args: argparse.Namespace) -> int:
    """Run policy invariant checks."""
    return check(args.config / POLICY_FILENAME)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="tiercommit",
        description="Tiered commitment engine: local sandbox CLI",
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=Path(os.getenv("TIERCOMMIT_CONFIG_DIR", str(DEFAULT_CONFIG))),
        help="Path to config directory (default: config/)",
    )
    parser.add_argument(
        "--data",
        type=Path,
        default=Path(os.getenv("TIERCOMMIT_DATA_DIR", str(DEFAULT_DATA))),
        help="Path to data directory (default: data/)",
    )
    parser.add_argument(
        "--as", dest="signer",
        help="Principal that signs the call (default: the acting principal)",
    )
    parser.add_argument(
        "--now", type=int,
        help="Ledger time override in seconds (default: wall clock)",
    )
    sub = parser.add_subparsers(dest="command")

    # status
    sub.add_parser("status", help="Show system status")

    # init
    p_init = sub.add_parser("init", help="Initialize administrator and payment asset")
    p_init.add_argument("--admin", required=True, help="Administrator principal")
    p_init.add_argument("--token", default=DEFAULT_ASSET, help="Payment asset reference")

    # set-tier
    p_tier = sub.add_parser("set-tier", help="Insert or replace a tier (admin)")
    p_tier.add_argument("--tier-id", type=int, required=True, help="Tier ID")
    p_tier.add_argument("--lock-secs", type=int, required=True, help="Lock duration in seconds")
    p_tier.add_argument("--payout-now", type=int, required=True, help="Claim-now payout (smallest units)")
    p_tier.add_argument("--payout-early", type=int, required=True, help="Early withdrawal payout (smallest units)")
    p_tier.add_argument("--payout-mature", type=int, required=True, help="Mature withdrawal payout (smallest units)")

    # set-eligible
    p_elig = sub.add_parser("set-eligible", help="Grant eligibility (admin)")
    p_elig.add_argument("--user", required=True, help="Participant principal")
    p_elig.add_argument("--tier-id", type=int, default=1, help="Tier ID (default: 1)")

    # get-user
    p_get = sub.add_parser("get-user", help="Show a participant record")
    p_get.add_argument("--user", required=True, help="Participant principal")

    # participant transitions
    for name, help_text in (
        ("claim-now", "Take the immediate payout"),
        ("lock", "Lock for the tier's duration"),
        ("withdraw", "Withdraw a lock (early or mature)"),
    ):
        p = sub.add_parser(name, help=help_text)
        p.add_argument("--user", required=True, help="Participant principal")

    # reset-user
    p_reset = sub.add_parser("reset-user", help="Rewind a participant to eligible (admin)")
    p_reset.add_argument("--admin", required=True, help="Administrator principal")
    p_reset.add_argument("--user", required=True, help="Participant principal")

    # mint
    p_mint = sub.add_parser("mint", help="Mint local tokens (default: to the holding account)")
    p_mint.add_argument("--to", help="Recipient account")
    p_mint.add_argument("--amount", required=True, help="Amount in whole units (Decimal)")

    # balance
    p_bal = sub.add_parser("balance", help="Show a local token balance")
    p_bal.add_argument("--account", help="Account (default: holding account)")

    # events
    p_events = sub.add_parser("events", help="List audit events")
    p_events.add_argument("--kind", choices=[k.value for k in EventKind], help="Event kind")
    p_events.add_argument("--user", help="Filter by principal")
    p_events.add_argument("--since", type=int, help="Only events at or after this ledger time")

    # check-invariants
    sub.add_parser("check-invariants", help="Run policy invariant checks")

    return parser


def main(argv: list[str] | None = None) -> int:
    load_dotenv(ROOT / ".env")
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return 0

    commands = {
        "status": cmd_status,
        "init": cmd_init,
        "set-tier": cmd_set_tier,
        "set-eligible": cmd_set_eligible,
        "get-user": cmd_get_user,
        "claim-now": cmd_claim_now,
        "lock": cmd_lock,
        "withdraw": cmd_withdraw,
        "reset-user": cmd_reset_user,
        "mint": cmd_mint,
        "balance": cmd_balance,
        "events": cmd_events,
        "check-invariants": cmd_check_invariants,
    }

    handler = commands.get(args.command)
    if handler is None:
        print(f"Unknown command: {args.command}", file=sys.stderr)
        return 1

    return handler(args)


if __name__ == "__main__":
    raise SystemExit(main())
