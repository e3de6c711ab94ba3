"""
action-ledger CLI
~~~~~~~~~~~~~~~~~

Command-line interface for inspecting the action log and rolling back
individual actions.
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from typing import Any


def main(argv: list[str] | None = None) -> None:
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        prog="action-ledger",
        description="action-ledger: action log and compensating rollback",
    )
    parser.add_argument(
        "--version",
        action="store_true",
        help="Show version and exit",
    )
    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Print operational log lines to stderr",
    )
    subparsers = parser.add_subparsers(dest="command")

    # version command
    subparsers.add_parser("version", help="Show version")

    # logs command
    logs_parser = subparsers.add_parser("logs", help="List the most recent log entries")
    _add_config_argument(logs_parser)
    logs_parser.add_argument(
        "--limit",
        type=int,
        default=100,
        help="Maximum number of entries (default: 100)",
    )

    # show command
    show_parser = subparsers.add_parser("show", help="Print one log entry as JSON")
    _add_config_argument(show_parser)
    show_parser.add_argument("log_id", type=str, help="Log entry ID")

    # rollback command
    rollback_parser = subparsers.add_parser("rollback", help="Roll back one action")
    _add_config_argument(rollback_parser)
    rollback_parser.add_argument("log_id", type=str, help="Log entry ID to roll back")
    rollback_parser.add_argument(
        "--actor",
        type=str,
        default=None,
        help="Actor ID recorded on the rollback entry",
    )

    args = parser.parse_args(argv)

    if args.verbose:
        logging.basicConfig(
            level=logging.INFO,
            format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        )

    if args.version or args.command == "version":
        from action_ledger import __version__

        print(f"action-ledger {__version__}")
        return

    if args.command == "logs":
        asyncio.run(_run_logs(args))
    elif args.command == "show":
        asyncio.run(_run_show(args))
    elif args.command == "rollback":
        asyncio.run(_run_rollback(args))
    else:
        parser.print_help()
        sys.exit(1)


def _add_config_argument(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--config",
        type=str,
        default=None,
        help="Path to ledger_config.yaml (default: SQLite store in ~/.action_ledger)",
    )


def _make_ledger(config_path: str | None) -> Any:
    """
    Create an ActionLedger from ``--config``.

    Without a config file the CLI opens the default SQLite store
    (``~/.action_ledger/store.db``); the in-memory backend would always
    start empty in a fresh process.
    """
    from action_ledger.config.loader import load_config_from_dict
    from action_ledger.core.ledger import ActionLedger

    if config_path:
        return ActionLedger.from_config(config_path)
    ledger = ActionLedger(config=load_config_from_dict({"store": {"backend": "sqlite"}}))
    print(f"Using default store {ledger.store.db_path}", file=sys.stderr)
    return ledger


async def _run_logs(args: argparse.Namespace) -> None:
    ledger = _make_ledger(args.config)
    entries = await ledger.recent(args.limit)
    if not entries:
        print("No log entries.")
        return
    for entry in entries:
        stamp = entry.timestamp.strftime("%Y/%m/%d %H:%M:%S") if entry.timestamp else "N/A"
        details = json.dumps(entry.details.to_dict(), default=str)
        if len(details) > 150:
            details = details[:147] + "..."
        print(f"{entry.id}  {stamp}  {entry.actor_id:<16} {entry.action_tag:<32} {details}")


async def _run_show(args: argparse.Namespace) -> None:
    ledger = _make_ledger(args.config)
    entry = await ledger.get_entry(args.log_id)
    if entry is None:
        print(f"Error: Log entry {args.log_id} not found", file=sys.stderr)
        sys.exit(1)
    print(json.dumps(entry.to_dict(), indent=2, default=str))


async def _run_rollback(args: argparse.Namespace) -> None:
    from action_ledger.exceptions import ActionLedgerError

    ledger = _make_ledger(args.config)
    try:
        summary = await ledger.rollback(args.log_id, args.actor)
    except ActionLedgerError as exc:
        print(f"Rollback failed:\n{exc}", file=sys.stderr)
        sys.exit(1)

    print(f"Rolled back {summary.original_action} ({summary.original_log_id})")
    print(f"Collection: {summary.collection}")
    if summary.deleted_ids:
        print(f"Deleted:    {', '.join(summary.deleted_ids)}")
    if summary.restored_ids:
        print(f"Restored:   {', '.join(summary.restored_ids)}")
    if summary.skipped_count:
        print(f"Skipped:    {summary.skipped_count} record(s)")
    print(f"Audit entry: {summary.rollback_log_id}")


if __name__ == "__main__":
    main()
