#!/usr/bin/env python3
"""
aegis_drift/cli.py - Command-Line Interface (human-in-the-loop drift review)

Usage:
    python -m aegis_drift.cli list [severity] [--json]
    python -m aegis_drift.cli review <id> [--approve]
    python -m aegis_drift.cli replay <blueprintId> [--fix-mode=<mode>]

Without --approve, review records a rejection.

Exit Codes:
    0 = OK
    1 = drift event not found / already resolved
    2 = drift log unreadable or malformed
"""
import argparse
import json
import logging
import sys
from pathlib import Path

from aegis_core.config import settings
from aegis_core.errors import GovernanceException

from .models import FixMode, Severity
from .replay import replay
from .store import DriftLogStore

logger = logging.getLogger(__name__)


def main(argv=None):
    """
    Parse command-line arguments and dispatch the aegis-drift command-line interface.

    Subcommands:
    - list: print events, optionally filtered to one severity
    - review: resolve a pending event (approve or reject)
    - replay: print the deterministic replay document for a blueprint
    """
    parser = argparse.ArgumentParser(
        prog="aegis-drift",
        description="Drift event listing, review and replay"
    )
    parser.add_argument(
        "--log",
        default=settings.DRIFT_LOG_PATH,
        help="Path to the drift log (YAML)"
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    list_parser = subparsers.add_parser("list", help="List drift events")
    list_parser.add_argument(
        "severity",
        nargs="?",
        choices=[s.value for s in Severity],
        help="Only events with exactly this severity"
    )
    list_parser.add_argument("--json", action="store_true", help="Emit a JSON array")

    review_parser = subparsers.add_parser("review", help="Approve or reject a pending drift event")
    review_parser.add_argument("id", help="Drift event id")
    review_parser.add_argument(
        "--approve",
        action="store_true",
        help="Approve the event (default: reject)"
    )

    replay_parser = subparsers.add_parser("replay", help="Replay a blueprint's drift state")
    replay_parser.add_argument("blueprint_id", metavar="blueprintId", help="Blueprint identifier")
    replay_parser.add_argument(
        "--fix-mode",
        default=FixMode.REPORT.value,
        choices=[m.value for m in FixMode],
        help="Proposal strategy for pending events"
    )

    args = parser.parse_args(argv)
    logging.basicConfig(level=settings.LOG_LEVEL, format=settings.LOG_FORMAT)

    store = DriftLogStore(Path(args.log))
    handlers = {
        "list": run_list,
        "review": run_review,
        "replay": run_replay,
    }

    try:
        handlers[args.command](store, args)
    except GovernanceException as e:
        print(f"Error: {e.error.message}", file=sys.stderr)
        sys.exit(e.error.exit_code)
    sys.exit(0)


def run_list(store: DriftLogStore, args):
    severity = Severity(args.severity) if args.severity else None
    events = store.list(severity)

    if args.json:
        print(json.dumps([e.to_document() for e in events], indent=2))
        return

    if not events:
        print("No drift events.")
        return
    for event in events:
        print(f"[{event.severity.value}] {event.id}  {event.timestamp}  {event.state.value}  {event.detail}")


def run_review(store: DriftLogStore, args):
    event = store.review(args.id, approve=args.approve)
    print(f"Drift event {event.id} {event.resolution.action.value}")


def run_replay(store: DriftLogStore, args):
    print(replay(store, args.blueprint_id, FixMode(args.fix_mode)))


if __name__ == "__main__":
    main()
