#!/usr/bin/env python3
"""
aegis_waivers/cli.py - Command-Line Interface

Usage:
    python -m aegis_waivers.cli verify
    python -m aegis_waivers.cli verify --dir .aegis/waivers --schema .aegis/schemas/waiver.schema.json
    python -m aegis_waivers.cli verify --json

Exit Codes:
    0 = all waivers valid (or no waivers directory)
    1 = at least one waiver file has violations
    2 = schema unreadable
"""
import argparse
import json
import logging
import sys
from pathlib import Path

from aegis_core.config import settings
from aegis_core.errors import GovernanceException, schema_violation

from .loader import load_schema, load_waivers

logger = logging.getLogger(__name__)


def main(argv=None):
    """
    Parse command-line arguments and dispatch the aegis-waivers command-line interface.

    The "verify" subcommand accepts:
    - --dir: waivers directory (defaults to settings.WAIVERS_DIR)
    - --schema: waiver schema document (defaults to settings.WAIVER_SCHEMA_PATH)
    """
    parser = argparse.ArgumentParser(
        prog="aegis-waivers",
        description="Validate governance waiver records"
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    verify_parser = subparsers.add_parser("verify", help="Validate every waiver file")
    verify_parser.add_argument(
        "--dir",
        default=settings.WAIVERS_DIR,
        help="Waivers directory"
    )
    verify_parser.add_argument(
        "--schema",
        default=settings.WAIVER_SCHEMA_PATH,
        help="Waiver schema document (JSON)"
    )
    verify_parser.add_argument("--json", action="store_true", help="Emit violations as machine-readable error records")

    args = parser.parse_args(argv)
    logging.basicConfig(level=settings.LOG_LEVEL, format=settings.LOG_FORMAT)

    if args.command == "verify":
        run_verify(args)


def run_verify(args):
    """
    Run the verify subcommand and exit with its result.

    Behavior:
        - Exits 0 with an explicit message when the waivers directory does not exist.
        - Prints every violation as `<file>: <violation>` on stderr and exits 1 if any exist.
        - With --json prints `{"files": N, "errors": [...]}`, one SCHEMA_VIOLATION record per failing file.
        - Exits 2 if the schema document cannot be read or parsed.
    """
    waivers_dir = Path(args.dir)

    if not waivers_dir.is_dir():
        print(json.dumps({"files": 0, "errors": []}) if args.json else "No waivers directory; OK.")
        sys.exit(0)

    try:
        schema = load_schema(Path(args.schema))
        registry = load_waivers(waivers_dir, schema)
    except GovernanceException as e:
        print(f"Error: {e.error.message}", file=sys.stderr)
        sys.exit(e.error.exit_code)

    errors = [schema_violation(wf.name, wf.violations) for wf in registry.files if not wf.valid]

    if args.json:
        print(json.dumps({
            "files": len(registry.files),
            "errors": [error.to_dict() for error in errors],
        }, indent=2))
        sys.exit(errors[0].exit_code if errors else 0)

    if errors:
        print("Waiver verification failed:", file=sys.stderr)
        for violation in registry.violations:
            print(f" - {violation}", file=sys.stderr)
        sys.exit(errors[0].exit_code)

    print(f"Waivers verify OK ({len(registry.files)} file(s)).")
    sys.exit(0)


if __name__ == "__main__":
    main()
