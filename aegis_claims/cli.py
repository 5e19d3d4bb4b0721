#!/usr/bin/env python3
"""
aegis_claims/cli.py - Command-Line Interface

Usage:
    python -m aegis_claims.cli run
    python -m aegis_claims.cli run --json
    python -m aegis_claims.cli run --json --output claims-report.json --as-of 2025-06-01
    python -m aegis_claims.cli list

Exit Codes:
    0 = no blocking failures
    1 = at least one blocking failure
    2 = claims config, waiver schema or output unreadable/unwritable
"""
import argparse
import json
import logging
import sys
from datetime import date
from pathlib import Path

from aegis_core.config import settings
from aegis_core.errors import GovernanceException

from aegis_waivers.loader import load_schema, load_waivers

from .aggregator import ReportAggregator
from .executor import CheckExecutor
from .models import CheckContext, ClaimStatus
from .registry import load_claims

logger = logging.getLogger(__name__)

EXIT_FATAL = 2

STATUS_MARKS = {
    ClaimStatus.PASS: "PASS ",
    ClaimStatus.FAIL: "FAIL ",
    ClaimStatus.ERROR: "ERROR",
}


def _iso_date(value: str) -> date:
    try:
        return date.fromisoformat(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid date '{value}' (expected YYYY-MM-DD)")


def main(argv=None):
    """
    Parse command-line arguments and dispatch the aegis-claims command-line interface.

    Subcommands:
    - run: execute every registered claim, print the report, exit with the verdict
    - list: print the registered claims
    """
    parser = argparse.ArgumentParser(
        prog="aegis-claims",
        description="Run governance claims and report a blocking verdict"
    )
    parser.add_argument("--root", default=settings.PROJECT_ROOT, help="Project root")
    parser.add_argument(
        "--config",
        default=settings.CLAIMS_CONFIG_PATH,
        help="Claims document, relative to the project root"
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    run_parser = subparsers.add_parser("run", help="Run all registered claims")
    run_parser.add_argument("--json", action="store_true", help="Emit the machine-readable report on stdout")
    run_parser.add_argument("--output", "-o", help="Also write the JSON report to this path")
    run_parser.add_argument(
        "--as-of",
        type=_iso_date,
        default=None,
        help="Evaluation date for waiver expiry (default: today)"
    )
    run_parser.add_argument("--waivers-dir", default=settings.WAIVERS_DIR, help="Waivers directory")
    run_parser.add_argument("--schema", default=settings.WAIVER_SCHEMA_PATH, help="Waiver schema document")

    list_parser = subparsers.add_parser("list", help="List registered claims")
    list_parser.add_argument("--json", action="store_true", help="Emit the claim catalogue as JSON")

    args = parser.parse_args(argv)
    logging.basicConfig(level=settings.LOG_LEVEL, format=settings.LOG_FORMAT)

    root = Path(args.root)
    try:
        claims = load_claims(root / args.config)
    except GovernanceException as e:
        print(f"Error: {e.error.message}", file=sys.stderr)
        sys.exit(EXIT_FATAL)

    if args.command == "list":
        if args.json:
            print(json.dumps([claim.to_dict() for claim in claims], indent=2))
            sys.exit(0)
        for claim in claims:
            kind = "blocking" if claim.blocking else "advisory"
            print(f"{claim.claim_id:<28} {kind:<9} {claim.description}")
        sys.exit(0)

    run_claims(args, root, claims)


def run_claims(args, root: Path, claims):
    """
    Run the claims and exit with the run's exit code.

    Behavior:
        - Executes every claim (pooled, bounded by CHECK_TIMEOUT_SECONDS / per-claim timeout).
        - Loads waivers if the waivers directory exists; an unreadable schema is fatal (exit 2).
        - With --json prints `{"summary": ..., "reports": [...]}`; otherwise a human summary.
        - Exits 0 when no blocking failure remains, 1 otherwise.
    """
    as_of = args.as_of or date.today()
    context = CheckContext(root=root, as_of=as_of)

    waivers = None
    waivers_dir = root / args.waivers_dir
    try:
        if waivers_dir.is_dir():
            waivers = load_waivers(waivers_dir, load_schema(root / args.schema))
    except GovernanceException as e:
        print(f"Error: {e.error.message}", file=sys.stderr)
        sys.exit(EXIT_FATAL)

    executor = CheckExecutor(
        context,
        timeout=settings.CHECK_TIMEOUT_SECONDS,
        max_workers=settings.CHECK_MAX_WORKERS,
    )
    reports = executor.run_all(claims)
    result = ReportAggregator(claims, waivers, as_of).aggregate(reports)
    report_dict = result.to_dict()

    if args.output:
        try:
            with open(args.output, "w") as f:
                json.dump(report_dict, f, indent=2)
        except OSError as e:
            print(f"Error: Cannot write {args.output}: {e.strerror or e}", file=sys.stderr)
            sys.exit(EXIT_FATAL)

    if result.failure is not None:
        logger.warning("%s", result.failure.message)

    if args.json:
        print(json.dumps(report_dict, indent=2))
    else:
        summary = result.summary
        print(f"\n{'='*60}")
        print(f"CLAIMS RESULT: {'PASS' if summary.green else 'BLOCKED'}")
        print(f"{'='*60}")
        for report in result.reports:
            print(f"  [{STATUS_MARKS[report.status]}] {report.claim_id}")
            for issue in report.issues:
                print(f"           - {issue}")
        print(f"\nTotal: {summary.total}, Pass: {summary.passed}, Fail: {summary.failed}, Error: {summary.errored}")
        if summary.waived:
            print(f"Waived:            {', '.join(summary.waived)}")
        if summary.blocking_failures:
            print(f"Blocking failures: {', '.join(summary.blocking_failures)}")
        print(f"\nExit Code: {result.exit_code}")

    sys.exit(result.exit_code)


if __name__ == "__main__":
    main()
