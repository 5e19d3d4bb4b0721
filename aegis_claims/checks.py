"""
aegis_claims/checks.py - Built-in claim checks

Each check is a plain function `check(context) -> list[str]` returning the
ordered issues it found (empty list = pass). A check raises when it cannot
complete; the executor turns that into a status=error Report.

Checks are READ-ONLY. None of them writes to the project tree.
"""
import json
import logging
import re
import subprocess
from pathlib import Path
from typing import Any, Dict, List, Optional

from aegis_core.config import settings
from aegis_core.errors import GovernanceException, check_error

from aegis_drift.models import Severity
from aegis_drift.store import DriftLogStore
from aegis_waivers.loader import load_schema, load_waivers

from .models import CheckContext

logger = logging.getLogger(__name__)

# First capture group is the version
DEFAULT_VERSION_SOURCES = [
    {"path": "package.json", "pattern": r'"version"\s*:\s*"([^"]+)"'},
    {"path": "pyproject.toml", "pattern": r'(?m)^version\s*=\s*"([^"]+)"'},
]
DEFAULT_CANONICAL_SOURCE = {"path": "VERSION", "pattern": None}

# Validator process contract: 0 pass, 1 fail, 2+ error
EXIT_PASS = 0
EXIT_FAIL = 1


def _read_version(context: CheckContext, source: Dict[str, Any]) -> Optional[str]:
    """Read a version from `source`; None when the pattern does not match. Raises OSError."""
    text = context.resolve(source["path"]).read_text(encoding="utf-8")
    pattern = source.get("pattern")
    if not pattern:
        return text.strip() or None
    match = re.search(pattern, text)
    return match.group(1).strip() if match else None


def version_consistency(context: CheckContext) -> List[str]:
    """
    Compare every declared version source against the canonical one.

    Options:
        canonical: {"path": ..., "pattern": ...}  (default: whole VERSION file)
        sources: [{"path": ..., "pattern": ...}, ...]  (pattern's first group is the version)

    Returns one issue per source that is missing, has no version, or disagrees.
    Raises when the canonical source cannot be read: without it nothing can be compared.
    """
    canonical = context.options.get("canonical") or DEFAULT_CANONICAL_SOURCE
    sources = context.options.get("sources")
    if sources is None:
        sources = DEFAULT_VERSION_SOURCES

    canonical_path = canonical["path"]
    try:
        expected = _read_version(context, canonical)
    except OSError as e:
        raise GovernanceException(
            check_error("version-consistency", f"canonical version source {canonical_path} unreadable: {e.strerror or e}")
        ) from e
    if expected is None:
        raise GovernanceException(
            check_error("version-consistency", f"canonical version source {canonical_path} has no version")
        )

    issues = []
    for source in sources:
        path = source["path"]
        if not context.resolve(path).is_file():
            issues.append(f"{path}: not found (expected version {expected} from {canonical_path})")
            continue
        found = _read_version(context, source)
        if found is None:
            issues.append(f"{path}: no version found (expected {expected} from {canonical_path})")
        elif found != expected:
            issues.append(f"{path} has version {found} but {canonical_path} has {expected}")

    return issues


def waiver_integrity(context: CheckContext) -> List[str]:
    """Every waiver file validates against the waiver schema. No waivers directory -> pass."""
    waivers_dir = context.resolve(context.options.get("dir", settings.WAIVERS_DIR))
    if not waivers_dir.is_dir():
        return []
    schema = load_schema(context.resolve(context.options.get("schema", settings.WAIVER_SCHEMA_PATH)))
    return load_waivers(waivers_dir, schema).violations


def drift_review(context: CheckContext) -> List[str]:
    """
    No drift event at or above the threshold severity is still pending review.

    Options:
        log: drift log path (default settings.DRIFT_LOG_PATH)
        threshold: low | medium | high | critical (default settings.DRIFT_REVIEW_THRESHOLD)
    """
    store = DriftLogStore(context.resolve(context.options.get("log", settings.DRIFT_LOG_PATH)))
    threshold = Severity(context.options.get("threshold", settings.DRIFT_REVIEW_THRESHOLD))
    return [
        f"drift event {e.id} ({e.severity.value}) is pending review"
        for e in store.list()
        if e.is_pending and e.severity.at_least(threshold)
    ]


def _issues_from_output(stdout: str, stderr: str) -> List[str]:
    """Prefer a JSON report's `issues`; fall back to non-empty output lines."""
    try:
        document = json.loads(stdout)
    except ValueError:
        document = None

    if isinstance(document, dict) and isinstance(document.get("issues"), list):
        issues = []
        for issue in document["issues"]:
            if isinstance(issue, dict):
                code = issue.get("code")
                message = issue.get("message", "")
                issues.append(f"{code}: {message}" if code else str(message))
            else:
                issues.append(str(issue))
        if issues:
            return issues

    lines = [line.strip() for line in (stdout + "\n" + stderr).splitlines() if line.strip()]
    return lines or ["validator exited with failure and no output"]


def command(context: CheckContext) -> List[str]:
    """
    Run an external validator following the validator contract.

    Options:
        command: argv list, run with the project root as working directory
        timeout: seconds (default settings.CHECK_TIMEOUT_SECONDS)

    Exit 0 -> pass, exit 1 -> fail with issues from output, anything else -> error.
    """
    argv = context.options.get("command")
    if not argv or not isinstance(argv, list):
        raise ValueError("command check requires a non-empty 'command' list")
    timeout = float(context.options.get("timeout", settings.CHECK_TIMEOUT_SECONDS))

    try:
        completed = subprocess.run(
            [str(a) for a in argv],
            cwd=str(context.root),
            capture_output=True,
            text=True,
            timeout=timeout,
        )
    except subprocess.TimeoutExpired as e:
        raise GovernanceException(
            check_error(str(argv[0]), f"validator timed out after {timeout:g}s")
        ) from e

    if completed.returncode == EXIT_PASS:
        return []
    if completed.returncode == EXIT_FAIL:
        return _issues_from_output(completed.stdout, completed.stderr)

    detail = (completed.stderr or completed.stdout).strip().splitlines()
    raise GovernanceException(
        check_error(
            str(argv[0]),
            f"validator exited with code {completed.returncode}" + (f": {detail[-1]}" if detail else ""),
        )
    )


CHECK_TYPES = {
    "version-consistency": version_consistency,
    "waiver-integrity": waiver_integrity,
    "drift-review": drift_review,
    "command": command,
}
