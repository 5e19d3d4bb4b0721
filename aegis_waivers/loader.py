"""
aegis_waivers/loader.py - Waiver directory scan and activity registry

Waiver files are externally authored: `*.json` or `*.yaml` / `*.yml`.
Files are processed in filename order so violation output is stable.
"""
import json
import logging
from dataclasses import dataclass, field
from datetime import date
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional

import yaml

from aegis_core.errors import GovernanceException, io_failure, parse_failure
from aegis_core.yamlio import load_yaml

from .validator import Waiver, to_waiver, validate

logger = logging.getLogger(__name__)

WAIVER_SUFFIXES = (".json", ".yaml", ".yml")

MSG_UNPARSABLE = "invalid JSON/YAML"


def load_schema(path: Path) -> Dict[str, Any]:
    """
    Read the waiver schema document.

    Raises:
        GovernanceException: IO_FAILURE if the file cannot be read, PARSE_FAILURE if it is not
            a JSON object or its `required` entry is not a list of strings.
    """
    path = Path(path)
    try:
        raw = path.read_text(encoding="utf-8")
    except OSError as e:
        raise GovernanceException(io_failure(str(path), e.strerror or str(e))) from e

    try:
        schema = json.loads(raw)
    except json.JSONDecodeError as e:
        raise GovernanceException(parse_failure(str(path), str(e))) from e

    if not isinstance(schema, dict):
        raise GovernanceException(parse_failure(str(path), "schema must be a JSON object"))
    required = schema.get("required", [])
    if not isinstance(required, list) or not all(isinstance(k, str) for k in required):
        raise GovernanceException(parse_failure(str(path), "'required' must be a list of field names"))
    return schema


def parse_waiver_text(name: str, raw: str) -> Any:
    """Parse one waiver document by file extension. Raises ValueError / yaml.YAMLError."""
    if name.endswith(".json"):
        return json.loads(raw)
    return load_yaml(raw)


@dataclass
class WaiverFile:
    """One scanned waiver file and its validation outcome."""
    name: str
    record: Optional[Mapping[str, Any]] = None
    violations: List[str] = field(default_factory=list)
    waiver: Optional[Waiver] = None

    @property
    def valid(self) -> bool:
        return not self.violations


@dataclass
class WaiverRegistry:
    """All waivers found in a directory, with activity lookups by claim id."""
    files: List[WaiverFile] = field(default_factory=list)
    directory_present: bool = True

    @property
    def violations(self) -> List[str]:
        """Every violation across all files, prefixed with the file name."""
        return [f"{wf.name}: {v}" for wf in self.files for v in wf.violations]

    def waivers_for(self, claim_id: str) -> List[Waiver]:
        return [
            wf.waiver for wf in self.files
            if wf.valid and wf.waiver is not None and wf.waiver.claim_id == claim_id
        ]

    def active_waiver(self, claim_id: str, as_of: date) -> Optional[Waiver]:
        """
        Return the structurally valid, unexpired waiver for `claim_id` with the latest expiry.

        Parameters:
            claim_id (str): Claim the waiver must reference.
            as_of (date): Evaluation date; waivers expiring before it are ignored.

        Returns:
            Optional[Waiver]: The most recent active waiver, or None.
        """
        active = [w for w in self.waivers_for(claim_id) if w.is_active(as_of)]
        if not active:
            return None
        return max(active, key=lambda w: w.expiry)

    def is_active(self, claim_id: str, as_of: date) -> bool:
        return self.active_waiver(claim_id, as_of) is not None


def load_waivers(directory: Path, schema: Mapping[str, Any]) -> WaiverRegistry:
    """
    Scan a waivers directory, parse and validate every waiver file.

    Parameters:
        directory (Path): Directory holding waiver files. A missing directory yields an empty registry.
        schema (Mapping[str, Any]): Schema document (see load_schema).

    Returns:
        WaiverRegistry: Per-file records and violations. Unparsable files carry a single
        file-level violation and are excluded from activity lookups.

    Raises:
        GovernanceException: IO_FAILURE if the directory exists but a file cannot be read.
    """
    directory = Path(directory)
    if not directory.is_dir():
        logger.debug("No waivers directory at %s", directory)
        return WaiverRegistry(directory_present=False)

    registry = WaiverRegistry()
    for path in sorted(p for p in directory.iterdir() if p.suffix in WAIVER_SUFFIXES and p.is_file()):
        try:
            raw_bytes = path.read_bytes()
        except OSError as e:
            raise GovernanceException(io_failure(str(path), e.strerror or str(e))) from e

        try:
            record = parse_waiver_text(path.name, raw_bytes.decode("utf-8"))
        except (ValueError, yaml.YAMLError):
            logger.warning("Unparsable waiver file: %s", path.name)
            registry.files.append(WaiverFile(name=path.name, violations=[MSG_UNPARSABLE]))
            continue

        if not isinstance(record, Mapping):
            registry.files.append(WaiverFile(name=path.name, violations=[MSG_UNPARSABLE]))
            continue

        violations = validate(record, schema)
        waiver = to_waiver(record) if not violations else None
        registry.files.append(
            WaiverFile(name=path.name, record=record, violations=violations, waiver=waiver)
        )

    logger.info(
        "Loaded %d waiver file(s) from %s (%d with violations)",
        len(registry.files),
        directory,
        sum(1 for wf in registry.files if not wf.valid),
    )
    return registry
