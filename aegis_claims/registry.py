"""
aegis_claims/registry.py - Claim registry

Claims come from a YAML document (`claims:` list) or, when none exists, from
the built-in defaults. Registration order is the order reports are produced in.

Example:

    claims:
      - id: version-consistency
        description: Version is identical everywhere it is declared
        type: version-consistency
        options:
          canonical: {path: VERSION}
          sources:
            - {path: package.json, pattern: '"version"\\s*:\\s*"([^"]+)"'}
      - id: lint-contract
        type: command
        blocking: false
        timeout: 60
        options:
          command: [python, tools/check_lint.py, --json]
"""
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from aegis_core.errors import GovernanceException, io_failure, parse_failure
from aegis_core.yamlio import load_yaml

from .checks import CHECK_TYPES
from .models import Claim

logger = logging.getLogger(__name__)


class ClaimConfig(BaseModel):
    """One entry of the claims document."""
    model_config = ConfigDict(extra="forbid")

    id: str = Field(..., min_length=1)
    type: str
    description: str = ""
    blocking: bool = True
    timeout: Optional[float] = Field(None, gt=0)
    options: Dict[str, Any] = Field(default_factory=dict)

    @field_validator("type")
    @classmethod
    def _known_type(cls, value: str) -> str:
        if value not in CHECK_TYPES:
            raise ValueError(f"unknown check type '{value}' (known: {', '.join(sorted(CHECK_TYPES))})")
        return value


class ClaimsDocument(BaseModel):
    model_config = ConfigDict(extra="forbid")

    claims: List[ClaimConfig] = Field(default_factory=list)


DEFAULT_CLAIMS: List[Dict[str, Any]] = [
    {
        "id": "version-consistency",
        "type": "version-consistency",
        "description": "Version is identical in every file that declares it",
    },
    {
        "id": "waiver-integrity",
        "type": "waiver-integrity",
        "description": "Every waiver record satisfies the waiver schema",
    },
    {
        "id": "drift-review",
        "type": "drift-review",
        "description": "No high-severity drift event is awaiting review",
        "blocking": False,
    },
]


def build_claims(entries: List[ClaimConfig]) -> List[Claim]:
    """
    Turn validated config entries into Claims.

    Raises:
        ValueError: if two entries share an id.
    """
    seen = set()
    claims = []
    for entry in entries:
        if entry.id in seen:
            raise ValueError(f"duplicate claim id '{entry.id}'")
        seen.add(entry.id)

        options = dict(entry.options)
        if entry.type == "command" and entry.timeout is not None:
            options.setdefault("timeout", entry.timeout)

        claims.append(Claim(
            claim_id=entry.id,
            description=entry.description or entry.id,
            check=CHECK_TYPES[entry.type],
            blocking=entry.blocking,
            timeout=entry.timeout,
            options=options,
        ))
    return claims


def default_claims() -> List[Claim]:
    return build_claims([ClaimConfig.model_validate(c) for c in DEFAULT_CLAIMS])


def load_claims(path: Path) -> List[Claim]:
    """
    Load the registered claims from a YAML claims document.

    Parameters:
        path (Path): Claims document. When it does not exist the built-in defaults are used.

    Returns:
        List[Claim]: Claims in registration order.

    Raises:
        GovernanceException: IO_FAILURE if the file exists but cannot be read, PARSE_FAILURE if it is
            not valid YAML, does not match the claims document shape, or repeats a claim id.
    """
    path = Path(path)
    if not path.exists():
        logger.info("No claims config at %s; using built-in claims", path)
        return default_claims()

    try:
        document = load_yaml(path.read_text(encoding="utf-8"))
    except OSError as e:
        raise GovernanceException(io_failure(str(path), e.strerror or str(e))) from e
    except (yaml.YAMLError, UnicodeDecodeError) as e:
        raise GovernanceException(parse_failure(str(path), str(e))) from e

    try:
        parsed = ClaimsDocument.model_validate(document or {})
        claims = build_claims(parsed.claims)
    except ValidationError as e:
        first = e.errors()[0]
        location = ".".join(str(p) for p in first["loc"])
        raise GovernanceException(parse_failure(str(path), f"{location}: {first['msg']}")) from e
    except ValueError as e:
        raise GovernanceException(parse_failure(str(path), str(e))) from e

    logger.info("Registered %d claim(s) from %s", len(claims), path)
    return claims
