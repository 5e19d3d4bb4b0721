"""
aegis_claims/models.py - Claim / Report / Summary

Machine-readable run outcomes. The `--json` document is built only from these.
"""
from enum import Enum
from dataclasses import dataclass, field
from datetime import date
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple

from aegis_core.errors import GovernanceError, claim_failure


class ClaimStatus(str, Enum):
    """Outcome of one claim's check."""
    PASS = "pass"
    FAIL = "fail"    # Check ran and found violations
    ERROR = "error"  # Check could not complete


@dataclass(frozen=True)
class CheckContext:
    """Everything a check may read. Checks must not mutate anything reachable from here."""
    root: Path
    as_of: date
    options: Dict[str, Any] = field(default_factory=dict)

    def resolve(self, relative: str) -> Path:
        return self.root / relative


# A check returns the ordered list of issue strings; empty means pass.
CheckFn = Callable[[CheckContext], List[str]]


@dataclass(frozen=True)
class Claim:
    """A named compliance assertion, fixed at registration time."""
    claim_id: str
    description: str
    check: CheckFn
    blocking: bool = True
    timeout: Optional[float] = None
    options: Dict[str, Any] = field(default_factory=dict, hash=False, compare=False)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "claimId": self.claim_id,
            "description": self.description,
            "blocking": self.blocking,
        }


@dataclass(frozen=True)
class Report:
    """
    Result of one claim in one run.

    Invariant: issues is empty iff status is PASS.
    """
    claim_id: str
    status: ClaimStatus
    issues: Tuple[str, ...] = ()

    def __post_init__(self):
        if (self.status == ClaimStatus.PASS) != (len(self.issues) == 0):
            raise ValueError(
                f"Report for {self.claim_id}: status {self.status.value} "
                f"inconsistent with {len(self.issues)} issue(s)"
            )

    @classmethod
    def from_issues(cls, claim_id: str, issues: Sequence[str]) -> "Report":
        issues = tuple(str(i) for i in issues)
        status = ClaimStatus.FAIL if issues else ClaimStatus.PASS
        return cls(claim_id=claim_id, status=status, issues=issues)

    @classmethod
    def errored(cls, claim_id: str, cause: str) -> "Report":
        return cls(claim_id=claim_id, status=ClaimStatus.ERROR, issues=(cause,))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "claimId": self.claim_id,
            "status": self.status.value,
            "issues": list(self.issues),
        }


@dataclass(frozen=True)
class Summary:
    """Aggregate verdict. Derived, never persisted."""
    total: int
    passed: int
    failed: int
    errored: int
    blocking_failures: Tuple[str, ...] = ()
    waived: Tuple[str, ...] = ()

    @property
    def green(self) -> bool:
        return not self.blocking_failures

    def to_dict(self) -> Dict[str, Any]:
        return {
            "total": self.total,
            "pass": self.passed,
            "fail": self.failed,
            "error": self.errored,
            "blockingFailures": list(self.blocking_failures),
        }


@dataclass(frozen=True)
class RunResult:
    """Summary plus the full report sequence, in claim registration order."""
    summary: Summary
    reports: Tuple[Report, ...]

    @property
    def failure(self) -> Optional[GovernanceError]:
        """The CLAIM_FAILURE record for a blocked run; None when green."""
        if self.summary.green:
            return None
        return claim_failure(self.summary.blocking_failures)

    @property
    def exit_code(self) -> int:
        """
        Map the run verdict to a process exit code.

        Returns:
            int: 0 when no blocking failure remains, 1 otherwise.
        """
        failure = self.failure
        return failure.exit_code if failure is not None else 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "summary": self.summary.to_dict(),
            "reports": [r.to_dict() for r in self.reports],
        }
