"""
aegis_core/errors.py - Error Taxonomy (Machine-Enforced)

Errors are contracts, not strings.

Recovery policy per code:
- CHECK_ERROR: recovered into a Report with status=error, never aborts a run
- CLAIM_FAILURE: run verdict with blocking failures, exit 1
- NOT_FOUND / INVALID_TRANSITION / DUPLICATE_EVENT: surfaced to the operator, exit 1
- SCHEMA_VIOLATION / PARSE_FAILURE: surfaced as violation lists
- IO_FAILURE: fatal for the invoked command, exit 2
"""
from enum import Enum
from dataclasses import dataclass
from typing import Optional, Dict, Any


class ErrorCode(str, Enum):
    # Recovered locally
    CHECK_ERROR = "CHECK_ERROR"
    CLAIM_FAILURE = "CLAIM_FAILURE"

    # Drift workflow
    NOT_FOUND = "NOT_FOUND"
    INVALID_TRANSITION = "INVALID_TRANSITION"
    DUPLICATE_EVENT = "DUPLICATE_EVENT"

    # Documents
    SCHEMA_VIOLATION = "SCHEMA_VIOLATION"
    PARSE_FAILURE = "PARSE_FAILURE"

    # Fatal
    IO_FAILURE = "IO_FAILURE"


# Process exit code per error code at the CLI boundary
EXIT_CODES: Dict[ErrorCode, int] = {
    ErrorCode.CHECK_ERROR: 1,
    ErrorCode.CLAIM_FAILURE: 1,
    ErrorCode.NOT_FOUND: 1,
    ErrorCode.INVALID_TRANSITION: 1,
    ErrorCode.DUPLICATE_EVENT: 1,
    ErrorCode.SCHEMA_VIOLATION: 1,
    ErrorCode.PARSE_FAILURE: 2,
    ErrorCode.IO_FAILURE: 2,
}


@dataclass(frozen=True)
class GovernanceError:
    """Immutable error record."""
    code: ErrorCode
    message: str
    details: Optional[Dict[str, Any]] = None

    @property
    def exit_code(self) -> int:
        return EXIT_CODES[self.code]

    def to_dict(self) -> Dict[str, Any]:
        """
        Serialize the GovernanceError into a plain dictionary suitable for external consumption.

        Returns:
            dict: Dictionary with keys:
                - code (str): string value of the error code.
                - message (str): human-readable error message.
                - details (dict): additional context; empty dict if no details were set.
        """
        return {
            "code": self.code.value,
            "message": self.message,
            "details": self.details or {},
        }


class GovernanceException(Exception):
    """Exception carrying a GovernanceError across a component boundary."""
    def __init__(self, error: GovernanceError):
        self.error = error
        super().__init__(error.message)

    @property
    def code(self) -> ErrorCode:
        return self.error.code


# Pre-defined error factories for consistency
def check_error(claim_id: str, cause: str) -> GovernanceError:
    """
    Create a GovernanceError for a check whose verification logic could not complete.

    Parameters:
        claim_id (str): The claim whose check failed to run.
        cause (str): Human-readable description of the failure cause.

    Returns:
        GovernanceError: Error with code `CHECK_ERROR`, the cause as message, and `claim_id` in details.
    """
    return GovernanceError(
        code=ErrorCode.CHECK_ERROR,
        message=cause,
        details={"claim_id": claim_id},
    )


def not_found(event_id: str) -> GovernanceError:
    return GovernanceError(
        code=ErrorCode.NOT_FOUND,
        message="Drift event not found",
        details={"id": event_id},
    )


def invalid_transition(event_id: str, current: str, requested: str) -> GovernanceError:
    """
    Create a GovernanceError for a review of an already-resolved drift event.

    Parameters:
        event_id (str): Identifier of the drift event.
        current (str): The resolution action already recorded.
        requested (str): The resolution action the reviewer asked for.

    Returns:
        GovernanceError: Error with code `INVALID_TRANSITION` and details naming both actions.
    """
    return GovernanceError(
        code=ErrorCode.INVALID_TRANSITION,
        message=f"Drift event {event_id} is already {current}; resolution is final",
        details={"id": event_id, "current": current, "requested": requested},
    )


def duplicate_event(event_id: str) -> GovernanceError:
    return GovernanceError(
        code=ErrorCode.DUPLICATE_EVENT,
        message=f"Drift event {event_id} already exists in the log",
        details={"id": event_id},
    )


def claim_failure(claim_ids) -> GovernanceError:
    return GovernanceError(
        code=ErrorCode.CLAIM_FAILURE,
        message=f"{len(claim_ids)} blocking claim(s) failed: {', '.join(claim_ids)}",
        details={"blockingFailures": list(claim_ids)},
    )


def schema_violation(source: str, violations: list) -> GovernanceError:
    return GovernanceError(
        code=ErrorCode.SCHEMA_VIOLATION,
        message=f"{source}: {len(violations)} violation(s)",
        details={"source": source, "violations": list(violations)},
    )


def parse_failure(path: str, reason: str) -> GovernanceError:
    """
    Create a GovernanceError for a malformed document (waiver, drift log, schema, claims config).

    Parameters:
        path (str): The document that could not be parsed.
        reason (str): Parser or validation message.

    Returns:
        GovernanceError: Error with code `PARSE_FAILURE`, and `path` / `reason` in details.
    """
    return GovernanceError(
        code=ErrorCode.PARSE_FAILURE,
        message=f"Cannot parse {path}: {reason}",
        details={"path": path, "reason": reason},
    )


def io_failure(path: str, reason: str) -> GovernanceError:
    return GovernanceError(
        code=ErrorCode.IO_FAILURE,
        message=f"Cannot access {path}: {reason}",
        details={"path": path, "reason": reason},
    )
