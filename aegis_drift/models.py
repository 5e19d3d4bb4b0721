"""
models.py - Drift event data structures.

Closed variant sets: severity, resolution action, fix mode.
REQUIRED: enums, not free strings. Unknown values and unknown fields are
rejected when the log is loaded, not carried through.
"""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class Severity(str, Enum):
    """Ordered drift severity: low < medium < high < critical."""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"

    @property
    def rank(self) -> int:
        return _SEVERITY_ORDER.index(self)

    def at_least(self, other: "Severity") -> bool:
        return self.rank >= other.rank


_SEVERITY_ORDER = [Severity.LOW, Severity.MEDIUM, Severity.HIGH, Severity.CRITICAL]


class ResolutionAction(str, Enum):
    APPROVED = "approved"
    REJECTED = "rejected"


class ReviewState(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class FixMode(str, Enum):
    """
    How replay proposes follow-up for pending events.

    - REPORT: no proposals
    - GUIDED: every pending event is proposed for human review
    - AUTO: low/medium pending events proposed for approval, high/critical escalated
    """
    REPORT = "report"
    GUIDED = "guided"
    AUTO = "auto"


class Resolution(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    action: ResolutionAction


class DriftEvent(BaseModel):
    """
    One detected deviation.

    Lifecycle: appended by a detector with no resolution (pending), resolved
    exactly once by a reviewer, never deleted.
    """
    model_config = ConfigDict(extra="forbid", populate_by_name=True)

    id: str
    severity: Severity
    timestamp: str
    detail: str = ""
    blueprint_id: Optional[str] = Field(None, alias="blueprintId")
    resolution: Optional[Resolution] = None

    @field_validator("id", "timestamp", "detail", mode="before")
    @classmethod
    def _as_text(cls, value):
        # YAML hands back ints/floats for bare ids and numeric details
        if value is None or isinstance(value, (dict, list)):
            return value
        return str(value)

    @property
    def state(self) -> ReviewState:
        if self.resolution is None:
            return ReviewState.PENDING
        return ReviewState(self.resolution.action.value)

    @property
    def is_pending(self) -> bool:
        return self.resolution is None

    def to_document(self) -> dict:
        """Serialize for the log file: aliases, only the fields the record carries."""
        return self.model_dump(mode="json", by_alias=True, exclude_unset=True, exclude_none=True)
