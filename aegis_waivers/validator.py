"""
aegis_waivers/validator.py - Waiver Gate

Responsibilities:
- Required-field presence (schema-declared)
- Justification length (>= 20 characters)
- Expiry format (YYYY-MM-DD, real calendar date)
- Activity evaluation against an as-of date

All rules run independently: every violation is collected, nothing short-circuits.
A waiver that is not structurally valid can never suppress a claim.
"""
import re
from datetime import date
from typing import Any, Dict, List, Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field


MIN_JUSTIFICATION_LENGTH = 20

EXPIRY_REGEX = re.compile(r"^\d{4}-\d{2}-\d{2}$")

MSG_MISSING = "Missing required: {field}"
MSG_JUSTIFICATION = "Justification must be at least 20 characters."
MSG_EXPIRY = "Expiry must be date (YYYY-MM-DD)."
MSG_NOT_MAPPING = "Waiver must be a mapping of fields."


class Waiver(BaseModel):
    """
    Typed view of a structurally valid waiver record.

    Only built after validate() returned no violations; schema-declared extra
    fields (approver, ticket, ...) are carried through untouched.
    """
    model_config = ConfigDict(extra="allow", populate_by_name=True, frozen=True)

    claim_id: str = Field(..., alias="claimId")
    justification: str
    expiry: date

    def is_active(self, as_of: date) -> bool:
        """A waiver is active through the end of its expiry day."""
        return self.expiry >= as_of


def _parse_expiry(value: Any) -> Optional[date]:
    text = str(value)
    if not EXPIRY_REGEX.match(text):
        return None
    try:
        return date.fromisoformat(text)
    except ValueError:
        return None


def validate(record: Any, schema: Mapping[str, Any]) -> List[str]:
    """
    Validate a waiver record against a schema document plus the semantic rules.

    Parameters:
        record: Parsed waiver document (normally a mapping).
        schema (Mapping[str, Any]): Schema document; its `required` list names fields that must be present.

    Returns:
        List[str]: Violation messages in rule order; empty when the record is structurally valid.
    """
    if not isinstance(record, Mapping):
        return [MSG_NOT_MAPPING]

    violations: List[str] = []

    for field_name in schema.get("required") or []:
        if field_name not in record:
            violations.append(MSG_MISSING.format(field=field_name))

    justification = record.get("justification")
    if justification is not None and len(str(justification)) < MIN_JUSTIFICATION_LENGTH:
        violations.append(MSG_JUSTIFICATION)

    expiry = record.get("expiry")
    if expiry is not None and _parse_expiry(expiry) is None:
        violations.append(MSG_EXPIRY)

    return violations


def to_waiver(record: Mapping[str, Any]) -> Optional[Waiver]:
    """
    Build a typed Waiver from a record that already passed validate().

    Returns None when the record lacks the fields activity evaluation needs
    (a schema may not require claimId/expiry, but such a waiver cannot suppress anything).
    """
    if not all(record.get(k) is not None for k in ("claimId", "justification", "expiry")):
        return None
    expiry = _parse_expiry(record["expiry"])
    if expiry is None:
        return None
    # YAML allows non-string keys (`42: note`); extra fields are carried by name
    data: Dict[str, Any] = {str(k): v for k, v in record.items()}
    data["claimId"] = str(record["claimId"])
    data["justification"] = str(record["justification"])
    data["expiry"] = expiry
    return Waiver.model_validate(data)
