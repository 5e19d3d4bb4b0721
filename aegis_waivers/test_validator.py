"""
aegis_waivers/test_validator.py - Waiver Rule Vectors

Tests:
- Required fields reported by name
- Justification boundary (19 fails, 20 passes)
- Expiry pattern and calendar validity
- Rules collected independently
- Activity by expiry date
"""
from datetime import date

import pytest

from .validator import (
    MSG_EXPIRY,
    MSG_JUSTIFICATION,
    Waiver,
    to_waiver,
    validate,
)


SCHEMA = {"required": ["claimId", "justification", "expiry", "approver"]}


def make_waiver(**overrides) -> dict:
    record = {
        "claimId": "version-consistency",
        "justification": "Release branch pins the old docs until the 2.5 cut.",
        "expiry": "2025-01-01",
        "approver": "governance-board",
    }
    record.update(overrides)
    return record


class TestRequiredFields:

    def test_valid_record_has_no_violations(self):
        assert validate(make_waiver(), SCHEMA) == []

    def test_missing_field_is_named(self):
        record = make_waiver()
        del record["approver"]
        violations = validate(record, SCHEMA)
        assert violations == ["Missing required: approver"]

    def test_every_missing_field_reported(self):
        violations = validate({}, SCHEMA)
        for name in SCHEMA["required"]:
            assert f"Missing required: {name}" in violations

    def test_schema_without_required_list(self):
        assert validate(make_waiver(), {}) == []

    def test_non_mapping_record(self):
        assert validate(["not", "a", "mapping"], SCHEMA) != []


class TestJustification:

    def test_length_19_fails(self):
        violations = validate(make_waiver(justification="x" * 19), SCHEMA)
        assert MSG_JUSTIFICATION in violations

    def test_length_20_passes(self):
        assert validate(make_waiver(justification="x" * 20), SCHEMA) == []

    def test_empty_justification_fails(self):
        assert MSG_JUSTIFICATION in validate(make_waiver(justification=""), SCHEMA)


class TestExpiry:

    def test_valid_date_passes(self):
        assert validate(make_waiver(expiry="2025-01-01"), SCHEMA) == []

    def test_month_13_fails(self):
        assert MSG_EXPIRY in validate(make_waiver(expiry="2025-13-01"), SCHEMA)

    @pytest.mark.parametrize("expiry", ["2025/01/01", "25-01-01", "2025-1-1", "tomorrow", "2025-01-01T00:00:00Z"])
    def test_wrong_shape_fails(self, expiry):
        assert MSG_EXPIRY in validate(make_waiver(expiry=expiry), SCHEMA)

    def test_february_30_fails(self):
        assert MSG_EXPIRY in validate(make_waiver(expiry="2024-02-30"), SCHEMA)


class TestIndependentRules:

    def test_all_violations_collected(self):
        record = {"claimId": "x", "justification": "too short", "expiry": "soon"}
        violations = validate(record, SCHEMA)
        assert violations == [
            "Missing required: approver",
            MSG_JUSTIFICATION,
            MSG_EXPIRY,
        ]


class TestActivity:

    def test_typed_waiver_from_valid_record(self):
        waiver = to_waiver(make_waiver())
        assert isinstance(waiver, Waiver)
        assert waiver.claim_id == "version-consistency"
        assert waiver.expiry == date(2025, 1, 1)

    def test_extra_schema_fields_carried(self):
        waiver = to_waiver(make_waiver())
        assert waiver.model_extra["approver"] == "governance-board"

    def test_active_through_expiry_day(self):
        waiver = to_waiver(make_waiver(expiry="2025-01-01"))
        assert waiver.is_active(date(2024, 12, 31))
        assert waiver.is_active(date(2025, 1, 1))
        assert not waiver.is_active(date(2025, 1, 2))

    def test_record_without_claim_id_cannot_be_typed(self):
        record = make_waiver()
        del record["claimId"]
        assert to_waiver(record) is None
