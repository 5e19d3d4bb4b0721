"""
aegis_claims/test_aggregator.py - Summary and Blocking Verdict

Tests:
- pass + fail + error == total
- Blocking failure without waiver is listed, with an active waiver it is not
- Expired / invalid waivers do not suppress
- Non-blocking claims never block
- Exit code contract
"""
import json
from datetime import date
from pathlib import Path

import pytest

from aegis_core.errors import ErrorCode
from aegis_waivers.loader import load_waivers

from .aggregator import ReportAggregator
from .models import Claim, ClaimStatus, Report


SCHEMA = {"required": ["claimId", "justification", "expiry"]}
AS_OF = date(2025, 6, 1)


def make_claim(claim_id, blocking=True):
    return Claim(claim_id=claim_id, description=claim_id, check=lambda context: [], blocking=blocking)


def write_waiver(directory: Path, claim_id: str, expiry: str, justification: str = "Accepted risk until vendor patch ships.") -> None:
    directory.mkdir(exist_ok=True)
    record = {"claimId": claim_id, "justification": justification, "expiry": expiry}
    (directory / f"{claim_id}-{expiry}.json").write_text(json.dumps(record), encoding="utf-8")


CLAIMS = [
    make_claim("version-consistency"),
    make_claim("provenance"),
    make_claim("path-validation", blocking=False),
    make_claim("waiver-integrity"),
]

REPORTS = [
    Report.from_issues("version-consistency", ["README.md has version 2.4.0 but VERSION has 2.5.0"]),
    Report.errored("provenance", "RuntimeError: boom"),
    Report.from_issues("path-validation", ["stray file"]),
    Report.from_issues("waiver-integrity", []),
]


class TestSummary:

    def test_counts_sum_to_total(self):
        result = ReportAggregator(CLAIMS, None, AS_OF).aggregate(REPORTS)
        s = result.summary
        assert (s.total, s.passed, s.failed, s.errored) == (4, 1, 2, 1)
        assert s.passed + s.failed + s.errored == s.total

    def test_blocking_failures_in_registration_order(self):
        result = ReportAggregator(CLAIMS, None, AS_OF).aggregate(REPORTS)
        assert result.summary.blocking_failures == ("version-consistency", "provenance")
        assert result.exit_code == 1

    def test_blocked_run_carries_claim_failure(self):
        failure = ReportAggregator(CLAIMS, None, AS_OF).aggregate(REPORTS).failure
        assert failure.code == ErrorCode.CLAIM_FAILURE
        assert failure.details == {"blockingFailures": ["version-consistency", "provenance"]}
        assert failure.exit_code == 1

    def test_all_pass_is_green(self):
        claims = [make_claim("a"), make_claim("b")]
        reports = [Report.from_issues("a", []), Report.from_issues("b", [])]
        result = ReportAggregator(claims, None, AS_OF).aggregate(reports)
        assert result.summary.green
        assert result.failure is None
        assert result.exit_code == 0

    def test_non_blocking_failure_is_green(self):
        claims = [make_claim("a", blocking=False)]
        result = ReportAggregator(claims, None, AS_OF).aggregate([Report.from_issues("a", ["x"])])
        assert result.exit_code == 0

    def test_mismatched_reports_rejected(self):
        with pytest.raises(ValueError):
            ReportAggregator(CLAIMS, None, AS_OF).aggregate(list(reversed(REPORTS)))

    def test_json_document_shape(self):
        document = ReportAggregator(CLAIMS, None, AS_OF).aggregate(REPORTS).to_dict()
        assert set(document) == {"summary", "reports"}
        assert document["summary"] == {
            "total": 4, "pass": 1, "fail": 2, "error": 1,
            "blockingFailures": ["version-consistency", "provenance"],
        }
        assert document["reports"][1] == {"claimId": "provenance", "status": "error", "issues": ["RuntimeError: boom"]}


class TestWaivers:

    def test_active_waiver_suppresses(self, tmp_path):
        write_waiver(tmp_path / "waivers", "version-consistency", "2025-06-01")
        waivers = load_waivers(tmp_path / "waivers", SCHEMA)
        result = ReportAggregator(CLAIMS, waivers, AS_OF).aggregate(REPORTS)
        assert result.summary.blocking_failures == ("provenance",)
        assert result.summary.waived == ("version-consistency",)

    def test_waiver_also_suppresses_error(self, tmp_path):
        write_waiver(tmp_path / "waivers", "provenance", "2026-01-01")
        waivers = load_waivers(tmp_path / "waivers", SCHEMA)
        result = ReportAggregator(CLAIMS, waivers, AS_OF).aggregate(REPORTS)
        assert "provenance" not in result.summary.blocking_failures

    def test_expired_waiver_does_not_suppress(self, tmp_path):
        write_waiver(tmp_path / "waivers", "version-consistency", "2025-05-31")
        waivers = load_waivers(tmp_path / "waivers", SCHEMA)
        result = ReportAggregator(CLAIMS, waivers, AS_OF).aggregate(REPORTS)
        assert "version-consistency" in result.summary.blocking_failures

    def test_short_justification_does_not_suppress(self, tmp_path):
        write_waiver(tmp_path / "waivers", "version-consistency", "2030-01-01", justification="x" * 19)
        waivers = load_waivers(tmp_path / "waivers", SCHEMA)
        result = ReportAggregator(CLAIMS, waivers, AS_OF).aggregate(REPORTS)
        assert "version-consistency" in result.summary.blocking_failures

    def test_waiver_does_not_change_counts(self, tmp_path):
        write_waiver(tmp_path / "waivers", "version-consistency", "2030-01-01")
        waivers = load_waivers(tmp_path / "waivers", SCHEMA)
        result = ReportAggregator(CLAIMS, waivers, AS_OF).aggregate(REPORTS)
        assert result.summary.failed == 2
        assert result.reports[0].status == ClaimStatus.FAIL
