"""
aegis_claims/test_executor.py - Failure Isolation and Ordering

Tests:
- One report per claim, in registration order (pooled and sequential)
- Exceptions become status=error reports, the run continues
- Timeouts become status=error reports
- Report invariant: issues empty iff pass
"""
import time
from datetime import date
from pathlib import Path

import pytest

from aegis_core.errors import GovernanceException, check_error

from .executor import CheckExecutor
from .models import CheckContext, Claim, ClaimStatus, Report


def passing(context):
    return []


def failing(context):
    return ["first violation", "second violation"]


def crashing(context):
    raise RuntimeError("disk on fire")


def slow(context):
    time.sleep(2.0)
    return []


def make_claim(claim_id, check, **kwargs):
    return Claim(claim_id=claim_id, description=claim_id, check=check, **kwargs)


@pytest.fixture
def executor(tmp_path: Path) -> CheckExecutor:
    return CheckExecutor(CheckContext(root=tmp_path, as_of=date(2025, 1, 1)), timeout=5.0, max_workers=4)


class TestRunOne:

    def test_pass(self, executor):
        report = executor.run_one(make_claim("a", passing))
        assert report.status == ClaimStatus.PASS
        assert report.issues == ()

    def test_fail_keeps_issue_order(self, executor):
        report = executor.run_one(make_claim("a", failing))
        assert report.status == ClaimStatus.FAIL
        assert report.issues == ("first violation", "second violation")

    def test_exception_becomes_error(self, executor):
        report = executor.run_one(make_claim("a", crashing))
        assert report.status == ClaimStatus.ERROR
        assert len(report.issues) == 1
        assert "disk on fire" in report.issues[0]

    def test_governance_exception_becomes_error(self, executor):
        def check(context):
            raise GovernanceException(check_error("a", "canonical source missing"))

        report = executor.run_one(make_claim("a", check))
        assert report.status == ClaimStatus.ERROR
        assert report.issues == ("CHECK_ERROR: canonical source missing",)

    def test_timeout_becomes_error(self, executor):
        started = time.monotonic()
        report = executor.run_one(make_claim("a", slow, timeout=0.1))
        assert time.monotonic() - started < 1.5
        assert report.status == ClaimStatus.ERROR
        assert report.issues[0].startswith("Timeout:")

    def test_non_list_result_becomes_error(self, executor):
        report = executor.run_one(make_claim("a", lambda context: "oops"))
        assert report.status == ClaimStatus.ERROR

    def test_missing_return_becomes_error(self, executor):
        report = executor.run_one(make_claim("a", lambda context: None))
        assert report.status == ClaimStatus.ERROR
        assert report.issues == ("TypeError: check returned NoneType, expected a list of issues",)

    def test_claim_options_reach_check(self, executor):
        seen = {}

        def check(context):
            seen.update(context.options)
            return []

        executor.run_one(make_claim("a", check, options={"threshold": "high"}))
        assert seen == {"threshold": "high"}


class TestRunAll:

    def test_one_report_per_claim_in_registration_order(self, executor):
        def delayed(seconds):
            def check(context):
                time.sleep(seconds)
                return []
            return check

        claims = [make_claim(f"c{i}", delayed(0.05 * (5 - i))) for i in range(5)]
        reports = executor.run_all(claims)
        assert [r.claim_id for r in reports] == [c.claim_id for c in claims]

    def test_broken_claim_does_not_abort_run(self, executor):
        claims = [make_claim("a", passing), make_claim("b", crashing), make_claim("c", failing)]
        reports = executor.run_all(claims)
        assert [r.status for r in reports] == [ClaimStatus.PASS, ClaimStatus.ERROR, ClaimStatus.FAIL]

    def test_sequential_matches_parallel(self, executor):
        claims = [make_claim("a", passing), make_claim("b", crashing), make_claim("c", failing)]
        assert executor.run_all(claims, parallel=False) == executor.run_all(claims, parallel=True)

    def test_empty_registry(self, executor):
        assert executor.run_all([]) == []


class TestReportInvariant:

    def test_pass_with_issues_rejected(self):
        with pytest.raises(ValueError):
            Report(claim_id="a", status=ClaimStatus.PASS, issues=("x",))

    def test_fail_without_issues_rejected(self):
        with pytest.raises(ValueError):
            Report(claim_id="a", status=ClaimStatus.FAIL, issues=())

    def test_to_dict_shape(self):
        assert Report.from_issues("a", ["x"]).to_dict() == {"claimId": "a", "status": "fail", "issues": ["x"]}
