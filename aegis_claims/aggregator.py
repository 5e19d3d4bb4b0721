"""
aegis_claims/aggregator.py - Report Aggregator

Turns the ordered Report sequence into a Summary and an exit code.
A failing or erroring blocking claim counts as a blocking failure unless an
active waiver exists for its claim id. No retries: each Report is final.
"""
import logging
from datetime import date
from typing import Optional, Protocol, Sequence

from .models import Claim, ClaimStatus, Report, RunResult, Summary

logger = logging.getLogger(__name__)


class WaiverLookup(Protocol):
    def is_active(self, claim_id: str, as_of: date) -> bool:
        ...


class ReportAggregator:
    """
    Aggregates one run.

    Args:
        claims: Registered claims (registration order)
        waivers: Waiver registry consulted for failing blocking claims; None means no waivers
        as_of: Evaluation date for waiver expiry
    """

    def __init__(self, claims: Sequence[Claim], waivers: Optional[WaiverLookup], as_of: date):
        self.claims = list(claims)
        self.waivers = waivers
        self.as_of = as_of

    def _waived(self, claim_id: str) -> bool:
        return self.waivers is not None and self.waivers.is_active(claim_id, self.as_of)

    def aggregate(self, reports: Sequence[Report]) -> RunResult:
        """
        Build the run result.

        Raises:
            ValueError: if the reports do not correspond one-to-one, in order, with the claims.
        """
        reports = tuple(reports)
        expected = [c.claim_id for c in self.claims]
        received = [r.claim_id for r in reports]
        if expected != received:
            raise ValueError(f"Reports {received} do not match registered claims {expected}")

        blocking_failures = []
        waived = []
        for claim, report in zip(self.claims, reports):
            if report.status == ClaimStatus.PASS or not claim.blocking:
                continue
            if self._waived(claim.claim_id):
                logger.info("Claim %s %s but is waived", claim.claim_id, report.status.value)
                waived.append(claim.claim_id)
                continue
            blocking_failures.append(claim.claim_id)

        summary = Summary(
            total=len(reports),
            passed=sum(1 for r in reports if r.status == ClaimStatus.PASS),
            failed=sum(1 for r in reports if r.status == ClaimStatus.FAIL),
            errored=sum(1 for r in reports if r.status == ClaimStatus.ERROR),
            blocking_failures=tuple(blocking_failures),
            waived=tuple(waived),
        )
        return RunResult(summary=summary, reports=reports)
