"""
aegis_claims/executor.py - Check Executor

Guarantees:
- Exactly one Report per Claim
- Never raises: any failure inside a check becomes a status=error Report
- Bounded: a check that outlives its timeout becomes a status=error Report
- Deterministic order: reports follow registration order, not completion order

Checks are read-only and independent, so they run on a thread pool.
"""
import logging
import threading
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Dict, List, Optional, Sequence

from aegis_core.errors import GovernanceException

from .models import CheckContext, Claim, Report

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_SECONDS = 30.0
DEFAULT_MAX_WORKERS = 4


class CheckTimeout(Exception):
    """A check did not finish within its time budget."""


def _call_with_timeout(claim: Claim, context: CheckContext, timeout: float) -> List[str]:
    """
    Run claim.check(context) on a daemon thread and wait at most `timeout` seconds.

    A timed-out check keeps running in the background but its result is discarded;
    the daemon flag keeps it from holding the process open.
    """
    outcome: Dict[str, Any] = {}

    def target():
        try:
            outcome["issues"] = claim.check(context)
        except Exception as e:
            outcome["error"] = e

    worker = threading.Thread(target=target, name=f"check-{claim.claim_id}", daemon=True)
    worker.start()
    worker.join(timeout)

    if worker.is_alive():
        raise CheckTimeout(f"check exceeded timeout of {timeout:g}s")
    if "error" in outcome:
        raise outcome["error"]
    return outcome["issues"]


class CheckExecutor:
    """Runs claims and converts every outcome into a Report."""

    def __init__(
        self,
        context: CheckContext,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        max_workers: int = DEFAULT_MAX_WORKERS,
    ):
        self.context = context
        self.timeout = timeout
        self.max_workers = max(1, max_workers)

    def _context_for(self, claim: Claim) -> CheckContext:
        if not claim.options:
            return self.context
        return CheckContext(root=self.context.root, as_of=self.context.as_of, options=dict(claim.options))

    def run_one(self, claim: Claim) -> Report:
        """
        Execute one claim's check and return its Report.

        Parameters:
            claim (Claim): The claim to verify.

        Returns:
            Report: `pass` when the check returned no issues, `fail` with the issues otherwise,
            `error` with a single cause when the check raised or timed out.
        """
        timeout = claim.timeout if claim.timeout is not None else self.timeout
        try:
            issues = _call_with_timeout(claim, self._context_for(claim), timeout)
            if isinstance(issues, (str, bytes)) or not isinstance(issues, (list, tuple)):
                raise TypeError(f"check returned {type(issues).__name__}, expected a list of issues")
            report = Report.from_issues(claim.claim_id, issues)
        except CheckTimeout as e:
            logger.warning("Claim %s timed out: %s", claim.claim_id, e)
            report = Report.errored(claim.claim_id, f"Timeout: {e}")
        except GovernanceException as e:
            logger.warning("Claim %s could not complete: %s", claim.claim_id, e.error.message)
            report = Report.errored(claim.claim_id, f"{e.error.code.value}: {e.error.message}")
        except Exception as e:
            logger.exception("Claim '%s' raised exception during check", claim.claim_id)
            report = Report.errored(claim.claim_id, f"{type(e).__name__}: {e}")

        logger.debug("Claim %s -> %s", claim.claim_id, report.status.value)
        return report

    def run_all(self, claims: Sequence[Claim], parallel: Optional[bool] = None) -> List[Report]:
        """
        Execute every claim; reports come back in registration order.

        Parameters:
            claims (Sequence[Claim]): Registered claims, in registration order.
            parallel (Optional[bool]): Force sequential (False) or pooled (True) execution;
                defaults to pooled when more than one worker is configured.
        """
        if parallel is None:
            parallel = self.max_workers > 1
        if not parallel or len(claims) <= 1:
            return [self.run_one(c) for c in claims]

        with ThreadPoolExecutor(max_workers=self.max_workers, thread_name_prefix="claims") as pool:
            # map() yields in submission order regardless of completion order
            return list(pool.map(self.run_one, claims))
