"""
Claim Enforcement Package.

A run executes every registered claim once, isolates failures per claim,
and aggregates the reports into a single blocking verdict.
"""

from .aggregator import ReportAggregator
from .executor import CheckExecutor
from .models import CheckContext, Claim, ClaimStatus, Report, RunResult, Summary
from .registry import default_claims, load_claims

__all__ = [
    "CheckContext",
    "CheckExecutor",
    "Claim",
    "ClaimStatus",
    "Report",
    "ReportAggregator",
    "RunResult",
    "Summary",
    "default_claims",
    "load_claims",
]
