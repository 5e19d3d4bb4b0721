"""
Aegis Governance Core.

Shared pieces for the claim engine, the drift log and the waiver validator:
- Error taxonomy (machine-readable codes, immutable error records)
- Settings (environment / .env driven)
- YAML document I/O
"""

from .config import Settings, settings
from .errors import ErrorCode, GovernanceError, GovernanceException

__all__ = [
    "ErrorCode",
    "GovernanceError",
    "GovernanceException",
    "Settings",
    "settings",
]
