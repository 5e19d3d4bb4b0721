"""
Waiver Validation Package.

A waiver suppresses one claim's blocking failure until its expiry date.
Waivers are authored outside the engine; this package only validates and evaluates them.
"""

from .loader import WaiverFile, WaiverRegistry, load_schema, load_waivers
from .validator import Waiver, validate

__all__ = [
    "Waiver",
    "WaiverFile",
    "WaiverRegistry",
    "load_schema",
    "load_waivers",
    "validate",
]
