"""
Drift Log Package.

Core Principles:
- APPEND-ONLY: events are recorded, resolved once, never deleted
- SERIALIZED WRITES: every mutation holds an exclusive lock for its full read-modify-write
- DETERMINISTIC REPLAY: same stored state -> same bytes
"""

from .models import DriftEvent, FixMode, Resolution, ResolutionAction, ReviewState, Severity
from .replay import build_replay, replay
from .store import DriftLog, DriftLogStore

__all__ = [
    "DriftEvent",
    "DriftLog",
    "DriftLogStore",
    "FixMode",
    "Resolution",
    "ResolutionAction",
    "ReviewState",
    "Severity",
    "build_replay",
    "replay",
]
