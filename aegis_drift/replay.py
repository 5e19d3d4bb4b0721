"""
replay.py - Deterministic drift replay.

CRITICAL INVARIANTS:
1. Replay is READ-ONLY: it never writes the log, even in AUTO fix mode
2. Same stored state + same arguments -> byte-identical output
3. No wall-clock values, random ids or environment data in the output
4. Events appear in append order; summary keys appear in severity order
"""

import hashlib
import json
from typing import Any, Dict, List, Optional

from .models import DriftEvent, FixMode, ReviewState, Severity
from .store import DriftLogStore


def canonical_json(document: Any) -> str:
    """Sorted keys, compact separators, UTF-8 text."""
    return json.dumps(document, sort_keys=True, separators=(",", ":"), ensure_ascii=False)


def proposed_action(event: DriftEvent, fix_mode: FixMode) -> Optional[str]:
    """
    Follow-up proposed for an event under a fix mode.

    Resolved events never get a proposal: their resolution is final.
    """
    if not event.is_pending or fix_mode == FixMode.REPORT:
        return None
    if fix_mode == FixMode.GUIDED:
        return "review"
    if event.severity.at_least(Severity.HIGH):
        return "escalate"
    return "approve"


def _frame(event: DriftEvent, fix_mode: FixMode) -> Dict[str, Any]:
    return {
        "id": event.id,
        "severity": event.severity.value,
        "timestamp": event.timestamp,
        "detail": event.detail,
        "state": event.state.value,
        "proposedAction": proposed_action(event, fix_mode),
    }


def build_replay(events: List[DriftEvent], blueprint_id: str, fix_mode: FixMode) -> Dict[str, Any]:
    """
    Derive the replay document for one blueprint from a list of events.

    Parameters:
        events (List[DriftEvent]): Events in append order (normally the whole log).
        blueprint_id (str): Blueprint whose events are replayed.
        fix_mode (FixMode): Proposal strategy for pending events.

    Returns:
        Dict[str, Any]: Document with keys `blueprintId`, `fixMode`, `events`, `summary`, `digest`.
        `digest` is SHA-256 over the canonical JSON of `events`.
    """
    fix_mode = FixMode(fix_mode)
    selected = [e for e in events if e.blueprint_id == blueprint_id]
    frames = [_frame(e, fix_mode) for e in selected]

    by_severity = {s.value: 0 for s in Severity}
    for event in selected:
        by_severity[event.severity.value] += 1

    summary = {
        "total": len(selected),
        "pending": sum(1 for e in selected if e.state == ReviewState.PENDING),
        "approved": sum(1 for e in selected if e.state == ReviewState.APPROVED),
        "rejected": sum(1 for e in selected if e.state == ReviewState.REJECTED),
        "bySeverity": by_severity,
    }

    digest = hashlib.sha256(canonical_json(frames).encode("utf-8")).hexdigest()

    return {
        "blueprintId": blueprint_id,
        "fixMode": fix_mode.value,
        "events": frames,
        "summary": summary,
        "digest": digest,
    }


def replay(store: DriftLogStore, blueprint_id: str, fix_mode: FixMode = FixMode.REPORT) -> str:
    """Render the replay document for `blueprint_id` as canonical JSON text."""
    document = build_replay(store.load().events, blueprint_id, fix_mode)
    return canonical_json(document)
