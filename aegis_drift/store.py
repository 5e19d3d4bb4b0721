"""
aegis_drift/store.py - Append-Only Drift Log

Responsibilities:
- Load/persist the whole log document (YAML, `driftEvents` sequence)
- Append detected events
- Resolve pending events exactly once
- No deletes

Every mutation is a whole-document read-modify-write performed under an
exclusive advisory lock on `<log>.lock` and written via temp file + rename,
so concurrent reviewers serialize and a crash never leaves a half-written log.
Reads are lock-free snapshots.
"""
import fcntl
import logging
import os
import tempfile
from contextlib import contextmanager
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional

import yaml
from pydantic import ValidationError

from aegis_core.errors import (
    GovernanceException,
    duplicate_event,
    invalid_transition,
    io_failure,
    not_found,
    parse_failure,
)
from aegis_core.yamlio import dump_yaml, load_yaml

from .models import DriftEvent, Resolution, ResolutionAction, Severity

logger = logging.getLogger(__name__)

EVENTS_KEY = "driftEvents"


@dataclass
class DriftLog:
    """In-memory copy of the log document."""
    events: List[DriftEvent] = field(default_factory=list)
    # Other top-level keys, preserved verbatim on rewrite
    extra: Dict[str, Any] = field(default_factory=dict)

    def find(self, event_id: str) -> Optional[DriftEvent]:
        for event in self.events:
            if event.id == event_id:
                return event
        return None

    def to_document(self) -> Dict[str, Any]:
        return {**self.extra, EVENTS_KEY: [e.to_document() for e in self.events]}


class DriftLogStore:
    """
    File-backed drift log.

    Invariants:
    - Events are NEVER deleted or reordered
    - A resolution is set at most once
    - Event ids are unique
    """

    def __init__(self, path: Path):
        self.path = Path(path)
        self.lock_path = self.path.with_name(self.path.name + ".lock")

    # --- reads ---

    def load(self) -> DriftLog:
        """
        Read and validate the whole log document.

        A missing file is an empty log; reading never creates it.

        Raises:
            GovernanceException: IO_FAILURE when the file exists but cannot be read,
                PARSE_FAILURE when it is not YAML, not a mapping, or holds an invalid event.
        """
        try:
            raw = self.path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return DriftLog()
        except OSError as e:
            raise GovernanceException(io_failure(str(self.path), e.strerror or str(e))) from e
        except UnicodeDecodeError as e:
            raise GovernanceException(parse_failure(str(self.path), str(e))) from e

        try:
            document = load_yaml(raw)
        except yaml.YAMLError as e:
            raise GovernanceException(parse_failure(str(self.path), str(e))) from e

        if document is None:
            return DriftLog()
        if not isinstance(document, dict):
            raise GovernanceException(parse_failure(str(self.path), "log must be a mapping"))

        extra = {k: v for k, v in document.items() if k != EVENTS_KEY}
        raw_events = document.get(EVENTS_KEY) or []
        if not isinstance(raw_events, list):
            raise GovernanceException(parse_failure(str(self.path), f"'{EVENTS_KEY}' must be a sequence"))

        events = []
        for index, raw_event in enumerate(raw_events):
            try:
                events.append(DriftEvent.model_validate(raw_event))
            except ValidationError as e:
                raise GovernanceException(
                    parse_failure(str(self.path), f"{EVENTS_KEY}[{index}]: {e.errors()[0]['msg']}")
                ) from e

        return DriftLog(events=events, extra=extra)

    def list(self, severity: Optional[Severity] = None) -> List[DriftEvent]:
        """
        Return events in append order, optionally only those with exactly `severity`.

        Parameters:
            severity (Optional[Severity]): Equality filter; None returns every event.

        Returns:
            List[DriftEvent]: Matching events from a snapshot of the log.
        """
        events = self.load().events
        if severity is None:
            return events
        severity = Severity(severity)
        return [e for e in events if e.severity == severity]

    # --- mutations ---

    @contextmanager
    def _exclusive(self) -> Iterator[None]:
        """Hold an exclusive flock on the sidecar lock file for the enclosed span."""
        try:
            self.lock_path.parent.mkdir(parents=True, exist_ok=True)
            handle = open(self.lock_path, "a")
        except OSError as e:
            raise GovernanceException(io_failure(str(self.lock_path), e.strerror or str(e))) from e
        try:
            fcntl.flock(handle.fileno(), fcntl.LOCK_EX)
            yield
        finally:
            fcntl.flock(handle.fileno(), fcntl.LOCK_UN)
            handle.close()

    def _write(self, log: DriftLog) -> None:
        """Replace the log file atomically with the serialized document."""
        text = dump_yaml(log.to_document())
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(
                prefix=f".{self.path.name}.", suffix=".tmp", dir=str(self.path.parent)
            )
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as f:
                    f.write(text)
                    f.flush()
                    os.fsync(f.fileno())
                os.replace(tmp_name, self.path)
            except BaseException:
                if os.path.exists(tmp_name):
                    os.unlink(tmp_name)
                raise
        except OSError as e:
            raise GovernanceException(io_failure(str(self.path), e.strerror or str(e))) from e

    def append(self, event: DriftEvent) -> None:
        """
        Append a newly detected event.

        Raises:
            GovernanceException: DUPLICATE_EVENT if an event with the same id is already logged.
        """
        with self._exclusive():
            log = self.load()
            if log.find(event.id) is not None:
                raise GovernanceException(duplicate_event(event.id))
            log.events.append(event)
            self._write(log)
        logger.info("Drift event appended: %s (%s)", event.id, event.severity.value)

    def review(self, event_id: str, approve: bool) -> DriftEvent:
        """
        Resolve a pending event as approved or rejected and persist the whole log.

        Parameters:
            event_id (str): Identifier of the event to resolve.
            approve (bool): True records `approved`, False records `rejected`.

        Returns:
            DriftEvent: The resolved event.

        Raises:
            GovernanceException: NOT_FOUND if no event has `event_id`; INVALID_TRANSITION if the
                event is already resolved. The log file is left untouched in both cases.
        """
        action = ResolutionAction.APPROVED if approve else ResolutionAction.REJECTED
        if not self.path.exists():
            # nothing to resolve; leave the tree as found, lock file included
            raise GovernanceException(not_found(event_id))
        with self._exclusive():
            log = self.load()
            event = log.find(event_id)
            if event is None:
                raise GovernanceException(not_found(event_id))
            if event.resolution is not None:
                raise GovernanceException(
                    invalid_transition(event_id, event.resolution.action.value, action.value)
                )
            event.resolution = Resolution(action=action)
            self._write(log)
        logger.info("Drift event %s %s", event_id, action.value)
        return event
