"""In-memory event store."""

from __future__ import annotations

from datetime import datetime, timedelta
from typing import Iterable

from app.domain.errors import ConflictError, NotFoundError
from app.domain.models import Event, EventStatus
from app.domain.timeparse import as_utc
from app.observability import get_logger
from app.services.conflicts import CONFLICT_WINDOW, find_conflicts

log = get_logger(__name__)


class EventRepository:
    """Dict-backed store for Event instances, keyed by id.

    Events are never removed.  Every method is synchronous, so on a single
    event loop each call is atomic with respect to the others.
    """

    def __init__(self, conflict_window: timedelta = CONFLICT_WINDOW) -> None:
        self.conflict_window = conflict_window
        self._store: dict[str, Event] = {}

    def __len__(self) -> int:
        return len(self._store)

    def create(self, title: str, description: str, scheduled_time: datetime) -> str:
        """Insert a new pending event and return its id.

        Raises ``ConflictError`` without inserting anything if a non-completed
        event is scheduled within the conflict window.
        """
        event = Event(title=title, description=description, scheduled_time=scheduled_time)
        conflicts = find_conflicts(
            event.scheduled_time, self._store.values(), self.conflict_window
        )
        if conflicts:
            conflicting_ids = [c.id for c in conflicts]
            log.info(
                "event.conflict",
                scheduled_time=event.scheduled_time.isoformat(),
                conflicting_ids=conflicting_ids,
            )
            raise ConflictError(conflicting_ids)

        self._store[event.id] = event
        log.info(
            "event.created",
            event_id=event.id,
            scheduled_time=event.scheduled_time.isoformat(),
        )
        return event.id

    def get(self, event_id: str) -> Event | None:
        event = self._store.get(event_id)
        return event.model_copy() if event is not None else None

    def list(self, status: str | None = None) -> list[Event]:
        """Snapshot of all events, or those whose status equals *status*, in insertion order."""
        return [
            e.model_copy()
            for e in self._store.values()
            if status is None or e.status == status
        ]

    def set_status(self, event_id: str, status: str) -> Event:
        event = self._store.get(event_id)
        if event is None:
            raise NotFoundError(event_id)
        previous = event.status
        event.status = str(status)
        log.info(
            "event.status_changed",
            event_id=event_id,
            previous=str(previous),
            status=str(status),
        )
        return event.model_copy()

    def scan_due_soon(self, now: datetime, horizon: timedelta) -> list[Event]:
        """Pending events scheduled at or before ``now + horizon``. Does not mutate."""
        threshold = as_utc(now) + horizon
        return [
            e.model_copy()
            for e in self._store.values()
            if e.status == EventStatus.PENDING and e.scheduled_time <= threshold
        ]

    def scan_completed(self, unlogged_only: bool = False) -> list[Event]:
        return [
            e.model_copy()
            for e in self._store.values()
            if e.status == EventStatus.COMPLETED and not (unlogged_only and e.logged)
        ]

    def mark_logged(self, event_ids: Iterable[str]) -> None:
        for event_id in event_ids:
            event = self._store.get(event_id)
            if event is not None:
                event.logged = True
