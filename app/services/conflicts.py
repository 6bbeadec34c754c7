"""Service for detecting scheduling conflicts between events."""

from __future__ import annotations

from datetime import datetime, timedelta
from typing import Iterable

from app.domain.models import Event, EventStatus

CONFLICT_WINDOW = timedelta(hours=1)


def find_conflicts(
    candidate_time: datetime,
    existing_events: Iterable[Event],
    window: timedelta = CONFLICT_WINDOW,
) -> list[Event]:
    """Return non-completed events scheduled within *window* of the candidate.

    Conflict rule: |existing.scheduled_time - candidate_time| < window.
    Events exactly one window apart are NOT considered conflicts, and
    completed events never conflict.
    """
    return [
        event
        for event in existing_events
        if event.status != EventStatus.COMPLETED
        and abs(event.scheduled_time - candidate_time) < window
    ]
