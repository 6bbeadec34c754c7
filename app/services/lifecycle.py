"""Promotes pending events to ongoing as they approach their scheduled time."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Callable

from app.domain.models import Event, EventStatus
from app.domain.timeparse import as_utc
from app.observability import get_logger
from app.repos.memory import EventRepository
from app.services.broadcaster import Broadcaster
from app.services.reminders import build_reminder

log = get_logger(__name__)

REMINDER_HORIZON = timedelta(minutes=5)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class LifecycleScheduler:
    """Drives the automatic ``pending -> ongoing`` transition.

    Every other transition is an explicit ``set_status`` call made by the
    caller of the store.
    """

    def __init__(
        self,
        repo: EventRepository,
        broadcaster: Broadcaster,
        horizon: timedelta = REMINDER_HORIZON,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self.repo = repo
        self.broadcaster = broadcaster
        self.horizon = horizon
        self._clock = clock

    def tick(self, now: datetime | None = None) -> list[Event]:
        """Remind subscribers about every pending event inside the horizon, then mark it ongoing.

        The reminder is broadcast before the status write, so it reflects the
        event as scanned.  Returns the events that were reminded.
        """
        current_time = as_utc(now or self._clock())
        due = self.repo.scan_due_soon(current_time, self.horizon)
        for event in due:
            delivered = self.broadcaster.broadcast(build_reminder(event))
            self.repo.set_status(event.id, EventStatus.ONGOING)
            log.info("lifecycle.reminded", event_id=event.id, delivered=delivered)

        log.debug("lifecycle.tick", time=current_time.isoformat(), reminded=len(due))
        return due

    async def run(self) -> None:
        self.tick()
