"""Appends completed events to the durable audit log."""

from __future__ import annotations

import asyncio
from pathlib import Path

import aiofiles

from app.domain.models import Event
from app.observability import get_logger
from app.repos.memory import EventRepository

log = get_logger(__name__)

DEFAULT_AUDIT_LOG = Path("event_history.log")


def format_record(event: Event) -> str:
    """One audit line: ``id,title,description,scheduled_time,status``. Fields are not escaped."""
    return ",".join(
        [
            event.id,
            event.title,
            event.description,
            event.scheduled_time.isoformat(),
            str(event.status),
        ]
    )


class CompletionLogger:
    """Writes every completed event to an append-only text file.

    By default an event that is still completed at the next run is written
    again.  With ``dedupe=True`` events are marked ``logged`` after a
    successful append and skipped afterwards.
    """

    def __init__(
        self,
        repo: EventRepository,
        path: Path = DEFAULT_AUDIT_LOG,
        dedupe: bool = False,
    ) -> None:
        self.repo = repo
        self.path = Path(path)
        self.dedupe = dedupe
        self._lock = asyncio.Lock()

    async def run(self) -> int:
        """Append the current completed events. Returns the number of records written.

        Concurrent calls are serialised so appends never interleave in the file.
        """
        async with self._lock:
            events = self.repo.scan_completed(unlogged_only=self.dedupe)
            if not events:
                return 0

            lines = "".join(format_record(event) + "\n" for event in events)
            self.path.parent.mkdir(parents=True, exist_ok=True)
            async with aiofiles.open(self.path, mode="a", encoding="utf-8") as fh:
                await fh.write(lines)

            if self.dedupe:
                self.repo.mark_logged(event.id for event in events)

        log.info("audit.appended", path=str(self.path), records=len(events))
        return len(events)
