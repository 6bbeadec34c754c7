"""Repeating asyncio task with a single-flight guard."""

from __future__ import annotations

import asyncio
from typing import Any, Awaitable, Callable, Optional

from app.observability import get_logger

log = get_logger(__name__)

TickFn = Callable[[], Awaitable[Any]]


class PeriodicTask:
    """Runs ``fn`` every ``interval`` seconds on the running event loop.

    Each tick body runs as its own task.  While a body is still in flight the
    next tick is skipped rather than queued, and a body that raises is logged
    and counted without stopping the loop.  There is no drift correction and
    no catch-up for missed ticks.
    """

    def __init__(self, name: str, interval: float, fn: TickFn) -> None:
        self.name = name
        self.interval = interval
        self._fn = fn
        self._ticker: Optional[asyncio.Task] = None
        self._in_flight: Optional[asyncio.Task] = None

        self.run_count = 0
        self.skip_count = 0
        self.error_count = 0
        self.last_error: Optional[str] = None

    @property
    def running(self) -> bool:
        return self._ticker is not None and not self._ticker.done()

    @property
    def busy(self) -> bool:
        return self._in_flight is not None and not self._in_flight.done()

    # ── Lifecycle ─────────────────────────────────────────────────────────────

    def start(self) -> None:
        if self.running:
            return
        log.info("periodic.starting", task=self.name, interval=self.interval)
        self._ticker = asyncio.create_task(self._tick_loop())

    async def stop(self) -> None:
        """Cancel the timer. An in-flight tick body is awaited, not cancelled."""
        if self._ticker:
            self._ticker.cancel()
            try:
                await self._ticker
            except asyncio.CancelledError:
                pass
            self._ticker = None

        if self._in_flight is not None:
            await asyncio.gather(self._in_flight, return_exceptions=True)
            self._in_flight = None

        log.info("periodic.stopped", task=self.name, runs=self.run_count)

    # ── Ticks ─────────────────────────────────────────────────────────────────

    def trigger(self) -> Optional[asyncio.Task]:
        """Start a tick body now unless one is already running. Returns its task, or None if skipped."""
        if self.busy:
            self.skip_count += 1
            log.warning("periodic.skipped", task=self.name)
            return None
        self._in_flight = asyncio.create_task(self.run_once())
        return self._in_flight

    async def run_once(self) -> bool:
        """Run the body once, containing any failure. Returns True on success."""
        self.run_count += 1
        try:
            await self._fn()
        except Exception as e:
            self.error_count += 1
            self.last_error = str(e)
            log.exception("periodic.tick_failed", task=self.name, error=str(e))
            return False
        return True

    async def _tick_loop(self) -> None:
        while True:
            await asyncio.sleep(self.interval)
            self.trigger()
