"""The event engine: one instance owns the store, subscribers and periodic tasks."""

from __future__ import annotations

from app.config import Settings
from app.observability import get_logger
from app.repos.memory import EventRepository
from app.services.audit import CompletionLogger
from app.services.broadcaster import Broadcaster
from app.services.lifecycle import LifecycleScheduler
from app.services.periodic import PeriodicTask

log = get_logger(__name__)


class EventEngine:
    """Wires the event store to the lifecycle scheduler and the completion logger.

    Construct once at startup and hand the same instance to the routing layer;
    tests build their own instance for isolation.
    """

    def __init__(
        self,
        repo: EventRepository,
        broadcaster: Broadcaster,
        lifecycle: LifecycleScheduler,
        completion_logger: CompletionLogger,
        lifecycle_tick_interval: float = 60.0,
        log_tick_interval: float = 86_400.0,
        subscriber_queue_size: int = 100,
    ) -> None:
        self.repo = repo
        self.broadcaster = broadcaster
        self.lifecycle = lifecycle
        self.completion_logger = completion_logger
        self.subscriber_queue_size = subscriber_queue_size

        self.lifecycle_task = PeriodicTask(
            "lifecycle", lifecycle_tick_interval, lifecycle.run
        )
        self.audit_task = PeriodicTask(
            "completion_log", log_tick_interval, completion_logger.run
        )

    @classmethod
    def from_settings(cls, settings: Settings) -> "EventEngine":
        repo = EventRepository(conflict_window=settings.conflict_window)
        broadcaster = Broadcaster()
        return cls(
            repo=repo,
            broadcaster=broadcaster,
            lifecycle=LifecycleScheduler(
                repo, broadcaster, horizon=settings.reminder_horizon
            ),
            completion_logger=CompletionLogger(
                repo,
                path=settings.audit_log_path,
                dedupe=settings.dedupe_audit_log,
            ),
            lifecycle_tick_interval=settings.lifecycle_tick_interval,
            log_tick_interval=settings.log_tick_interval,
            subscriber_queue_size=settings.subscriber_queue_size,
        )

    async def start(self) -> None:
        self.lifecycle_task.start()
        self.audit_task.start()
        log.info("engine.started")

    async def stop(self) -> None:
        await self.lifecycle_task.stop()
        await self.audit_task.stop()
        log.info("engine.stopped", events=len(self.repo))
