"""Errors raised by the event engine to its immediate caller."""

from __future__ import annotations


class EngineError(Exception):
    """Base class for engine failures. ``kind`` lets callers branch without parsing text."""

    kind: str = "engine_error"


class ConflictError(EngineError):
    """Creation rejected: a non-completed event sits inside the conflict window."""

    kind = "conflict"

    def __init__(self, conflicting_ids: list[str]) -> None:
        self.conflicting_ids = conflicting_ids
        super().__init__(
            "Event conflicts with an existing event: " + ", ".join(conflicting_ids)
        )


class NotFoundError(EngineError):
    """Status update targets an unknown event id."""

    kind = "not_found"

    def __init__(self, event_id: str) -> None:
        self.event_id = event_id
        super().__init__(f"Event not found: {event_id}")
