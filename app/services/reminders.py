"""Service for building reminder notifications."""

from __future__ import annotations

from app.domain.models import REMINDER_LABEL, Event, ReminderEventPayload, ReminderMessage


def build_reminder(event: Event) -> ReminderMessage:
    """Return the reminder envelope pushed to subscribers for a due event.

    ``timeRemaining`` is always the fixed ``REMINDER_LABEL``; it is not derived
    from the actual interval left before ``scheduled_time``.
    """
    return ReminderMessage(
        event=ReminderEventPayload(
            id=event.id,
            title=event.title,
            description=event.description,
            time_remaining=REMINDER_LABEL,
        )
    )
