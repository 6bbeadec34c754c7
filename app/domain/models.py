"""Domain models for the event notification engine."""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from enum import StrEnum
from typing import Any

from pydantic import AliasChoices, BaseModel, Field, field_validator

from app.domain.timeparse import as_utc, parse_scheduled_time


class EventStatus(StrEnum):
    PENDING = "pending"
    ONGOING = "ongoing"
    COMPLETED = "completed"


REMINDER_LABEL = "5 minutes"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _new_id() -> str:
    return str(uuid.uuid4())


# ---------------------------------------------------------------------------
# Core domain models
# ---------------------------------------------------------------------------


class Event(BaseModel):
    id: str = Field(default_factory=_new_id)
    title: str
    description: str = ""
    scheduled_time: datetime
    # Any non-empty string is accepted; EventStatus names the ones the engine produces.
    status: str = EventStatus.PENDING.value
    created_at: datetime = Field(default_factory=_utcnow)
    logged: bool = False

    @field_validator("scheduled_time")
    @classmethod
    def _scheduled_time_utc(cls, value: datetime) -> datetime:
        return as_utc(value)


class ReminderEventPayload(BaseModel):
    id: str
    title: str
    description: str
    time_remaining: str = Field(
        default=REMINDER_LABEL, serialization_alias="timeRemaining"
    )


class ReminderMessage(BaseModel):
    """Envelope pushed to live subscribers when an event enters its horizon."""

    type: str = "event_reminder"
    event: ReminderEventPayload


# ---------------------------------------------------------------------------
# Request / Response DTOs
# ---------------------------------------------------------------------------


class CreateEventRequest(BaseModel):
    title: str = Field(min_length=1)
    description: str = ""
    scheduled_time: datetime = Field(
        validation_alias=AliasChoices("scheduled_time", "scheduledTime")
    )

    @field_validator("scheduled_time", mode="before")
    @classmethod
    def _parse_scheduled_time(cls, value: Any) -> Any:
        return parse_scheduled_time(value)


class CreateEventResponse(BaseModel):
    message: str = "Event created successfully"
    event_id: str


class UpdateStatusRequest(BaseModel):
    status: str = Field(min_length=1)
