"""FastAPI application: entry point for the event notification service."""

from __future__ import annotations

from contextlib import asynccontextmanager
from datetime import datetime, timezone

import uvicorn
from fastapi import APIRouter, FastAPI, HTTPException, Request, WebSocket

from app.config import Settings, get_settings
from app.domain.errors import ConflictError, NotFoundError
from app.domain.models import (
    CreateEventRequest,
    CreateEventResponse,
    Event,
    UpdateStatusRequest,
)
from app.domain.timeparse import as_utc
from app.engine import EventEngine
from app.observability import get_logger, setup_logging
from app.services.broadcaster import WebSocketSubscriber

log = get_logger(__name__)

router = APIRouter()

# Handlers are ``async def`` so they run on the event loop alongside the
# periodic tasks instead of in a worker thread.


def _engine(request: Request) -> EventEngine:
    return request.app.state.engine


# ── Routes ────────────────────────────────────────────────────────────


@router.post("/events", response_model=CreateEventResponse, status_code=201)
async def create_event(payload: CreateEventRequest, request: Request) -> CreateEventResponse:
    """Create a pending event unless it collides with another non-completed one."""
    try:
        event_id = _engine(request).repo.create(
            payload.title, payload.description, payload.scheduled_time
        )
    except ConflictError as exc:
        raise HTTPException(status_code=409, detail=str(exc))
    return CreateEventResponse(event_id=event_id)


@router.get("/events", response_model=list[Event])
async def list_events(request: Request, status: str | None = None) -> list[Event]:
    """Return all events, optionally only those with the given status."""
    return _engine(request).repo.list(status)


@router.get("/events/{event_id}", response_model=Event)
async def get_event(event_id: str, request: Request) -> Event:
    """Return a single event by id."""
    event = _engine(request).repo.get(event_id)
    if event is None:
        raise HTTPException(status_code=404, detail="Event not found")
    return event


@router.patch("/events/{event_id}/status", response_model=Event)
async def update_event_status(
    event_id: str, body: UpdateStatusRequest, request: Request
) -> Event:
    """Overwrite an event's status. Any transition is allowed."""
    try:
        return _engine(request).repo.set_status(event_id, body.status)
    except NotFoundError as exc:
        raise HTTPException(status_code=404, detail=str(exc))


@router.post("/tick")
async def tick(request: Request, now: datetime | None = None) -> dict:
    """Run one lifecycle tick immediately.

    Pass *now* as a query param to control the simulated clock.
    Defaults to ``datetime.now(timezone.utc)`` when omitted.
    """
    current_time = as_utc(now or datetime.now(timezone.utc))
    reminded = _engine(request).lifecycle.tick(current_time)
    return {
        "time": current_time.isoformat(),
        "reminders_fired": [event.id for event in reminded],
    }


@router.post("/audit/flush")
async def flush_audit_log(request: Request) -> dict:
    """Append the currently completed events to the audit log now."""
    try:
        written = await _engine(request).completion_logger.run()
    except OSError as exc:
        log.error("audit.flush_failed", error=str(exc))
        raise HTTPException(status_code=500, detail="Could not write audit log")
    return {"records_written": written}


@router.websocket("/ws")
async def notifications(websocket: WebSocket) -> None:
    """Live reminder channel. The server only pushes; inbound frames are ignored."""
    engine: EventEngine = websocket.app.state.engine
    await websocket.accept()
    subscriber = WebSocketSubscriber(websocket, max_pending=engine.subscriber_queue_size)
    engine.broadcaster.register(subscriber)
    engine.broadcaster.send(
        subscriber,
        {"type": "connection", "message": "WebSocket connection established"},
    )
    await subscriber.serve()


# ── Application factory ───────────────────────────────────────────────


def create_app(
    settings: Settings | None = None, engine: EventEngine | None = None
) -> FastAPI:
    settings = settings or get_settings()
    engine = engine or EventEngine.from_settings(settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        setup_logging(settings.log_level, json_format=settings.log_json)
        await engine.start()
        try:
            yield
        finally:
            await engine.stop()

    application = FastAPI(title="Event Notification Service", lifespan=lifespan)
    application.state.engine = engine
    application.state.settings = settings
    application.include_router(router)
    return application


app = create_app()


def run() -> None:
    """Serve ``app`` with uvicorn on the configured host and port."""
    settings = get_settings()
    uvicorn.run(app, host=settings.host, port=settings.port, log_config=None)
