"""Best-effort fan-out of JSON messages to live subscriber connections."""

from __future__ import annotations

import asyncio
import json
from typing import Any, Callable, Protocol

from fastapi import WebSocket
from pydantic import BaseModel
from starlette.websockets import WebSocketState

from app.observability import get_logger

log = get_logger(__name__)


class SubscriberHandle(Protocol):
    """One live connection as seen by the broadcaster."""

    @property
    def is_open(self) -> bool: ...

    def send(self, text: str) -> None: ...

    def on_close(self, callback: Callable[[], None]) -> None: ...


def _serialize(message: Any) -> str:
    if isinstance(message, BaseModel):
        return message.model_dump_json(by_alias=True)
    return json.dumps(message)


class Broadcaster:
    """Owns the set of live subscriber handles.

    Delivery is at-most-once and fire-and-forget: closed handles are skipped,
    send failures are logged and dropped, nothing is retried.
    """

    def __init__(self) -> None:
        self._subscribers: set[SubscriberHandle] = set()

    def __len__(self) -> int:
        return len(self._subscribers)

    def register(self, handle: SubscriberHandle) -> None:
        self._subscribers.add(handle)
        handle.on_close(lambda: self.unregister(handle))
        log.info("subscriber.registered", subscribers=len(self._subscribers))

    def unregister(self, handle: SubscriberHandle) -> None:
        if handle in self._subscribers:
            self._subscribers.discard(handle)
            log.info("subscriber.removed", subscribers=len(self._subscribers))

    def send(self, handle: SubscriberHandle, message: Any) -> bool:
        """Deliver *message* to a single handle. Returns whether it was handed off."""
        return self._deliver(handle, _serialize(message))

    def broadcast(self, message: Any) -> int:
        """Deliver *message* to every open subscriber; returns how many accepted it."""
        payload = _serialize(message)
        # Snapshot: handles may close (and unregister) while we iterate.
        delivered = sum(self._deliver(h, payload) for h in list(self._subscribers))
        log.debug("broadcast.sent", delivered=delivered, subscribers=len(self._subscribers))
        return delivered

    def _deliver(self, handle: SubscriberHandle, payload: str) -> bool:
        if not handle.is_open:
            return False
        try:
            handle.send(payload)
        except Exception as exc:
            log.warning("broadcast.delivery_failed", error=repr(exc))
            return False
        return True


class WebSocketSubscriber:
    """Adapts a FastAPI ``WebSocket`` to :class:`SubscriberHandle`.

    ``send`` only enqueues; a pump task writes to the socket so that a slow
    client never blocks the broadcaster.  A full queue raises
    ``asyncio.QueueFull``, which the broadcaster counts as a dropped delivery.
    """

    def __init__(self, websocket: WebSocket, max_pending: int = 100) -> None:
        self._websocket = websocket
        self._outbox: asyncio.Queue[str] = asyncio.Queue(maxsize=max_pending)
        self._closed = False
        self._close_callbacks: list[Callable[[], None]] = []

    @property
    def is_open(self) -> bool:
        return (
            not self._closed
            and self._websocket.application_state == WebSocketState.CONNECTED
        )

    def send(self, text: str) -> None:
        self._outbox.put_nowait(text)

    def on_close(self, callback: Callable[[], None]) -> None:
        self._close_callbacks.append(callback)

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        for callback in self._close_callbacks:
            callback()

    async def serve(self) -> None:
        """Pump outgoing messages until the client disconnects.

        Inbound frames are read only to notice the disconnect; their content
        is ignored.
        """
        pump = asyncio.create_task(self._pump())
        try:
            while True:
                message = await self._websocket.receive()
                if message["type"] == "websocket.disconnect":
                    break
        finally:
            self.close()
            pump.cancel()
            try:
                await pump
            except asyncio.CancelledError:
                pass

    async def _pump(self) -> None:
        while True:
            text = await self._outbox.get()
            try:
                await self._websocket.send_text(text)
            except Exception as exc:
                log.warning("subscriber.send_failed", error=repr(exc))
                self.close()
                return
