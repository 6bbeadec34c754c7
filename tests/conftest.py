"""Shared fixtures: an in-memory subscriber handle for broadcaster tests."""

from __future__ import annotations

from typing import Callable, Optional

import pytest


class FakeHandle:
    """Records what it was sent. ``on_send`` runs after each successful send."""

    def __init__(self, open_: bool = True, fail: bool = False) -> None:
        self.is_open = open_
        self.fail = fail
        self.sent: list[str] = []
        self.on_send: Optional[Callable[[], None]] = None
        self._callbacks: list[Callable[[], None]] = []

    def send(self, text: str) -> None:
        if self.fail:
            raise ConnectionError("socket gone")
        self.sent.append(text)
        if self.on_send is not None:
            self.on_send()

    def on_close(self, callback: Callable[[], None]) -> None:
        self._callbacks.append(callback)

    def close(self) -> None:
        self.is_open = False
        for callback in self._callbacks:
            callback()


@pytest.fixture()
def make_handle():
    return FakeHandle
