"""Pytest bootstrap configuration.

Environment variables are set before test collection and before any
module that reads application settings is imported.
"""
import os

# Short vend cycle so HTTP/WebSocket tests finish quickly
os.environ.setdefault("VENDING__DELAY_MS", "300")

import asyncio

import pytest
from starlette.websockets import WebSocketState

from application.ports.realtime import Frame


class FakeWebSocket:
    """Stands in for a subscriber socket; records every frame sent to it."""

    def __init__(
        self,
        *,
        fail: bool = False,
        gate: asyncio.Event | None = None,
        close_delay: float = 0.0,
    ) -> None:
        self.sent: list[dict] = []
        self.close_codes: list[int] = []
        self.client_state = WebSocketState.CONNECTED
        self.application_state = WebSocketState.CONNECTED
        self._fail = fail
        self._gate = gate
        self._close_delay = close_delay

    async def send_json(self, data: dict) -> None:
        if self._gate is not None:
            await self._gate.wait()
        if self._fail:
            raise RuntimeError("connection reset by peer")
        self.sent.append(data)

    async def close(self, code: int = 1000) -> None:
        if self._close_delay:
            await asyncio.sleep(self._close_delay)
        self.close_codes.append(code)
        self.application_state = WebSocketState.DISCONNECTED

    def drop(self) -> None:
        """Simulate a peer that vanished without a close handshake."""
        self.client_state = WebSocketState.DISCONNECTED

    def types(self) -> list[str]:
        return [f["type"] for f in self.sent]


class RecordingNotifier:
    def __init__(self) -> None:
        self.frames: list[dict] = []

    async def broadcast(self, frame: Frame) -> None:
        self.frames.append(frame.to_payload())

    def types(self) -> list[str]:
        return [f["type"] for f in self.frames]


async def settle(seconds: float = 0.02) -> None:
    """Let sender tasks drain their queues."""
    await asyncio.sleep(seconds)


@pytest.fixture
def notifier() -> RecordingNotifier:
    return RecordingNotifier()
