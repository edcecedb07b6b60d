"""Application service for the push notification hub.

Keeps subscriber workflows (snapshot on attach, fan-out of state frames)
separate from the concrete connection management and socket transport.
"""
from __future__ import annotations

from typing import Callable

from fastapi import WebSocket

from application.ports.realtime import Frame
from infrastructure.realtime.connection_manager import ConnectionManager
from core.logging_config import get_logger


logger = get_logger(__name__)


class NotificationHub:
    def __init__(self, *, connections: ConnectionManager) -> None:
        self._conn = connections

    # Connection lifecycle management
    async def attach(self, ws: WebSocket, snapshot: Callable[[], Frame]) -> None:
        """Register a subscriber and queue ``snapshot()`` as its first frame.

        The snapshot is taken while the connection set is locked, so every
        frame broadcast after it is also delivered to this subscriber.
        """
        await self._conn.add(ws, initial=lambda: snapshot().to_payload())

    async def detach(self, ws: WebSocket) -> None:
        """Remove a subscriber. Detaching twice is a no-op."""
        await self._conn.remove(ws)

    # Fan-out (NotifierPort)
    async def broadcast(self, frame: Frame) -> None:
        payload = frame.to_payload()
        queued = await self._conn.broadcast(payload)
        logger.info("realtime_event_dispatched", type=frame.type, subscribers=queued)

    async def close(self) -> None:
        await self._conn.close_all(code=1001)

    # Expose for API convenience
    @property
    def connections(self) -> ConnectionManager:
        return self._conn

    @property
    def count(self) -> int:
        return self._conn.count
