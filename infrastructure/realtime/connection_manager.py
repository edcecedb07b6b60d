"""In-process WebSocket connection manager.

Keeps track of subscriber connections and gives each one a bounded send
queue drained by its own sender task, so a broadcast only enqueues and
never waits on a slow or dead socket.
"""
from __future__ import annotations

import asyncio
from typing import Any, Callable, Dict, Optional, Set

from fastapi import WebSocket
from starlette.websockets import WebSocketState

from core.logging_config import get_logger
from core.config import settings


logger = get_logger(__name__)

OVERFLOW_POLICIES = {"drop_oldest", "drop_new", "disconnect"}


def is_open(ws: WebSocket) -> bool:
    return (
        ws.client_state == WebSocketState.CONNECTED
        and ws.application_state == WebSocketState.CONNECTED
    )


class ConnectionManager:
    """Manage per-process WebSocket subscribers."""

    def __init__(
        self,
        *,
        queue_max: Optional[int] = None,
        overflow_policy: Optional[str] = None,
    ) -> None:
        self._conns: Set[WebSocket] = set()
        self._lock = asyncio.Lock()
        # per-connection send queues and sender tasks
        self._send_queues: Dict[WebSocket, asyncio.Queue] = {}
        self._sender_tasks: Dict[WebSocket, asyncio.Task] = {}
        # overflow disconnects still closing in the background
        self._closing_tasks: Set[asyncio.Task] = set()
        if queue_max is None:
            queue_max = settings.REALTIME_WS_SEND_QUEUE_MAX
        self._queue_max = max(1, int(queue_max))
        policy = (overflow_policy or settings.REALTIME_WS_SEND_OVERFLOW_POLICY or "drop_oldest").lower()
        if policy not in OVERFLOW_POLICIES:
            logger.warning("ws_send_queue_policy_invalid", policy=policy, fallback="drop_oldest")
            policy = "drop_oldest"
        self._overflow_policy = policy

    @property
    def count(self) -> int:
        return len(self._conns)

    def __contains__(self, ws: object) -> bool:
        return ws in self._conns

    async def add(self, ws: WebSocket, *, initial: Optional[Callable[[], dict[str, Any]]] = None) -> None:
        """Register ``ws``; ``initial()`` is evaluated under the lock and queued first."""
        async with self._lock:
            if ws in self._conns:
                return
            q: asyncio.Queue = asyncio.Queue(maxsize=self._queue_max)
            if initial is not None:
                q.put_nowait(initial())
            self._conns.add(ws)
            self._send_queues[ws] = q
            self._sender_tasks[ws] = asyncio.create_task(self._sender_loop(ws, q))
            total = len(self._conns)
        logger.info("ws_connected", subscribers=total)

    async def remove(self, ws: WebSocket) -> bool:
        async with self._lock:
            known = ws in self._conns
            self._retire(ws)
            total = len(self._conns)
        if known:
            logger.info("ws_disconnected", subscribers=total)
        return known

    async def broadcast(self, payload: dict[str, Any]) -> int:
        """Queue ``payload`` for every open subscriber; returns how many were queued."""
        async with self._lock:
            targets = list(self._conns)
        queued = 0
        for ws in targets:
            if not is_open(ws):
                continue
            if await self._enqueue(ws, payload):
                queued += 1
        return queued

    async def close_all(self, code: int = 1001) -> None:
        async with self._lock:
            conns = list(self._conns)
            for ws in conns:
                self._retire(ws)
        for ws in conns:
            if not is_open(ws):
                continue
            try:
                await ws.close(code=code)
            except Exception as exc:
                logger.warning("ws_close_failed", error=str(exc))
        if self._closing_tasks:
            await asyncio.gather(*self._closing_tasks, return_exceptions=True)
        logger.info("ws_all_closed", closed=len(conns))

    def _retire(self, ws: WebSocket) -> None:
        self._conns.discard(ws)
        task = self._sender_tasks.pop(ws, None)
        if task is not None and task is not asyncio.current_task():
            task.cancel()
        self._send_queues.pop(ws, None)

    def _close_later(self, ws: WebSocket, code: int) -> None:
        # Close in the background; broadcast callers never wait on a handshake
        task = asyncio.create_task(self._close_quietly(ws, code))
        self._closing_tasks.add(task)
        task.add_done_callback(self._closing_tasks.discard)

    async def _close_quietly(self, ws: WebSocket, code: int) -> None:
        try:
            await ws.close(code=code)
        except Exception as exc:
            logger.warning("ws_close_failed", error=str(exc))

    async def _enqueue(self, ws: WebSocket, payload: dict[str, Any]) -> bool:
        q = self._send_queues.get(ws)
        if q is None:
            return False
        try:
            q.put_nowait(payload)
            return True
        except asyncio.QueueFull:
            policy = self._overflow_policy
            if policy == "drop_new":
                logger.warning("ws_send_queue_drop_new")
                return False
            if policy == "disconnect":
                logger.warning("ws_send_queue_disconnect")
                self._retire(ws)
                self._close_later(ws, code=1013)
                return False
            # default: drop_oldest
            try:
                _ = q.get_nowait()
            except asyncio.QueueEmpty:
                pass
            try:
                q.put_nowait(payload)
                return True
            except asyncio.QueueFull:
                logger.warning("ws_send_queue_drop_after_trim")
                return False

    async def _sender_loop(self, ws: WebSocket, q: asyncio.Queue) -> None:
        try:
            while True:
                payload = await q.get()
                if not is_open(ws):
                    continue
                try:
                    await ws.send_json(payload)
                except Exception as exc:
                    # Broken transport: stop delivering to this subscriber
                    logger.warning("ws_send_failed", error=str(exc))
                    self._retire(ws)
                    return
        except asyncio.CancelledError:  # graceful exit
            return
