"""Application service driving the single-flight vend state machine.

Owns the MachineState, admits at most one vend at a time, schedules the
delayed completion as an asyncio task and pushes a frame to subscribers
on every state edge. Request handling and completion share one event
loop; each check-then-mutate step runs under ``self._lock`` and the
matching broadcast is enqueued before the lock is released, so the
``status`` frame of a cycle always precedes its ``vend-complete`` frame.
"""
from __future__ import annotations

import asyncio
from typing import Any, Optional

from application.dtos.vending import MachineStatus, VendAccepted
from application.ports.realtime import (
    NotifierPort,
    StatusFrame,
    VendCompleteFrame,
    utc_now_z,
)
from core.logging_config import get_logger
from domain.common.exceptions import VendingBusyException
from domain.vending import MachineState, VendPhase, validate_items


logger = get_logger(__name__)

DEFAULT_VEND_DELAY_MS = 5000


class VendingService:
    def __init__(self, *, notifier: NotifierPort, delay_ms: int = DEFAULT_VEND_DELAY_MS) -> None:
        if delay_ms < 0:
            raise ValueError("delay_ms must be >= 0")
        self._notifier = notifier
        self._delay_ms = int(delay_ms)
        self._state = MachineState()
        self._lock = asyncio.Lock()

    @property
    def delay_ms(self) -> int:
        return self._delay_ms

    @property
    def phase(self) -> VendPhase:
        return self._state.phase

    @property
    def items(self) -> list[int]:
        return list(self._state.items)

    @property
    def pending_completion(self) -> Optional[asyncio.Task]:
        return self._state.pending_completion

    # Public API (use-cases)
    async def request_vend(self, items: Any) -> VendAccepted:
        """Start a vend cycle, or reject it.

        Raises:
            InvalidVendRequestException: ``items`` is not a non-empty list of ints.
            VendingBusyException: another cycle is in progress.
        """
        vend_items = validate_items(items)
        async with self._lock:
            if self._state.is_vending:
                logger.info(
                    "vend_rejected_busy",
                    requested_items=vend_items,
                    current_items=self._state.items,
                )
                raise VendingBusyException(self._state.items)
            # The task only starts running after we yield, so the state is
            # in place before the completion can observe it.
            task = asyncio.create_task(self._complete_after_delay(), name="vend-completion")
            self._state.start(vend_items, task)
            await self._notifier.broadcast(
                StatusFrame(
                    status=VendPhase.VENDING.value,
                    items=vend_items,
                    message="Vending started",
                )
            )
        logger.info("vend_started", items=vend_items, delay_ms=self._delay_ms)
        return VendAccepted(items=vend_items, estimated_time=self._delay_ms)

    def get_status(self) -> MachineStatus:
        state = self._state
        if state.is_vending:
            return MachineStatus(
                status=VendPhase.VENDING,
                items=list(state.items),
                elapsed_time=state.elapsed_ms(),
                timestamp=utc_now_z(),
                message="Vending in progress",
            )
        return MachineStatus(
            status=VendPhase.IDLE,
            timestamp=utc_now_z(),
            message="Machine is idle",
        )

    def snapshot(self) -> StatusFrame:
        """Status frame sent to a subscriber right after it attaches."""
        return StatusFrame(status=self._state.phase.value, items=list(self._state.items))

    async def shutdown(self) -> None:
        """Abandon the in-flight cycle, if any, without emitting vend-complete."""
        async with self._lock:
            task: Optional[asyncio.Task] = self._state.pending_completion
            if task is None:
                return
            abandoned = self._state.finish()
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass
        logger.info("vend_abandoned", items=abandoned)

    # -------------------- Completion --------------------
    async def _complete_after_delay(self) -> None:
        await asyncio.sleep(self._delay_ms / 1000)
        try:
            await self.complete(asyncio.current_task())
        except Exception as exc:
            logger.error("vend_completion_failed", error=str(exc), exc_info=True)

    async def complete(self, task: Optional[asyncio.Task]) -> bool:
        """Finish the cycle scheduled as ``task``.

        No-op (returns False) when the machine is already idle or ``task``
        is not the pending completion, so a repeated or stale fire can never
        end a newer cycle.
        """
        async with self._lock:
            if not self._state.is_vending or self._state.pending_completion is not task:
                logger.debug("vend_completion_ignored", phase=self._state.phase.value)
                return False
            vended = self._state.finish()
            await self._notifier.broadcast(VendCompleteFrame(vended_items=vended))
        logger.info("vend_completed", vended_items=vended)
        return True
