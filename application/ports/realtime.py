"""
Realtime port and push frame DTOs (contracts-first).

This module defines the frames pushed to WebSocket subscribers and the
NotifierPort protocol so the vending state machine can stay decoupled
from the concrete connection management (infrastructure).
"""
from __future__ import annotations

from typing import Any, Literal, Protocol, Union
from pydantic import BaseModel, ConfigDict, Field
from datetime import datetime, timezone


def utc_now_z() -> str:
    ts = datetime.now(timezone.utc)
    s = ts.isoformat()
    return s.replace("+00:00", "Z")


class Frame(BaseModel):
    """Base push frame. Wire keys use camelCase aliases."""

    model_config = ConfigDict(populate_by_name=True)

    type: str

    def to_payload(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class StatusFrame(Frame):
    """Machine status; sent as the attach snapshot and on vend acceptance.

    Fields:
      - status: "idle" or "vending"
      - items: items of the cycle in progress (empty when idle)
      - message: human readable note, omitted on the attach snapshot
    """

    type: Literal["status"] = "status"
    status: str
    items: list[int] = Field(default_factory=list)
    message: str | None = None


class VendCompleteFrame(Frame):
    type: Literal["vend-complete"] = "vend-complete"
    status: str = "idle"
    message: str = "Vending completed successfully"
    vended_items: list[int] = Field(alias="vendedItems")
    timestamp: str = Field(default_factory=utc_now_z)


PushFrame = Union[StatusFrame, VendCompleteFrame]


class NotifierPort(Protocol):
    """Fan-out of push frames to every attached subscriber.

    Implementations must be best-effort and must never raise because a
    single subscriber is slow, closed or broken.
    """

    async def broadcast(self, frame: Frame) -> None: ...


__all__ = [
    "Frame",
    "StatusFrame",
    "VendCompleteFrame",
    "PushFrame",
    "NotifierPort",
    "utc_now_z",
]
