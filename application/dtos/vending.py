"""
Vending DTOs used at the application boundary (API <-> service).

Wire keys follow the controller's camelCase contract (estimatedTime,
elapsedTime, currentItems); Python attributes stay snake_case.
"""
from __future__ import annotations

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field

from domain.vending import VendPhase


class VendRequest(BaseModel):
    # validated by domain.vending.validate_items
    items: Any = None


class VendAccepted(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    success: bool = True
    message: str = "Vending started"
    items: list[int]
    estimated_time: int = Field(alias="estimatedTime")


class MachineStatus(BaseModel):
    """Point-in-time view of the machine returned by GET /status."""

    model_config = ConfigDict(populate_by_name=True, use_enum_values=True)

    status: VendPhase
    items: Optional[list[int]] = None
    elapsed_time: Optional[int] = Field(default=None, alias="elapsedTime")
    timestamp: str
    message: str


class HealthStatus(BaseModel):
    status: str = "healthy"
    service: str
    timestamp: str
    subscribers: int = 0


__all__ = ["VendRequest", "VendAccepted", "MachineStatus", "HealthStatus"]
