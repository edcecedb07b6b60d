"""
Vending API routes.

Thin translation layer over VendingService: business exceptions raised by
the service are mapped to 400/409 by the global exception handlers.
"""
from __future__ import annotations

from fastapi import APIRouter, Depends, status

from api.dependencies import get_vending_service
from application.dtos.vending import MachineStatus, VendAccepted, VendRequest
from application.services.vending_service import VendingService


router = APIRouter(tags=["Vending"])


@router.post(
    "/vend",
    status_code=status.HTTP_202_ACCEPTED,
    response_model=VendAccepted,
)
async def request_vend(
    payload: VendRequest,
    vending: VendingService = Depends(get_vending_service),
) -> VendAccepted:
    """Start vending ``items``; completion is pushed over the WebSocket channel."""
    return await vending.request_vend(payload.items)


@router.get(
    "/status",
    response_model=MachineStatus,
    response_model_exclude_none=True,
)
async def get_status(vending: VendingService = Depends(get_vending_service)) -> MachineStatus:
    return vending.get_status()
