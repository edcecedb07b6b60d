"""WebSocket routes for the vending push channel.

Pure server push: on connect the subscriber receives a status snapshot,
then every frame the vending state machine emits while it stays attached.
Inbound frames are read only to notice the disconnect.
"""
from __future__ import annotations

from fastapi import APIRouter, WebSocket, Depends

from api.dependencies import get_notification_hub, get_vending_service
from application.services.realtime_service import NotificationHub
from application.services.vending_service import VendingService
from core.logging_config import get_logger


logger = get_logger(__name__)


router = APIRouter(tags=["WebSocket"])


@router.websocket("/")
@router.websocket("/ws")
async def websocket_endpoint(
    ws: WebSocket,
    hub: NotificationHub = Depends(get_notification_hub),
    vending: VendingService = Depends(get_vending_service),
) -> None:
    await ws.accept()
    await hub.attach(ws, vending.snapshot)
    try:
        while True:
            message = await ws.receive()
            if message["type"] == "websocket.disconnect":
                logger.info("ws_client_closed", code=message.get("code"))
                break
    except Exception as exc:
        logger.error("ws_error", error=str(exc), exc_info=True)
    finally:
        await hub.detach(ws)
