"""
API依赖项 - 从应用状态中取出生命周期内创建的服务实例
"""
from starlette.requests import HTTPConnection

from application.services.realtime_service import NotificationHub
from application.services.vending_service import VendingService


def get_vending_service(conn: HTTPConnection) -> VendingService:
    svc = getattr(conn.app.state, "vending_service", None)
    if svc is None:
        raise RuntimeError("Vending service not initialized. Ensure lifespan sets app.state.vending_service.")
    return svc


def get_notification_hub(conn: HTTPConnection) -> NotificationHub:
    hub = getattr(conn.app.state, "notification_hub", None)
    if hub is None:
        raise RuntimeError("Notification hub not initialized. Ensure lifespan sets app.state.notification_hub.")
    return hub
