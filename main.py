"""
VMC Mock Server 主入口

HTTP + WebSocket 模拟售货机控制器：接受出货请求，出货期间保持忙碌状态，
完成后通过 WebSocket 推送通知。
"""
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from contextlib import asynccontextmanager

from api.routes import vending as vending_routes
from api.routes import ws as ws_routes
from api.middleware import RequestIDMiddleware, LoggingMiddleware
from application.dtos.vending import HealthStatus
from application.ports.realtime import utc_now_z
from application.services.realtime_service import NotificationHub
from application.services.vending_service import VendingService
from core.config import settings
from core.exceptions import register_exception_handlers
from core.logging_config import get_logger, configure_logging
from infrastructure.realtime.connection_manager import ConnectionManager


# 初始化日志：在入口处显式配置，避免模块导入时的副作用
configure_logging()
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """应用生命周期管理"""
    conn_mgr = ConnectionManager()
    hub = NotificationHub(connections=conn_mgr)
    vending = VendingService(notifier=hub, delay_ms=settings.vending.delay_ms)
    app.state.notification_hub = hub
    app.state.vending_service = vending
    logger.info(
        "vmc_started",
        service=settings.PROJECT_NAME,
        port=settings.PORT,
        delay_ms=vending.delay_ms,
        endpoints=["POST /vend", "GET /status", "GET /health", "WS /"],
    )

    yield

    # 关闭：先放弃进行中的出货（不推送 vend-complete），再断开所有订阅者
    logger.info("vmc_shutting_down")
    await vending.shutdown()
    await hub.close()
    logger.info("application_shutdown", message="Server closed")


app = FastAPI(
    title=settings.PROJECT_NAME,
    version=settings.VERSION,
    debug=settings.DEBUG,
    lifespan=lifespan,
    description="Mock vending-machine controller (VMC)",
)

# 添加中间件（注意顺序：后添加的在外层，先执行）
# 1. 日志中间件（位于 RequestID 内层，日志携带 request_id）
app.add_middleware(LoggingMiddleware)

# 2. Request ID中间件（先于日志中间件执行，绑定 request_id）
app.add_middleware(RequestIDMiddleware)

# 3. CORS中间件（最外层）
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials="*" not in settings.CORS_ORIGINS,
    allow_methods=["*"],
    allow_headers=["*"],
)

# 注册全局异常处理器
register_exception_handlers(app)


# 注册路由
app.include_router(vending_routes.router)
app.include_router(ws_routes.router)


# 健康检查
@app.get("/health", tags=["Health"], response_model=HealthStatus)
async def health_check() -> HealthStatus:
    """健康检查端点（不依赖售货机状态）"""
    hub = getattr(app.state, "notification_hub", None)
    return HealthStatus(
        service=settings.PROJECT_NAME,
        timestamp=utc_now_z(),
        subscribers=hub.count if hub is not None else 0,
    )


def run() -> None:
    import uvicorn
    uvicorn.run(
        "main:app",
        host=settings.HOST,
        port=settings.PORT,
        # 使用 structlog 的日志配置
        log_config=None,
        log_level="debug" if settings.DEBUG else "info",
    )


if __name__ == "__main__":
    run()
