"""FastAPI 应用主文件

app 创建 + lifespan 管理：DB 初始化/关闭、通知通道与 fan-out 初始化、路由注册。
"""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI
from taskhub.core.config import get_db_path, load_notifier_config
from taskhub.core.mutation import NotificationFanout
from taskhub.core.store import create_store_group

from .errors import register_error_handlers
from .middleware.logging_config import setup_logfire, setup_logging
from .middleware.logging_mw import LoggingMiddleware
from .middleware.trace_mw import TraceMiddleware
from .routes import health, tasks, users
from .services.notifier import build_notifier

log = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """应用生命周期管理：启动时初始化 DB 与通知通道，关闭时排空在途通知并清理连接"""
    db_path = get_db_path()
    store_group = await create_store_group(db_path)
    app.state.store_group = store_group

    notifier_config = load_notifier_config()
    notifier = build_notifier(notifier_config)
    app.state.notifier_config = notifier_config
    app.state.fanout = NotificationFanout(notifier)
    log.info("gateway_started", db_path=db_path, notify_mode=notifier_config.mode)

    yield

    fanout = getattr(app.state, "fanout", None)
    if fanout is not None:
        await fanout.drain()
        await fanout.notifier.aclose()

    if hasattr(app.state, "store_group") and app.state.store_group:
        await app.state.store_group.conn.close()
    log.info("gateway_stopped")


def create_app() -> FastAPI:
    """创建 FastAPI 应用实例"""
    app = FastAPI(
        title="TaskHub Gateway",
        version="0.1.0",
        description="TaskHub 任务协作 API",
        lifespan=lifespan,
    )

    # 中间件顺序：后添加的在外层，Logging 先清空并绑定 request_id，Trace 再绑定 task_id
    app.add_middleware(TraceMiddleware)
    app.add_middleware(LoggingMiddleware)

    setup_logging()
    setup_logfire(app)

    register_error_handlers(app)

    app.include_router(tasks.router, tags=["tasks"])
    app.include_router(users.router, tags=["users"])
    app.include_router(health.router, tags=["health"])

    return app


# 默认 app 实例（uvicorn 入口）
app = create_app()
