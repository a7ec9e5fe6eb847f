"""structlog 配置

TASKHUB_LOG_FORMAT 选择渲染器（dev 控制台 / json 单行 JSON），TASKHUB_LOG_LEVEL 控制根级别。
uvicorn、aiosqlite、httpx 的标准库日志经同一个 ProcessorFormatter 输出，
其中 aiosqlite 与 httpx 的逐条语句/请求日志压到 WARNING。
Logfire 仅在 LOGFIRE_SEND_TO_LOGFIRE=true 时启用。
"""

import logging
import os

import structlog

# 逐条 SQL / HTTP 调用的噪声日志
_NOISY_LOGGERS = ("aiosqlite", "httpx", "httpcore")


def _build_renderer(log_format: str) -> structlog.types.Processor:
    if log_format == "json":
        return structlog.processors.JSONRenderer(ensure_ascii=False)
    return structlog.dev.ConsoleRenderer()


def setup_logging(log_format: str | None = None, log_level: str | None = None) -> None:
    """初始化 structlog 与标准库 logging

    参数为空时从 TASKHUB_LOG_FORMAT（默认 dev）/ TASKHUB_LOG_LEVEL（默认 INFO）读取。
    """
    log_format = log_format or os.environ.get("TASKHUB_LOG_FORMAT", "dev")
    log_level = (log_level or os.environ.get("TASKHUB_LOG_LEVEL", "INFO")).upper()

    shared_processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]

    structlog.configure(
        processors=[*shared_processors, structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    handler = logging.StreamHandler()
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            processor=_build_renderer(log_format),
            foreign_pre_chain=shared_processors,
        )
    )

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.setLevel(getattr(logging, log_level, logging.INFO))

    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def setup_logfire(app=None) -> None:
    """按 LOGFIRE_SEND_TO_LOGFIRE 可选启用 Logfire，并对传入的 FastAPI app 做 instrument"""
    if os.environ.get("LOGFIRE_SEND_TO_LOGFIRE", "false").lower() != "true":
        return

    try:
        import logfire

        logfire.configure()
        if app is not None:
            logfire.instrument_fastapi(app)
    except Exception as e:
        structlog.get_logger().warning(
            "logfire_init_failed",
            error_type=type(e).__name__,
            message="Logfire 初始化失败，只输出本地日志",
        )
