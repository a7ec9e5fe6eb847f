"""配置常量模块 -- 可通过环境变量覆盖

包含数据库路径、通知投递配置、目录查询并发度等可配置项。
"""

import os
from pathlib import Path
from typing import Literal

import structlog
from pydantic import BaseModel, Field

log = structlog.get_logger()


def _get_base_dir() -> Path:
    """获取项目 data 基础目录"""
    return Path(os.environ.get("TASKHUB_DATA_DIR", "data"))


def get_db_path() -> str:
    """获取 SQLite 数据库路径"""
    return os.environ.get(
        "TASKHUB_DB_PATH",
        str(_get_base_dir() / "sqlite" / "taskhub.db"),
    )


# 被分配人目录查询的最大并发数
DIRECTORY_LOOKUP_CONCURRENCY: int = int(
    os.environ.get("TASKHUB_DIRECTORY_LOOKUP_CONCURRENCY", "8")
)

# 单条评论最大长度（字符）
COMMENT_MAX_LENGTH: int = 2000

# 身份（邮箱）格式：local-part@domain.tld，不含空白
IDENTITY_PATTERN: str = r"^[^\s@]+@[^\s@]+\.[^\s@]+$"


def get_allowed_email_domains() -> list[str]:
    """注册用户时允许的邮箱域名（TASKHUB_ALLOWED_EMAIL_DOMAINS，逗号分隔）

    每项规范化为小写并以 "@" 开头；为空表示不限制域名。
    """
    raw = os.environ.get("TASKHUB_ALLOWED_EMAIL_DOMAINS", "")
    domains: list[str] = []
    for item in raw.split(","):
        item = item.strip().lower()
        if not item:
            continue
        domains.append(item if item.startswith("@") else f"@{item}")
    return domains


class NotifierConfig(BaseModel):
    """通知投递配置 -- 从环境变量加载

    环境变量:
        TASKHUB_NOTIFY_MODE: 投递模式（log/webhook）
        TASKHUB_NOTIFY_WEBHOOK_URL: webhook 地址
        TASKHUB_NOTIFY_TIMEOUT_S: webhook 调用超时（秒，默认 10）
    """

    mode: Literal["log", "webhook"] = Field(
        default="log",
        description="投递模式：log 仅记录日志 / webhook 推送 JSON",
    )
    webhook_url: str = Field(default="", description="webhook 地址")
    timeout_s: float = Field(default=10.0, gt=0, description="webhook 超时（秒）")


def load_notifier_config() -> NotifierConfig:
    """从环境变量加载通知配置

    webhook 模式缺少 URL 时降级为 log 模式，不阻塞启动。
    """
    kwargs: dict = {}

    if val := os.environ.get("TASKHUB_NOTIFY_MODE"):
        kwargs["mode"] = val

    if val := os.environ.get("TASKHUB_NOTIFY_WEBHOOK_URL"):
        kwargs["webhook_url"] = val

    if val := os.environ.get("TASKHUB_NOTIFY_TIMEOUT_S"):
        try:
            kwargs["timeout_s"] = float(val)
        except ValueError:
            log.warning(
                "invalid_timeout_config",
                env_var="TASKHUB_NOTIFY_TIMEOUT_S",
                value=val,
                fallback=10.0,
            )

    if kwargs.get("mode") == "webhook" and not kwargs.get("webhook_url"):
        log.warning("webhook_url_missing", fallback_mode="log")
        kwargs["mode"] = "log"

    return NotifierConfig(**kwargs)
