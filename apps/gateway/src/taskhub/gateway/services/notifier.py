"""Notifier 实现 -- 通知投递通道

LogNotifier: 只写结构化日志（未配置投递通道时的默认行为）
WebhookNotifier: 通过 httpx 将事件以 JSON POST 到外部地址，非 2xx 视为失败

两者都满足 taskhub.core.mutation.Notifier 协议：失败时抛出异常，
由 NotificationFanout 捕获并记录。
"""

import httpx
import structlog
from taskhub.core.config import NotifierConfig
from taskhub.core.exceptions import NotificationDeliveryError
from taskhub.core.models import NotificationEvent
from taskhub.core.mutation import Notifier

log = structlog.get_logger()


class LogNotifier:
    """日志通知 -- 不发送，只记录"""

    async def send(self, event: NotificationEvent) -> None:
        log.info(
            "notification_logged",
            recipient=event.recipient,
            intent=event.intent.value,
            task_id=event.payload.get("task_id"),
        )

    async def aclose(self) -> None:
        return None


class WebhookNotifier:
    """Webhook 通知 -- 每个事件一次 POST"""

    def __init__(
        self,
        url: str,
        timeout_s: float = 10.0,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        """
        Args:
            url: 接收通知的地址
            timeout_s: 单次请求超时（秒）
            client: 外部注入的 AsyncClient（测试用 MockTransport）；
                    为 None 时内部创建并由 aclose() 关闭
        """
        self._url = url
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(timeout=timeout_s)

    async def send(self, event: NotificationEvent) -> None:
        """POST 单条事件

        Raises:
            NotificationDeliveryError: 网络错误或非 2xx 响应
        """
        try:
            response = await self._client.post(
                self._url,
                json=event.model_dump(mode="json"),
            )
        except httpx.HTTPError as e:
            raise NotificationDeliveryError(event.recipient, type(e).__name__) from e

        if not response.is_success:
            raise NotificationDeliveryError(
                event.recipient,
                f"HTTP {response.status_code}",
            )

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()


def build_notifier(config: NotifierConfig) -> Notifier:
    """根据配置创建 Notifier"""
    if config.mode == "webhook":
        log.info(
            "notifier_initialized",
            mode="webhook",
            url=config.webhook_url,
            timeout_s=config.timeout_s,
        )
        return WebhookNotifier(config.webhook_url, timeout_s=config.timeout_s)

    log.info("notifier_initialized", mode="log")
    return LogNotifier()
