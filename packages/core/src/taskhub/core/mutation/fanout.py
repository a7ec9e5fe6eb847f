"""NotificationFanout -- 通知并发投递

每次变更的全部通知作为一个后台 asyncio 任务并发发送；
调用方不等待投递结果，单条失败只记录日志，不重试、不回滚变更。
"""

import asyncio
from collections.abc import Iterable
from typing import Protocol

import structlog
from pydantic import BaseModel, Field

from ..models.notification import NotificationEvent

log = structlog.get_logger()


class Notifier(Protocol):
    """通知投递接口 -- 失败时抛出异常"""

    async def send(self, event: NotificationEvent) -> None:
        ...

    async def aclose(self) -> None:
        ...


class DispatchFailure(BaseModel):
    """单条投递失败记录"""

    recipient: str
    intent: str
    error_type: str
    error: str


class DispatchReport(BaseModel):
    """一次 fan-out 的投递结果"""

    task_id: str | None = None
    attempted: int = 0
    delivered: int = 0
    failures: list[DispatchFailure] = Field(default_factory=list)


class NotificationFanout:
    """后台并发投递通知

    dispatch() 立即返回；drain() 等待所有在途投递完成（关闭时与测试中使用）。
    """

    def __init__(self, notifier: Notifier) -> None:
        self._notifier = notifier
        self._inflight: set[asyncio.Task] = set()

    @property
    def notifier(self) -> Notifier:
        return self._notifier

    def dispatch(
        self,
        events: Iterable[NotificationEvent],
        task_id: str | None = None,
    ) -> asyncio.Task | None:
        """调度一批通知的后台投递

        Returns:
            后台 asyncio.Task；没有通知时返回 None
        """
        batch = list(events)
        if not batch:
            return None

        background = asyncio.create_task(self.deliver_all(batch, task_id=task_id))
        self._inflight.add(background)
        background.add_done_callback(self._inflight.discard)
        return background

    async def deliver_all(
        self,
        events: list[NotificationEvent],
        task_id: str | None = None,
    ) -> DispatchReport:
        """并发发送全部通知并汇总结果（从不抛出单条投递的异常）"""

        async def _send_one(event: NotificationEvent) -> None:
            await self._notifier.send(event)

        results = await asyncio.gather(
            *(_send_one(event) for event in events),
            return_exceptions=True,
        )

        report = DispatchReport(task_id=task_id, attempted=len(events))
        for event, result in zip(events, results, strict=True):
            if isinstance(result, BaseException):
                report.failures.append(
                    DispatchFailure(
                        recipient=event.recipient,
                        intent=event.intent.value,
                        error_type=type(result).__name__,
                        error=str(result),
                    )
                )
                log.warning(
                    "notification_dispatch_failed",
                    task_id=task_id,
                    recipient=event.recipient,
                    intent=event.intent.value,
                    error_type=type(result).__name__,
                )
            else:
                report.delivered += 1

        log.info(
            "notification_fanout_completed",
            task_id=task_id,
            attempted=report.attempted,
            delivered=report.delivered,
            failed=len(report.failures),
        )
        return report

    async def drain(self) -> None:
        """等待所有在途投递完成"""
        if self._inflight:
            await asyncio.gather(*list(self._inflight), return_exceptions=True)
