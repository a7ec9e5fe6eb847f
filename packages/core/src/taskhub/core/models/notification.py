"""通知事件与 payload 定义

NotificationEvent.payload 为对应 payload 模型的 model_dump() 结果，
由 Notifier 决定如何渲染（邮件、webhook 等）。
"""

from datetime import date
from typing import Any

from pydantic import BaseModel, Field

from .enums import NotificationIntent, TaskPriority, TaskStatus


class StatusChangedPayload(BaseModel):
    """status_changed 通知 payload"""

    task_id: str
    title: str
    from_status: TaskStatus
    to_status: TaskStatus
    changed_by: str


class PriorityEscalatedPayload(BaseModel):
    """priority_escalated 通知 payload"""

    task_id: str
    title: str
    description: str
    status: TaskStatus
    changed_by: str


class MemberAssignedPayload(BaseModel):
    """member_assigned 通知 payload"""

    task_id: str
    title: str
    description: str
    status: TaskStatus
    priority: TaskPriority
    due_date: date | None = None
    urgent: bool = Field(default=False, description="按变更后的优先级判断")
    assigned_by: str


class MemberRemovedPayload(BaseModel):
    """member_removed 通知 payload -- 只携带标题，不透露任务细节"""

    task_id: str
    title: str


class TaskUpdatedPayload(BaseModel):
    """task_updated 通用通知 payload"""

    task_id: str
    title: str
    changed_fields: list[str]
    updated_by: str


class TaskClosedPayload(BaseModel):
    """task_closed 通知 payload（任务被删除）"""

    task_id: str
    title: str
    description: str
    final_status: TaskStatus
    closed_by: str


class NotificationEvent(BaseModel):
    """一条待发送的通知"""

    recipient: str = Field(description="接收者身份（邮箱）")
    intent: NotificationIntent
    payload: dict[str, Any] = Field(default_factory=dict)
