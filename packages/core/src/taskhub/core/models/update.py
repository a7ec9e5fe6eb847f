"""更新请求与变更集模型

UpdateRequest: 原始请求体（宽松解析，不做业务校验）
AllowedUpdate: 经过权限闸门过滤后的请求
ValidatedUpdate: 通过校验、值已规范化的请求
ChangeSet: 新旧状态的差异，仅用于通知规划，不落盘
TaskFieldUpdate: 交给 TaskStore.atomic_update 的字段映射
"""

from datetime import date, datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from .enums import FIELD_ORDER, TaskField, TaskPriority, TaskStatus
from .notification import NotificationEvent
from .task import Comment, Task


class UpdateRequest(BaseModel):
    """任务更新请求体

    字段名与前端约定的 camelCase 对齐，未知字段直接忽略。
    """

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    task_id: str | None = Field(default=None, alias="taskId")
    status: str | None = None
    title: str | None = None
    description: str | None = None
    priority: str | None = None
    due_date: str | None = Field(default=None, alias="dueDate")
    tags: list[str] | None = None
    assigned_to: list[str] | str | None = Field(default=None, alias="assignedTo")
    comment: str | None = None

    def provided_fields(self) -> frozenset[TaskField]:
        """请求中实际"提供"了的字段

        空字符串、全空白的标题/描述/评论视为未提供；
        dueDate 只要出现就算提供（null 表示清空截止日期）。
        """
        provided: set[TaskField] = set()
        if self.status:
            provided.add(TaskField.STATUS)
        if self.title and self.title.strip():
            provided.add(TaskField.TITLE)
        if self.description and self.description.strip():
            provided.add(TaskField.DESCRIPTION)
        if self.priority:
            provided.add(TaskField.PRIORITY)
        if "due_date" in self.model_fields_set:
            provided.add(TaskField.DUE_DATE)
        if self.tags is not None:
            provided.add(TaskField.TAGS)
        if self.assigned_to is not None and self.assigned_to != "":
            provided.add(TaskField.ASSIGNED_MEMBERS)
        if self.comment and self.comment.strip():
            provided.add(TaskField.COMMENT)
        return frozenset(provided)


class AllowedUpdate(BaseModel):
    """权限闸门输出：只保留当前角色允许修改的字段"""

    request: UpdateRequest
    fields: frozenset[TaskField]
    dropped: frozenset[TaskField] = frozenset()


class ValidatedUpdate(BaseModel):
    """通过校验的更新

    fields 记录出现的字段；due_date 为 None 且 DUE_DATE 在 fields 中表示清空。
    """

    task_id: str
    fields: frozenset[TaskField]
    status: TaskStatus | None = None
    title: str | None = None
    description: str | None = None
    priority: TaskPriority | None = None
    due_date: date | None = None
    tags: list[str] | None = None
    assigned_members: list[str] | None = None
    comment: str | None = None

    def has(self, field: TaskField) -> bool:
        return field in self.fields


class ChangeSet(BaseModel):
    """一次变更的差异"""

    fields_changed: set[TaskField] = Field(default_factory=set)
    status_changed: bool = False
    old_status: TaskStatus | None = None
    new_status: TaskStatus | None = None
    priority_changed: bool = False
    priority_escalated_to_urgent: bool = False
    members_added: list[str] = Field(default_factory=list)
    members_removed: list[str] = Field(default_factory=list)
    comment_added: bool = False

    @property
    def reassigned(self) -> bool:
        return bool(self.members_added or self.members_removed)

    @property
    def is_empty(self) -> bool:
        return not self.fields_changed

    def changed_field_names(self) -> list[str]:
        """按规范顺序返回变化字段名"""
        return [f.value for f in FIELD_ORDER if f in self.fields_changed]


class TaskFieldUpdate(BaseModel):
    """字段级原子更新

    fields 的 key 为 Task 属性名；append_comment 在存储层以追加方式写入。
    """

    fields: dict[str, Any] = Field(default_factory=dict)
    append_comment: Comment | None = None
    updated_at: datetime
    updated_by: str


class UpdateResult(BaseModel):
    """update_task 的成功结果"""

    task: Task
    changes: ChangeSet
    notifications: list[NotificationEvent] = Field(default_factory=list)
