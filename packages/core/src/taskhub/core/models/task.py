"""Task Domain Model

tasks 表的一行对应一个 Task。comments 只追加，不修改、不删除。
"""

from datetime import date, datetime

from pydantic import BaseModel, Field

from .enums import TaskPriority, TaskStatus


class Comment(BaseModel):
    """任务评论"""

    author: str = Field(description="评论者身份（邮箱）")
    text: str = Field(description="评论内容（已去除首尾空白）")
    timestamp: datetime = Field(description="评论时间")


class Task(BaseModel):
    """Task 数据模型

    assigned_members 保持插入顺序用于展示，语义上按成员身份集合比较。
    """

    task_id: str = Field(description="唯一标识，ULID 格式，不可变")
    title: str = Field(description="任务标题")
    description: str = Field(description="任务描述")
    status: TaskStatus = Field(default=TaskStatus.PENDING, description="当前状态")
    priority: TaskPriority = Field(default=TaskPriority.MEDIUM, description="优先级")
    assigned_members: list[str] = Field(
        default_factory=list,
        description="被分配的成员身份列表（去重，保序）",
    )
    created_by: str = Field(description="创建者身份，不可变")
    created_at: datetime = Field(description="创建时间，不可变")
    updated_at: datetime = Field(description="最近一次更新时间")
    updated_by: str | None = Field(default=None, description="最近一次更新者")
    due_date: date | None = Field(default=None, description="截止日期")
    tags: list[str] = Field(default_factory=list, description="标签")
    comments: list[Comment] = Field(default_factory=list, description="评论（只追加）")

    def is_assigned(self, email: str) -> bool:
        """判断身份是否在当前分配列表中"""
        return email in self.assigned_members
