"""Store Protocol 接口定义

定义 TaskStore、Directory 的抽象接口，
使用 Python Protocol 实现结构化子类型（duck typing）。
变更引擎只依赖这两个窄接口，不直接接触数据库连接。
"""

from collections.abc import Iterable
from typing import Protocol

from ..models.enums import UserRole
from ..models.task import Task
from ..models.update import TaskFieldUpdate
from ..models.user import AssigneeFacts


class TaskStore(Protocol):
    """Task 存储接口"""

    async def create_task(self, task: Task) -> None:
        """创建任务记录"""
        ...

    async def get_task(self, task_id: str) -> Task | None:
        """根据 task_id 查询任务"""
        ...

    async def list_tasks(self, member: str | None = None) -> list[Task]:
        """查询任务列表，member 不为空时只返回分配给该成员的任务"""
        ...

    async def atomic_update(
        self,
        task_id: str,
        update: TaskFieldUpdate,
    ) -> Task | None:
        """字段级原子更新，返回更新后的任务；任务不存在返回 None（不会插入）"""
        ...

    async def delete_task(self, task_id: str) -> bool:
        """删除任务，返回是否实际删除"""
        ...


class Directory(Protocol):
    """用户目录接口（只读视角）"""

    async def role_of(self, email: str) -> UserRole | None:
        """查询身份的角色，未知身份返回 None"""
        ...

    async def is_active(self, email: str) -> bool:
        """身份是否处于 active 状态，未知身份返回 False"""
        ...

    async def resolve_many(self, emails: Iterable[str]) -> dict[str, AssigneeFacts]:
        """批量查询候选被分配人的存在性、激活状态与角色"""
        ...
