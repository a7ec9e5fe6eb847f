"""TaskMutationEngine -- 任务更新的唯一入口

流程：
1. 解析请求体，校验 taskId（Validator 规则 1）
2. 读取当前任务
3. Authorization Gate 按角色过滤字段
4. Validator 校验剩余规则
5. Mutation Resolver 计算新状态与变更集
6. TaskStore.atomic_update 字段级写入（任务已被删除时报 NotFound，不插入）
7. Notification Planner 推导通知，交给 fan-out 后台投递

所有校验/权限错误都在写入之前抛出；只有持久化成功才会产生通知。
读-改-写之间没有版本校验：同一字段的并发更新以最后一次写入为准。
"""

from typing import Any

import structlog

from ..exceptions import StoreFailureError, TaskHubError, TaskNotFoundError
from ..models.task import Task
from ..models.update import TaskFieldUpdate, UpdateResult
from ..models.user import Actor
from ..store.protocols import Directory, TaskStore
from .fanout import NotificationFanout
from .gate import authorize
from .planner import plan
from .resolver import MutationResolver
from .validator import parse_request, require_task_id, validate

log = structlog.get_logger()


class TaskMutationEngine:
    """任务变更引擎（无状态，每个请求可独立构造）"""

    def __init__(
        self,
        task_store: TaskStore,
        directory: Directory,
        fanout: NotificationFanout | None = None,
    ) -> None:
        self._task_store = task_store
        self._resolver = MutationResolver(directory)
        self._fanout = fanout

    @property
    def resolver(self) -> MutationResolver:
        return self._resolver

    @property
    def fanout(self) -> NotificationFanout | None:
        return self._fanout

    async def update_task(
        self,
        task_id: str | None,
        body: Any,
        actor: Actor,
    ) -> UpdateResult:
        """对任务执行一次部分更新

        Args:
            task_id: 路径中的任务 ID；为 None 时取请求体中的 taskId
            body: 原始请求体
            actor: 已解析角色的操作者

        Returns:
            UpdateResult（新任务、变更集、已调度的通知）

        Raises:
            TaskHubError 子类
        """
        request = parse_request(body, task_id)
        resolved_id = require_task_id(request)

        current = await self._load(resolved_id)
        allowed = authorize(actor, current, request)
        validated = validate(allowed)

        try:
            resolution = await self._resolver.resolve(current, validated, actor)
        except TaskHubError:
            raise
        except Exception as e:
            log.error(
                "assignee_lookup_failed",
                task_id=resolved_id,
                error_type=type(e).__name__,
            )
            raise StoreFailureError("resolve_assignees", e) from e

        new_task = await self._persist(resolved_id, resolution.field_update)
        changes = resolution.changes
        events = plan(current, new_task, changes, actor.email)

        log.info(
            "task_update_applied",
            task_id=resolved_id,
            actor=actor.email,
            role=actor.role.value,
            fields_changed=changes.changed_field_names(),
            members_added=changes.members_added,
            members_removed=changes.members_removed,
            notification_count=len(events),
        )

        if self._fanout is not None:
            self._fanout.dispatch(events, task_id=resolved_id)

        return UpdateResult(task=new_task, changes=changes, notifications=events)

    async def _load(self, task_id: str) -> Task:
        try:
            task = await self._task_store.get_task(task_id)
        except Exception as e:
            log.error("task_load_failed", task_id=task_id, error_type=type(e).__name__)
            raise StoreFailureError("get_task", e) from e
        if task is None:
            raise TaskNotFoundError(task_id)
        return task

    async def _persist(self, task_id: str, update: TaskFieldUpdate) -> Task:
        try:
            task = await self._task_store.atomic_update(task_id, update)
        except Exception as e:
            log.error(
                "task_update_persist_failed",
                task_id=task_id,
                error_type=type(e).__name__,
            )
            raise StoreFailureError("atomic_update", e) from e
        if task is None:
            log.warning("task_vanished_during_update", task_id=task_id)
            raise TaskNotFoundError(task_id)
        return task
