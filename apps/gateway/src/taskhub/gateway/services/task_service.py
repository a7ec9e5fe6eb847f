"""TaskService -- 任务创建/查询/删除/更新业务逻辑

更新统一委托给 TaskMutationEngine；创建与删除复用同一套校验、
被分配人目录检查与通知规划，通知都交给 NotificationFanout 后台投递。
"""

from datetime import UTC, datetime
from typing import Any

import structlog
from pydantic import BaseModel, ConfigDict, Field, ValidationError
from taskhub.core.exceptions import (
    ForbiddenError,
    MalformedRequestError,
    MissingFieldError,
    StoreFailureError,
    TaskHubError,
    TaskNotFoundError,
)
from taskhub.core.models import (
    Actor,
    Task,
    TaskPriority,
    TaskStatus,
    UpdateResult,
)
from taskhub.core.mutation import (
    MutationResolver,
    NotificationFanout,
    TaskMutationEngine,
    parse_due_date,
    parse_enum,
    plan_closed,
    plan_created,
    validate_identities,
)
from taskhub.core.store import StoreGroup
from ulid import ULID

log = structlog.get_logger()


class CreateTaskRequest(BaseModel):
    """任务创建请求体"""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    title: str | None = None
    description: str | None = None
    status: str | None = None
    priority: str | None = None
    due_date: str | None = Field(default=None, alias="dueDate")
    tags: list[str] = Field(default_factory=list)
    assigned_to: list[str] | str = Field(default_factory=list, alias="assignedTo")


class TaskService:
    """任务业务服务"""

    def __init__(
        self,
        store_group: StoreGroup,
        fanout: NotificationFanout | None = None,
    ) -> None:
        self._stores = store_group
        self._fanout = fanout
        self._engine = TaskMutationEngine(
            store_group.task_store,
            store_group.directory,
            fanout,
        )

    async def update_task(
        self, task_id: str | None, body: Any, actor: Actor
    ) -> UpdateResult:
        """部分更新任务（管理员全字段 / 成员仅状态与评论）"""
        return await self._engine.update_task(task_id, body, actor)

    async def create_task(self, body: Any, actor: Actor) -> Task:
        """创建任务（仅管理员）

        Raises:
            ForbiddenError: 非管理员
            MissingFieldError: 缺少 title / description
            其余校验错误与更新路径一致
        """
        if not actor.is_admin:
            raise ForbiddenError("Forbidden - Only admins can create tasks")

        request = self._parse_create(body)
        if not request.title or not request.title.strip():
            raise MissingFieldError("title")
        if not request.description or not request.description.strip():
            raise MissingFieldError("description")

        assignees = validate_identities(request.assigned_to)
        status = (
            parse_enum(TaskStatus, "status", request.status)
            if request.status
            else TaskStatus.PENDING
        )
        priority = (
            parse_enum(TaskPriority, "priority", request.priority)
            if request.priority
            else TaskPriority.MEDIUM
        )
        due_date = parse_due_date(request.due_date) if request.due_date else None

        try:
            await MutationResolver(self._stores.directory).verify_assignees(assignees)
        except TaskHubError:
            raise
        except Exception as e:
            raise StoreFailureError("resolve_assignees", e) from e

        now = datetime.now(UTC)
        task = Task(
            task_id=str(ULID()),
            title=request.title.strip(),
            description=request.description.strip(),
            status=status,
            priority=priority,
            assigned_members=assignees,
            created_by=actor.email,
            created_at=now,
            updated_at=now,
            due_date=due_date,
            tags=list(dict.fromkeys(t.strip() for t in request.tags if t.strip())),
        )

        try:
            await self._stores.task_store.create_task(task)
        except Exception as e:
            log.error(
                "task_create_failed",
                task_id=task.task_id,
                error_type=type(e).__name__,
            )
            raise StoreFailureError("create_task", e) from e

        events = plan_created(task, actor.email)
        log.info(
            "task_created",
            task_id=task.task_id,
            created_by=actor.email,
            assignee_count=len(assignees),
            priority=task.priority.value,
        )
        if self._fanout is not None:
            self._fanout.dispatch(events, task_id=task.task_id)
        return task

    async def get_task(self, task_id: str, actor: Actor) -> Task:
        """查询任务详情；成员只能查看分配给自己的任务"""
        task = await self._stores.task_store.get_task(task_id)
        if task is None:
            raise TaskNotFoundError(task_id)
        if not actor.is_admin and not task.is_assigned(actor.email):
            raise ForbiddenError("Forbidden - You can only view tasks assigned to you")
        return task

    async def list_tasks(self, actor: Actor) -> list[Task]:
        """查询任务列表：管理员看到全部，成员只看到分配给自己的"""
        if actor.is_admin:
            return await self._stores.task_store.list_tasks()
        return await self._stores.task_store.list_tasks(member=actor.email)

    async def delete_task(self, task_id: str, actor: Actor) -> Task:
        """删除任务（仅管理员），并通知全部被分配成员

        Returns:
            被删除的任务
        """
        if not actor.is_admin:
            raise ForbiddenError("Forbidden - Only admins can delete tasks")

        task = await self._stores.task_store.get_task(task_id)
        if task is None:
            raise TaskNotFoundError(task_id)

        try:
            deleted = await self._stores.task_store.delete_task(task_id)
        except Exception as e:
            log.error("task_delete_failed", task_id=task_id, error_type=type(e).__name__)
            raise StoreFailureError("delete_task", e) from e
        if not deleted:
            raise TaskNotFoundError(task_id)

        events = plan_closed(task, actor.email)
        log.info(
            "task_deleted",
            task_id=task_id,
            closed_by=actor.email,
            final_status=task.status.value,
        )
        if self._fanout is not None:
            self._fanout.dispatch(events, task_id=task_id)
        return task

    @staticmethod
    def _parse_create(body: Any) -> CreateTaskRequest:
        if not isinstance(body, dict):
            raise MalformedRequestError(["body"])
        try:
            return CreateTaskRequest.model_validate(body)
        except ValidationError as e:
            fields = sorted({str(err["loc"][0]) for err in e.errors() if err["loc"]})
            raise MalformedRequestError(fields) from e
