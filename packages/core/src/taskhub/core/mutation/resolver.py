"""Mutation Resolver -- 合并更新、计算差异

1. 被分配人变更时通过 Directory 并发查询，累积报告 不存在/已停用/管理员 三类问题
2. 成员集合差异：added = new - old，removed = old - new
3. 其余允许字段原样合并到当前任务的副本（不修改调用方持有的旧任务）
4. 写入 updated_at / updated_by
5. 成员评论：在旧评论序列末尾追加恰好一条
6. 生成交给 TaskStore.atomic_update 的字段映射（持久化由引擎执行）
"""

from collections.abc import Sequence
from datetime import UTC, datetime

import structlog
from pydantic import BaseModel

from ..exceptions import InvalidAssigneesError
from ..models.enums import TaskField, TaskPriority, UserRole
from ..models.task import Comment, Task
from ..models.update import ChangeSet, TaskFieldUpdate, ValidatedUpdate
from ..models.user import Actor
from ..store.protocols import Directory

log = structlog.get_logger()

# ValidatedUpdate 字段 -> Task 属性（除被分配人与评论外原样合并）
_PLAIN_FIELDS: tuple[tuple[TaskField, str], ...] = (
    (TaskField.STATUS, "status"),
    (TaskField.TITLE, "title"),
    (TaskField.DESCRIPTION, "description"),
    (TaskField.PRIORITY, "priority"),
    (TaskField.DUE_DATE, "due_date"),
    (TaskField.TAGS, "tags"),
)


class Resolution(BaseModel):
    """resolve() 的结果"""

    new_task: Task
    changes: ChangeSet
    field_update: TaskFieldUpdate


def diff_members(old: Sequence[str], new: Sequence[str]) -> tuple[list[str], list[str]]:
    """按身份做集合差

    Returns:
        (added, removed)：added 保持 new 的顺序，removed 保持 old 的顺序
    """
    old_set = set(old)
    new_set = set(new)
    added = [m for m in new if m not in old_set]
    removed = [m for m in old if m not in new_set]
    return added, removed


class MutationResolver:
    """合并已校验的更新，得到新状态与变更集"""

    def __init__(self, directory: Directory) -> None:
        self._directory = directory

    async def verify_assignees(self, emails: Sequence[str]) -> None:
        """校验候选被分配人：必须存在、处于 active、且不是管理员

        三类问题全部收集后一起报告。

        Raises:
            InvalidAssigneesError: 任一类别非空
        """
        facts = await self._directory.resolve_many(emails)

        non_existent: list[str] = []
        inactive: list[str] = []
        admins: list[str] = []
        for email in emails:
            fact = facts.get(email)
            if fact is None or not fact.exists:
                non_existent.append(email)
            elif not fact.active:
                inactive.append(email)
            elif fact.role == UserRole.ADMIN:
                admins.append(email)

        if non_existent or inactive or admins:
            log.info(
                "assignee_validation_failed",
                non_existent_users=non_existent,
                inactive_users=inactive,
                admin_users=admins,
            )
            raise InvalidAssigneesError(
                non_existent_users=non_existent,
                inactive_users=inactive,
                admin_users=admins,
            )

    async def resolve(
        self,
        current: Task,
        update: ValidatedUpdate,
        actor: Actor,
        now: datetime | None = None,
    ) -> Resolution:
        """计算新任务状态与变更集

        Args:
            current: 当前任务（不会被修改）
            update: 已通过校验的更新
            actor: 操作者
            now: 更新时间，默认当前 UTC 时间
        """
        now = now or datetime.now(UTC)
        changes = ChangeSet()
        fields: dict[str, object] = {}

        if update.has(TaskField.ASSIGNED_MEMBERS):
            new_members = list(update.assigned_members)
            await self.verify_assignees(new_members)
            added, removed = diff_members(current.assigned_members, new_members)
            changes.members_added = added
            changes.members_removed = removed
            if added or removed:
                changes.fields_changed.add(TaskField.ASSIGNED_MEMBERS)
            fields["assigned_members"] = new_members

        for field, attr in _PLAIN_FIELDS:
            if not update.has(field):
                continue
            value = getattr(update, attr)
            fields[attr] = value
            if value != getattr(current, attr):
                changes.fields_changed.add(field)

        if TaskField.STATUS in changes.fields_changed:
            changes.status_changed = True
            changes.old_status = current.status
            changes.new_status = update.status

        if TaskField.PRIORITY in changes.fields_changed:
            changes.priority_changed = True
            changes.priority_escalated_to_urgent = (
                update.priority == TaskPriority.URGENT
                and current.priority != TaskPriority.URGENT
            )

        comment: Comment | None = None
        if update.has(TaskField.COMMENT):
            comment = Comment(author=actor.email, text=update.comment, timestamp=now)
            changes.comment_added = True
            changes.fields_changed.add(TaskField.COMMENT)

        merged: dict[str, object] = {**fields, "updated_at": now, "updated_by": actor.email}
        if comment is not None:
            merged["comments"] = [*current.comments, comment]
        new_task = current.model_copy(update=merged, deep=True)

        return Resolution(
            new_task=new_task,
            changes=changes,
            field_update=TaskFieldUpdate(
                fields=fields,
                append_comment=comment,
                updated_at=now,
                updated_by=actor.email,
            ),
        )
