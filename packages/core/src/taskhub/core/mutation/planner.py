"""Notification Planner -- 由变更集推导通知事件（纯函数，无 I/O）

各规则独立判断，同一接收者可以收到不同类别的多条通知：
- 状态变化：通知创建者（非操作者时）与新分配列表中除操作者外的成员
- 优先级首次升到 urgent：通知最终分配列表中的所有成员（含操作者）
- 重新分配：新增成员收到分配通知（urgent 标记取变更后的优先级），移除成员收到移除通知
- 通用更新：未发生重新分配且 title/description/dueDate/非升级的 priority 有变化时，
  通知除操作者外的成员；重新分配会抑制此类通知

输出顺序：状态 -> 升级 -> 新增 -> 移除 -> 通用，桶内按成员列表顺序。
"""

from ..models.enums import (
    GENERIC_UPDATE_FIELDS,
    NotificationIntent,
    TaskField,
    TaskPriority,
)
from ..models.notification import (
    MemberAssignedPayload,
    MemberRemovedPayload,
    NotificationEvent,
    PriorityEscalatedPayload,
    StatusChangedPayload,
    TaskClosedPayload,
    TaskUpdatedPayload,
)
from ..models.task import Task
from ..models.update import ChangeSet


def _status_events(
    old: Task, new: Task, changes: ChangeSet, actor: str
) -> list[NotificationEvent]:
    if not changes.status_changed or new.status == old.status:
        return []

    def _event(recipient: str) -> NotificationEvent:
        return NotificationEvent(
            recipient=recipient,
            intent=NotificationIntent.STATUS_CHANGED,
            payload=StatusChangedPayload(
                task_id=new.task_id,
                title=new.title,
                from_status=old.status,
                to_status=new.status,
                changed_by=actor,
            ).model_dump(mode="json"),
        )

    events: list[NotificationEvent] = []
    if new.created_by and new.created_by != actor:
        events.append(_event(new.created_by))
    events.extend(_event(m) for m in new.assigned_members if m != actor)
    return events


def _escalation_events(
    old: Task, new: Task, changes: ChangeSet, actor: str
) -> list[NotificationEvent]:
    if not changes.priority_escalated_to_urgent or old.priority == TaskPriority.URGENT:
        return []
    return [
        NotificationEvent(
            recipient=member,
            intent=NotificationIntent.PRIORITY_ESCALATED,
            payload=PriorityEscalatedPayload(
                task_id=new.task_id,
                title=new.title,
                description=new.description,
                status=new.status,
                changed_by=actor,
            ).model_dump(mode="json"),
        )
        for member in new.assigned_members
    ]


def _reassignment_events(
    new: Task, changes: ChangeSet, actor: str
) -> list[NotificationEvent]:
    urgent = new.priority == TaskPriority.URGENT
    added = [
        NotificationEvent(
            recipient=member,
            intent=NotificationIntent.MEMBER_ASSIGNED,
            payload=MemberAssignedPayload(
                task_id=new.task_id,
                title=new.title,
                description=new.description,
                status=new.status,
                priority=new.priority,
                due_date=new.due_date,
                urgent=urgent,
                assigned_by=actor,
            ).model_dump(mode="json"),
        )
        for member in dict.fromkeys(changes.members_added)
    ]
    removed = [
        NotificationEvent(
            recipient=member,
            intent=NotificationIntent.MEMBER_REMOVED,
            payload=MemberRemovedPayload(
                task_id=new.task_id,
                title=new.title,
            ).model_dump(mode="json"),
        )
        for member in dict.fromkeys(changes.members_removed)
    ]
    return added + removed


def _generic_events(
    new: Task, changes: ChangeSet, actor: str
) -> list[NotificationEvent]:
    if changes.reassigned:
        return []

    changed = [
        field.value
        for field in GENERIC_UPDATE_FIELDS
        if field in changes.fields_changed
        and not (field == TaskField.PRIORITY and changes.priority_escalated_to_urgent)
    ]
    if not changed:
        return []

    payload = TaskUpdatedPayload(
        task_id=new.task_id,
        title=new.title,
        changed_fields=changed,
        updated_by=actor,
    ).model_dump(mode="json")
    return [
        NotificationEvent(
            recipient=member,
            intent=NotificationIntent.TASK_UPDATED,
            payload=payload,
        )
        for member in new.assigned_members
        if member != actor
    ]


def plan(old: Task, new: Task, changes: ChangeSet, actor: str) -> list[NotificationEvent]:
    """推导一次更新需要发送的通知

    Args:
        old: 更新前的任务
        new: 持久化后的任务
        changes: 本次变更集
        actor: 操作者身份

    Returns:
        有序的通知事件列表
    """
    return [
        *_status_events(old, new, changes, actor),
        *_escalation_events(old, new, changes, actor),
        *_reassignment_events(new, changes, actor),
        *_generic_events(new, changes, actor),
    ]


def plan_created(task: Task, actor: str) -> list[NotificationEvent]:
    """新建任务：通知所有被分配成员"""
    changes = ChangeSet(members_added=list(task.assigned_members))
    return _reassignment_events(task, changes, actor)


def plan_closed(task: Task, actor: str) -> list[NotificationEvent]:
    """删除任务：通知所有被分配成员"""
    payload = TaskClosedPayload(
        task_id=task.task_id,
        title=task.title,
        description=task.description,
        final_status=task.status,
        closed_by=actor,
    ).model_dump(mode="json")
    return [
        NotificationEvent(
            recipient=member,
            intent=NotificationIntent.TASK_CLOSED,
            payload=payload,
        )
        for member in task.assigned_members
    ]
