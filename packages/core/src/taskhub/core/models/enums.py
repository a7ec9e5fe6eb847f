"""枚举定义

包含 TaskStatus、TaskPriority、UserRole、UserStatus、NotificationIntent、TaskField 枚举，
以及通知规划用到的字段分组常量。
"""

from enum import StrEnum


class TaskStatus(StrEnum):
    """Task 状态

    不维护流转表：任意状态都可以流转到任意其他状态，
    只有"发生变化"这一事实会触发通知。
    """

    PENDING = "pending"
    IN_PROGRESS = "in-progress"
    COMPLETED = "completed"
    BLOCKED = "blocked"
    CANCELLED = "cancelled"


class TaskPriority(StrEnum):
    """Task 优先级"""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    URGENT = "urgent"


class UserRole(StrEnum):
    """用户角色"""

    ADMIN = "admin"
    MEMBER = "member"


class UserStatus(StrEnum):
    """用户账号状态"""

    ACTIVE = "active"
    INACTIVE = "inactive"
    SUSPENDED = "suspended"


class NotificationIntent(StrEnum):
    """通知意图"""

    STATUS_CHANGED = "status_changed"
    PRIORITY_ESCALATED = "priority_escalated"
    MEMBER_ASSIGNED = "member_assigned"
    MEMBER_REMOVED = "member_removed"
    TASK_UPDATED = "task_updated"
    TASK_CLOSED = "task_closed"


class TaskField(StrEnum):
    """可更新字段（取值为请求体中的字段名）"""

    STATUS = "status"
    TITLE = "title"
    DESCRIPTION = "description"
    PRIORITY = "priority"
    DUE_DATE = "dueDate"
    TAGS = "tags"
    ASSIGNED_MEMBERS = "assignedTo"
    COMMENT = "comment"


# 管理员可写字段
ADMIN_FIELDS: frozenset[TaskField] = frozenset(
    {
        TaskField.STATUS,
        TaskField.TITLE,
        TaskField.DESCRIPTION,
        TaskField.PRIORITY,
        TaskField.DUE_DATE,
        TaskField.TAGS,
        TaskField.ASSIGNED_MEMBERS,
    }
)

# 成员可写字段：只能改状态、追加一条评论
MEMBER_FIELDS: frozenset[TaskField] = frozenset({TaskField.STATUS, TaskField.COMMENT})

# 触发 "task updated" 通用通知的字段，按展示顺序排列
GENERIC_UPDATE_FIELDS: tuple[TaskField, ...] = (
    TaskField.TITLE,
    TaskField.DESCRIPTION,
    TaskField.DUE_DATE,
    TaskField.PRIORITY,
)

# 字段规范顺序（change-set 输出用）
FIELD_ORDER: tuple[TaskField, ...] = tuple(TaskField)
