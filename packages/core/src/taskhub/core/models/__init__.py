"""TaskHub Core Domain Models -- 公共类型导出

所有公共模型类型从此入口导入。
"""

from .enums import (
    ADMIN_FIELDS,
    GENERIC_UPDATE_FIELDS,
    MEMBER_FIELDS,
    NotificationIntent,
    TaskField,
    TaskPriority,
    TaskStatus,
    UserRole,
    UserStatus,
)
from .notification import (
    MemberAssignedPayload,
    MemberRemovedPayload,
    NotificationEvent,
    PriorityEscalatedPayload,
    StatusChangedPayload,
    TaskClosedPayload,
    TaskUpdatedPayload,
)
from .task import Comment, Task
from .update import (
    AllowedUpdate,
    ChangeSet,
    TaskFieldUpdate,
    UpdateRequest,
    UpdateResult,
    ValidatedUpdate,
)
from .user import Actor, AssigneeFacts, User

__all__ = [
    # 枚举
    "TaskStatus",
    "TaskPriority",
    "UserRole",
    "UserStatus",
    "NotificationIntent",
    "TaskField",
    "ADMIN_FIELDS",
    "MEMBER_FIELDS",
    "GENERIC_UPDATE_FIELDS",
    # Task
    "Task",
    "Comment",
    # User
    "User",
    "Actor",
    "AssigneeFacts",
    # Update
    "UpdateRequest",
    "AllowedUpdate",
    "ValidatedUpdate",
    "ChangeSet",
    "TaskFieldUpdate",
    "UpdateResult",
    # Notification
    "NotificationEvent",
    "StatusChangedPayload",
    "PriorityEscalatedPayload",
    "MemberAssignedPayload",
    "MemberRemovedPayload",
    "TaskUpdatedPayload",
    "TaskClosedPayload",
]
