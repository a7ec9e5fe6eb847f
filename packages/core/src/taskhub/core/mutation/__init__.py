"""TaskHub 任务变更引擎

Validator -> Authorization Gate -> Mutation Resolver -> Notification Planner，
由 TaskMutationEngine 串联，NotificationFanout 负责后台投递。
"""

from .engine import TaskMutationEngine
from .fanout import DispatchFailure, DispatchReport, NotificationFanout, Notifier
from .gate import authorize
from .planner import plan, plan_closed, plan_created
from .resolver import MutationResolver, Resolution, diff_members
from .validator import (
    parse_due_date,
    parse_enum,
    parse_request,
    require_task_id,
    validate,
    validate_identities,
    validate_registration_email,
)

__all__ = [
    "TaskMutationEngine",
    "NotificationFanout",
    "Notifier",
    "DispatchReport",
    "DispatchFailure",
    "authorize",
    "plan",
    "plan_created",
    "plan_closed",
    "MutationResolver",
    "Resolution",
    "diff_members",
    "parse_request",
    "require_task_id",
    "validate",
    "validate_identities",
    "validate_registration_email",
    "parse_due_date",
    "parse_enum",
]
