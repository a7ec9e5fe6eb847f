"""Authorization Gate -- 按角色过滤可写字段

管理员：可写 status/title/description/priority/dueDate/tags/assignedTo，
非法取值由 Validator 显式拒绝。
成员：只能改 status 并追加一条评论；其他字段静默丢弃（前端简化表单会带上
无关字段），丢弃后没有可应用的内容时才报 NoValidUpdates。
"""

import structlog

from ..exceptions import ForbiddenError, NoValidUpdatesError
from ..models.enums import ADMIN_FIELDS, MEMBER_FIELDS
from ..models.task import Task
from ..models.update import AllowedUpdate, UpdateRequest
from ..models.user import Actor

log = structlog.get_logger()


def authorize(actor: Actor, task: Task, request: UpdateRequest) -> AllowedUpdate:
    """确定本次请求可以修改的字段

    Raises:
        ForbiddenError: 既不是管理员也不在任务的分配列表中（在检查任何字段之前）
        NoValidUpdatesError: 过滤后没有可应用的字段
    """
    if not actor.is_admin and not task.is_assigned(actor.email):
        raise ForbiddenError()

    provided = request.provided_fields()
    permitted = ADMIN_FIELDS if actor.is_admin else MEMBER_FIELDS
    fields = provided & permitted
    dropped = provided - permitted

    if dropped:
        log.info(
            "update_fields_dropped",
            task_id=task.task_id,
            actor=actor.email,
            role=actor.role.value,
            dropped=sorted(f.value for f in dropped),
        )

    if not fields:
        raise NoValidUpdatesError()

    return AllowedUpdate(request=request, fields=fields, dropped=dropped)
