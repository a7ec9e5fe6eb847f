"""依赖注入模块 -- 通过 FastAPI Depends 注入 Store / Fan-out / 当前操作者

Store 与 NotificationFanout 通过 app.state 管理，在 lifespan 中初始化/清理。
操作者身份来自 X-User-Email 请求头（由上游认证层注入，此处不做校验）。
"""

from fastapi import Depends, Header, HTTPException, Request
from taskhub.core.models import Actor, UserStatus
from taskhub.core.mutation import NotificationFanout
from taskhub.core.store import StoreGroup


def get_store_group(request: Request) -> StoreGroup:
    """从 app.state 获取 StoreGroup 实例"""
    return request.app.state.store_group


def get_fanout(request: Request) -> NotificationFanout | None:
    """从 app.state 获取 NotificationFanout 实例"""
    return getattr(request.app.state, "fanout", None)


async def get_actor(
    x_user_email: str | None = Header(default=None),
    store_group: StoreGroup = Depends(get_store_group),
) -> Actor:
    """解析当前操作者

    - 缺少身份头或身份未注册：401
    - 账号非 active：403
    """
    email = (x_user_email or "").strip()
    if not email:
        raise HTTPException(
            status_code=401,
            detail={"code": "UNAUTHORIZED", "message": "Unauthorized - No user identity found"},
        )

    user = await store_group.directory.get_user(email)
    if user is None:
        raise HTTPException(
            status_code=401,
            detail={"code": "UNAUTHORIZED", "message": "Unauthorized - Unknown user"},
        )
    if user.status != UserStatus.ACTIVE:
        raise HTTPException(
            status_code=403,
            detail={"code": "ACCOUNT_DEACTIVATED", "message": "Account is deactivated"},
        )
    return Actor(email=user.email, role=user.role)
