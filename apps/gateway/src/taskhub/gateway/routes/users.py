"""用户管理路由（仅管理员）

GET /api/users: 用户列表
POST /api/users: 注册用户（新建返回 201，已存在则更新并返回 200）
GET /api/users/{email}: 用户详情
PUT /api/users/{email}: 设置 role / status
DELETE /api/users/{email}: 停用用户
"""

from typing import Any

from fastapi import APIRouter, Body, Depends
from starlette.responses import JSONResponse
from taskhub.core.models import Actor, User

from ..deps import get_actor, get_store_group
from ..services.user_service import UserService

router = APIRouter()


def serialize_user(user: User) -> dict[str, Any]:
    return {
        "email": user.email,
        "userId": user.user_id,
        "role": user.role.value,
        "status": user.status.value,
        "createdAt": user.created_at.isoformat(),
    }


@router.get("/api/users")
async def list_users(
    actor: Actor = Depends(get_actor),
    store_group=Depends(get_store_group),
):
    users = await UserService(store_group).list_users(actor)
    return {"users": [serialize_user(u) for u in users], "count": len(users)}


@router.get("/api/users/{email}")
async def get_user(
    email: str,
    actor: Actor = Depends(get_actor),
    store_group=Depends(get_store_group),
):
    user = await UserService(store_group).get_user(email, actor)
    return {"user": serialize_user(user)}


@router.put("/api/users/{email}")
async def update_user(
    email: str,
    body: Any = Body(default=None),
    actor: Actor = Depends(get_actor),
    store_group=Depends(get_store_group),
):
    """更新用户角色/状态"""
    user = await UserService(store_group).update_user(email, body, actor)
    return {"message": "User updated successfully", "user": serialize_user(user)}


@router.post("/api/users")
async def create_or_update_user(
    body: Any = Body(default=None),
    actor: Actor = Depends(get_actor),
    store_group=Depends(get_store_group),
):
    """注册或更新用户"""
    user, created = await UserService(store_group).create_or_update_user(body, actor)
    action = "created" if created else "updated"
    return JSONResponse(
        status_code=201 if created else 200,
        content={"message": f"User {action} successfully", "user": serialize_user(user)},
    )


@router.delete("/api/users/{email}")
async def deactivate_user(
    email: str,
    actor: Actor = Depends(get_actor),
    store_group=Depends(get_store_group),
):
    """停用用户"""
    user = await UserService(store_group).deactivate_user(email, actor)
    return {"message": "User deactivated successfully", "user": serialize_user(user)}
