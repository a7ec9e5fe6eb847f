"""任务路由

PUT /api/tasks: 更新任务（taskId 在请求体中）
PUT /api/tasks/{task_id}: 更新任务（taskId 取路径参数）
POST /api/tasks: 创建任务（仅管理员）
GET /api/tasks: 任务列表（管理员全部 / 成员仅自己的），按 created_at 倒序
GET /api/tasks/{task_id}: 任务详情
DELETE /api/tasks/{task_id}: 删除任务（仅管理员）

错误由 errors.register_error_handlers 统一渲染。
"""

from typing import Any

from fastapi import APIRouter, Body, Depends
from starlette.responses import JSONResponse
from taskhub.core.models import Actor, Task, UpdateResult

from ..deps import get_actor, get_fanout, get_store_group
from ..services.task_service import TaskService

router = APIRouter()


def serialize_task(task: Task) -> dict[str, Any]:
    """Task -> 响应 JSON（字段名与请求体一致的 camelCase）"""
    return {
        "taskId": task.task_id,
        "title": task.title,
        "description": task.description,
        "status": task.status.value,
        "priority": task.priority.value,
        "assignedMembers": list(task.assigned_members),
        "createdBy": task.created_by,
        "createdAt": task.created_at.isoformat(),
        "updatedAt": task.updated_at.isoformat(),
        "updatedBy": task.updated_by,
        "dueDate": task.due_date.isoformat() if task.due_date else None,
        "tags": list(task.tags),
        "comments": [
            {
                "author": c.author,
                "text": c.text,
                "timestamp": c.timestamp.isoformat(),
            }
            for c in task.comments
        ],
    }


def _update_response(result: UpdateResult) -> dict[str, Any]:
    changes = result.changes
    return {
        "message": "Task updated successfully",
        "task": serialize_task(result.task),
        "changes": {
            "fieldsChanged": changes.changed_field_names(),
            "statusChanged": changes.status_changed,
            "reassigned": changes.reassigned,
            "membersAdded": changes.members_added,
            "membersRemoved": changes.members_removed,
        },
        "notificationsScheduled": len(result.notifications),
    }


@router.put("/api/tasks")
async def update_task(
    body: Any = Body(default=None),
    actor: Actor = Depends(get_actor),
    store_group=Depends(get_store_group),
    fanout=Depends(get_fanout),
):
    """更新任务，taskId 在请求体中"""
    service = TaskService(store_group, fanout)
    result = await service.update_task(None, body, actor)
    return _update_response(result)


@router.put("/api/tasks/{task_id}")
async def update_task_by_path(
    task_id: str,
    body: Any = Body(default=None),
    actor: Actor = Depends(get_actor),
    store_group=Depends(get_store_group),
    fanout=Depends(get_fanout),
):
    """更新任务，taskId 取路径参数"""
    service = TaskService(store_group, fanout)
    result = await service.update_task(task_id, body, actor)
    return _update_response(result)


@router.post("/api/tasks")
async def create_task(
    body: Any = Body(default=None),
    actor: Actor = Depends(get_actor),
    store_group=Depends(get_store_group),
    fanout=Depends(get_fanout),
):
    """创建任务 -- 成功返回 201"""
    service = TaskService(store_group, fanout)
    task = await service.create_task(body, actor)
    return JSONResponse(
        status_code=201,
        content={
            "message": "Task created successfully",
            "task": serialize_task(task),
        },
    )


@router.get("/api/tasks")
async def list_tasks(
    actor: Actor = Depends(get_actor),
    store_group=Depends(get_store_group),
):
    """任务列表"""
    service = TaskService(store_group)
    tasks = await service.list_tasks(actor)
    return {
        "tasks": [serialize_task(t) for t in tasks],
        "count": len(tasks),
        "userRole": actor.role.value,
    }


@router.get("/api/tasks/{task_id}")
async def get_task(
    task_id: str,
    actor: Actor = Depends(get_actor),
    store_group=Depends(get_store_group),
):
    """任务详情"""
    service = TaskService(store_group)
    task = await service.get_task(task_id, actor)
    return {"task": serialize_task(task)}


@router.delete("/api/tasks/{task_id}")
async def delete_task(
    task_id: str,
    actor: Actor = Depends(get_actor),
    store_group=Depends(get_store_group),
    fanout=Depends(get_fanout),
):
    """删除任务"""
    service = TaskService(store_group, fanout)
    task = await service.delete_task(task_id, actor)
    return {"message": "Task deleted successfully", "taskId": task.task_id}
