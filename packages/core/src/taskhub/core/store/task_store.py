"""TaskStore SQLite 实现

atomic_update 是读-改-写路径上唯一的写入原语：
单条 UPDATE 语句按字段写入，评论通过 json_insert 在库内追加。
没有版本号校验，同一字段的并发写入以最后一次为准。
所有写操作持有 StoreGroup 共享的写锁，保证共享连接上的 execute -> commit/rollback
不会与其他写操作交错。
"""

import asyncio
import json
from datetime import date, datetime
from typing import Any

import aiosqlite

from ..models.task import Comment, Task
from ..models.update import TaskFieldUpdate

_TASK_COLUMNS = (
    "task_id, title, description, status, priority, assigned_members, created_by, "
    "created_at, updated_at, updated_by, due_date, tags, comments"
)

# 允许通过 atomic_update 写入的列（同时作为列名白名单）
_UPDATABLE_COLUMNS = frozenset(
    {"status", "title", "description", "priority", "due_date", "tags", "assigned_members"}
)


def _encode_column(name: str, value: Any) -> Any:
    """将 Task 属性值编码为列值"""
    if name in ("tags", "assigned_members"):
        return json.dumps(list(value), ensure_ascii=False)
    if name == "due_date":
        return value.isoformat() if isinstance(value, date) else None
    if hasattr(value, "value"):
        return value.value
    return value


class SqliteTaskStore:
    """TaskStore 的 SQLite 实现"""

    def __init__(
        self,
        conn: aiosqlite.Connection,
        write_lock: asyncio.Lock | None = None,
    ) -> None:
        self._conn = conn
        self._write_lock = write_lock or asyncio.Lock()

    async def create_task(self, task: Task) -> None:
        """创建任务记录"""
        params = (
            task.task_id,
            task.title,
            task.description,
            task.status.value,
            task.priority.value,
            _encode_column("assigned_members", task.assigned_members),
            task.created_by,
            task.created_at.isoformat(),
            task.updated_at.isoformat(),
            task.updated_by,
            _encode_column("due_date", task.due_date),
            _encode_column("tags", task.tags),
            json.dumps(
                [c.model_dump(mode="json") for c in task.comments],
                ensure_ascii=False,
            ),
        )
        async with self._write_lock:
            try:
                await self._conn.execute(
                    f"""
                    INSERT INTO tasks ({_TASK_COLUMNS})
                    VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                    """,
                    params,
                )
                await self._conn.commit()
            except Exception:
                await self._conn.rollback()
                raise

    async def get_task(self, task_id: str) -> Task | None:
        """根据 task_id 查询任务"""
        cursor = await self._conn.execute(
            f"SELECT {_TASK_COLUMNS} FROM tasks WHERE task_id = ?",
            (task_id,),
        )
        row = await cursor.fetchone()
        if row is None:
            return None
        return self._row_to_task(row)

    async def list_tasks(self, member: str | None = None) -> list[Task]:
        """查询任务列表，按 created_at 倒序

        member 不为空时只返回 assigned_members 包含该身份的任务。
        """
        if member:
            cursor = await self._conn.execute(
                f"""
                SELECT {_TASK_COLUMNS} FROM tasks
                WHERE EXISTS (
                    SELECT 1 FROM json_each(tasks.assigned_members) WHERE value = ?
                )
                ORDER BY created_at DESC, rowid DESC
                """,
                (member,),
            )
        else:
            cursor = await self._conn.execute(
                f"SELECT {_TASK_COLUMNS} FROM tasks ORDER BY created_at DESC, rowid DESC"
            )
        rows = await cursor.fetchall()
        return [self._row_to_task(row) for row in rows]

    async def atomic_update(
        self,
        task_id: str,
        update: TaskFieldUpdate,
    ) -> Task | None:
        """字段级原子更新

        Returns:
            更新后的 Task；任务已不存在（例如被并发删除）时返回 None，不做插入

        Raises:
            ValueError: 字段不在可更新白名单中
        """
        assignments: list[str] = []
        params: list[Any] = []
        for name, value in update.fields.items():
            if name not in _UPDATABLE_COLUMNS:
                raise ValueError(f"Field is not updatable: {name}")
            assignments.append(f"{name} = ?")
            params.append(_encode_column(name, value))

        if update.append_comment is not None:
            assignments.append("comments = json_insert(comments, '$[#]', json(?))")
            params.append(update.append_comment.model_dump_json())

        assignments.extend(["updated_at = ?", "updated_by = ?"])
        params.extend([update.updated_at.isoformat(), update.updated_by])

        async with self._write_lock:
            try:
                cursor = await self._conn.execute(
                    f"UPDATE tasks SET {', '.join(assignments)} WHERE task_id = ?",
                    (*params, task_id),
                )
                if cursor.rowcount == 0:
                    # 未命中任何行：结束隐式事务，不做回滚
                    await self._conn.commit()
                    return None
                task = await self.get_task(task_id)
                await self._conn.commit()
            except Exception:
                await self._conn.rollback()
                raise
        return task

    async def delete_task(self, task_id: str) -> bool:
        """删除任务"""
        async with self._write_lock:
            try:
                cursor = await self._conn.execute(
                    "DELETE FROM tasks WHERE task_id = ?",
                    (task_id,),
                )
                await self._conn.commit()
            except Exception:
                await self._conn.rollback()
                raise
        return cursor.rowcount > 0

    @staticmethod
    def _row_to_task(row: aiosqlite.Row) -> Task:
        """将数据库行转换为 Task 模型"""
        comments_data = json.loads(row[12]) if row[12] else []
        return Task(
            task_id=row[0],
            title=row[1],
            description=row[2],
            status=row[3],
            priority=row[4],
            assigned_members=json.loads(row[5]),
            created_by=row[6],
            created_at=datetime.fromisoformat(row[7]),
            updated_at=datetime.fromisoformat(row[8]),
            updated_by=row[9],
            due_date=date.fromisoformat(row[10]) if row[10] else None,
            tags=json.loads(row[11]),
            comments=[Comment(**c) for c in comments_data],
        )
