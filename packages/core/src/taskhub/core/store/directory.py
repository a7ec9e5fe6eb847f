"""Directory SQLite 实现

users 表是身份 -> 角色/状态的唯一来源。
resolve_many 对每个身份并发查询，全部完成后再返回（join point）。
写操作与 SqliteTaskStore 共用同一把写锁。
"""

import asyncio
from collections.abc import Iterable
from datetime import datetime

import aiosqlite

from ..config import DIRECTORY_LOOKUP_CONCURRENCY
from ..models.enums import UserRole, UserStatus
from ..models.user import AssigneeFacts, User

_USER_COLUMNS = "email, user_id, role, status, created_at"


class SqliteDirectory:
    """Directory 的 SQLite 实现，同时提供用户管理写操作"""

    def __init__(
        self,
        conn: aiosqlite.Connection,
        lookup_concurrency: int = DIRECTORY_LOOKUP_CONCURRENCY,
        write_lock: asyncio.Lock | None = None,
    ) -> None:
        self._conn = conn
        self._write_lock = write_lock or asyncio.Lock()
        self._lookup_concurrency = max(1, lookup_concurrency)

    async def get_user(self, email: str) -> User | None:
        """根据身份查询用户"""
        cursor = await self._conn.execute(
            f"SELECT {_USER_COLUMNS} FROM users WHERE email = ?",
            (email,),
        )
        row = await cursor.fetchone()
        if row is None:
            return None
        return self._row_to_user(row)

    async def role_of(self, email: str) -> UserRole | None:
        user = await self.get_user(email)
        return user.role if user else None

    async def is_active(self, email: str) -> bool:
        user = await self.get_user(email)
        return user is not None and user.status == UserStatus.ACTIVE

    async def resolve_many(self, emails: Iterable[str]) -> dict[str, AssigneeFacts]:
        """并发查询候选被分配人

        Returns:
            email -> AssigneeFacts，key 顺序与输入一致
        """
        semaphore = asyncio.Semaphore(self._lookup_concurrency)

        async def _lookup(email: str) -> AssigneeFacts:
            async with semaphore:
                user = await self.get_user(email)
            if user is None:
                return AssigneeFacts(exists=False)
            return AssigneeFacts(
                exists=True,
                active=user.status == UserStatus.ACTIVE,
                role=user.role,
            )

        ordered = list(dict.fromkeys(emails))
        results = await asyncio.gather(*(_lookup(email) for email in ordered))
        return dict(zip(ordered, results, strict=True))

    async def create_user(self, user: User) -> None:
        """创建用户记录"""
        async with self._write_lock:
            try:
                await self._conn.execute(
                    f"INSERT INTO users ({_USER_COLUMNS}) VALUES (?, ?, ?, ?, ?)",
                    (
                        user.email,
                        user.user_id,
                        user.role.value,
                        user.status.value,
                        user.created_at.isoformat(),
                    ),
                )
                await self._conn.commit()
            except Exception:
                await self._conn.rollback()
                raise

    async def list_users(self) -> list[User]:
        """查询所有用户，按创建时间正序"""
        cursor = await self._conn.execute(
            f"SELECT {_USER_COLUMNS} FROM users ORDER BY created_at ASC"
        )
        rows = await cursor.fetchall()
        return [self._row_to_user(row) for row in rows]

    async def update_user(
        self,
        email: str,
        role: UserRole | None = None,
        status: UserStatus | None = None,
    ) -> User | None:
        """更新用户角色/状态

        停用用户不会把他从已分配的任务中移除。

        Returns:
            更新后的 User，用户不存在返回 None
        """
        assignments: list[str] = []
        params: list[str] = []
        if role is not None:
            assignments.append("role = ?")
            params.append(role.value)
        if status is not None:
            assignments.append("status = ?")
            params.append(status.value)
        if not assignments:
            return await self.get_user(email)

        async with self._write_lock:
            try:
                cursor = await self._conn.execute(
                    f"UPDATE users SET {', '.join(assignments)} WHERE email = ?",
                    (*params, email),
                )
                await self._conn.commit()
            except Exception:
                await self._conn.rollback()
                raise
        if cursor.rowcount == 0:
            return None
        return await self.get_user(email)

    @staticmethod
    def _row_to_user(row: aiosqlite.Row) -> User:
        """将数据库行转换为 User 模型"""
        return User(
            email=row[0],
            user_id=row[1],
            role=row[2],
            status=row[3],
            created_at=datetime.fromisoformat(row[4]),
        )
