"""packages/core 测试配置 -- 核心层 fixture"""

from collections.abc import AsyncGenerator, Callable
from datetime import UTC, datetime
from pathlib import Path

import aiosqlite
import pytest
import pytest_asyncio
from taskhub.core.models import (
    Actor,
    Task,
    TaskPriority,
    TaskStatus,
    User,
    UserRole,
)
from taskhub.core.store import StoreGroup

from core_helpers import ADMIN, ALICE, CREATOR, SEED_USERS


@pytest_asyncio.fixture
async def core_db_path(tmp_path: Path) -> Path:
    """核心层临时数据库路径"""
    return tmp_path / "core_test.db"


@pytest_asyncio.fixture
async def core_db(core_db_path: Path) -> AsyncGenerator[aiosqlite.Connection, None]:
    """核心层已初始化数据库连接"""
    from taskhub.core.store.sqlite_init import init_db

    conn = await aiosqlite.connect(str(core_db_path))
    await init_db(conn)
    yield conn
    await conn.close()


@pytest_asyncio.fixture
async def stores(core_db: aiosqlite.Connection) -> StoreGroup:
    """共享连接的 StoreGroup，已写入测试用户"""
    group = StoreGroup(core_db)
    now = datetime.now(UTC)
    for i, (email, role, status) in enumerate(SEED_USERS):
        await group.directory.create_user(
            User(
                email=email,
                user_id=f"01JUSER{i:019d}",
                role=role,
                status=status,
                created_at=now,
            )
        )
    return group


@pytest.fixture
def admin() -> Actor:
    return Actor(email=ADMIN, role=UserRole.ADMIN)


@pytest.fixture
def make_task() -> Callable[..., Task]:
    """构造 Task 的工厂（默认：pending / medium / 分配给 alice，由 CREATOR 创建）"""

    def _make(**overrides) -> Task:
        now = datetime(2025, 1, 1, 9, 0, tzinfo=UTC)
        data = {
            "task_id": "01JTASK0000000000000000001",
            "title": "Write quarterly report",
            "description": "Collect numbers from every team",
            "status": TaskStatus.PENDING,
            "priority": TaskPriority.MEDIUM,
            "assigned_members": [ALICE],
            "created_by": CREATOR,
            "created_at": now,
            "updated_at": now,
        }
        data.update(overrides)
        return Task(**data)

    return _make
