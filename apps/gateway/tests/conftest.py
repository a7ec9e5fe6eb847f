"""apps/gateway 测试配置 -- httpx AsyncClient + 已初始化的 app.state"""

import os
from collections.abc import AsyncGenerator
from datetime import UTC, datetime
from pathlib import Path
from unittest.mock import AsyncMock

import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from taskhub.core.config import NotifierConfig
from taskhub.core.models import User, UserRole, UserStatus
from taskhub.core.mutation import NotificationFanout
from taskhub.core.store import create_store_group

from gateway_helpers import ADMIN, ALICE, BOB, CAROL, IVAN, OTHER_ADMIN

_USERS = (
    (ADMIN, UserRole.ADMIN, UserStatus.ACTIVE),
    (OTHER_ADMIN, UserRole.ADMIN, UserStatus.ACTIVE),
    (ALICE, UserRole.MEMBER, UserStatus.ACTIVE),
    (BOB, UserRole.MEMBER, UserStatus.ACTIVE),
    (CAROL, UserRole.MEMBER, UserStatus.ACTIVE),
    (IVAN, UserRole.MEMBER, UserStatus.INACTIVE),
)


@pytest_asyncio.fixture
async def notifier() -> AsyncMock:
    """记录所有投递的 Notifier"""
    return AsyncMock()


@pytest_asyncio.fixture
async def test_app(tmp_path: Path, notifier: AsyncMock):
    """创建测试 app，手动初始化 app.state（绕过 lifespan）"""
    os.environ["TASKHUB_DB_PATH"] = str(tmp_path / "test.db")
    os.environ["LOGFIRE_SEND_TO_LOGFIRE"] = "false"

    from taskhub.gateway.main import create_app

    app = create_app()

    store_group = await create_store_group(str(tmp_path / "test.db"))
    now = datetime.now(UTC)
    for i, (email, role, status) in enumerate(_USERS):
        await store_group.directory.create_user(
            User(
                email=email,
                user_id=f"01JUSER{i:019d}",
                role=role,
                status=status,
                created_at=now,
            )
        )

    app.state.store_group = store_group
    app.state.notifier_config = NotifierConfig()
    app.state.fanout = NotificationFanout(notifier)

    yield app

    await app.state.fanout.drain()
    await store_group.conn.close()
    os.environ.pop("TASKHUB_DB_PATH", None)
    os.environ.pop("LOGFIRE_SEND_TO_LOGFIRE", None)


@pytest_asyncio.fixture
async def client(test_app) -> AsyncGenerator[AsyncClient, None]:
    """提供 httpx AsyncClient 用于测试"""
    async with AsyncClient(
        transport=ASGITransport(app=test_app),
        base_url="http://test",
    ) as ac:
        yield ac
