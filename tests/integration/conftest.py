"""集成测试共享 fixture

真实 SQLite + 真实 fan-out + WebhookNotifier（httpx.MockTransport 充当 webhook 接收端）。
"""

import os
from collections.abc import AsyncGenerator
from datetime import UTC, datetime
from pathlib import Path

import httpx
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from taskhub.core.config import NotifierConfig
from taskhub.core.models import User, UserRole, UserStatus
from taskhub.core.mutation import NotificationFanout
from taskhub.core.store import create_store_group
from taskhub.gateway.services.notifier import WebhookNotifier

from integration_helpers import ADMIN, ALICE, BOB, CAROL, WEBHOOK_URL, WebhookInbox


@pytest_asyncio.fixture
async def inbox() -> WebhookInbox:
    return WebhookInbox()


@pytest_asyncio.fixture
async def integration_app(tmp_path: Path, inbox: WebhookInbox):
    """集成测试用 FastAPI app"""
    os.environ["TASKHUB_DB_PATH"] = str(tmp_path / "test.db")
    os.environ["LOGFIRE_SEND_TO_LOGFIRE"] = "false"

    from taskhub.gateway.main import create_app

    app = create_app()

    store_group = await create_store_group(str(tmp_path / "test.db"))
    now = datetime.now(UTC)
    users = (
        (ADMIN, UserRole.ADMIN),
        (ALICE, UserRole.MEMBER),
        (BOB, UserRole.MEMBER),
        (CAROL, UserRole.MEMBER),
    )
    for i, (email, role) in enumerate(users):
        await store_group.directory.create_user(
            User(
                email=email,
                user_id=f"01JINTEG{i:018d}",
                role=role,
                status=UserStatus.ACTIVE,
                created_at=now,
            )
        )

    webhook_client = httpx.AsyncClient(transport=httpx.MockTransport(inbox.handler))
    app.state.store_group = store_group
    app.state.notifier_config = NotifierConfig(mode="webhook", webhook_url=WEBHOOK_URL)
    app.state.fanout = NotificationFanout(WebhookNotifier(WEBHOOK_URL, client=webhook_client))

    yield app

    await app.state.fanout.drain()
    await webhook_client.aclose()
    await store_group.conn.close()
    os.environ.pop("TASKHUB_DB_PATH", None)
    os.environ.pop("LOGFIRE_SEND_TO_LOGFIRE", None)


@pytest_asyncio.fixture
async def client(integration_app) -> AsyncGenerator[AsyncClient, None]:
    async with AsyncClient(
        transport=ASGITransport(app=integration_app),
        base_url="http://test",
    ) as ac:
        yield ac
