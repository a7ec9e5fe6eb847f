"""CLI 测试 -- python -m taskhub.core"""

import asyncio
import sqlite3
import sys
from pathlib import Path

import pytest
from taskhub.core.__main__ import main
from taskhub.core.store import create_store_group


@pytest.fixture
def cli_db(tmp_path: Path, monkeypatch) -> Path:
    db_path = tmp_path / "cli" / "taskhub.db"
    monkeypatch.setenv("TASKHUB_DB_PATH", str(db_path))
    return db_path


def _run(monkeypatch, *args: str) -> None:
    monkeypatch.setattr(sys, "argv", ["taskhub.core", *args])
    main()


class TestCli:
    def test_init_db(self, cli_db, monkeypatch):
        _run(monkeypatch, "init-db")
        assert cli_db.exists()
        with sqlite3.connect(cli_db) as conn:
            tables = {row[0] for row in conn.execute("SELECT name FROM sqlite_master")}
        assert {"tasks", "users"} <= tables

    def test_add_user(self, cli_db, monkeypatch):
        _run(monkeypatch, "add-user", "Boss@Example.com", "admin")
        _run(monkeypatch, "add-user", "alice@example.com")
        with sqlite3.connect(cli_db) as conn:
            rows = dict(conn.execute("SELECT email, role FROM users").fetchall())
        assert rows == {"Boss@Example.com": "admin", "alice@example.com": "member"}

    def test_added_email_resolves_exactly_as_given(self, cli_db, monkeypatch):
        _run(monkeypatch, "add-user", "  Carol.Ops@Example.com ")

        async def _resolve(email: str) -> bool:
            group = await create_store_group(str(cli_db))
            try:
                facts = await group.directory.resolve_many([email])
            finally:
                await group.conn.close()
            return facts[email].exists

        assert asyncio.run(_resolve("Carol.Ops@Example.com")) is True
        assert asyncio.run(_resolve("carol.ops@example.com")) is False

    def test_domain_allowlist(self, cli_db, monkeypatch):
        monkeypatch.setenv("TASKHUB_ALLOWED_EMAIL_DOMAINS", "corp.io")
        with pytest.raises(SystemExit):
            _run(monkeypatch, "add-user", "alice@example.com")
        _run(monkeypatch, "add-user", "Alice@CORP.io")
        with sqlite3.connect(cli_db) as conn:
            emails = [row[0] for row in conn.execute("SELECT email FROM users")]
        assert emails == ["Alice@CORP.io"]

    def test_add_user_twice(self, cli_db, monkeypatch):
        _run(monkeypatch, "add-user", "alice@example.com")
        with pytest.raises(SystemExit):
            _run(monkeypatch, "add-user", "alice@example.com")

    @pytest.mark.parametrize(
        "args",
        [(), ("unknown",), ("add-user",), ("add-user", "not-an-email"), ("add-user", "a@b.io", "owner")],
    )
    def test_usage_errors(self, cli_db, monkeypatch, args):
        with pytest.raises(SystemExit) as exc_info:
            _run(monkeypatch, *args)
        assert exc_info.value.code == 1
