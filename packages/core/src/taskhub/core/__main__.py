"""CLI 入口模块 -- python -m taskhub.core <command>

支持的命令：
  init-db                         初始化 SQLite 数据库
  add-user <email> [admin|member] 注册用户（默认 member）
"""

import asyncio
import sys
from datetime import UTC, datetime

from ulid import ULID

from .config import get_allowed_email_domains, get_db_path
from .exceptions import TaskHubError
from .models import User, UserRole
from .mutation import validate_registration_email

_USAGE = """用法: python -m taskhub.core <command>
命令:
  init-db                         初始化 SQLite 数据库
  add-user <email> [admin|member] 注册用户（默认 member）"""


def main() -> None:
    """CLI 主入口"""
    if len(sys.argv) < 2:
        print(_USAGE)
        sys.exit(1)

    command = sys.argv[1]

    if command == "init-db":
        asyncio.run(init_database())
    elif command == "add-user":
        if len(sys.argv) < 3:
            print("用法: python -m taskhub.core add-user <email> [admin|member]")
            sys.exit(1)
        role_arg = sys.argv[3] if len(sys.argv) > 3 else UserRole.MEMBER.value
        try:
            email = validate_registration_email(sys.argv[2], get_allowed_email_domains())
        except TaskHubError as e:
            print(f"无效邮箱: {sys.argv[2]}（{e.message}）")
            sys.exit(1)
        try:
            role = UserRole(role_arg)
        except ValueError:
            print(f"无效角色: {role_arg}（可选: admin, member）")
            sys.exit(1)
        if not asyncio.run(add_user(email, role)):
            sys.exit(1)
    else:
        print(f"未知命令: {command}")
        print("可用命令: init-db, add-user")
        sys.exit(1)


async def init_database() -> None:
    """创建数据库文件与表结构"""
    from .store import create_store_group

    db_path = get_db_path()
    print(f"数据库路径: {db_path}")

    store_group = await create_store_group(db_path)
    await store_group.conn.close()
    print("初始化完成")


async def add_user(email: str, role: UserRole) -> bool:
    """注册一个 active 用户，用户已存在时返回 False"""
    from .store import create_store_group

    store_group = await create_store_group(get_db_path())
    try:
        if await store_group.directory.get_user(email) is not None:
            print(f"用户已存在: {email}")
            return False
        await store_group.directory.create_user(
            User(
                email=email,
                user_id=str(ULID()),
                role=role,
                created_at=datetime.now(UTC),
            )
        )
        print(f"已添加用户: {email} ({role.value})")
        return True
    finally:
        await store_group.conn.close()


if __name__ == "__main__":
    main()
