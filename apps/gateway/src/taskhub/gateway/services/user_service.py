"""UserService -- 用户管理（仅管理员）

停用用户不会修改其已分配的任务：停用只影响之后的分配校验与登录访问。
新注册用户的邮箱受 TASKHUB_ALLOWED_EMAIL_DOMAINS 域名白名单约束。
"""

from datetime import UTC, datetime
from typing import Any

import structlog
from taskhub.core.config import get_allowed_email_domains
from taskhub.core.exceptions import (
    ForbiddenError,
    MalformedRequestError,
    MissingFieldError,
    NoValidUpdatesError,
    StoreFailureError,
    UserNotFoundError,
)
from taskhub.core.models import Actor, User, UserRole, UserStatus
from taskhub.core.mutation import parse_enum, validate_registration_email
from taskhub.core.store import StoreGroup
from ulid import ULID

log = structlog.get_logger()


class UserService:
    """用户业务服务"""

    def __init__(
        self,
        store_group: StoreGroup,
        allowed_domains: list[str] | None = None,
    ) -> None:
        self._stores = store_group
        self._allowed_domains = (
            allowed_domains if allowed_domains is not None else get_allowed_email_domains()
        )

    @staticmethod
    def _require_admin(actor: Actor, action: str) -> None:
        if not actor.is_admin:
            raise ForbiddenError(f"Forbidden - Only admins can {action}")

    @staticmethod
    def _require_not_self(email: str, actor: Actor, status: UserStatus | None) -> None:
        if email == actor.email and status is not None and status != UserStatus.ACTIVE:
            raise ForbiddenError("Cannot deactivate your own account")

    @staticmethod
    def _parse_role_status(body: Any) -> tuple[UserRole | None, UserStatus | None]:
        if not isinstance(body, dict):
            raise MalformedRequestError(["body"])

        raw_role = body.get("role")
        raw_status = body.get("status")
        for field, value in (("role", raw_role), ("status", raw_status)):
            if value is not None and not isinstance(value, str):
                raise MalformedRequestError([field])

        role = parse_enum(UserRole, "role", raw_role) if raw_role else None
        status = parse_enum(UserStatus, "status", raw_status) if raw_status else None
        return role, status

    async def list_users(self, actor: Actor) -> list[User]:
        self._require_admin(actor, "list users")
        return await self._stores.directory.list_users()

    async def get_user(self, email: str, actor: Actor) -> User:
        self._require_admin(actor, "view users")
        user = await self._stores.directory.get_user(email)
        if user is None:
            raise UserNotFoundError(email)
        return user

    async def update_user(self, email: str, body: Any, actor: Actor) -> User:
        """设置用户角色和/或状态

        Raises:
            ForbiddenError: 非管理员，或管理员试图停用自己
            NoValidUpdatesError: 既没有 role 也没有 status
            UserNotFoundError: 用户不存在
        """
        self._require_admin(actor, "manage users")
        role, status = self._parse_role_status(body)
        if role is None and status is None:
            raise NoValidUpdatesError()
        self._require_not_self(email, actor, status)

        user = await self._stores.directory.update_user(email, role=role, status=status)
        if user is None:
            raise UserNotFoundError(email)

        log.info(
            "user_updated",
            email=email,
            role=user.role.value,
            status=user.status.value,
            updated_by=actor.email,
        )
        return user

    async def create_or_update_user(self, body: Any, actor: Actor) -> tuple[User, bool]:
        """按邮箱注册用户；已存在时改为更新 role / status

        Returns:
            (用户, 是否新建)

        Raises:
            MissingFieldError: 缺少 email
            InvalidIdentityFormatError / EmailDomainNotAllowedError: 邮箱不合法
            NoValidUpdatesError: 用户已存在且既没有 role 也没有 status
        """
        self._require_admin(actor, "manage users")
        role, status = self._parse_role_status(body)

        raw_email = body.get("email")
        if raw_email is not None and not isinstance(raw_email, str):
            raise MalformedRequestError(["email"])
        if not raw_email or not raw_email.strip():
            raise MissingFieldError("email")
        email = validate_registration_email(raw_email, self._allowed_domains)

        if await self._stores.directory.get_user(email) is not None:
            return await self.update_user(email, body, actor), False

        user = User(
            email=email,
            user_id=str(ULID()),
            role=role or UserRole.MEMBER,
            status=status or UserStatus.ACTIVE,
            created_at=datetime.now(UTC),
        )
        try:
            await self._stores.directory.create_user(user)
        except Exception as e:
            log.error("user_create_failed", email=email, error_type=type(e).__name__)
            raise StoreFailureError("create_user", e) from e

        log.info(
            "user_created",
            email=email,
            role=user.role.value,
            status=user.status.value,
            created_by=actor.email,
        )
        return user, True

    async def deactivate_user(self, email: str, actor: Actor) -> User:
        """停用用户（status -> inactive），不删除记录"""
        self._require_admin(actor, "manage users")
        self._require_not_self(email, actor, UserStatus.INACTIVE)

        user = await self._stores.directory.update_user(email, status=UserStatus.INACTIVE)
        if user is None:
            raise UserNotFoundError(email)

        log.info("user_deactivated", email=email, deactivated_by=actor.email)
        return user
