"""TaskHub 异常体系

每个异常携带 ErrorKind 和结构化 details，边界层据此渲染面向用户的消息，
不拼接内部实现细节。
"""

from enum import StrEnum
from typing import Any


class ErrorKind(StrEnum):
    """错误类别"""

    MISSING_FIELD = "MissingField"
    MALFORMED_REQUEST = "MalformedRequest"
    INVALID_ENUM_VALUE = "InvalidEnumValue"
    INVALID_DATE_FORMAT = "InvalidDateFormat"
    INVALID_IDENTITY_FORMAT = "InvalidIdentityFormat"
    EMAIL_DOMAIN_NOT_ALLOWED = "EmailDomainNotAllowed"
    NO_ASSIGNEES_PROVIDED = "NoAssigneesProvided"
    NON_EXISTENT_USERS = "NonExistentUsers"
    INACTIVE_USERS = "InactiveUsers"
    ADMIN_USERS = "AdminUsers"
    FORBIDDEN = "Forbidden"
    NO_VALID_UPDATES = "NoValidUpdates"
    NOT_FOUND = "NotFound"
    STORE_FAILURE = "StoreFailure"


class TaskHubError(Exception):
    """TaskHub 基础异常"""

    kind: ErrorKind

    def __init__(self, message: str, **details: Any) -> None:
        """
        Args:
            message: 默认（英文）错误描述
            **details: 结构化细节，如 field / value / invalid_emails
        """
        super().__init__(message)
        self.message = message
        self.details = details

    def to_dict(self) -> dict[str, Any]:
        return {"kind": self.kind.value, "message": self.message, **self.details}


class MissingFieldError(TaskHubError):
    kind = ErrorKind.MISSING_FIELD

    def __init__(self, field: str) -> None:
        super().__init__(f"Missing required field: {field}", field=field)
        self.field = field


class MalformedRequestError(TaskHubError):
    """请求体字段类型错误（如 status 不是字符串）"""

    kind = ErrorKind.MALFORMED_REQUEST

    def __init__(self, fields: list[str]) -> None:
        super().__init__("Malformed request body", fields=fields)
        self.fields = fields


class InvalidEnumValueError(TaskHubError):
    kind = ErrorKind.INVALID_ENUM_VALUE

    def __init__(self, field: str, value: str, allowed: list[str]) -> None:
        super().__init__(
            f"Invalid {field}. Must be one of: {', '.join(allowed)}",
            field=field,
            value=value,
            allowed=allowed,
        )
        self.field = field
        self.value = value
        self.allowed = allowed


class InvalidDateFormatError(TaskHubError):
    kind = ErrorKind.INVALID_DATE_FORMAT

    def __init__(self, field: str, value: str) -> None:
        super().__init__("Invalid due date format", field=field, value=value)
        self.field = field
        self.value = value


class InvalidIdentityFormatError(TaskHubError):
    kind = ErrorKind.INVALID_IDENTITY_FORMAT

    def __init__(self, invalid_emails: list[str]) -> None:
        super().__init__("Invalid email addresses", invalid_emails=invalid_emails)
        self.invalid_emails = invalid_emails


class EmailDomainNotAllowedError(TaskHubError):
    kind = ErrorKind.EMAIL_DOMAIN_NOT_ALLOWED

    def __init__(self, email: str, allowed_domains: list[str]) -> None:
        super().__init__(
            f"Email must be from one of: {', '.join(allowed_domains)}",
            email=email,
            allowed_domains=allowed_domains,
        )
        self.email = email
        self.allowed_domains = allowed_domains


class NoAssigneesProvidedError(TaskHubError):
    kind = ErrorKind.NO_ASSIGNEES_PROVIDED

    def __init__(self) -> None:
        super().__init__("At least one member must be assigned")


class InvalidAssigneesError(TaskHubError):
    """被分配人校验失败 -- 同时报告所有三类问题

    每一类对应调用方不同的修正动作，因此累积而不是遇到第一类就返回。
    kind 取第一个非空类别（顺序：不存在 > 已停用 > 管理员）。
    """

    def __init__(
        self,
        non_existent_users: list[str],
        inactive_users: list[str],
        admin_users: list[str],
    ) -> None:
        details: dict[str, list[str]] = {}
        if non_existent_users:
            details["non_existent_users"] = non_existent_users
        if inactive_users:
            details["inactive_users"] = inactive_users
        if admin_users:
            details["admin_users"] = admin_users
        super().__init__("Some assignees cannot be assigned to tasks", **details)
        self.non_existent_users = non_existent_users
        self.inactive_users = inactive_users
        self.admin_users = admin_users
        self.kinds = [
            kind
            for kind, users in (
                (ErrorKind.NON_EXISTENT_USERS, non_existent_users),
                (ErrorKind.INACTIVE_USERS, inactive_users),
                (ErrorKind.ADMIN_USERS, admin_users),
            )
            if users
        ]
        self.kind = self.kinds[0]

    def to_dict(self) -> dict[str, Any]:
        data = super().to_dict()
        data["kinds"] = [k.value for k in self.kinds]
        return data


class ForbiddenError(TaskHubError):
    kind = ErrorKind.FORBIDDEN

    def __init__(self, message: str = "Forbidden - You can only update tasks assigned to you") -> None:
        super().__init__(message)


class NoValidUpdatesError(TaskHubError):
    kind = ErrorKind.NO_VALID_UPDATES

    def __init__(self) -> None:
        super().__init__("No valid updates provided")


class TaskNotFoundError(TaskHubError):
    kind = ErrorKind.NOT_FOUND

    def __init__(self, task_id: str) -> None:
        super().__init__(f"Task with id {task_id} does not exist", task_id=task_id)
        self.task_id = task_id


class UserNotFoundError(TaskHubError):
    kind = ErrorKind.NOT_FOUND

    def __init__(self, email: str) -> None:
        super().__init__("User not found", email=email)
        self.email = email


class StoreFailureError(TaskHubError):
    """持久化层错误

    原始异常通过 __cause__ 保留用于日志诊断，对调用方只暴露通用消息。
    """

    kind = ErrorKind.STORE_FAILURE

    def __init__(self, operation: str, original_error: Exception) -> None:
        super().__init__("Failed to persist task changes")
        self.operation = operation
        self.original_error = original_error


class NotificationDeliveryError(Exception):
    """单条通知投递失败 -- 只在 fan-out 内部记录，不向调用方传播"""

    def __init__(self, recipient: str, reason: str) -> None:
        super().__init__(f"Notification to {recipient} failed: {reason}")
        self.recipient = recipient
        self.reason = reason
