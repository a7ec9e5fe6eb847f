"""Validator -- 更新请求的结构与业务规则校验

规则按固定顺序执行，遇到第一个失败即抛出（fail fast）：
1. taskId 必填
2. status 枚举
3. priority 枚举
4. dueDate 可解析为日历日期（null 表示清空）
5. 被分配人：去重、丢弃空白项、非空、邮箱格式（一次报告全部非法项）
6. comment 去除首尾空白，空串视为未提供
"""

import re
from collections.abc import Iterable
from datetime import date, datetime
from enum import StrEnum
from typing import Any

from pydantic import ValidationError

from ..config import COMMENT_MAX_LENGTH, IDENTITY_PATTERN
from ..exceptions import (
    EmailDomainNotAllowedError,
    InvalidDateFormatError,
    InvalidEnumValueError,
    InvalidIdentityFormatError,
    MalformedRequestError,
    MissingFieldError,
    NoAssigneesProvidedError,
)
from ..models.enums import TaskField, TaskPriority, TaskStatus
from ..models.update import AllowedUpdate, UpdateRequest, ValidatedUpdate

_IDENTITY_RE = re.compile(IDENTITY_PATTERN)


def parse_request(body: Any, task_id: str | None = None) -> UpdateRequest:
    """将原始请求体解析为 UpdateRequest

    Args:
        body: 请求体（JSON 对象）
        task_id: 路径参数中的 task_id，优先于请求体中的 taskId

    Raises:
        MalformedRequestError: 请求体不是对象或字段类型错误
    """
    if body is None:
        body = {}
    if not isinstance(body, dict):
        raise MalformedRequestError(["body"])

    data = dict(body)
    if task_id is not None:
        data["taskId"] = task_id

    try:
        return UpdateRequest.model_validate(data)
    except ValidationError as e:
        fields = sorted({str(err["loc"][0]) for err in e.errors() if err["loc"]})
        raise MalformedRequestError(fields) from e


def require_task_id(request: UpdateRequest) -> str:
    """规则 1：taskId 必填"""
    if request.task_id is None or not request.task_id.strip():
        raise MissingFieldError("taskId")
    return request.task_id


def parse_enum(enum_cls: type[StrEnum], field: str, value: str) -> Any:
    try:
        return enum_cls(value)
    except ValueError as e:
        raise InvalidEnumValueError(
            field=field,
            value=value,
            allowed=[member.value for member in enum_cls],
        ) from e


def parse_due_date(value: str) -> date:
    """解析截止日期，接受 ISO 日期或 ISO 时间戳（取日期部分）"""
    try:
        return date.fromisoformat(value)
    except ValueError:
        pass
    try:
        return datetime.fromisoformat(value).date()
    except ValueError as e:
        raise InvalidDateFormatError(field=TaskField.DUE_DATE.value, value=value) from e


def validate_identities(raw: Iterable[str] | str) -> list[str]:
    """规则 5：规范化并校验被分配人列表

    精确字符串去重（保留首次出现顺序），丢弃空白项；
    非法格式一次性全部报告。
    """
    items = [raw] if isinstance(raw, str) else list(raw)
    emails = list(dict.fromkeys(item for item in items if item and item.strip()))
    if not emails:
        raise NoAssigneesProvidedError()

    invalid = [email for email in emails if not _IDENTITY_RE.match(email)]
    if invalid:
        raise InvalidIdentityFormatError(invalid)
    return emails


def validate_registration_email(email: str, allowed_domains: list[str]) -> str:
    """校验新注册用户的邮箱：格式合法，且属于允许的域名（allowed_domains 为空时不限制）

    邮箱原样保存（只去除首尾空白）；域名比较不区分大小写。
    """
    email = email.strip()
    if not _IDENTITY_RE.match(email):
        raise InvalidIdentityFormatError([email])
    if allowed_domains and not any(email.lower().endswith(d) for d in allowed_domains):
        raise EmailDomainNotAllowedError(email, allowed_domains)
    return email


def _normalize_tags(tags: list[str]) -> list[str]:
    return list(dict.fromkeys(tag.strip() for tag in tags if tag and tag.strip()))


def validate(allowed: AllowedUpdate) -> ValidatedUpdate:
    """校验已通过权限闸门的更新请求

    只校验 allowed.fields 中的字段：成员被静默丢弃的字段不参与校验。

    Raises:
        TaskHubError 子类，见模块说明中的规则顺序
    """
    request = allowed.request
    fields = allowed.fields
    values: dict[str, Any] = {}

    task_id = require_task_id(request)

    if TaskField.STATUS in fields:
        values["status"] = parse_enum(TaskStatus, "status", request.status)

    if TaskField.PRIORITY in fields:
        values["priority"] = parse_enum(TaskPriority, "priority", request.priority)

    if TaskField.DUE_DATE in fields:
        values["due_date"] = (
            parse_due_date(request.due_date) if request.due_date is not None else None
        )

    if TaskField.ASSIGNED_MEMBERS in fields:
        values["assigned_members"] = validate_identities(request.assigned_to)

    if TaskField.COMMENT in fields:
        comment = request.comment.strip()
        if len(comment) > COMMENT_MAX_LENGTH:
            raise MalformedRequestError(["comment"])
        values["comment"] = comment

    if TaskField.TITLE in fields:
        values["title"] = request.title.strip()
    if TaskField.DESCRIPTION in fields:
        values["description"] = request.description.strip()
    if TaskField.TAGS in fields:
        values["tags"] = _normalize_tags(request.tags)

    return ValidatedUpdate(task_id=task_id, fields=fields, **values)
