"""Validator 单元测试

测试内容：
1. 请求体解析（类型错误 -> MalformedRequest）
2. 规则顺序：taskId -> status -> priority -> dueDate -> 被分配人 -> comment
3. 被分配人规范化（去重、丢弃空白、全部非法项一次报告）
4. 只校验通过权限闸门的字段
"""

from datetime import date

import pytest
from taskhub.core.config import COMMENT_MAX_LENGTH
from taskhub.core.exceptions import (
    EmailDomainNotAllowedError,
    InvalidDateFormatError,
    InvalidEnumValueError,
    InvalidIdentityFormatError,
    MalformedRequestError,
    MissingFieldError,
    NoAssigneesProvidedError,
)
from taskhub.core.models import (
    ADMIN_FIELDS,
    AllowedUpdate,
    TaskField,
    TaskPriority,
    TaskStatus,
)
from taskhub.core.mutation import (
    parse_due_date,
    parse_request,
    require_task_id,
    validate,
    validate_identities,
    validate_registration_email,
)


def _allowed(body: dict, fields=None) -> AllowedUpdate:
    request = parse_request(body)
    provided = request.provided_fields()
    return AllowedUpdate(
        request=request,
        fields=provided if fields is None else provided & fields,
    )


class TestParseRequest:
    def test_path_task_id_overrides_body(self):
        req = parse_request({"taskId": "body-id", "status": "completed"}, task_id="path-id")
        assert req.task_id == "path-id"

    def test_none_body_is_empty(self):
        req = parse_request(None)
        assert req.task_id is None

    def test_non_object_body(self):
        with pytest.raises(MalformedRequestError) as exc_info:
            parse_request(["status", "completed"])
        assert exc_info.value.fields == ["body"]

    def test_wrong_field_type(self):
        with pytest.raises(MalformedRequestError) as exc_info:
            parse_request({"taskId": "t1", "status": 3})
        assert "status" in exc_info.value.fields


class TestRequireTaskId:
    @pytest.mark.parametrize("body", [{}, {"taskId": ""}, {"taskId": "   "}])
    def test_missing(self, body):
        with pytest.raises(MissingFieldError) as exc_info:
            require_task_id(parse_request(body))
        assert exc_info.value.field == "taskId"

    def test_present(self):
        assert require_task_id(parse_request({"taskId": "t1"})) == "t1"


class TestRuleOrder:
    def test_missing_task_id_reported_first(self):
        with pytest.raises(MissingFieldError):
            validate(_allowed({"status": "bogus", "priority": "bogus"}))

    def test_status_before_priority(self):
        with pytest.raises(InvalidEnumValueError) as exc_info:
            validate(_allowed({"taskId": "t1", "status": "done", "priority": "bogus"}))
        assert exc_info.value.field == "status"
        assert exc_info.value.allowed == [s.value for s in TaskStatus]

    def test_priority_before_due_date(self):
        with pytest.raises(InvalidEnumValueError) as exc_info:
            validate(
                _allowed({"taskId": "t1", "priority": "critical", "dueDate": "not-a-date"})
            )
        assert exc_info.value.field == "priority"

    def test_due_date_before_assignees(self):
        with pytest.raises(InvalidDateFormatError):
            validate(
                _allowed({"taskId": "t1", "dueDate": "31/12/2025", "assignedTo": ["bad"]})
            )


class TestDueDate:
    def test_iso_date(self):
        assert parse_due_date("2025-06-30") == date(2025, 6, 30)

    def test_iso_timestamp_keeps_date(self):
        assert parse_due_date("2025-06-30T17:00:00Z") == date(2025, 6, 30)

    def test_null_clears(self):
        validated = validate(_allowed({"taskId": "t1", "dueDate": None}))
        assert validated.has(TaskField.DUE_DATE)
        assert validated.due_date is None

    def test_invalid(self):
        with pytest.raises(InvalidDateFormatError) as exc_info:
            parse_due_date("tomorrow")
        assert exc_info.value.value == "tomorrow"


class TestIdentities:
    def test_dedup_and_drop_blank(self):
        emails = validate_identities(["a@x.io", "", "b@x.io", "a@x.io", "  "])
        assert emails == ["a@x.io", "b@x.io"]

    def test_single_string(self):
        assert validate_identities("a@x.io") == ["a@x.io"]

    @pytest.mark.parametrize("raw", [[], ["", "   "], ""])
    def test_nothing_left(self, raw):
        with pytest.raises(NoAssigneesProvidedError):
            validate_identities(raw)

    def test_reports_every_invalid_entry(self):
        with pytest.raises(InvalidIdentityFormatError) as exc_info:
            validate_identities(["ok@x.io", "nope", "also bad@x.io", "x@y"])
        assert exc_info.value.invalid_emails == ["nope", "also bad@x.io", "x@y"]



class TestRegistrationEmail:
    def test_kept_as_given(self):
        assert validate_registration_email("  Ann.Lee@X.io ", []) == "Ann.Lee@X.io"

    def test_invalid_format(self):
        with pytest.raises(InvalidIdentityFormatError):
            validate_registration_email("ann", [])

    def test_domain_case_insensitive(self):
        assert validate_registration_email("ann@CORP.io", ["@corp.io"]) == "ann@CORP.io"

    def test_domain_rejected(self):
        with pytest.raises(EmailDomainNotAllowedError) as exc_info:
            validate_registration_email("ann@evilcorp.io.net", ["@corp.io"])
        assert exc_info.value.allowed_domains == ["@corp.io"]

class TestComment:
    def test_trimmed(self):
        validated = validate(_allowed({"taskId": "t1", "comment": "  blocked on review  "}))
        assert validated.comment == "blocked on review"

    def test_too_long(self):
        body = {"taskId": "t1", "comment": "x" * (COMMENT_MAX_LENGTH + 1)}
        with pytest.raises(MalformedRequestError) as exc_info:
            validate(_allowed(body))
        assert exc_info.value.fields == ["comment"]


class TestAllowedFieldsOnly:
    def test_dropped_fields_not_validated(self):
        """成员被丢弃的非法字段不会触发校验错误"""
        allowed = _allowed(
            {"taskId": "t1", "status": "completed", "priority": "bogus"},
            fields=frozenset({TaskField.STATUS, TaskField.COMMENT}),
        )
        validated = validate(allowed)
        assert validated.status == TaskStatus.COMPLETED
        assert not validated.has(TaskField.PRIORITY)

    def test_normalized_values(self):
        validated = validate(
            _allowed(
                {
                    "taskId": "t1",
                    "title": "  New title ",
                    "priority": "urgent",
                    "tags": ["ops", " ops ", "", "q3"],
                },
                fields=ADMIN_FIELDS,
            )
        )
        assert validated.title == "New title"
        assert validated.priority == TaskPriority.URGENT
        assert validated.tags == ["ops", "q3"]
