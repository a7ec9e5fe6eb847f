"""Mutation Resolver 测试

测试内容：
1. 成员集合差异
2. 被分配人目录检查（三类问题累积报告）
3. 字段合并与变更集（含优先级升级标记）
4. 评论追加、不修改原任务
"""

from datetime import UTC, date, datetime
from unittest.mock import AsyncMock

import pytest
from taskhub.core.exceptions import InvalidAssigneesError
from taskhub.core.models import (
    AssigneeFacts,
    TaskField,
    TaskPriority,
    TaskStatus,
    UserRole,
    ValidatedUpdate,
)
from taskhub.core.mutation import MutationResolver, diff_members

from core_helpers import ADMIN, ALICE, BOB, CAROL, DAVE, IVAN, OTHER_ADMIN, as_admin, as_member

NOW = datetime(2025, 2, 1, 12, 0, tzinfo=UTC)


def _update(**values) -> ValidatedUpdate:
    fields = {
        {
            "status": TaskField.STATUS,
            "title": TaskField.TITLE,
            "description": TaskField.DESCRIPTION,
            "priority": TaskField.PRIORITY,
            "due_date": TaskField.DUE_DATE,
            "tags": TaskField.TAGS,
            "assigned_members": TaskField.ASSIGNED_MEMBERS,
            "comment": TaskField.COMMENT,
        }[name]
        for name in values
    }
    return ValidatedUpdate(task_id="01JTASK0000000000000000001", fields=frozenset(fields), **values)


class TestDiffMembers:
    def test_added_and_removed(self):
        added, removed = diff_members([ALICE, BOB, CAROL], [BOB, CAROL, DAVE])
        assert added == [DAVE]
        assert removed == [ALICE]

    def test_reorder_is_no_change(self):
        assert diff_members([ALICE, BOB], [BOB, ALICE]) == ([], [])


class TestVerifyAssignees:
    async def test_accumulates_all_categories(self, stores):
        resolver = MutationResolver(stores.directory)
        with pytest.raises(InvalidAssigneesError) as exc_info:
            await resolver.verify_assignees(
                [ALICE, "ghost@example.com", IVAN, OTHER_ADMIN]
            )
        err = exc_info.value
        assert err.non_existent_users == ["ghost@example.com"]
        assert err.inactive_users == [IVAN]
        assert err.admin_users == [OTHER_ADMIN]
        assert len(err.kinds) == 3

    async def test_all_valid(self, stores):
        resolver = MutationResolver(stores.directory)
        await resolver.verify_assignees([ALICE, BOB])

    async def test_uses_single_batch_lookup(self):
        directory = AsyncMock()
        directory.resolve_many.return_value = {
            ALICE: AssigneeFacts(exists=True, active=True, role=UserRole.MEMBER),
            ADMIN: AssigneeFacts(exists=True, active=True, role=UserRole.ADMIN),
        }
        resolver = MutationResolver(directory)
        with pytest.raises(InvalidAssigneesError) as exc_info:
            await resolver.verify_assignees([ALICE, ADMIN])
        directory.resolve_many.assert_awaited_once_with([ALICE, ADMIN])
        assert exc_info.value.admin_users == [ADMIN]


class TestResolve:
    async def test_status_change(self, stores, make_task):
        current = make_task()
        resolution = await MutationResolver(stores.directory).resolve(
            current, _update(status=TaskStatus.IN_PROGRESS), as_admin(), now=NOW
        )
        changes = resolution.changes
        assert changes.status_changed
        assert changes.old_status == TaskStatus.PENDING
        assert changes.new_status == TaskStatus.IN_PROGRESS
        assert resolution.new_task.status == TaskStatus.IN_PROGRESS
        assert resolution.new_task.updated_at == NOW
        assert resolution.new_task.updated_by == ADMIN
        assert resolution.field_update.fields == {"status": TaskStatus.IN_PROGRESS}

    async def test_same_value_is_not_a_change(self, stores, make_task):
        resolution = await MutationResolver(stores.directory).resolve(
            make_task(), _update(status=TaskStatus.PENDING, title="Write quarterly report"), as_admin()
        )
        assert resolution.changes.is_empty
        assert not resolution.changes.status_changed

    async def test_escalation_flag(self, stores, make_task):
        resolution = await MutationResolver(stores.directory).resolve(
            make_task(priority=TaskPriority.MEDIUM),
            _update(priority=TaskPriority.URGENT),
            as_admin(),
        )
        assert resolution.changes.priority_changed
        assert resolution.changes.priority_escalated_to_urgent

    async def test_downgrade_is_not_escalation(self, stores, make_task):
        resolution = await MutationResolver(stores.directory).resolve(
            make_task(priority=TaskPriority.URGENT),
            _update(priority=TaskPriority.HIGH),
            as_admin(),
        )
        assert resolution.changes.priority_changed
        assert not resolution.changes.priority_escalated_to_urgent

    async def test_reassignment(self, stores, make_task):
        current = make_task(assigned_members=[ALICE, BOB, CAROL])
        resolution = await MutationResolver(stores.directory).resolve(
            current, _update(assigned_members=[BOB, CAROL, DAVE]), as_admin()
        )
        assert resolution.changes.members_added == [DAVE]
        assert resolution.changes.members_removed == [ALICE]
        assert resolution.new_task.assigned_members == [BOB, CAROL, DAVE]

    async def test_invalid_assignee_aborts(self, stores, make_task):
        with pytest.raises(InvalidAssigneesError):
            await MutationResolver(stores.directory).resolve(
                make_task(), _update(assigned_members=[ALICE, ADMIN]), as_admin()
            )

    async def test_due_date_cleared(self, stores, make_task):
        resolution = await MutationResolver(stores.directory).resolve(
            make_task(due_date=date(2025, 3, 1)), _update(due_date=None), as_admin()
        )
        assert TaskField.DUE_DATE in resolution.changes.fields_changed
        assert resolution.new_task.due_date is None
        assert resolution.field_update.fields == {"due_date": None}

    async def test_comment_appended_without_mutating_current(self, stores, make_task):
        current = make_task()
        resolution = await MutationResolver(stores.directory).resolve(
            current, _update(comment="half way there"), as_member(ALICE), now=NOW
        )
        assert current.comments == []
        assert len(resolution.new_task.comments) == 1
        comment = resolution.new_task.comments[0]
        assert (comment.author, comment.text, comment.timestamp) == (ALICE, "half way there", NOW)
        assert resolution.field_update.append_comment == comment
        assert resolution.changes.comment_added
