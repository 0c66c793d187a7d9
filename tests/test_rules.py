# ruff: noqa

from __future__ import annotations

from datetime import date
from uuid import uuid4

import pytest

from taskboard.core.errors import (
    CapacityExceededError,
    DueDateViolationError,
    EmptyContentError,
    UnknownAssigneeError,
)
from taskboard.schemas.boards import (
    BoardMemberRead,
    BoardMode,
    BoardParent,
    BoardRead,
    BoardRole,
    ParentKind,
)
from taskboard.schemas.columns import ColumnRead
from taskboard.schemas.tasks import TaskRead
from taskboard.services import rules


def _column(board: BoardRead, *, tasks: int = 0, capacity: int | None = None) -> ColumnRead:
    column = ColumnRead(board_id=board.id, title="To Do", capacity=capacity)
    column.tasks = [
        TaskRead(column_id=column.id, title=f"t{i}", created_by="owner") for i in range(tasks)
    ]
    return column


def test_freelancer_columns_are_unbounded() -> None:
    board = BoardRead(title="b", created_by="owner", mode=BoardMode.FREELANCER)
    column = _column(board, tasks=50)
    assert rules.column_capacity(board, column, strict_capacity=3) is None
    rules.ensure_capacity(board, column, strict_capacity=3)


def test_strict_columns_use_configured_ceiling() -> None:
    board = BoardRead(title="b", created_by="owner", mode=BoardMode.STRICT)
    rules.ensure_capacity(board, _column(board, tasks=2), strict_capacity=3)
    with pytest.raises(CapacityExceededError) as exc_info:
        rules.ensure_capacity(board, _column(board, tasks=3), strict_capacity=3)
    assert "maximum of 3 tasks" in str(exc_info.value)


def test_column_override_wins_over_board_mode() -> None:
    board = BoardRead(title="b", created_by="owner", mode=BoardMode.FREELANCER)
    column = _column(board, tasks=1, capacity=1)
    assert rules.column_capacity(board, column, strict_capacity=3) == 1
    with pytest.raises(CapacityExceededError):
        rules.ensure_capacity(board, column, strict_capacity=3)


def test_due_date_must_not_exceed_parent_deadline() -> None:
    board = BoardRead(
        title="b",
        created_by="owner",
        parent=BoardParent(kind=ParentKind.ASSIGNMENT, deadline=date(2025, 5, 5)),
    )
    rules.ensure_due_date_within_parent(board, date(2025, 5, 5))
    rules.ensure_due_date_within_parent(board, None)
    with pytest.raises(DueDateViolationError) as exc_info:
        rules.ensure_due_date_within_parent(board, date(2025, 5, 10))
    assert exc_info.value.context["deadline"] == "2025-05-05"


def test_due_date_unbounded_without_parent_deadline() -> None:
    board = BoardRead(
        title="b",
        created_by="owner",
        parent=BoardParent(kind=ParentKind.PROJECT, reference_id=str(uuid4())),
    )
    rules.ensure_due_date_within_parent(board, date(2099, 1, 1))


def test_assignees_must_be_members_or_creator() -> None:
    board = BoardRead(
        title="b",
        created_by="owner",
        members=[BoardMemberRead(user_id="ed", role=BoardRole.EDITOR)],
    )
    rules.ensure_assignees_are_members(board, ["owner", "ed"])
    with pytest.raises(UnknownAssigneeError) as exc_info:
        rules.ensure_assignees_are_members(board, ["ed", "ghost"])
    assert exc_info.value.context["unknown"] == ["ghost"]


def test_clean_content_trims_and_rejects_blank() -> None:
    assert rules.clean_content("  hi  ") == "hi"
    with pytest.raises(EmptyContentError):
        rules.clean_content("   ")
