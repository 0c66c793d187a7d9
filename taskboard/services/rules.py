"""Board rules checked before any task mutation is applied."""

from __future__ import annotations

from typing import TYPE_CHECKING

from taskboard.core.errors import (
    CapacityExceededError,
    DueDateViolationError,
    EmptyContentError,
    UnknownAssigneeError,
)
from taskboard.schemas.boards import BoardMode

if TYPE_CHECKING:
    from collections.abc import Iterable
    from datetime import date

    from taskboard.schemas.boards import BoardRead
    from taskboard.schemas.columns import ColumnRead


def column_capacity(
    board: BoardRead,
    column: ColumnRead,
    *,
    strict_capacity: int,
) -> int | None:
    """Return the task ceiling for a column, or None when unbounded.

    A column's own capacity wins; otherwise strict boards use the configured
    ceiling and freelancer boards are unbounded.
    """
    if column.capacity is not None:
        return column.capacity
    if board.mode == BoardMode.STRICT:
        return strict_capacity
    return None


def ensure_capacity(
    board: BoardRead,
    column: ColumnRead,
    *,
    strict_capacity: int,
) -> None:
    """Raise when the column cannot take one more task."""
    limit = column_capacity(board, column, strict_capacity=strict_capacity)
    if limit is not None and len(column.tasks) >= limit:
        raise CapacityExceededError(
            f"A column can have a maximum of {limit} tasks. "
            "Please complete or move existing tasks first.",
            column_id=str(column.id),
            capacity=limit,
        )


def parent_deadline(board: BoardRead) -> date | None:
    """Return the deadline inherited from the board's assignment or project."""
    if board.parent is None:
        return None
    return board.parent.deadline


def ensure_due_date_within_parent(board: BoardRead, due_date: date | None) -> None:
    """Raise when a task due date falls after the enclosing deadline."""
    deadline = parent_deadline(board)
    if due_date is None or deadline is None:
        return
    if due_date > deadline:
        kind = board.parent.kind.value if board.parent is not None else "parent"
        raise DueDateViolationError(
            f"Task due date {due_date.isoformat()} cannot exceed the {kind} "
            f"deadline {deadline.isoformat()}.",
            due_date=due_date.isoformat(),
            deadline=deadline.isoformat(),
        )


def member_ids(board: BoardRead) -> set[str]:
    """Return the user ids that count as board members, creator included."""
    return {member.user_id for member in board.members} | {board.created_by}


def ensure_assignees_are_members(board: BoardRead, assignees: Iterable[str]) -> None:
    """Raise when any assignee is not a member of the board."""
    unknown = sorted(set(assignees) - member_ids(board))
    if unknown:
        raise UnknownAssigneeError(
            f"Assignees are not board members: {', '.join(unknown)}",
            unknown=unknown,
        )


def clean_content(content: str) -> str:
    """Trim comment content and reject blank text."""
    cleaned = content.strip()
    if not cleaned:
        raise EmptyContentError("Comment content cannot be empty.")
    return cleaned
