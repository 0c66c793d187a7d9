"""Board permission evaluation over a closed action/role table."""

from __future__ import annotations

from enum import Enum
from typing import TYPE_CHECKING

from taskboard.schemas.boards import BoardRole

if TYPE_CHECKING:
    from taskboard.schemas.boards import BoardRead


class BoardAction(str, Enum):
    """Every action a user can attempt on a board."""

    VIEW_BOARD = "view_board"
    EDIT_BOARD = "edit_board"
    ADD_TASK = "add_task"
    EDIT_TASK = "edit_task"
    MOVE_TASK = "move_task"
    DELETE_TASK = "delete_task"
    ADD_COMMENT = "add_comment"
    EDIT_COMMENT = "edit_comment"
    DELETE_COMMENT = "delete_comment"
    ADD_ATTACHMENT = "add_attachment"
    DELETE_ATTACHMENT = "delete_attachment"
    INVITE_MEMBER = "invite_member"
    CHANGE_ROLE = "change_role"
    REMOVE_MEMBER = "remove_member"


_ANY_MEMBER = frozenset({BoardRole.ADMIN, BoardRole.EDITOR, BoardRole.VIEWER})
_CONTRIBUTORS = frozenset({BoardRole.ADMIN, BoardRole.EDITOR})
_ADMINS = frozenset({BoardRole.ADMIN})

# Action → roles allowed to perform it. Role NONE never appears.
ACTION_ROLES: dict[BoardAction, frozenset[BoardRole]] = {
    BoardAction.VIEW_BOARD: _ANY_MEMBER,
    BoardAction.EDIT_BOARD: _ADMINS,
    BoardAction.ADD_TASK: _CONTRIBUTORS,
    BoardAction.EDIT_TASK: _CONTRIBUTORS,
    BoardAction.MOVE_TASK: _CONTRIBUTORS,
    BoardAction.DELETE_TASK: _CONTRIBUTORS,
    BoardAction.ADD_COMMENT: _ANY_MEMBER,
    BoardAction.EDIT_COMMENT: _CONTRIBUTORS,
    BoardAction.DELETE_COMMENT: _ADMINS,
    BoardAction.ADD_ATTACHMENT: _CONTRIBUTORS,
    BoardAction.DELETE_ATTACHMENT: _CONTRIBUTORS,
    BoardAction.INVITE_MEMBER: _ADMINS,
    BoardAction.CHANGE_ROLE: _ADMINS,
    BoardAction.REMOVE_MEMBER: _ADMINS,
}

_unmapped = set(BoardAction) - set(ACTION_ROLES)
if _unmapped:
    raise RuntimeError(f"ACTION_ROLES is missing actions: {sorted(a.value for a in _unmapped)}")


def is_allowed(action: BoardAction, role: BoardRole) -> bool:
    """Return whether *role* may perform *action*."""
    return role in ACTION_ROLES[action]


def resolve_role(board: BoardRead, user_id: str) -> BoardRole:
    """Return the user's effective role on a board.

    The board creator is always an admin regardless of the stored member
    entry; users without a member entry resolve to NONE.
    """
    if user_id == board.created_by:
        return BoardRole.ADMIN
    for member in board.members:
        if member.user_id == user_id:
            return member.role
    return BoardRole.NONE


def can(board: BoardRead, user_id: str, action: BoardAction) -> bool:
    """Check a user's permission for an action on a specific board."""
    return is_allowed(action, resolve_role(board, user_id))


def allowed_actions(board: BoardRead, user_id: str) -> set[BoardAction]:
    """Compute the full set of actions a user may perform on a board."""
    role = resolve_role(board, user_id)
    return {action for action in BoardAction if is_allowed(action, role)}
