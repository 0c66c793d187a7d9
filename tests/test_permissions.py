# ruff: noqa

from __future__ import annotations

import pytest

from taskboard.schemas.boards import BoardMemberRead, BoardRead, BoardRole
from taskboard.services.permissions import (
    ACTION_ROLES,
    BoardAction,
    allowed_actions,
    can,
    is_allowed,
    resolve_role,
)


def _board() -> BoardRead:
    return BoardRead(
        title="Launch",
        created_by="owner",
        members=[
            BoardMemberRead(user_id="owner", role=BoardRole.VIEWER),
            BoardMemberRead(user_id="ed", role=BoardRole.EDITOR),
            BoardMemberRead(user_id="vi", role=BoardRole.VIEWER),
            BoardMemberRead(user_id="ad", role=BoardRole.ADMIN),
        ],
    )


def test_every_action_is_mapped() -> None:
    assert set(ACTION_ROLES) == set(BoardAction)


@pytest.mark.parametrize("action", list(BoardAction))
def test_role_none_is_denied_everything(action: BoardAction) -> None:
    assert is_allowed(action, BoardRole.NONE) is False


@pytest.mark.parametrize("action", list(BoardAction))
def test_admin_is_allowed_everything(action: BoardAction) -> None:
    assert is_allowed(action, BoardRole.ADMIN) is True


def test_viewer_can_only_view_and_comment() -> None:
    allowed = {a for a in BoardAction if is_allowed(a, BoardRole.VIEWER)}
    assert allowed == {BoardAction.VIEW_BOARD, BoardAction.ADD_COMMENT}


def test_editor_cannot_manage_board_or_members() -> None:
    for action in (
        BoardAction.EDIT_BOARD,
        BoardAction.DELETE_COMMENT,
        BoardAction.INVITE_MEMBER,
        BoardAction.CHANGE_ROLE,
        BoardAction.REMOVE_MEMBER,
    ):
        assert is_allowed(action, BoardRole.EDITOR) is False
    for action in (
        BoardAction.ADD_TASK,
        BoardAction.EDIT_TASK,
        BoardAction.MOVE_TASK,
        BoardAction.DELETE_TASK,
        BoardAction.EDIT_COMMENT,
        BoardAction.ADD_ATTACHMENT,
        BoardAction.DELETE_ATTACHMENT,
    ):
        assert is_allowed(action, BoardRole.EDITOR) is True


def test_creator_is_admin_regardless_of_recorded_role() -> None:
    board = _board()
    assert resolve_role(board, "owner") == BoardRole.ADMIN
    assert can(board, "owner", BoardAction.REMOVE_MEMBER) is True


def test_non_member_resolves_to_none() -> None:
    board = _board()
    assert resolve_role(board, "stranger") == BoardRole.NONE
    assert allowed_actions(board, "stranger") == set()


def test_allowed_actions_follow_member_role() -> None:
    board = _board()
    assert allowed_actions(board, "vi") == {BoardAction.VIEW_BOARD, BoardAction.ADD_COMMENT}
    assert BoardAction.MOVE_TASK in allowed_actions(board, "ed")
    assert allowed_actions(board, "ad") == set(BoardAction)
