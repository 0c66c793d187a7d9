"""In-process key-value persistence backend for board trees."""

from __future__ import annotations

from typing import TYPE_CHECKING, TypeVar

from pydantic import BaseModel

from taskboard.core.errors import CreatorMembershipError, CrossBoardMoveError, NotFoundError
from taskboard.core.logging import get_logger
from taskboard.core.time import utcnow
from taskboard.schemas.attachments import AttachmentRead
from taskboard.schemas.boards import BoardMemberRead, BoardRead, BoardRole
from taskboard.schemas.columns import ColumnRead
from taskboard.schemas.comments import ReplyCommentRead, TopLevelCommentRead
from taskboard.schemas.tasks import TaskRead

if TYPE_CHECKING:
    from uuid import UUID

    from taskboard.schemas.comments import CommentRead

ModelT = TypeVar("ModelT", bound=BaseModel)

logger = get_logger(__name__)


def _copy(model: ModelT) -> ModelT:
    return model.model_copy(deep=True)


def _merge(model: ModelT, fields: dict[str, object]) -> ModelT:
    """Return a validated copy of *model* with *fields* applied."""
    data = model.model_dump()
    data.update(fields)
    return type(model).model_validate(data)


class InMemoryPersistenceAdapter:
    """Stores independent copies of every board so callers never share state."""

    def __init__(self, *, users: dict[str, str] | None = None) -> None:
        self._boards: dict[UUID, BoardRead] = {}
        self._users_by_email: dict[str, str] = {
            email.lower(): user_id for email, user_id in (users or {}).items()
        }

    def register_user(self, email: str, user_id: str) -> None:
        """Make a user resolvable by email for invitations."""
        self._users_by_email[email.strip().lower()] = user_id

    # -- lookups ------------------------------------------------------------

    def _board(self, board_id: UUID) -> BoardRead:
        board = self._boards.get(board_id)
        if board is None:
            raise NotFoundError("Board not found", board_id=str(board_id))
        return board

    def _column(self, column_id: UUID) -> tuple[BoardRead, ColumnRead]:
        for board in self._boards.values():
            for column in board.columns:
                if column.id == column_id:
                    return board, column
        raise NotFoundError("Column not found", column_id=str(column_id))

    def _task(self, task_id: UUID) -> tuple[BoardRead, ColumnRead, TaskRead]:
        for board in self._boards.values():
            for column in board.columns:
                for task in column.tasks:
                    if task.id == task_id:
                        return board, column, task
        raise NotFoundError("Task not found", task_id=str(task_id))

    def _comment(self, comment_id: UUID) -> tuple[TaskRead, CommentRead]:
        for board in self._boards.values():
            for column in board.columns:
                for task in column.tasks:
                    for comment in task.comments:
                        if comment.id == comment_id:
                            return task, comment
        raise NotFoundError("Comment not found", comment_id=str(comment_id))

    def _attachment(self, attachment_id: UUID) -> tuple[TaskRead, AttachmentRead]:
        for board in self._boards.values():
            for column in board.columns:
                for task in column.tasks:
                    for attachment in task.attachments:
                        if attachment.id == attachment_id:
                            return task, attachment
        raise NotFoundError("Attachment not found", attachment_id=str(attachment_id))

    # -- boards -------------------------------------------------------------

    async def list_boards(self, *, user_id: str | None = None) -> list[BoardRead]:
        boards = list(self._boards.values())
        if user_id is not None:
            boards = [
                board
                for board in boards
                if board.created_by == user_id
                or any(member.user_id == user_id for member in board.members)
            ]
        return [_copy(board) for board in boards]

    async def read_board(self, board_id: UUID) -> BoardRead:
        return _copy(self._board(board_id))

    async def create_board(self, board: BoardRead) -> BoardRead:
        stored = _copy(board)
        self._boards[stored.id] = stored
        logger.debug("persistence.memory.board_created", extra={"board_id": str(stored.id)})
        return _copy(stored)

    async def update_board(self, board_id: UUID, fields: dict[str, object]) -> BoardRead:
        board = self._board(board_id)
        updated = _merge(board, {**fields, "updated_at": utcnow()})
        self._boards[board_id] = updated
        return _copy(updated)

    async def delete_board(self, board_id: UUID) -> bool:
        self._board(board_id)
        del self._boards[board_id]
        return True

    # -- columns ------------------------------------------------------------

    async def create_column(self, board_id: UUID, column: ColumnRead) -> ColumnRead:
        board = self._board(board_id)
        stored = _copy(column)
        stored.board_id = board_id
        board.columns.append(stored)
        return _copy(stored)

    async def update_column(self, column_id: UUID, fields: dict[str, object]) -> ColumnRead:
        board, column = self._column(column_id)
        updated = _merge(column, fields)
        board.columns[board.columns.index(column)] = updated
        return _copy(updated)

    async def delete_column(self, column_id: UUID) -> bool:
        board, column = self._column(column_id)
        board.columns.remove(column)
        return True

    async def list_columns(self, board_id: UUID) -> list[ColumnRead]:
        board = self._board(board_id)
        return [_copy(column) for column in sorted(board.columns, key=lambda c: c.order)]

    # -- tasks --------------------------------------------------------------

    async def create_task(self, column_id: UUID, task: TaskRead) -> TaskRead:
        _, column = self._column(column_id)
        stored = _copy(task)
        stored.column_id = column_id
        column.tasks.append(stored)
        return _copy(stored)

    async def update_task(self, task_id: UUID, fields: dict[str, object]) -> TaskRead:
        _, column, task = self._task(task_id)
        updated = _merge(task, {**fields, "updated_at": utcnow()})
        column.tasks[column.tasks.index(task)] = updated
        return _copy(updated)

    async def delete_task(self, task_id: UUID) -> bool:
        _, column, task = self._task(task_id)
        column.tasks.remove(task)
        return True

    async def move_task(self, task_id: UUID, destination_column_id: UUID) -> TaskRead:
        board, source, task = self._task(task_id)
        destination_board, destination = self._column(destination_column_id)
        if destination_board.id != board.id:
            raise CrossBoardMoveError("Cannot move task to a column in a different board")
        if source.id != destination.id:
            source.tasks.remove(task)
            task.column_id = destination.id
            destination.tasks.append(task)
        return _copy(task)

    # -- comments -----------------------------------------------------------

    async def create_comment(self, task_id: UUID, comment: CommentRead) -> CommentRead:
        _, _, task = self._task(task_id)
        stored = _copy(comment)
        stored.task_id = task_id
        if isinstance(stored, ReplyCommentRead) and not any(
            isinstance(c, TopLevelCommentRead) and c.id == stored.parent_id for c in task.comments
        ):
            raise NotFoundError("Parent comment not found", parent_id=str(stored.parent_id))
        task.comments.append(stored)
        return _copy(stored)

    async def update_comment(self, comment_id: UUID, content: str) -> CommentRead:
        _, comment = self._comment(comment_id)
        comment.content = content
        comment.updated_at = utcnow()
        return _copy(comment)

    async def delete_comment(self, comment_id: UUID) -> bool:
        task, comment = self._comment(comment_id)
        task.comments = [
            c
            for c in task.comments
            if c.id != comment.id
            and not (isinstance(c, ReplyCommentRead) and c.parent_id == comment.id)
        ]
        return True

    # -- attachments --------------------------------------------------------

    async def create_attachment(
        self,
        task_id: UUID,
        attachment: AttachmentRead,
    ) -> AttachmentRead:
        _, _, task = self._task(task_id)
        stored = _copy(attachment)
        stored.task_id = task_id
        task.attachments.append(stored)
        return _copy(stored)

    async def delete_attachment(self, attachment_id: UUID) -> bool:
        task, attachment = self._attachment(attachment_id)
        task.attachments.remove(attachment)
        return True

    # -- membership ---------------------------------------------------------

    async def invite_member(
        self,
        board_id: UUID,
        email: str,
        role: BoardRole,
    ) -> BoardMemberRead:
        board = self._board(board_id)
        user_id = self._users_by_email.get(email.strip().lower())
        if user_id is None:
            raise NotFoundError("User not found", email=email)
        if user_id == board.created_by:
            raise CreatorMembershipError("The board creator's role cannot be changed", email=email)
        for member in board.members:
            if member.user_id == user_id:
                member.role = role
                member.email = email
                return _copy(member)
        member = BoardMemberRead(user_id=user_id, role=role, email=email)
        board.members.append(member)
        return _copy(member)

    async def update_member_role(
        self,
        board_id: UUID,
        user_id: str,
        role: BoardRole,
    ) -> BoardMemberRead:
        board = self._board(board_id)
        for member in board.members:
            if member.user_id == user_id:
                member.role = role
                return _copy(member)
        raise NotFoundError("Member not found", user_id=user_id)

    async def remove_member(self, board_id: UUID, user_id: str) -> bool:
        board = self._board(board_id)
        remaining = [member for member in board.members if member.user_id != user_id]
        if len(remaining) == len(board.members):
            raise NotFoundError("Member not found", user_id=user_id)
        board.members = remaining
        for column in board.columns:
            for task in column.tasks:
                if user_id in task.assignees:
                    task.assignees = [a for a in task.assignees if a != user_id]
        return True

    async def aclose(self) -> None:
        return None
