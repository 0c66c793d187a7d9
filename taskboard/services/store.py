"""Board store: the canonical board collection and its gated mutations.

The store keeps one dict of board trees keyed by id. The "current board" is
only an id pointing into that dict, so there is never a second copy to keep
in sync. Every mutation runs the same sequence:

    check permission -> validate -> apply locally -> commit remotely
        -> settle with the returned entity, or re-fetch the board on failure

`begin_*` methods stop after the local apply and hand back a
`PendingMutation`; the plain async methods also await the commit.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable, Iterable
from typing import TYPE_CHECKING, NamedTuple, TypeVar

from taskboard.core.config import settings
from taskboard.core.errors import (
    CreatorMembershipError,
    NotFoundError,
    PermissionDeniedError,
    RemoteCommitError,
    TaskboardError,
    ValidationFailedError,
)
from taskboard.core.logging import get_logger
from taskboard.core.time import utcnow
from taskboard.schemas.boards import (
    DEFAULT_COLUMN_TITLES,
    BoardMemberRead,
    BoardMode,
    BoardRead,
    BoardRole,
)
from taskboard.schemas.columns import ColumnRead
from taskboard.schemas.tasks import TaskRead
from taskboard.services import rules
from taskboard.services.mutations import MutationPhase, MutationResult, PendingMutation
from taskboard.services.notifications import LoggingNotifier, Notice
from taskboard.services.permissions import BoardAction, can, resolve_role

if TYPE_CHECKING:
    from uuid import UUID

    from taskboard.schemas.attachments import AttachmentRead
    from taskboard.schemas.boards import BoardCreate, BoardUpdate, MemberInvite
    from taskboard.schemas.columns import ColumnCreate, ColumnUpdate
    from taskboard.schemas.comments import CommentRead
    from taskboard.schemas.tasks import TaskCreate, TaskUpdate
    from taskboard.services.notifications import Notifier
    from taskboard.services.persistence.base import PersistenceAdapter

T = TypeVar("T")

logger = get_logger(__name__)

BOARD_SCALAR_FIELDS = (
    "id",
    "title",
    "description",
    "created_by",
    "created_at",
    "updated_at",
    "mode",
    "parent",
)
COLUMN_SCALAR_FIELDS = ("id", "board_id", "title", "order", "capacity")
TASK_SCALAR_FIELDS = tuple(
    name for name in TaskRead.model_fields if name not in {"comments", "attachments"}
)

_REJECTION_TITLES: dict[str, str] = {
    "capacity_exceeded": "Maximum tasks reached",
    "due_date_violation": "Invalid Due Date",
    "unknown_assignee": "Invalid assignees",
    "comment_nesting": "Cannot reply to a reply",
    "creator_membership": "Board creator cannot be changed",
    "attachment_too_large": "File too large",
}


def _merge_into(target: object, source: object, fields: Iterable[str]) -> None:
    for name in fields:
        setattr(target, name, getattr(source, name))


class TaskLocation(NamedTuple):
    board: BoardRead
    column: ColumnRead
    task: TaskRead


class CommentLocation(NamedTuple):
    board: BoardRead
    task: TaskRead
    comment: CommentRead


class AttachmentLocation(NamedTuple):
    board: BoardRead
    task: TaskRead
    attachment: AttachmentRead


class BoardStore:
    """In-memory board trees backed by a persistence adapter.

    Read accessors return the live objects held by the store. Callers must
    not mutate them directly; every change goes through a store operation so
    permissions and board rules are applied.
    """

    def __init__(
        self,
        adapter: PersistenceAdapter,
        *,
        notifier: Notifier | None = None,
        strict_capacity: int | None = None,
        default_mode: BoardMode | None = None,
    ) -> None:
        self.adapter = adapter
        self.notifier = notifier or LoggingNotifier()
        self.strict_capacity = (
            settings.strict_column_capacity if strict_capacity is None else strict_capacity
        )
        self.default_mode = default_mode or BoardMode(settings.default_board_mode)
        self._boards: dict[UUID, BoardRead] = {}
        self._current_board_id: UUID | None = None

    # ------------------------------------------------------------------
    # Read accessors
    # ------------------------------------------------------------------

    @property
    def boards(self) -> list[BoardRead]:
        return list(self._boards.values())

    @property
    def current_board_id(self) -> UUID | None:
        return self._current_board_id

    @property
    def current_board(self) -> BoardRead | None:
        if self._current_board_id is None:
            return None
        return self._boards.get(self._current_board_id)

    def set_current_board(self, board_id: UUID | None) -> None:
        """Point the current-board projection at a loaded board, or clear it."""
        if board_id is not None and board_id not in self._boards:
            raise NotFoundError("Board not found", board_id=str(board_id))
        self._current_board_id = board_id

    def get_board(self, board_id: UUID) -> BoardRead | None:
        return self._boards.get(board_id)

    def visible_boards(self, user_id: str) -> list[BoardRead]:
        """Boards the user may view."""
        return [b for b in self._boards.values() if can(b, user_id, BoardAction.VIEW_BOARD)]

    def role_of(self, board_id: UUID, user_id: str) -> BoardRole:
        board = self._boards.get(board_id)
        if board is None:
            return BoardRole.NONE
        return resolve_role(board, user_id)

    def locate_column(self, column_id: UUID) -> tuple[BoardRead, ColumnRead] | None:
        for board in self._boards.values():
            for column in board.columns:
                if column.id == column_id:
                    return board, column
        return None

    def get_column(self, column_id: UUID) -> ColumnRead | None:
        found = self.locate_column(column_id)
        return found[1] if found else None

    def locate_task(self, task_id: UUID) -> TaskLocation | None:
        for board in self._boards.values():
            for column in board.columns:
                for task in column.tasks:
                    if task.id == task_id:
                        return TaskLocation(board, column, task)
        return None

    def get_task(self, task_id: UUID) -> TaskRead | None:
        found = self.locate_task(task_id)
        return found.task if found else None

    def locate_comment(self, comment_id: UUID) -> CommentLocation | None:
        for board in self._boards.values():
            for column in board.columns:
                for task in column.tasks:
                    for comment in task.comments:
                        if comment.id == comment_id:
                            return CommentLocation(board, task, comment)
        return None

    def locate_attachment(self, attachment_id: UUID) -> AttachmentLocation | None:
        for board in self._boards.values():
            for column in board.columns:
                for task in column.tasks:
                    for attachment in task.attachments:
                        if attachment.id == attachment_id:
                            return AttachmentLocation(board, task, attachment)
        return None

    # ------------------------------------------------------------------
    # Loading and reconciliation
    # ------------------------------------------------------------------

    async def load_boards(self, user_id: str | None = None) -> list[BoardRead]:
        """Replace the collection with the adapter's boards."""
        boards = await self.adapter.list_boards(user_id=user_id)
        self._boards = {board.id: board for board in boards}
        if self._current_board_id is not None and self._current_board_id not in self._boards:
            self._current_board_id = None
        logger.info("store.boards.loaded", extra={"count": len(boards)})
        return self.boards

    async def refresh_board(self, board_id: UUID) -> BoardRead | None:
        """Re-fetch one board tree from the adapter."""
        return await self.reconcile_board(board_id)

    async def activate_board(self, board_id: UUID) -> BoardRead | None:
        """Load a board's full tree and make it the current board."""
        board = await self.refresh_board(board_id)
        if board is not None:
            self._current_board_id = board.id
        return board

    async def reconcile_board(
        self,
        board_id: UUID,
        error: RemoteCommitError | None = None,
    ) -> BoardRead | None:
        """Discard local state for a board and restore it from the adapter."""
        keys = list(self._boards)
        position = keys.index(board_id) if board_id in self._boards else None
        self._boards.pop(board_id, None)
        fresh: BoardRead | None = None
        try:
            fresh = await self.adapter.read_board(board_id)
        except NotFoundError:
            logger.info("store.reconcile.board_gone", extra={"board_id": str(board_id)})
            if self._current_board_id == board_id:
                self._current_board_id = None
        except TaskboardError:
            logger.exception("store.reconcile.failed", extra={"board_id": str(board_id)})
        if fresh is not None:
            self._put_board(fresh, position=position)
        if error is not None:
            self.notifier.notify(
                Notice(
                    level="error",
                    title="Sync failed",
                    message=f"{error.message}. Your change was reverted; please try again.",
                    retryable=True,
                ),
            )
        return fresh

    def _put_board(self, board: BoardRead, *, position: int | None = None) -> None:
        items = [(key, value) for key, value in self._boards.items() if key != board.id]
        if position is None or position >= len(items):
            items.append((board.id, board))
        else:
            items.insert(position, (board.id, board))
        self._boards = dict(items)

    # ------------------------------------------------------------------
    # Helpers shared with the movement, comment, and attachment services
    # ------------------------------------------------------------------

    def require_board(self, board_id: UUID) -> BoardRead:
        board = self._boards.get(board_id)
        if board is None:
            raise NotFoundError("Board not found", board_id=str(board_id))
        return board

    def require_column(self, column_id: UUID) -> tuple[BoardRead, ColumnRead]:
        found = self.locate_column(column_id)
        if found is None:
            raise NotFoundError("Column not found", column_id=str(column_id))
        return found

    def require_task(self, task_id: UUID) -> TaskLocation:
        found = self.locate_task(task_id)
        if found is None:
            raise NotFoundError("Task not found", task_id=str(task_id))
        return found

    def require_permission(self, board: BoardRead, user_id: str, action: BoardAction) -> None:
        """Raise PermissionDeniedError unless the user may act on the board."""
        if not can(board, user_id, action):
            raise PermissionDeniedError(
                f"Role '{resolve_role(board, user_id).value}' cannot "
                f"{action.value.replace('_', ' ')}",
                board_id=str(board.id),
                user_id=user_id,
                action=action.value,
            )

    def refuse(self, error: TaskboardError, *, description: str) -> PendingMutation[T]:
        """Finish a mutation without touching state, reporting why."""
        result: MutationResult[T] = MutationResult.refused(error)
        logger.info(
            "store.mutation.%s",
            result.phase.value,
            extra={"description": description, "error_code": error.code},
        )
        if isinstance(error, ValidationFailedError):
            self.notifier.notify(
                Notice(
                    level="warning",
                    title=_REJECTION_TITLES.get(error.code, "Action rejected"),
                    message=error.message,
                ),
            )
        return PendingMutation.finished(result, description=description)

    def unchanged(self, value: T, *, description: str) -> PendingMutation[T]:
        """Finish a mutation that had nothing to do."""
        return PendingMutation.finished(
            MutationResult(phase=MutationPhase.NOOP, value=value),
            description=description,
        )

    def stage(
        self,
        *,
        board_id: UUID,
        value: T | None,
        description: str,
        commit: Callable[[], Awaitable[T]],
        settle: Callable[[T], T] | None = None,
        on_failure: Iterable[Callable[[], None]] = (),
    ) -> PendingMutation[T]:
        """Wrap an applied local change awaiting remote confirmation."""
        return PendingMutation(
            board_id=board_id,
            value=value,
            description=description,
            commit=commit,
            settle=settle,
            reconcile=lambda error: self._reconcile_discarding(board_id, error),
            on_failure=on_failure,
        )

    async def _reconcile_discarding(self, board_id: UUID, error: RemoteCommitError) -> None:
        await self.reconcile_board(board_id, error)

    # ------------------------------------------------------------------
    # Boards
    # ------------------------------------------------------------------

    def begin_create_board(
        self,
        actor: str,
        payload: BoardCreate,
        *,
        activate: bool = False,
    ) -> PendingMutation[BoardRead]:
        """Create a board owned by *actor* with its default columns."""
        board = BoardRead(
            title=payload.title,
            description=payload.description,
            created_by=actor,
            mode=payload.mode or self.default_mode,
            parent=payload.parent,
            members=[BoardMemberRead(user_id=actor, role=BoardRole.ADMIN)],
        )
        titles = payload.column_titles
        if titles is None:
            titles = DEFAULT_COLUMN_TITLES
        board.columns = [
            ColumnRead(board_id=board.id, title=title, order=index)
            for index, title in enumerate(titles)
        ]
        self._put_board(board)
        previous_current = self._current_board_id
        if activate:
            self._current_board_id = board.id
        snapshot = board.model_copy(deep=True)
        tentative_id = board.id

        def settle(remote: BoardRead) -> BoardRead:
            keys = list(self._boards)
            position = keys.index(tentative_id) if tentative_id in self._boards else None
            self._boards.pop(tentative_id, None)
            self._put_board(remote, position=position)
            if self._current_board_id == tentative_id:
                self._current_board_id = remote.id
            return remote

        def restore_pointer() -> None:
            if self._current_board_id == tentative_id:
                self._current_board_id = previous_current

        return self.stage(
            board_id=board.id,
            value=board,
            description="create board",
            commit=lambda: self.adapter.create_board(snapshot),
            settle=settle,
            on_failure=(restore_pointer,),
        )

    async def create_board(
        self,
        actor: str,
        payload: BoardCreate,
        *,
        activate: bool = False,
    ) -> MutationResult[BoardRead]:
        return await self.begin_create_board(actor, payload, activate=activate).commit()

    def begin_update_board(
        self,
        actor: str,
        board_id: UUID,
        payload: BoardUpdate,
    ) -> PendingMutation[BoardRead]:
        description = "update board"
        try:
            board = self.require_board(board_id)
            self.require_permission(board, actor, BoardAction.EDIT_BOARD)
        except TaskboardError as exc:
            return self.refuse(exc, description=description)
        if not payload.model_fields_set:
            return self.unchanged(board, description=description)
        for name in payload.model_fields_set:
            setattr(board, name, getattr(payload, name))
        board.updated_at = utcnow()
        fields = payload.model_dump(exclude_unset=True)

        def settle(remote: BoardRead) -> BoardRead:
            local = self._boards.get(board_id)
            if local is None:
                return remote
            _merge_into(local, remote, BOARD_SCALAR_FIELDS)
            return local

        return self.stage(
            board_id=board_id,
            value=board,
            description=description,
            commit=lambda: self.adapter.update_board(board_id, fields),
            settle=settle,
        )

    async def update_board(
        self,
        actor: str,
        board_id: UUID,
        payload: BoardUpdate,
    ) -> MutationResult[BoardRead]:
        return await self.begin_update_board(actor, board_id, payload).commit()

    def begin_delete_board(self, actor: str, board_id: UUID) -> PendingMutation[bool]:
        """Delete a board and everything under it; only its creator may do so."""
        description = "delete board"
        try:
            board = self.require_board(board_id)
            self.require_permission(board, actor, BoardAction.EDIT_BOARD)
            if board.created_by != actor:
                raise PermissionDeniedError(
                    "Only the creator can delete this board",
                    board_id=str(board_id),
                    user_id=actor,
                )
        except TaskboardError as exc:
            return self.refuse(exc, description=description)
        was_current = self._current_board_id == board_id
        self._boards.pop(board_id)
        if was_current:
            self._current_board_id = None

        def restore_pointer() -> None:
            if was_current and self._current_board_id is None:
                self._current_board_id = board_id

        return self.stage(
            board_id=board_id,
            value=True,
            description=description,
            commit=lambda: self.adapter.delete_board(board_id),
            on_failure=(restore_pointer,),
        )

    async def delete_board(self, actor: str, board_id: UUID) -> MutationResult[bool]:
        return await self.begin_delete_board(actor, board_id).commit()

    # ------------------------------------------------------------------
    # Columns
    # ------------------------------------------------------------------

    def begin_create_column(
        self,
        actor: str,
        board_id: UUID,
        payload: ColumnCreate,
    ) -> PendingMutation[ColumnRead]:
        description = "create column"
        try:
            board = self.require_board(board_id)
            self.require_permission(board, actor, BoardAction.EDIT_BOARD)
        except TaskboardError as exc:
            return self.refuse(exc, description=description)
        order = max((column.order for column in board.columns), default=-1) + 1
        column = ColumnRead(
            board_id=board.id,
            title=payload.title,
            order=order,
            capacity=payload.capacity,
        )
        board.columns.append(column)
        snapshot = column.model_copy(deep=True)
        tentative_id = column.id

        def settle(remote: ColumnRead) -> ColumnRead:
            found = self.locate_column(tentative_id)
            if found is None:
                return remote
            _merge_into(found[1], remote, COLUMN_SCALAR_FIELDS)
            return found[1]

        return self.stage(
            board_id=board.id,
            value=column,
            description=description,
            commit=lambda: self.adapter.create_column(board_id, snapshot),
            settle=settle,
        )

    async def create_column(
        self,
        actor: str,
        board_id: UUID,
        payload: ColumnCreate,
    ) -> MutationResult[ColumnRead]:
        return await self.begin_create_column(actor, board_id, payload).commit()

    def begin_update_column(
        self,
        actor: str,
        column_id: UUID,
        payload: ColumnUpdate,
    ) -> PendingMutation[ColumnRead]:
        description = "update column"
        try:
            board, column = self.require_column(column_id)
            self.require_permission(board, actor, BoardAction.EDIT_BOARD)
        except TaskboardError as exc:
            return self.refuse(exc, description=description)
        if not payload.model_fields_set:
            return self.unchanged(column, description=description)
        for name in payload.model_fields_set:
            setattr(column, name, getattr(payload, name))
        fields = payload.model_dump(exclude_unset=True)

        def settle(remote: ColumnRead) -> ColumnRead:
            found = self.locate_column(column_id)
            if found is None:
                return remote
            _merge_into(found[1], remote, COLUMN_SCALAR_FIELDS)
            return found[1]

        return self.stage(
            board_id=board.id,
            value=column,
            description=description,
            commit=lambda: self.adapter.update_column(column_id, fields),
            settle=settle,
        )

    async def update_column(
        self,
        actor: str,
        column_id: UUID,
        payload: ColumnUpdate,
    ) -> MutationResult[ColumnRead]:
        return await self.begin_update_column(actor, column_id, payload).commit()

    def begin_delete_column(self, actor: str, column_id: UUID) -> PendingMutation[bool]:
        """Delete a column together with its tasks."""
        description = "delete column"
        try:
            board, column = self.require_column(column_id)
            self.require_permission(board, actor, BoardAction.EDIT_BOARD)
        except TaskboardError as exc:
            return self.refuse(exc, description=description)
        board.columns.remove(column)
        return self.stage(
            board_id=board.id,
            value=True,
            description=description,
            commit=lambda: self.adapter.delete_column(column_id),
        )

    async def delete_column(self, actor: str, column_id: UUID) -> MutationResult[bool]:
        return await self.begin_delete_column(actor, column_id).commit()

    # ------------------------------------------------------------------
    # Tasks
    # ------------------------------------------------------------------

    def settle_task(self, task_id: UUID, remote: TaskRead) -> TaskRead:
        """Copy the remote task's fields onto the local task, keeping its threads."""
        found = self.locate_task(task_id)
        if found is None:
            return remote
        _merge_into(found.task, remote, TASK_SCALAR_FIELDS)
        return found.task

    def begin_create_task(
        self,
        actor: str,
        column_id: UUID,
        payload: TaskCreate,
    ) -> PendingMutation[TaskRead]:
        """Append a new task to a column, subject to capacity and deadline rules."""
        description = "create task"
        try:
            board, column = self.require_column(column_id)
            self.require_permission(board, actor, BoardAction.ADD_TASK)
            rules.ensure_capacity(board, column, strict_capacity=self.strict_capacity)
            rules.ensure_due_date_within_parent(board, payload.due_date)
            rules.ensure_assignees_are_members(board, payload.assignees)
        except TaskboardError as exc:
            return self.refuse(exc, description=description)
        task = TaskRead(column_id=column.id, created_by=actor, **payload.model_dump())
        column.tasks.append(task)
        snapshot = task.model_copy(deep=True)
        tentative_id = task.id
        return self.stage(
            board_id=board.id,
            value=task,
            description=description,
            commit=lambda: self.adapter.create_task(column_id, snapshot),
            settle=lambda remote: self.settle_task(tentative_id, remote),
        )

    async def create_task(
        self,
        actor: str,
        column_id: UUID,
        payload: TaskCreate,
    ) -> MutationResult[TaskRead]:
        return await self.begin_create_task(actor, column_id, payload).commit()

    def begin_update_task(
        self,
        actor: str,
        task_id: UUID,
        payload: TaskUpdate,
    ) -> PendingMutation[TaskRead]:
        description = "update task"
        try:
            board, _, task = self.require_task(task_id)
            self.require_permission(board, actor, BoardAction.EDIT_TASK)
            changes = payload.changes()
            rules.ensure_due_date_within_parent(board, changes.get("due_date", task.due_date))
            if payload.assignees is not None:
                rules.ensure_assignees_are_members(board, payload.assignees)
        except TaskboardError as exc:
            return self.refuse(exc, description=description)
        if not changes:
            return self.unchanged(task, description=description)
        for name in payload.model_fields_set:
            setattr(task, name, getattr(payload, name))
        task.updated_at = utcnow()
        return self.stage(
            board_id=board.id,
            value=task,
            description=description,
            commit=lambda: self.adapter.update_task(task_id, changes),
            settle=lambda remote: self.settle_task(task_id, remote),
        )

    async def update_task(
        self,
        actor: str,
        task_id: UUID,
        payload: TaskUpdate,
    ) -> MutationResult[TaskRead]:
        return await self.begin_update_task(actor, task_id, payload).commit()

    def begin_delete_task(self, actor: str, task_id: UUID) -> PendingMutation[bool]:
        description = "delete task"
        try:
            board, column, task = self.require_task(task_id)
            self.require_permission(board, actor, BoardAction.DELETE_TASK)
        except TaskboardError as exc:
            return self.refuse(exc, description=description)
        column.tasks.remove(task)
        return self.stage(
            board_id=board.id,
            value=True,
            description=description,
            commit=lambda: self.adapter.delete_task(task_id),
        )

    async def delete_task(self, actor: str, task_id: UUID) -> MutationResult[bool]:
        return await self.begin_delete_task(actor, task_id).commit()

    # ------------------------------------------------------------------
    # Membership
    # ------------------------------------------------------------------

    def _member(self, board: BoardRead, user_id: str) -> BoardMemberRead:
        for member in board.members:
            if member.user_id == user_id:
                return member
        raise NotFoundError("Member not found", board_id=str(board.id), user_id=user_id)

    def _upsert_member(self, board_id: UUID, remote: BoardMemberRead) -> BoardMemberRead:
        board = self._boards.get(board_id)
        if board is None:
            return remote
        for index, member in enumerate(board.members):
            if member.user_id == remote.user_id:
                board.members[index] = remote
                return remote
        board.members.append(remote)
        return remote

    async def invite_member(
        self,
        actor: str,
        board_id: UUID,
        invite: MemberInvite,
    ) -> MutationResult[BoardMemberRead]:
        """Invite a user by email, or change their role if already a member.

        The backend resolves the email to a user id, so the member is only
        added locally once the adapter returns it.
        """
        description = "invite member"
        try:
            board = self.require_board(board_id)
            self.require_permission(board, actor, BoardAction.INVITE_MEMBER)
        except TaskboardError as exc:
            return self.refuse(exc, description=description).result
        pending: PendingMutation[BoardMemberRead] = self.stage(
            board_id=board.id,
            value=None,
            description=description,
            commit=lambda: self.adapter.invite_member(board_id, invite.email, invite.role),
            settle=lambda remote: self._upsert_member(board_id, remote),
        )
        return await pending.commit()

    def begin_update_member_role(
        self,
        actor: str,
        board_id: UUID,
        user_id: str,
        role: BoardRole,
    ) -> PendingMutation[BoardMemberRead]:
        description = "change member role"
        try:
            board = self.require_board(board_id)
            self.require_permission(board, actor, BoardAction.CHANGE_ROLE)
            if user_id == board.created_by:
                raise CreatorMembershipError(
                    "The board creator's role cannot be changed",
                    board_id=str(board_id),
                )
            if role == BoardRole.NONE:
                raise ValidationFailedError("Use remove_member to revoke access")
            member = self._member(board, user_id)
        except TaskboardError as exc:
            return self.refuse(exc, description=description)
        if member.role == role:
            return self.unchanged(member, description=description)
        member.role = role
        return self.stage(
            board_id=board.id,
            value=member,
            description=description,
            commit=lambda: self.adapter.update_member_role(board_id, user_id, role),
            settle=lambda remote: self._upsert_member(board_id, remote),
        )

    async def update_member_role(
        self,
        actor: str,
        board_id: UUID,
        user_id: str,
        role: BoardRole,
    ) -> MutationResult[BoardMemberRead]:
        return await self.begin_update_member_role(actor, board_id, user_id, role).commit()

    def begin_remove_member(
        self,
        actor: str,
        board_id: UUID,
        user_id: str,
    ) -> PendingMutation[bool]:
        """Remove a member and unassign them from every task on the board."""
        description = "remove member"
        try:
            board = self.require_board(board_id)
            self.require_permission(board, actor, BoardAction.REMOVE_MEMBER)
            if user_id == board.created_by:
                raise CreatorMembershipError(
                    "The board creator cannot be removed",
                    board_id=str(board_id),
                )
            member = self._member(board, user_id)
        except TaskboardError as exc:
            return self.refuse(exc, description=description)
        board.members.remove(member)
        for column in board.columns:
            for task in column.tasks:
                if user_id in task.assignees:
                    task.assignees = [a for a in task.assignees if a != user_id]
        return self.stage(
            board_id=board.id,
            value=True,
            description=description,
            commit=lambda: self.adapter.remove_member(board_id, user_id),
        )

    async def remove_member(
        self,
        actor: str,
        board_id: UUID,
        user_id: str,
    ) -> MutationResult[bool]:
        return await self.begin_remove_member(actor, board_id, user_id).commit()
