"""SQLModel persistence backend over an async SQLAlchemy session."""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import TYPE_CHECKING

from sqlalchemy import delete, func
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import col, select

from taskboard.core.errors import (
    CommentNestingError,
    CreatorMembershipError,
    CrossBoardMoveError,
    NotFoundError,
    PersistenceError,
)
from taskboard.core.logging import get_logger
from taskboard.core.time import utcnow
from taskboard.db.session import build_engine, build_session_maker, init_db, session_scope
from taskboard.models import (
    Board,
    BoardColumn,
    BoardMember,
    Task,
    TaskAttachment,
    TaskComment,
    User,
)
from taskboard.schemas.attachments import AttachmentRead
from taskboard.schemas.boards import BoardMemberRead, BoardMode, BoardParent, BoardRead, BoardRole
from taskboard.schemas.columns import ColumnRead
from taskboard.schemas.comments import ReplyCommentRead, TopLevelCommentRead
from taskboard.schemas.tasks import TaskPriority, TaskRead

if TYPE_CHECKING:
    from collections.abc import AsyncIterator, Sequence
    from uuid import UUID

    from sqlalchemy.ext.asyncio import AsyncEngine, async_sessionmaker
    from sqlmodel.ext.asyncio.session import AsyncSession

    from taskboard.core.config import Settings
    from taskboard.schemas.comments import CommentRead

logger = get_logger(__name__)


def _member_read(row: BoardMember) -> BoardMemberRead:
    return BoardMemberRead(user_id=row.user_id, role=BoardRole(row.role), email=row.email)


def _comment_read(row: TaskComment) -> CommentRead:
    if row.parent_id is not None:
        return ReplyCommentRead(
            id=row.id,
            task_id=row.task_id,
            parent_id=row.parent_id,
            author_id=row.author_id,
            content=row.content,
            created_at=row.created_at,
            updated_at=row.updated_at,
        )
    return TopLevelCommentRead(
        id=row.id,
        task_id=row.task_id,
        author_id=row.author_id,
        content=row.content,
        created_at=row.created_at,
        updated_at=row.updated_at,
    )


def _attachment_read(row: TaskAttachment) -> AttachmentRead:
    return AttachmentRead.model_validate(row, from_attributes=True)


def _task_read(
    row: Task,
    comments: Sequence[TaskComment] = (),
    attachments: Sequence[TaskAttachment] = (),
) -> TaskRead:
    return TaskRead(
        id=row.id,
        column_id=row.column_id,
        title=row.title,
        description=row.description,
        priority=TaskPriority(row.priority),
        due_date=row.due_date,
        created_by=row.created_by,
        created_at=row.created_at,
        updated_at=row.updated_at,
        assignees=list(row.assignees or []),
        labels=list(row.labels or []),
        client=row.client,
        comments=[_comment_read(c) for c in comments],
        attachments=[_attachment_read(a) for a in attachments],
    )


def _column_read(row: BoardColumn, tasks: list[TaskRead] | None = None) -> ColumnRead:
    return ColumnRead(
        id=row.id,
        board_id=row.board_id,
        title=row.title,
        order=row.position,
        capacity=row.capacity,
        tasks=tasks or [],
    )


def _parent_json(value: object) -> dict[str, object] | None:
    if value is None:
        return None
    return BoardParent.model_validate(value).model_dump(mode="json")


class SqlPersistenceAdapter:
    """Stores board trees across normalized tables.

    Cascades are applied explicitly so they hold on SQLite without foreign
    key enforcement.
    """

    def __init__(
        self,
        session_maker: async_sessionmaker[AsyncSession],
        *,
        engine: AsyncEngine | None = None,
    ) -> None:
        self._session_maker = session_maker
        self._engine = engine

    @classmethod
    async def from_settings(cls, settings: Settings) -> SqlPersistenceAdapter:
        engine = build_engine(settings.database_url)
        if settings.db_auto_create:
            await init_db(engine)
        return cls(build_session_maker(engine), engine=engine)

    @asynccontextmanager
    async def _session(self) -> AsyncIterator[AsyncSession]:
        try:
            async with session_scope(self._session_maker) as session:
                yield session
        except SQLAlchemyError as exc:
            logger.warning("persistence.sql.failed", extra={"error": type(exc).__name__})
            raise PersistenceError(f"Database operation failed: {type(exc).__name__}") from exc

    async def register_user(self, email: str, user_id: str) -> None:
        """Make a user resolvable by email for invitations."""
        async with self._session() as session:
            session.add(User(id=user_id, email=email.strip().lower()))
            await session.commit()

    # -- loading ------------------------------------------------------------

    async def _board_row(self, session: AsyncSession, board_id: UUID) -> Board:
        row = await session.get(Board, board_id)
        if row is None:
            raise NotFoundError("Board not found", board_id=str(board_id))
        return row

    async def _column_row(self, session: AsyncSession, column_id: UUID) -> BoardColumn:
        row = await session.get(BoardColumn, column_id)
        if row is None:
            raise NotFoundError("Column not found", column_id=str(column_id))
        return row

    async def _task_row(self, session: AsyncSession, task_id: UUID) -> Task:
        row = await session.get(Task, task_id)
        if row is None:
            raise NotFoundError("Task not found", task_id=str(task_id))
        return row

    async def _comment_row(self, session: AsyncSession, comment_id: UUID) -> TaskComment:
        row = await session.get(TaskComment, comment_id)
        if row is None:
            raise NotFoundError("Comment not found", comment_id=str(comment_id))
        return row

    async def _tasks_in(self, session: AsyncSession, column_ids: list[UUID]) -> list[TaskRead]:
        if not column_ids:
            return []
        tasks = (
            await session.exec(
                select(Task)
                .where(col(Task.column_id).in_(column_ids))
                .order_by(col(Task.position).asc()),
            )
        ).all()
        task_ids = [task.id for task in tasks]
        comments: dict[UUID, list[TaskComment]] = {task_id: [] for task_id in task_ids}
        attachments: dict[UUID, list[TaskAttachment]] = {task_id: [] for task_id in task_ids}
        if task_ids:
            for comment in (
                await session.exec(
                    select(TaskComment)
                    .where(col(TaskComment.task_id).in_(task_ids))
                    .order_by(col(TaskComment.created_at).asc()),
                )
            ).all():
                comments[comment.task_id].append(comment)
            for attachment in (
                await session.exec(
                    select(TaskAttachment)
                    .where(col(TaskAttachment.task_id).in_(task_ids))
                    .order_by(col(TaskAttachment.uploaded_at).asc()),
                )
            ).all():
                attachments[attachment.task_id].append(attachment)
        return [_task_read(task, comments[task.id], attachments[task.id]) for task in tasks]

    async def _load_task(self, session: AsyncSession, task_id: UUID) -> TaskRead:
        row = await self._task_row(session, task_id)
        loaded = await self._tasks_in(session, [row.column_id])
        return next(task for task in loaded if task.id == task_id)

    async def _load_board(self, session: AsyncSession, board_id: UUID) -> BoardRead:
        row = await self._board_row(session, board_id)
        members = (
            await session.exec(
                select(BoardMember)
                .where(col(BoardMember.board_id) == board_id)
                .order_by(col(BoardMember.position).asc()),
            )
        ).all()
        column_rows = (
            await session.exec(
                select(BoardColumn)
                .where(col(BoardColumn.board_id) == board_id)
                .order_by(col(BoardColumn.position).asc()),
            )
        ).all()
        tasks = await self._tasks_in(session, [c.id for c in column_rows])
        columns = [
            _column_read(c, [t for t in tasks if t.column_id == c.id]) for c in column_rows
        ]
        return BoardRead(
            id=row.id,
            title=row.title,
            description=row.description,
            created_by=row.created_by,
            created_at=row.created_at,
            updated_at=row.updated_at,
            mode=BoardMode(row.mode),
            parent=BoardParent.model_validate(row.parent) if row.parent else None,
            columns=columns,
            members=[_member_read(m) for m in members],
        )

    async def _delete_tasks(self, session: AsyncSession, task_ids: list[UUID]) -> None:
        if not task_ids:
            return
        await session.execute(
            delete(TaskAttachment).where(col(TaskAttachment.task_id).in_(task_ids)),
        )
        await session.execute(delete(TaskComment).where(col(TaskComment.task_id).in_(task_ids)))
        await session.execute(delete(Task).where(col(Task.id).in_(task_ids)))

    async def _task_ids_in(self, session: AsyncSession, column_ids: list[UUID]) -> list[UUID]:
        if not column_ids:
            return []
        return list(
            (await session.exec(select(Task.id).where(col(Task.column_id).in_(column_ids)))).all(),
        )

    # -- boards -------------------------------------------------------------

    async def list_boards(self, *, user_id: str | None = None) -> list[BoardRead]:
        async with self._session() as session:
            statement = select(Board.id).order_by(col(Board.created_at).asc())
            if user_id is not None:
                member_of = select(BoardMember.board_id).where(col(BoardMember.user_id) == user_id)
                statement = statement.where(
                    (col(Board.created_by) == user_id) | col(Board.id).in_(member_of),
                )
            board_ids = (await session.exec(statement)).all()
            return [await self._load_board(session, board_id) for board_id in board_ids]

    async def read_board(self, board_id: UUID) -> BoardRead:
        async with self._session() as session:
            return await self._load_board(session, board_id)

    async def create_board(self, board: BoardRead) -> BoardRead:
        async with self._session() as session:
            session.add(
                Board(
                    id=board.id,
                    title=board.title,
                    description=board.description,
                    created_by=board.created_by,
                    mode=board.mode.value,
                    parent=_parent_json(board.parent),
                    created_at=board.created_at,
                    updated_at=board.updated_at,
                ),
            )
            for position, member in enumerate(board.members):
                session.add(
                    BoardMember(
                        board_id=board.id,
                        user_id=member.user_id,
                        role=member.role.value,
                        email=member.email,
                        position=position,
                    ),
                )
            for column in board.columns:
                session.add(
                    BoardColumn(
                        id=column.id,
                        board_id=board.id,
                        title=column.title,
                        position=column.order,
                        capacity=column.capacity,
                    ),
                )
            await session.commit()
            logger.debug("persistence.sql.board_created", extra={"board_id": str(board.id)})
            return await self._load_board(session, board.id)

    async def update_board(self, board_id: UUID, fields: dict[str, object]) -> BoardRead:
        async with self._session() as session:
            row = await self._board_row(session, board_id)
            for name, value in fields.items():
                if name == "parent":
                    row.parent = _parent_json(value)
                elif name == "mode":
                    row.mode = BoardMode(value).value
                elif name in {"title", "description"}:
                    setattr(row, name, value)
            row.updated_at = utcnow()
            session.add(row)
            await session.commit()
            return await self._load_board(session, board_id)

    async def delete_board(self, board_id: UUID) -> bool:
        async with self._session() as session:
            await self._board_row(session, board_id)
            column_ids = list(
                (
                    await session.exec(
                        select(BoardColumn.id).where(col(BoardColumn.board_id) == board_id),
                    )
                ).all(),
            )
            await self._delete_tasks(session, await self._task_ids_in(session, column_ids))
            await session.execute(delete(BoardColumn).where(col(BoardColumn.board_id) == board_id))
            await session.execute(delete(BoardMember).where(col(BoardMember.board_id) == board_id))
            await session.execute(delete(Board).where(col(Board.id) == board_id))
            await session.commit()
            return True

    # -- columns ------------------------------------------------------------

    async def create_column(self, board_id: UUID, column: ColumnRead) -> ColumnRead:
        async with self._session() as session:
            await self._board_row(session, board_id)
            row = BoardColumn(
                id=column.id,
                board_id=board_id,
                title=column.title,
                position=column.order,
                capacity=column.capacity,
            )
            session.add(row)
            await session.commit()
            await session.refresh(row)
            return _column_read(row)

    async def update_column(self, column_id: UUID, fields: dict[str, object]) -> ColumnRead:
        async with self._session() as session:
            row = await self._column_row(session, column_id)
            for name, value in fields.items():
                if name == "order":
                    row.position = int(value)  # type: ignore[call-overload]
                elif name in {"title", "capacity"}:
                    setattr(row, name, value)
            session.add(row)
            await session.commit()
            return _column_read(row, await self._tasks_in(session, [column_id]))

    async def delete_column(self, column_id: UUID) -> bool:
        async with self._session() as session:
            await self._column_row(session, column_id)
            await self._delete_tasks(session, await self._task_ids_in(session, [column_id]))
            await session.execute(delete(BoardColumn).where(col(BoardColumn.id) == column_id))
            await session.commit()
            return True

    async def list_columns(self, board_id: UUID) -> list[ColumnRead]:
        async with self._session() as session:
            return (await self._load_board(session, board_id)).columns

    # -- tasks --------------------------------------------------------------

    async def _next_position(self, session: AsyncSession, column_id: UUID) -> int:
        current = (
            await session.exec(
                select(func.max(Task.position)).where(col(Task.column_id) == column_id),
            )
        ).one()
        return 0 if current is None else current + 1

    async def create_task(self, column_id: UUID, task: TaskRead) -> TaskRead:
        async with self._session() as session:
            await self._column_row(session, column_id)
            session.add(
                Task(
                    id=task.id,
                    column_id=column_id,
                    position=await self._next_position(session, column_id),
                    title=task.title,
                    description=task.description,
                    priority=task.priority.value,
                    due_date=task.due_date,
                    created_by=task.created_by,
                    assignees=list(task.assignees),
                    labels=list(task.labels),
                    client=task.client,
                    created_at=task.created_at,
                    updated_at=task.updated_at,
                ),
            )
            await session.commit()
            return await self._load_task(session, task.id)

    async def update_task(self, task_id: UUID, fields: dict[str, object]) -> TaskRead:
        async with self._session() as session:
            row = await self._task_row(session, task_id)
            for name, value in fields.items():
                if name == "priority":
                    row.priority = TaskPriority(value).value
                elif name in {"assignees", "labels"}:
                    setattr(row, name, list(value or []))  # type: ignore[call-overload]
                elif name in {"title", "description", "due_date", "client"}:
                    setattr(row, name, value)
            row.updated_at = utcnow()
            session.add(row)
            await session.commit()
            return await self._load_task(session, task_id)

    async def delete_task(self, task_id: UUID) -> bool:
        async with self._session() as session:
            await self._task_row(session, task_id)
            await self._delete_tasks(session, [task_id])
            await session.commit()
            return True

    async def move_task(self, task_id: UUID, destination_column_id: UUID) -> TaskRead:
        async with self._session() as session:
            row = await self._task_row(session, task_id)
            source = await self._column_row(session, row.column_id)
            destination = await self._column_row(session, destination_column_id)
            if source.board_id != destination.board_id:
                raise CrossBoardMoveError("Cannot move task to a column in a different board")
            if source.id != destination.id:
                row.position = await self._next_position(session, destination.id)
                row.column_id = destination.id
                session.add(row)
                await session.commit()
            return await self._load_task(session, task_id)

    # -- comments -----------------------------------------------------------

    async def create_comment(self, task_id: UUID, comment: CommentRead) -> CommentRead:
        async with self._session() as session:
            await self._task_row(session, task_id)
            parent_id = comment.parent_id if isinstance(comment, ReplyCommentRead) else None
            if parent_id is not None:
                parent = await session.get(TaskComment, parent_id)
                if parent is None or parent.task_id != task_id:
                    raise NotFoundError("Parent comment not found", parent_id=str(parent_id))
                if parent.parent_id is not None:
                    raise CommentNestingError("Replies cannot be replied to")
            row = TaskComment(
                id=comment.id,
                task_id=task_id,
                parent_id=parent_id,
                author_id=comment.author_id,
                content=comment.content,
                created_at=comment.created_at,
                updated_at=comment.updated_at,
            )
            session.add(row)
            await session.commit()
            await session.refresh(row)
            return _comment_read(row)

    async def update_comment(self, comment_id: UUID, content: str) -> CommentRead:
        async with self._session() as session:
            row = await self._comment_row(session, comment_id)
            row.content = content
            row.updated_at = utcnow()
            session.add(row)
            await session.commit()
            await session.refresh(row)
            return _comment_read(row)

    async def delete_comment(self, comment_id: UUID) -> bool:
        async with self._session() as session:
            await self._comment_row(session, comment_id)
            await session.execute(
                delete(TaskComment).where(col(TaskComment.parent_id) == comment_id),
            )
            await session.execute(delete(TaskComment).where(col(TaskComment.id) == comment_id))
            await session.commit()
            return True

    # -- attachments --------------------------------------------------------

    async def create_attachment(
        self,
        task_id: UUID,
        attachment: AttachmentRead,
    ) -> AttachmentRead:
        async with self._session() as session:
            await self._task_row(session, task_id)
            row = TaskAttachment(
                id=attachment.id,
                task_id=task_id,
                uploader_id=attachment.uploader_id,
                name=attachment.name,
                mime_type=attachment.mime_type,
                size=attachment.size,
                url=attachment.url,
                uploaded_at=attachment.uploaded_at,
            )
            session.add(row)
            await session.commit()
            await session.refresh(row)
            return _attachment_read(row)

    async def delete_attachment(self, attachment_id: UUID) -> bool:
        async with self._session() as session:
            row = await session.get(TaskAttachment, attachment_id)
            if row is None:
                raise NotFoundError("Attachment not found", attachment_id=str(attachment_id))
            await session.delete(row)
            await session.commit()
            return True

    # -- membership ---------------------------------------------------------

    async def invite_member(
        self,
        board_id: UUID,
        email: str,
        role: BoardRole,
    ) -> BoardMemberRead:
        normalized = email.strip().lower()
        async with self._session() as session:
            board = await self._board_row(session, board_id)
            user = (await session.exec(select(User).where(col(User.email) == normalized))).first()
            if user is None:
                raise NotFoundError("User not found", email=normalized)
            if user.id == board.created_by:
                raise CreatorMembershipError(
                    "The board creator's role cannot be changed",
                    email=normalized,
                )
            member = await session.get(BoardMember, (board_id, user.id))
            if member is None:
                count = (
                    await session.exec(
                        select(func.count()).where(col(BoardMember.board_id) == board_id),
                    )
                ).one()
                member = BoardMember(
                    board_id=board_id,
                    user_id=user.id,
                    position=count,
                    role=role.value,
                )
            member.role = role.value
            member.email = normalized
            session.add(member)
            await session.commit()
            await session.refresh(member)
            return _member_read(member)

    async def update_member_role(
        self,
        board_id: UUID,
        user_id: str,
        role: BoardRole,
    ) -> BoardMemberRead:
        async with self._session() as session:
            member = await session.get(BoardMember, (board_id, user_id))
            if member is None:
                raise NotFoundError("Member not found", user_id=user_id)
            member.role = role.value
            session.add(member)
            await session.commit()
            await session.refresh(member)
            return _member_read(member)

    async def remove_member(self, board_id: UUID, user_id: str) -> bool:
        async with self._session() as session:
            member = await session.get(BoardMember, (board_id, user_id))
            if member is None:
                raise NotFoundError("Member not found", user_id=user_id)
            await session.delete(member)
            column_ids = select(BoardColumn.id).where(col(BoardColumn.board_id) == board_id)
            statement = select(Task).where(col(Task.column_id).in_(column_ids))
            tasks = (await session.exec(statement)).all()
            for task in tasks:
                if user_id in (task.assignees or []):
                    task.assignees = [a for a in task.assignees if a != user_id]
                    session.add(task)
            await session.commit()
            return True

    async def aclose(self) -> None:
        if self._engine is not None:
            await self._engine.dispose()
