"""Contract the board store requires from its persistence backend."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from uuid import UUID

    from taskboard.schemas.attachments import AttachmentRead
    from taskboard.schemas.boards import BoardMemberRead, BoardRead, BoardRole
    from taskboard.schemas.columns import ColumnRead
    from taskboard.schemas.comments import CommentRead
    from taskboard.schemas.tasks import TaskRead


class PersistenceAdapter(Protocol):
    """Remote side of every board mutation.

    Each call returns the fully updated entity (or True for deletes) so the
    store can settle its local copy. Implementations raise
    `NotFoundError` for unknown ids and `PersistenceError` for storage or
    transport failures.
    """

    # Boards
    async def list_boards(self, *, user_id: str | None = None) -> list[BoardRead]: ...

    async def read_board(self, board_id: UUID) -> BoardRead: ...

    async def create_board(self, board: BoardRead) -> BoardRead: ...

    async def update_board(self, board_id: UUID, fields: dict[str, object]) -> BoardRead: ...

    async def delete_board(self, board_id: UUID) -> bool: ...

    # Columns
    async def create_column(self, board_id: UUID, column: ColumnRead) -> ColumnRead: ...

    async def update_column(self, column_id: UUID, fields: dict[str, object]) -> ColumnRead: ...

    async def delete_column(self, column_id: UUID) -> bool: ...

    async def list_columns(self, board_id: UUID) -> list[ColumnRead]: ...

    # Tasks
    async def create_task(self, column_id: UUID, task: TaskRead) -> TaskRead: ...

    async def update_task(self, task_id: UUID, fields: dict[str, object]) -> TaskRead: ...

    async def delete_task(self, task_id: UUID) -> bool: ...

    async def move_task(self, task_id: UUID, destination_column_id: UUID) -> TaskRead: ...

    # Comments
    async def create_comment(self, task_id: UUID, comment: CommentRead) -> CommentRead: ...

    async def update_comment(self, comment_id: UUID, content: str) -> CommentRead: ...

    async def delete_comment(self, comment_id: UUID) -> bool: ...

    # Attachments
    async def create_attachment(
        self,
        task_id: UUID,
        attachment: AttachmentRead,
    ) -> AttachmentRead: ...

    async def delete_attachment(self, attachment_id: UUID) -> bool: ...

    # Membership
    async def invite_member(
        self,
        board_id: UUID,
        email: str,
        role: BoardRole,
    ) -> BoardMemberRead: ...

    async def update_member_role(
        self,
        board_id: UUID,
        user_id: str,
        role: BoardRole,
    ) -> BoardMemberRead: ...

    async def remove_member(self, board_id: UUID, user_id: str) -> bool: ...

    async def aclose(self) -> None: ...
