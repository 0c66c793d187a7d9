"""Public schema exports shared by the store, services, and adapters."""

from taskboard.schemas.attachments import AttachmentRead
from taskboard.schemas.boards import (
    DEFAULT_COLUMN_TITLES,
    BoardCreate,
    BoardMemberRead,
    BoardMode,
    BoardParent,
    BoardRead,
    BoardRole,
    BoardUpdate,
    MemberInvite,
    ParentKind,
)
from taskboard.schemas.columns import ColumnCreate, ColumnRead, ColumnUpdate
from taskboard.schemas.comments import CommentRead, ReplyCommentRead, TopLevelCommentRead
from taskboard.schemas.tasks import TaskCreate, TaskPriority, TaskRead, TaskUpdate

__all__ = [
    "AttachmentRead",
    "BoardCreate",
    "BoardMemberRead",
    "BoardMode",
    "BoardParent",
    "BoardRead",
    "BoardRole",
    "BoardUpdate",
    "ColumnCreate",
    "ColumnRead",
    "ColumnUpdate",
    "CommentRead",
    "DEFAULT_COLUMN_TITLES",
    "MemberInvite",
    "ParentKind",
    "ReplyCommentRead",
    "TaskCreate",
    "TaskPriority",
    "TaskRead",
    "TaskUpdate",
    "TopLevelCommentRead",
]
