"""Model exports for SQLModel metadata discovery."""

from taskboard.models.attachments import TaskAttachment
from taskboard.models.boards import Board, BoardMember
from taskboard.models.columns import BoardColumn
from taskboard.models.comments import TaskComment
from taskboard.models.tasks import Task
from taskboard.models.users import User

__all__ = [
    "Board",
    "BoardColumn",
    "BoardMember",
    "Task",
    "TaskAttachment",
    "TaskComment",
    "User",
]
