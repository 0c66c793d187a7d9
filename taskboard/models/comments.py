"""Task comment table."""

from __future__ import annotations

from datetime import datetime
from uuid import UUID, uuid4

from sqlmodel import Field, SQLModel

from taskboard.core.time import utcnow

RUNTIME_ANNOTATION_TYPES = (datetime,)


class TaskComment(SQLModel, table=True):
    """Comment row; `parent_id` is set only for replies."""

    __tablename__ = "task_comments"  # pyright: ignore[reportAssignmentType]

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    task_id: UUID = Field(foreign_key="tasks.id", index=True)
    parent_id: UUID | None = Field(default=None, foreign_key="task_comments.id", index=True)
    author_id: str
    content: str
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime | None = None
