"""Task table."""

from __future__ import annotations

from datetime import date, datetime
from uuid import UUID, uuid4

from sqlalchemy import JSON, Column
from sqlmodel import Field, SQLModel

from taskboard.core.time import utcnow

RUNTIME_ANNOTATION_TYPES = (date, datetime)


class Task(SQLModel, table=True):
    """Task card; `position` keeps insertion order within its column."""

    __tablename__ = "tasks"  # pyright: ignore[reportAssignmentType]

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    column_id: UUID = Field(foreign_key="board_columns.id", index=True)
    position: int = Field(default=0)
    title: str
    description: str | None = None
    priority: str = Field(default="medium")
    due_date: date | None = None
    created_by: str
    assignees: list[str] = Field(default_factory=list, sa_column=Column(JSON))
    labels: list[str] = Field(default_factory=list, sa_column=Column(JSON))
    client: str | None = None
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime | None = None
