"""Board and board membership tables."""

from __future__ import annotations

from datetime import datetime
from uuid import UUID, uuid4

from sqlalchemy import JSON, Column
from sqlmodel import Field, SQLModel

from taskboard.core.time import utcnow

RUNTIME_ANNOTATION_TYPES = (datetime,)


class Board(SQLModel, table=True):
    """Board header row; columns, tasks and members live in their own tables."""

    __tablename__ = "boards"  # pyright: ignore[reportAssignmentType]

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    title: str
    description: str | None = None
    created_by: str = Field(index=True)
    mode: str = Field(default="freelancer")
    parent: dict[str, object] | None = Field(default=None, sa_column=Column(JSON))
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime | None = None


class BoardMember(SQLModel, table=True):
    """Role held by one user on one board."""

    __tablename__ = "board_members"  # pyright: ignore[reportAssignmentType]

    board_id: UUID = Field(foreign_key="boards.id", primary_key=True)
    user_id: str = Field(primary_key=True)
    role: str
    email: str | None = None
    position: int = Field(default=0)
