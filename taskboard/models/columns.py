"""Board column table."""

from __future__ import annotations

from uuid import UUID, uuid4

from sqlmodel import Field, SQLModel


class BoardColumn(SQLModel, table=True):
    """Ordered column on a board with an optional capacity override."""

    __tablename__ = "board_columns"  # pyright: ignore[reportAssignmentType]

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    board_id: UUID = Field(foreign_key="boards.id", index=True)
    title: str
    position: int = Field(default=0)
    capacity: int | None = None
