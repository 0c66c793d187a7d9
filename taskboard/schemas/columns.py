"""Schemas for board column create/update/read operations."""

from __future__ import annotations

from typing import Self
from uuid import UUID, uuid4

from pydantic import model_validator
from sqlmodel import Field, SQLModel

from taskboard.schemas.tasks import TaskRead

_ERR_TITLE_REQUIRED = "title is required"
RUNTIME_ANNOTATION_TYPES = (UUID,)


class ColumnCreate(SQLModel):
    """Payload for adding a column to a board."""

    title: str
    capacity: int | None = Field(default=None, ge=1)

    @model_validator(mode="after")
    def validate_title(self) -> Self:
        title = self.title.strip()
        if not title:
            raise ValueError(_ERR_TITLE_REQUIRED)
        self.title = title
        return self


class ColumnUpdate(SQLModel):
    """Payload for renaming a column or changing its capacity override."""

    title: str | None = None
    capacity: int | None = Field(default=None, ge=1)

    @model_validator(mode="after")
    def validate_title(self) -> Self:
        if "title" in self.model_fields_set:
            if self.title is None or not self.title.strip():
                raise ValueError(_ERR_TITLE_REQUIRED)
            self.title = self.title.strip()
        return self


class ColumnRead(SQLModel):
    """Column with its ordered task sequence."""

    id: UUID = Field(default_factory=uuid4)
    board_id: UUID
    title: str
    order: int = 0
    capacity: int | None = None
    tasks: list[TaskRead] = Field(default_factory=list)
