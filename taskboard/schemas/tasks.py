"""Schemas for task create/update/read operations."""

from __future__ import annotations

from datetime import date, datetime
from enum import Enum
from typing import Self
from uuid import UUID, uuid4

from pydantic import model_validator
from sqlmodel import Field, SQLModel

from taskboard.core.time import utcnow
from taskboard.schemas.attachments import AttachmentRead
from taskboard.schemas.comments import CommentRead

_ERR_TITLE_REQUIRED = "title is required"
RUNTIME_ANNOTATION_TYPES = (date, datetime, UUID)


class TaskPriority(str, Enum):
    """Task urgency levels shown on cards."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


def _normalize_labels(labels: list[str]) -> list[str]:
    seen: list[str] = []
    for label in labels:
        cleaned = label.strip()
        if cleaned and cleaned not in seen:
            seen.append(cleaned)
    return seen


class TaskCreate(SQLModel):
    """Payload for creating a task in a column."""

    title: str
    description: str | None = None
    priority: TaskPriority = TaskPriority.MEDIUM
    due_date: date | None = None
    assignees: list[str] = Field(default_factory=list)
    labels: list[str] = Field(default_factory=list)
    client: str | None = None

    @model_validator(mode="after")
    def validate_fields(self) -> Self:
        """Trim the title and drop blank or duplicate labels."""
        title = self.title.strip()
        if not title:
            raise ValueError(_ERR_TITLE_REQUIRED)
        self.title = title
        self.labels = _normalize_labels(self.labels)
        self.assignees = list(dict.fromkeys(self.assignees))
        return self


class TaskUpdate(SQLModel):
    """Payload for partial task updates; explicit nulls clear optional fields."""

    title: str | None = None
    description: str | None = None
    priority: TaskPriority | None = None
    due_date: date | None = None
    assignees: list[str] | None = None
    labels: list[str] | None = None
    client: str | None = None

    @model_validator(mode="after")
    def validate_fields(self) -> Self:
        """Reject blank titles; a null collection clears it, others are normalized."""
        if "title" in self.model_fields_set:
            if self.title is None or not self.title.strip():
                raise ValueError(_ERR_TITLE_REQUIRED)
            self.title = self.title.strip()
        if "priority" in self.model_fields_set and self.priority is None:
            raise ValueError("priority cannot be null")
        for name in ("labels", "assignees"):
            if name in self.model_fields_set and getattr(self, name) is None:
                setattr(self, name, [])
        if self.labels is not None:
            self.labels = _normalize_labels(self.labels)
        if self.assignees is not None:
            self.assignees = list(dict.fromkeys(self.assignees))
        return self

    def changes(self) -> dict[str, object]:
        """Return only the fields the caller explicitly set."""
        return self.model_dump(exclude_unset=True)


class TaskRead(SQLModel):
    """Task card with its comments and attachments."""

    id: UUID = Field(default_factory=uuid4)
    column_id: UUID
    title: str
    description: str | None = None
    priority: TaskPriority = TaskPriority.MEDIUM
    due_date: date | None = None
    created_by: str
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime | None = None
    assignees: list[str] = Field(default_factory=list)
    comments: list[CommentRead] = Field(default_factory=list)
    attachments: list[AttachmentRead] = Field(default_factory=list)
    labels: list[str] = Field(default_factory=list)
    client: str | None = None
