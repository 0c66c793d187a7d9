"""Schemas for threaded task comments.

A comment is either top-level or a reply to a top-level comment. The two
variants are separate types so a reply always carries its parent reference
and a top-level comment never does.
"""

from __future__ import annotations

from datetime import datetime
from typing import Annotated, Literal
from uuid import UUID, uuid4

from pydantic import Field as PydanticField
from sqlmodel import Field, SQLModel

from taskboard.core.time import utcnow

RUNTIME_ANNOTATION_TYPES = (datetime, UUID)


class CommentBase(SQLModel):
    """Fields shared by top-level comments and replies."""

    id: UUID = Field(default_factory=uuid4)
    task_id: UUID
    author_id: str
    content: str
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime | None = None

    @property
    def edited(self) -> bool:
        return self.updated_at is not None


class TopLevelCommentRead(CommentBase):
    """Comment posted directly on a task."""

    kind: Literal["top_level"] = "top_level"


class ReplyCommentRead(CommentBase):
    """Reply nested one level beneath a top-level comment."""

    kind: Literal["reply"] = "reply"
    parent_id: UUID


CommentRead = Annotated[
    TopLevelCommentRead | ReplyCommentRead,
    PydanticField(discriminator="kind"),
]
