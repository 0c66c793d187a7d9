"""Schemas for board create/update/read operations and membership."""

from __future__ import annotations

from datetime import date, datetime
from enum import Enum
from typing import Self
from uuid import UUID, uuid4

from pydantic import model_validator
from sqlmodel import Field, SQLModel

from taskboard.core.time import utcnow
from taskboard.schemas.columns import ColumnRead

_ERR_TITLE_REQUIRED = "title is required"
RUNTIME_ANNOTATION_TYPES = (date, datetime, UUID)
DEFAULT_COLUMN_TITLES = ("To Do", "In Progress", "Done")


class BoardRole(str, Enum):
    """Membership role on a board; NONE stands for "not a member"."""

    ADMIN = "admin"
    EDITOR = "editor"
    VIEWER = "viewer"
    NONE = "none"


class BoardMode(str, Enum):
    """Board flavour selecting the column capacity ceiling."""

    STRICT = "strict"
    FREELANCER = "freelancer"


class ParentKind(str, Enum):
    """Kind of entity a board is tracking work for."""

    ASSIGNMENT = "assignment"
    PROJECT = "project"


class BoardParent(SQLModel):
    """Enclosing assignment or project whose deadline bounds task due dates."""

    kind: ParentKind
    reference_id: str | None = None
    deadline: date | None = None


class BoardMemberRead(SQLModel):
    """Member entry linking a user to a board role."""

    user_id: str
    role: BoardRole
    email: str | None = None

    @model_validator(mode="after")
    def validate_role(self) -> Self:
        if self.role == BoardRole.NONE:
            raise ValueError("a member cannot hold the 'none' role")
        return self


class BoardCreate(SQLModel):
    """Payload for creating a board."""

    title: str
    description: str | None = None
    mode: BoardMode | None = None
    parent: BoardParent | None = None
    column_titles: list[str] | None = None

    @model_validator(mode="after")
    def validate_fields(self) -> Self:
        """Trim the title and drop blank column titles."""
        title = self.title.strip()
        if not title:
            raise ValueError(_ERR_TITLE_REQUIRED)
        self.title = title
        if self.column_titles is not None:
            self.column_titles = [t.strip() for t in self.column_titles if t.strip()]
        return self


class BoardUpdate(SQLModel):
    """Payload for partial board updates."""

    title: str | None = None
    description: str | None = None
    mode: BoardMode | None = None
    parent: BoardParent | None = None

    @model_validator(mode="after")
    def validate_title(self) -> Self:
        if "title" in self.model_fields_set:
            if self.title is None or not self.title.strip():
                raise ValueError(_ERR_TITLE_REQUIRED)
            self.title = self.title.strip()
        if "mode" in self.model_fields_set and self.mode is None:
            raise ValueError("mode cannot be null")
        return self


class MemberInvite(SQLModel):
    """Payload for inviting a user to a board by email."""

    email: str
    role: BoardRole = BoardRole.VIEWER

    @model_validator(mode="after")
    def validate_fields(self) -> Self:
        email = self.email.strip().lower()
        if "@" not in email:
            raise ValueError("a valid email is required")
        self.email = email
        if self.role == BoardRole.NONE:
            raise ValueError("cannot invite with the 'none' role")
        return self


class BoardRead(SQLModel):
    """Board tree: ordered columns, their tasks, and the member list."""

    id: UUID = Field(default_factory=uuid4)
    title: str
    description: str | None = None
    created_by: str
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime | None = None
    mode: BoardMode = BoardMode.FREELANCER
    parent: BoardParent | None = None
    columns: list[ColumnRead] = Field(default_factory=list)
    members: list[BoardMemberRead] = Field(default_factory=list)
