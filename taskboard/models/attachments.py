"""Task attachment table."""

from __future__ import annotations

from datetime import datetime
from uuid import UUID, uuid4

from sqlalchemy import Column, Text
from sqlmodel import Field, SQLModel

from taskboard.core.time import utcnow

RUNTIME_ANNOTATION_TYPES = (datetime,)


class TaskAttachment(SQLModel, table=True):
    __tablename__ = "task_attachments"  # pyright: ignore[reportAssignmentType]

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    task_id: UUID = Field(foreign_key="tasks.id", index=True)
    uploader_id: str
    name: str
    mime_type: str = Field(default="application/octet-stream")
    size: int = Field(default=0)
    url: str = Field(sa_column=Column(Text, nullable=False))
    uploaded_at: datetime = Field(default_factory=utcnow)
