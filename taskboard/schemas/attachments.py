"""Schemas for task attachments."""

from __future__ import annotations

from datetime import datetime
from uuid import UUID, uuid4

from sqlmodel import Field, SQLModel

from taskboard.core.time import utcnow

RUNTIME_ANNOTATION_TYPES = (datetime, UUID)


class AttachmentRead(SQLModel):
    """File attached to a task, with its encoded content reference."""

    id: UUID = Field(default_factory=uuid4)
    task_id: UUID
    uploader_id: str
    name: str
    mime_type: str = "application/octet-stream"
    size: int = Field(default=0, ge=0)
    url: str
    uploaded_at: datetime = Field(default_factory=utcnow)
