"""Task attachments: read, encode, attach, and ownership-checked removal."""

from __future__ import annotations

import asyncio
import base64
import binascii
import mimetypes
from pathlib import Path
from typing import TYPE_CHECKING, Protocol

from taskboard.core.config import settings
from taskboard.core.errors import (
    AttachmentReadError,
    AttachmentTooLargeError,
    NotFoundError,
    PermissionDeniedError,
    TaskboardError,
)
from taskboard.core.logging import get_logger
from taskboard.schemas.attachments import AttachmentRead
from taskboard.schemas.boards import BoardRole
from taskboard.services.permissions import BoardAction, can, resolve_role

if TYPE_CHECKING:
    from uuid import UUID

    from taskboard.services.mutations import MutationResult, PendingMutation
    from taskboard.services.store import BoardStore

logger = get_logger(__name__)

_UNITS = ("Bytes", "KB", "MB", "GB")


def format_bytes(size: int) -> str:
    """Human-readable size label, e.g. ``1.5 KB``."""
    if size <= 0:
        return "0 Bytes"
    value = float(size)
    unit = 0
    while value >= 1024 and unit < len(_UNITS) - 1:
        value /= 1024
        unit += 1
    return f"{round(value, 2):g} {_UNITS[unit]}"


class AttachmentStorage(Protocol):
    """Turns raw bytes into a content reference and back."""

    def store(self, data: bytes, mime_type: str) -> str: ...

    def retrieve(self, reference: str) -> bytes: ...


class DataUrlStorage:
    """Self-contained base64 ``data:`` URLs."""

    def store(self, data: bytes, mime_type: str) -> str:
        encoded = base64.b64encode(data).decode("ascii")
        return f"data:{mime_type};base64,{encoded}"

    def retrieve(self, reference: str) -> bytes:
        header, sep, payload = reference.partition(",")
        if not sep or not header.startswith("data:") or not header.endswith(";base64"):
            raise AttachmentReadError("Not a base64 data URL")
        try:
            return base64.b64decode(payload, validate=True)
        except binascii.Error as exc:
            raise AttachmentReadError("Attachment content is corrupt") from exc


class AttachmentSource(Protocol):
    name: str
    mime_type: str

    async def read(self) -> bytes: ...


class BytesSource:
    """In-memory upload."""

    def __init__(self, name: str, data: bytes, mime_type: str | None = None) -> None:
        self.name = name
        self.mime_type = mime_type or _guess_mime_type(name)
        self._data = data

    async def read(self) -> bytes:
        return self._data


class FileSource:
    """Upload read from disk without blocking the event loop."""

    def __init__(self, path: str | Path, mime_type: str | None = None) -> None:
        self.path = Path(path)
        self.name = self.path.name
        self.mime_type = mime_type or _guess_mime_type(self.name)

    async def read(self) -> bytes:
        try:
            return await asyncio.to_thread(self.path.read_bytes)
        except OSError as exc:
            raise AttachmentReadError(
                f"Could not read file '{self.name}'",
                path=str(self.path),
            ) from exc


def _guess_mime_type(name: str) -> str:
    guessed, _ = mimetypes.guess_type(name)
    return guessed or "application/octet-stream"


class AttachmentManager:
    def __init__(
        self,
        store: BoardStore,
        *,
        storage: AttachmentStorage | None = None,
        max_bytes: int | None = None,
    ) -> None:
        self.store = store
        self.storage = storage or DataUrlStorage()
        self.max_bytes = settings.max_attachment_bytes if max_bytes is None else max_bytes

    async def begin_add_attachment(
        self,
        actor: str,
        task_id: UUID,
        source: AttachmentSource,
    ) -> PendingMutation[AttachmentRead]:
        """Read *source* fully, then attach it tentatively.

        Raises `AttachmentReadError` when the source cannot be read; nothing
        is attached in that case.
        """
        description = "add attachment"
        store = self.store
        try:
            board, _, task = store.require_task(task_id)
            store.require_permission(board, actor, BoardAction.ADD_ATTACHMENT)
        except TaskboardError as exc:
            return store.refuse(exc, description=description)

        data = await source.read()

        try:
            # The board may have changed while the file was being read.
            board, _, task = store.require_task(task_id)
            store.require_permission(board, actor, BoardAction.ADD_ATTACHMENT)
            if len(data) > self.max_bytes:
                raise AttachmentTooLargeError(
                    f"'{source.name}' is {format_bytes(len(data))}; the limit is "
                    f"{format_bytes(self.max_bytes)}.",
                    size=len(data),
                    limit=self.max_bytes,
                )
        except TaskboardError as exc:
            return store.refuse(exc, description=description)

        attachment = AttachmentRead(
            task_id=task.id,
            uploader_id=actor,
            name=source.name,
            mime_type=source.mime_type,
            size=len(data),
            url=self.storage.store(data, source.mime_type),
        )
        task.attachments.append(attachment)
        logger.info(
            "attachments.added",
            extra={"task_id": str(task_id), "name": source.name, "size": len(data)},
        )
        snapshot = attachment.model_copy(deep=True)
        return store.stage(
            board_id=board.id,
            value=attachment,
            description=description,
            commit=lambda: store.adapter.create_attachment(task_id, snapshot),
            settle=lambda remote: self._replace(attachment.id, remote),
        )

    async def add_attachment(
        self,
        actor: str,
        task_id: UUID,
        source: AttachmentSource,
    ) -> MutationResult[AttachmentRead]:
        pending = await self.begin_add_attachment(actor, task_id, source)
        return await pending.commit()

    def begin_delete_attachment(self, actor: str, attachment_id: UUID) -> PendingMutation[bool]:
        description = "delete attachment"
        store = self.store
        try:
            found = store.locate_attachment(attachment_id)
            if found is None:
                raise NotFoundError("Attachment not found", attachment_id=str(attachment_id))
            board, task, attachment = found
            owner = (
                attachment.uploader_id == actor
                and resolve_role(board, actor) != BoardRole.NONE
            )
            if not owner and not can(board, actor, BoardAction.DELETE_ATTACHMENT):
                raise PermissionDeniedError(
                    "Only the uploader or a user allowed to delete attachments may do this",
                    attachment_id=str(attachment_id),
                    user_id=actor,
                )
        except TaskboardError as exc:
            return store.refuse(exc, description=description)
        task.attachments.remove(attachment)
        return store.stage(
            board_id=board.id,
            value=True,
            description=description,
            commit=lambda: store.adapter.delete_attachment(attachment_id),
        )

    async def delete_attachment(self, actor: str, attachment_id: UUID) -> MutationResult[bool]:
        return await self.begin_delete_attachment(actor, attachment_id).commit()

    def read_attachment(self, actor: str, attachment_id: UUID) -> bytes:
        """Decode an attachment's content for a user who can view its board."""
        found = self.store.locate_attachment(attachment_id)
        if found is None:
            raise NotFoundError("Attachment not found", attachment_id=str(attachment_id))
        self.store.require_permission(found.board, actor, BoardAction.VIEW_BOARD)
        return self.storage.retrieve(found.attachment.url)

    def _replace(self, attachment_id: UUID, remote: AttachmentRead) -> AttachmentRead:
        found = self.store.locate_attachment(attachment_id)
        if found is None:
            return remote
        attachments = found.task.attachments
        attachments[attachments.index(found.attachment)] = remote
        return remote
