# ruff: noqa

from __future__ import annotations

from pathlib import Path

import pytest

from taskboard.core.errors import (
    AttachmentReadError,
    AttachmentTooLargeError,
    PermissionDeniedError,
)
from taskboard.schemas.boards import BoardCreate, BoardRole, MemberInvite
from taskboard.schemas.tasks import TaskCreate
from taskboard.services.attachments import (
    AttachmentManager,
    BytesSource,
    DataUrlStorage,
    FileSource,
    format_bytes,
)
from taskboard.services.notifications import CollectingNotifier
from taskboard.services.persistence.memory import InMemoryPersistenceAdapter
from taskboard.services.store import BoardStore

USERS = {"ed@example.com": "ed", "ed2@example.com": "ed2", "vi@example.com": "vi"}


async def _setup(max_bytes: int = 1024):
    adapter = InMemoryPersistenceAdapter(users=USERS)
    store = BoardStore(adapter, notifier=CollectingNotifier())
    board = (await store.create_board("owner", BoardCreate(title="Docs"))).value
    for email, role in (
        ("ed@example.com", BoardRole.EDITOR),
        ("ed2@example.com", BoardRole.EDITOR),
        ("vi@example.com", BoardRole.VIEWER),
    ):
        await store.invite_member("owner", board.id, MemberInvite(email=email, role=role))
    task = (await store.create_task("owner", board.columns[0].id, TaskCreate(title="Outline"))).value
    return store, AttachmentManager(store, max_bytes=max_bytes), adapter, board, task


@pytest.mark.asyncio
async def test_add_attachment_encodes_content_as_data_url() -> None:
    store, manager, adapter, board, task = await _setup()

    result = await manager.add_attachment("ed", task.id, BytesSource("notes.txt", b"hello"))

    attachment = result.value
    assert result.ok
    assert attachment.uploader_id == "ed"
    assert attachment.name == "notes.txt"
    assert attachment.mime_type == "text/plain"
    assert attachment.size == 5
    assert attachment.url == "data:text/plain;base64,aGVsbG8="
    assert manager.read_attachment("vi", attachment.id) == b"hello"
    remote = await adapter.read_board(board.id)
    assert remote.columns[0].tasks[0].attachments[0].id == attachment.id


@pytest.mark.asyncio
async def test_file_source_reads_from_disk(tmp_path: Path) -> None:
    _, manager, _, _, task = await _setup()
    path = tmp_path / "diagram.png"
    path.write_bytes(b"\x89PNG")

    result = await manager.add_attachment("ed", task.id, FileSource(path))

    assert result.value.mime_type == "image/png"
    assert result.value.size == 4


@pytest.mark.asyncio
async def test_read_failure_propagates(tmp_path: Path) -> None:
    store, manager, _, _, task = await _setup()

    with pytest.raises(AttachmentReadError):
        await manager.add_attachment("ed", task.id, FileSource(tmp_path / "missing.pdf"))

    assert store.get_task(task.id).attachments == []


@pytest.mark.asyncio
async def test_oversized_file_is_rejected() -> None:
    store, manager, _, _, task = await _setup(max_bytes=4)

    result = await manager.add_attachment("ed", task.id, BytesSource("big.bin", b"12345"))

    assert result.rejected
    assert isinstance(result.error, AttachmentTooLargeError)
    assert store.get_task(task.id).attachments == []


@pytest.mark.asyncio
async def test_viewer_cannot_attach() -> None:
    _, manager, _, _, task = await _setup()

    result = await manager.add_attachment("vi", task.id, BytesSource("a.txt", b"a"))

    assert result.denied


@pytest.mark.asyncio
async def test_delete_requires_uploader_or_capability() -> None:
    store, manager, _, _, task = await _setup()
    attachment = (await manager.add_attachment("ed", task.id, BytesSource("a.txt", b"a"))).value
    await store.update_member_role("owner", _task_board_id(store, task.id), "ed", BoardRole.VIEWER)

    by_viewer = await manager.delete_attachment("vi", attachment.id)
    by_demoted_uploader = await manager.delete_attachment("ed", attachment.id)

    assert by_viewer.denied
    assert isinstance(by_viewer.error, PermissionDeniedError)
    assert by_demoted_uploader.ok
    assert store.get_task(task.id).attachments == []


@pytest.mark.asyncio
async def test_other_editor_may_delete_attachment() -> None:
    store, manager, _, _, task = await _setup()
    attachment = (await manager.add_attachment("ed", task.id, BytesSource("a.txt", b"a"))).value

    result = await manager.delete_attachment("ed2", attachment.id)

    assert result.ok


def test_data_url_storage_rejects_garbage() -> None:
    storage = DataUrlStorage()
    with pytest.raises(AttachmentReadError):
        storage.retrieve("https://example.com/file")
    with pytest.raises(AttachmentReadError):
        storage.retrieve("data:text/plain;base64,@@@")


@pytest.mark.parametrize(
    ("size", "label"),
    [(0, "0 Bytes"), (500, "500 Bytes"), (1024, "1 KB"), (1536, "1.5 KB"), (10 * 1024**2, "10 MB")],
)
def test_format_bytes(size: int, label: str) -> None:
    assert format_bytes(size) == label


def _task_board_id(store: BoardStore, task_id):
    return store.locate_task(task_id).board.id


@pytest.mark.asyncio
async def test_zero_byte_limit_is_not_replaced_by_default() -> None:
    store, manager, _, _, task = await _setup(max_bytes=0)

    result = await manager.add_attachment("ed", task.id, BytesSource("a.txt", b"a"))

    assert manager.max_bytes == 0
    assert isinstance(result.error, AttachmentTooLargeError)
    assert store.get_task(task.id).attachments == []
