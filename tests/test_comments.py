# ruff: noqa

from __future__ import annotations

from uuid import uuid4

import pytest

from taskboard.core.errors import (
    CommentNestingError,
    EmptyContentError,
    NotFoundError,
    PermissionDeniedError,
)
from taskboard.schemas.boards import BoardCreate, BoardRole, MemberInvite
from taskboard.schemas.comments import ReplyCommentRead, TopLevelCommentRead
from taskboard.schemas.tasks import TaskCreate
from taskboard.services.comments import CommentThreadManager
from taskboard.services.mutations import MutationPhase
from taskboard.services.notifications import CollectingNotifier
from taskboard.services.persistence.memory import InMemoryPersistenceAdapter
from taskboard.services.store import BoardStore

USERS = {
    "alice@example.com": "alice",
    "bob@example.com": "bob",
    "carol@example.com": "carol",
    "dave@example.com": "dave",
}


async def _setup():
    adapter = InMemoryPersistenceAdapter(users=USERS)
    store = BoardStore(adapter, notifier=CollectingNotifier())
    board = (await store.create_board("owner", BoardCreate(title="Thesis"))).value
    for email, role in (
        ("alice@example.com", BoardRole.VIEWER),
        ("bob@example.com", BoardRole.VIEWER),
        ("carol@example.com", BoardRole.EDITOR),
        ("dave@example.com", BoardRole.ADMIN),
    ):
        await store.invite_member("owner", board.id, MemberInvite(email=email, role=role))
    task = (await store.create_task("owner", board.columns[0].id, TaskCreate(title="Draft"))).value
    return store, CommentThreadManager(store), adapter, board, task


@pytest.mark.asyncio
async def test_add_top_level_comment_and_reply() -> None:
    store, comments, adapter, board, task = await _setup()

    c1 = (await comments.add_comment("alice", task.id, "  First!  ")).value
    c2 = (await comments.add_comment("bob", task.id, "Agreed", parent_id=c1.id)).value

    assert isinstance(c1, TopLevelCommentRead)
    assert c1.content == "First!"
    assert isinstance(c2, ReplyCommentRead)
    assert c2.parent_id == c1.id
    assert [c.id for c in store.get_task(task.id).comments] == [c1.id, c2.id]
    remote = await adapter.read_board(board.id)
    assert len(remote.columns[0].tasks[0].comments) == 2


@pytest.mark.asyncio
async def test_reply_to_reply_is_rejected() -> None:
    store, comments, _, _, task = await _setup()
    c1 = (await comments.add_comment("alice", task.id, "root")).value
    c2 = (await comments.add_comment("bob", task.id, "reply", parent_id=c1.id)).value

    result = await comments.add_comment("alice", task.id, "nested", parent_id=c2.id)

    assert result.rejected
    assert isinstance(result.error, CommentNestingError)
    assert len(store.get_task(task.id).comments) == 2


@pytest.mark.asyncio
async def test_reply_to_unknown_parent_is_rejected() -> None:
    _, comments, _, _, task = await _setup()

    result = await comments.add_comment("alice", task.id, "hi", parent_id=uuid4())

    assert isinstance(result.error, NotFoundError)


@pytest.mark.asyncio
async def test_blank_comment_is_rejected() -> None:
    _, comments, _, _, task = await _setup()

    result = await comments.add_comment("alice", task.id, "   ")

    assert isinstance(result.error, EmptyContentError)


@pytest.mark.asyncio
async def test_non_member_cannot_comment() -> None:
    _, comments, _, _, task = await _setup()

    result = await comments.add_comment("mallory", task.id, "spam")

    assert result.denied


@pytest.mark.asyncio
async def test_edit_requires_authorship_or_capability() -> None:
    store, comments, _, _, task = await _setup()
    c1 = (await comments.add_comment("alice", task.id, "root")).value
    c2 = (await comments.add_comment("bob", task.id, "reply", parent_id=c1.id)).value

    by_parent_author = await comments.update_comment("alice", c2.id, "hijack")
    by_author = await comments.update_comment("bob", c2.id, "reply (edited)")
    by_editor = await comments.update_comment("carol", c1.id, "moderated")

    assert by_parent_author.denied
    assert isinstance(by_parent_author.error, PermissionDeniedError)
    assert by_author.phase == MutationPhase.SETTLED
    assert by_editor.ok
    edited = {c.id: c for c in store.get_task(task.id).comments}
    assert edited[c2.id].content == "reply (edited)"
    assert edited[c2.id].edited
    assert edited[c1.id].content == "moderated"


@pytest.mark.asyncio
async def test_unedited_comment_has_no_update_timestamp() -> None:
    _, comments, _, _, task = await _setup()

    c1 = (await comments.add_comment("alice", task.id, "root")).value

    assert c1.updated_at is None
    assert not c1.edited


@pytest.mark.asyncio
async def test_removed_author_loses_edit_rights() -> None:
    store, comments, _, board, task = await _setup()
    c1 = (await comments.add_comment("alice", task.id, "root")).value
    await store.remove_member("owner", board.id, "alice")

    result = await comments.update_comment("alice", c1.id, "still mine?")

    assert result.denied


@pytest.mark.asyncio
async def test_delete_requires_authorship_or_admin() -> None:
    store, comments, _, _, task = await _setup()
    c1 = (await comments.add_comment("alice", task.id, "root")).value
    c2 = (await comments.add_comment("bob", task.id, "other")).value

    by_editor = await comments.delete_comment("carol", c1.id)
    by_author = await comments.delete_comment("alice", c1.id)
    by_admin = await comments.delete_comment("dave", c2.id)

    assert by_editor.denied
    assert by_author.ok
    assert by_admin.ok
    assert store.get_task(task.id).comments == []


@pytest.mark.asyncio
async def test_deleting_top_level_comment_removes_replies() -> None:
    store, comments, adapter, board, task = await _setup()
    c1 = (await comments.add_comment("alice", task.id, "root")).value
    await comments.add_comment("bob", task.id, "reply", parent_id=c1.id)

    result = await comments.delete_comment("alice", c1.id)

    assert result.ok
    assert store.get_task(task.id).comments == []
    remote = await adapter.read_board(board.id)
    assert remote.columns[0].tasks[0].comments == []


@pytest.mark.asyncio
async def test_thread_groups_replies_under_parents() -> None:
    store, comments, _, _, task = await _setup()
    a = (await comments.add_comment("alice", task.id, "A")).value
    b = (await comments.add_comment("bob", task.id, "B")).value
    a1 = (await comments.add_comment("bob", task.id, "A1", parent_id=a.id)).value
    b1 = (await comments.add_comment("alice", task.id, "B1", parent_id=b.id)).value
    a2 = (await comments.add_comment("carol", task.id, "A2", parent_id=a.id)).value

    threads = comments.thread(store.get_task(task.id))

    assert [t.comment.id for t in threads] == [a.id, b.id]
    assert [r.id for r in threads[0].replies] == [a1.id, a2.id]
    assert [r.id for r in threads[1].replies] == [b1.id]
