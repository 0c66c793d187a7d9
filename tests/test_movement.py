# ruff: noqa

from __future__ import annotations

from datetime import date

import pytest

from taskboard.core.errors import (
    CapacityExceededError,
    CrossBoardMoveError,
    DueDateViolationError,
    NotFoundError,
    PermissionDeniedError,
    PersistenceError,
)
from taskboard.schemas.boards import (
    BoardCreate,
    BoardParent,
    BoardRead,
    BoardRole,
    BoardUpdate,
    MemberInvite,
    ParentKind,
)
from taskboard.schemas.columns import ColumnUpdate
from taskboard.schemas.tasks import TaskCreate, TaskPriority
from taskboard.services.movement import TaskMovementProtocol
from taskboard.services.mutations import MutationPhase
from taskboard.services.notifications import CollectingNotifier
from taskboard.services.persistence.memory import InMemoryPersistenceAdapter
from taskboard.services.store import BoardStore


async def _setup() -> tuple[BoardStore, TaskMovementProtocol, InMemoryPersistenceAdapter, BoardRead]:
    adapter = InMemoryPersistenceAdapter(users={"viewer@example.com": "vi"})
    store = BoardStore(adapter, notifier=CollectingNotifier(), strict_capacity=3)
    board = (await store.create_board("owner", BoardCreate(title="Sprint"))).value
    await store.invite_member(
        "owner",
        board.id,
        MemberInvite(email="viewer@example.com", role=BoardRole.VIEWER),
    )
    return store, TaskMovementProtocol(store), adapter, board


def _columns(board: BoardRead):
    return [column.id for column in board.columns]


@pytest.mark.asyncio
async def test_move_transfers_task_between_columns() -> None:
    store, movement, adapter, board = await _setup()
    todo, doing, _ = _columns(board)
    task = (await store.create_task("owner", todo, TaskCreate(title="Ship"))).value

    result = await movement.move_task("owner", task.id, todo, doing)

    assert result
    assert result.phase == MutationPhase.SETTLED
    assert store.get_column(todo).tasks == []
    assert [t.id for t in store.get_column(doing).tasks] == [task.id]
    assert store.get_task(task.id).column_id == doing
    remote = await adapter.read_board(board.id)
    assert [t.id for t in remote.columns[1].tasks] == [task.id]


@pytest.mark.asyncio
async def test_same_column_move_is_noop() -> None:
    store, movement, _, board = await _setup()
    todo, _, _ = _columns(board)
    task = (await store.create_task("owner", todo, TaskCreate(title="Ship"))).value

    result = await movement.move_task("owner", task.id, todo, todo)

    assert result.phase == MutationPhase.NOOP
    assert result.ok
    assert [t.id for t in store.get_column(todo).tasks] == [task.id]


@pytest.mark.asyncio
async def test_round_trip_leaves_other_fields_unchanged() -> None:
    store, movement, _, board = await _setup()
    todo, doing, _ = _columns(board)
    task = (
        await store.create_task(
            "owner",
            todo,
            TaskCreate(
                title="Ship",
                description="release notes",
                priority=TaskPriority.HIGH,
                labels=["release"],
                assignees=["owner"],
            ),
        )
    ).value
    before = task.model_dump(exclude={"column_id"})

    await movement.move_task("owner", task.id, todo, doing)
    await movement.move_task("owner", task.id, doing, todo)

    after = store.get_task(task.id)
    assert after.column_id == todo
    assert after.model_dump(exclude={"column_id"}) == before


@pytest.mark.asyncio
async def test_move_into_full_column_is_rejected_without_partial_state() -> None:
    store, movement, _, board = await _setup()
    todo, doing, _ = _columns(board)
    await store.update_column("owner", doing, ColumnUpdate(capacity=1))
    await store.create_task("owner", doing, TaskCreate(title="Occupant"))
    task = (await store.create_task("owner", todo, TaskCreate(title="Mover"))).value

    result = await movement.move_task("owner", task.id, todo, doing)

    assert result.rejected
    assert isinstance(result.error, CapacityExceededError)
    assert [t.id for t in store.get_column(todo).tasks] == [task.id]
    assert len(store.get_column(doing).tasks) == 1


@pytest.mark.asyncio
async def test_viewer_cannot_move() -> None:
    store, movement, _, board = await _setup()
    todo, doing, _ = _columns(board)
    task = (await store.create_task("owner", todo, TaskCreate(title="Ship"))).value

    result = await movement.move_task("vi", task.id, todo, doing)

    assert result.denied
    assert isinstance(result.error, PermissionDeniedError)
    assert store.get_task(task.id).column_id == todo


@pytest.mark.asyncio
async def test_task_must_be_in_source_column() -> None:
    store, movement, _, board = await _setup()
    todo, doing, done = _columns(board)
    task = (await store.create_task("owner", todo, TaskCreate(title="Ship"))).value

    result = await movement.move_task("owner", task.id, doing, done)

    assert result.rejected
    assert isinstance(result.error, NotFoundError)


@pytest.mark.asyncio
async def test_cross_board_move_is_rejected() -> None:
    store, movement, _, board = await _setup()
    other = (await store.create_board("owner", BoardCreate(title="Other"))).value
    todo = board.columns[0].id
    task = (await store.create_task("owner", todo, TaskCreate(title="Ship"))).value

    result = await movement.move_task("owner", task.id, todo, other.columns[0].id)

    assert isinstance(result.error, CrossBoardMoveError)
    assert store.get_task(task.id).column_id == todo


@pytest.mark.asyncio
async def test_move_rechecks_due_date_against_parent_deadline() -> None:
    store, movement, _, board = await _setup()
    todo, doing, _ = _columns(board)
    task = (
        await store.create_task("owner", todo, TaskCreate(title="Ship", due_date=date(2025, 6, 1)))
    ).value
    await store.update_board(
        "owner",
        board.id,
        BoardUpdate(parent=BoardParent(kind=ParentKind.PROJECT, deadline=date(2025, 5, 1))),
    )

    result = await movement.move_task("owner", task.id, todo, doing)

    assert isinstance(result.error, DueDateViolationError)


@pytest.mark.asyncio
async def test_failed_remote_move_restores_source(monkeypatch: pytest.MonkeyPatch) -> None:
    store, movement, adapter, board = await _setup()
    todo, doing, _ = _columns(board)
    task = (await store.create_task("owner", todo, TaskCreate(title="Ship"))).value

    async def _fail(*_args: object, **_kwargs: object) -> None:
        raise PersistenceError("network down")

    monkeypatch.setattr(adapter, "move_task", _fail)

    pending = movement.begin_move("owner", task.id, todo, doing)
    assert store.get_task(task.id).column_id == doing

    result = await pending.commit()

    assert result.reconciled
    assert store.get_task(task.id).column_id == todo
    assert store.get_column(doing).tasks == []
