"""Moving tasks between columns of the same board."""

from __future__ import annotations

from typing import TYPE_CHECKING

from taskboard.core.errors import CrossBoardMoveError, NotFoundError, TaskboardError
from taskboard.core.logging import get_logger
from taskboard.services import rules
from taskboard.services.permissions import BoardAction

if TYPE_CHECKING:
    from uuid import UUID

    from taskboard.schemas.tasks import TaskRead
    from taskboard.services.mutations import MutationResult, PendingMutation
    from taskboard.services.store import BoardStore

logger = get_logger(__name__)


class TaskMovementProtocol:
    """Validates and applies a move as one atomic step.

    Checks run in order: permission, source membership, same board,
    destination capacity, then due date. The task leaves the source and joins
    the destination in a single local update, so no reader ever sees it in
    both columns or in neither.
    """

    def __init__(self, store: BoardStore) -> None:
        self.store = store

    def begin_move(
        self,
        actor: str,
        task_id: UUID,
        source_column_id: UUID,
        destination_column_id: UUID,
    ) -> PendingMutation[TaskRead]:
        description = "move task"
        store = self.store
        try:
            board, source = store.require_column(source_column_id)
            store.require_permission(board, actor, BoardAction.MOVE_TASK)
            task = next((t for t in source.tasks if t.id == task_id), None)
            if task is None:
                raise NotFoundError(
                    "Task is not in the source column",
                    task_id=str(task_id),
                    column_id=str(source_column_id),
                )
            if source_column_id == destination_column_id:
                return store.unchanged(task, description=description)
            destination_board, destination = store.require_column(destination_column_id)
            if destination_board.id != board.id:
                raise CrossBoardMoveError(
                    "Cannot move task to a column in a different board",
                    task_id=str(task_id),
                )
            rules.ensure_capacity(board, destination, strict_capacity=store.strict_capacity)
            rules.ensure_due_date_within_parent(board, task.due_date)
        except TaskboardError as exc:
            return store.refuse(exc, description=description)

        source.tasks = [t for t in source.tasks if t.id != task_id]
        task.column_id = destination.id
        destination.tasks.append(task)
        logger.debug(
            "movement.task.applied",
            extra={
                "task_id": str(task_id),
                "source": str(source_column_id),
                "destination": str(destination_column_id),
            },
        )
        return store.stage(
            board_id=board.id,
            value=task,
            description=description,
            commit=lambda: store.adapter.move_task(task_id, destination_column_id),
            settle=lambda remote: store.settle_task(task_id, remote),
        )

    async def move_task(
        self,
        actor: str,
        task_id: UUID,
        source_column_id: UUID,
        destination_column_id: UUID,
    ) -> MutationResult[TaskRead]:
        pending = self.begin_move(actor, task_id, source_column_id, destination_column_id)
        return await pending.commit()
