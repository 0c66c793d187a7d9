"""Threaded task comments with author-or-capability edit rules."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from taskboard.core.errors import (
    CommentNestingError,
    NotFoundError,
    PermissionDeniedError,
    TaskboardError,
)
from taskboard.core.time import utcnow
from taskboard.schemas.boards import BoardRole
from taskboard.schemas.comments import ReplyCommentRead, TopLevelCommentRead
from taskboard.services import rules
from taskboard.services.permissions import BoardAction, can, resolve_role

if TYPE_CHECKING:
    from uuid import UUID

    from taskboard.schemas.boards import BoardRead
    from taskboard.schemas.comments import CommentRead
    from taskboard.schemas.tasks import TaskRead
    from taskboard.services.mutations import MutationResult, PendingMutation
    from taskboard.services.store import BoardStore


@dataclass
class CommentThread:
    """A top-level comment and the replies directly beneath it."""

    comment: TopLevelCommentRead
    replies: list[ReplyCommentRead] = field(default_factory=list)


def build_threads(task: TaskRead) -> list[CommentThread]:
    """Group a task's comments into threads, each in creation order."""
    ordered = sorted(task.comments, key=lambda c: c.created_at)
    threads = [CommentThread(c) for c in ordered if isinstance(c, TopLevelCommentRead)]
    by_id = {thread.comment.id: thread for thread in threads}
    for comment in ordered:
        if isinstance(comment, ReplyCommentRead) and comment.parent_id in by_id:
            by_id[comment.parent_id].replies.append(comment)
    return threads


class CommentThreadManager:
    def __init__(self, store: BoardStore) -> None:
        self.store = store

    def thread(self, task: TaskRead) -> list[CommentThread]:
        return build_threads(task)

    def _require_author_or(
        self,
        board: BoardRead,
        actor: str,
        comment: CommentRead,
        action: BoardAction,
    ) -> None:
        # Authors who lost their board role lose authorship rights too.
        if comment.author_id == actor and resolve_role(board, actor) != BoardRole.NONE:
            return
        if can(board, actor, action):
            return
        raise PermissionDeniedError(
            f"Only the author or a user allowed to {action.value.replace('_', ' ')} may do this",
            comment_id=str(comment.id),
            user_id=actor,
        )

    def begin_add_comment(
        self,
        actor: str,
        task_id: UUID,
        content: str,
        parent_id: UUID | None = None,
    ) -> PendingMutation[CommentRead]:
        description = "add comment"
        store = self.store
        try:
            board, _, task = store.require_task(task_id)
            store.require_permission(board, actor, BoardAction.ADD_COMMENT)
            text = rules.clean_content(content)
            comment: CommentRead
            if parent_id is None:
                comment = TopLevelCommentRead(task_id=task.id, author_id=actor, content=text)
            else:
                parent = next((c for c in task.comments if c.id == parent_id), None)
                if parent is None:
                    raise NotFoundError("Parent comment not found", parent_id=str(parent_id))
                if isinstance(parent, ReplyCommentRead):
                    raise CommentNestingError(
                        "Replies cannot be replied to; reply to the top-level comment instead",
                        parent_id=str(parent_id),
                    )
                comment = ReplyCommentRead(
                    task_id=task.id,
                    author_id=actor,
                    content=text,
                    parent_id=parent.id,
                )
        except TaskboardError as exc:
            return store.refuse(exc, description=description)
        task.comments.append(comment)
        snapshot = comment.model_copy(deep=True)
        return store.stage(
            board_id=board.id,
            value=comment,
            description=description,
            commit=lambda: store.adapter.create_comment(task_id, snapshot),
            settle=lambda remote: self._replace(comment.id, remote),
        )

    async def add_comment(
        self,
        actor: str,
        task_id: UUID,
        content: str,
        parent_id: UUID | None = None,
    ) -> MutationResult[CommentRead]:
        return await self.begin_add_comment(actor, task_id, content, parent_id).commit()

    def begin_update_comment(
        self,
        actor: str,
        comment_id: UUID,
        content: str,
    ) -> PendingMutation[CommentRead]:
        description = "update comment"
        store = self.store
        try:
            board, _, comment = self._locate(comment_id)
            self._require_author_or(board, actor, comment, BoardAction.EDIT_COMMENT)
            text = rules.clean_content(content)
        except TaskboardError as exc:
            return store.refuse(exc, description=description)
        if text == comment.content:
            return store.unchanged(comment, description=description)
        comment.content = text
        comment.updated_at = utcnow()
        return store.stage(
            board_id=board.id,
            value=comment,
            description=description,
            commit=lambda: store.adapter.update_comment(comment_id, text),
            settle=lambda remote: self._replace(comment_id, remote),
        )

    async def update_comment(
        self,
        actor: str,
        comment_id: UUID,
        content: str,
    ) -> MutationResult[CommentRead]:
        return await self.begin_update_comment(actor, comment_id, content).commit()

    def begin_delete_comment(self, actor: str, comment_id: UUID) -> PendingMutation[bool]:
        """Delete a comment; a top-level comment takes its replies with it."""
        description = "delete comment"
        store = self.store
        try:
            board, task, comment = self._locate(comment_id)
            self._require_author_or(board, actor, comment, BoardAction.DELETE_COMMENT)
        except TaskboardError as exc:
            return store.refuse(exc, description=description)
        task.comments = [
            c
            for c in task.comments
            if c.id != comment_id
            and not (isinstance(c, ReplyCommentRead) and c.parent_id == comment_id)
        ]
        return store.stage(
            board_id=board.id,
            value=True,
            description=description,
            commit=lambda: store.adapter.delete_comment(comment_id),
        )

    async def delete_comment(self, actor: str, comment_id: UUID) -> MutationResult[bool]:
        return await self.begin_delete_comment(actor, comment_id).commit()

    def _locate(self, comment_id: UUID) -> tuple[BoardRead, TaskRead, CommentRead]:
        found = self.store.locate_comment(comment_id)
        if found is None:
            raise NotFoundError("Comment not found", comment_id=str(comment_id))
        return found.board, found.task, found.comment

    def _replace(self, comment_id: UUID, remote: CommentRead) -> CommentRead:
        found = self.store.locate_comment(comment_id)
        if found is None:
            return remote
        comments = found.task.comments
        comments[comments.index(found.comment)] = remote
        return remote
