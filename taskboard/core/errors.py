"""Error taxonomy for board operations."""

from __future__ import annotations


class TaskboardError(Exception):
    """Base error carrying a machine-readable code and retry hint."""

    code = "taskboard_error"
    retryable = False

    def __init__(self, message: str, **context: object) -> None:
        super().__init__(message)
        self.message = message
        self.context = context

    def __str__(self) -> str:
        return self.message


class PermissionDeniedError(TaskboardError):
    """The acting user's board role does not permit the action."""

    code = "permission_denied"


class NotFoundError(TaskboardError):
    """A referenced board, column, task, comment, or attachment does not exist."""

    code = "not_found"


class ValidationFailedError(TaskboardError):
    """A board rule rejected the operation before any mutation."""

    code = "validation_failed"


class CapacityExceededError(ValidationFailedError):
    code = "capacity_exceeded"


class DueDateViolationError(ValidationFailedError):
    code = "due_date_violation"


class CommentNestingError(ValidationFailedError):
    code = "comment_nesting"


class UnknownAssigneeError(ValidationFailedError):
    code = "unknown_assignee"


class CreatorMembershipError(ValidationFailedError):
    code = "creator_membership"


class AttachmentTooLargeError(ValidationFailedError):
    code = "attachment_too_large"


class CrossBoardMoveError(ValidationFailedError):
    code = "cross_board_move"


class EmptyContentError(ValidationFailedError):
    code = "empty_content"


class PersistenceError(TaskboardError):
    """The persistence adapter failed to complete a call."""

    code = "persistence_error"
    retryable = True


class RemoteCommitError(TaskboardError):
    """A local mutation could not be committed remotely and was rolled back."""

    code = "remote_commit_failed"
    retryable = True


class AttachmentReadError(TaskboardError):
    """An uploaded file could not be read into memory."""

    code = "attachment_read_failed"
