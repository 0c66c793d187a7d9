"""Two-phase mutation results: tentative local apply, then settle or reconcile.

Every mutating board operation produces a `PendingMutation`. Refused
operations (permission denied, validation failure) are born finished and
never touch local state. Accepted operations are applied locally first and
sit in the TENTATIVE phase until `commit()` confirms them with the
persistence adapter (SETTLED) or, on failure, the board is re-fetched
(RECONCILED).
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Generic, TypeVar
from uuid import UUID

from taskboard.core.errors import PermissionDeniedError, RemoteCommitError, TaskboardError
from taskboard.core.logging import get_logger

if TYPE_CHECKING:
    from collections.abc import Iterable

T = TypeVar("T")

logger = get_logger(__name__)


class MutationPhase(str, Enum):
    """Lifecycle phase of a board mutation."""

    DENIED = "denied"
    REJECTED = "rejected"
    NOOP = "noop"
    TENTATIVE = "tentative"
    SETTLED = "settled"
    RECONCILED = "reconciled"


_SUCCESS_PHASES = frozenset({MutationPhase.NOOP, MutationPhase.TENTATIVE, MutationPhase.SETTLED})


@dataclass(frozen=True)
class MutationResult(Generic[T]):
    """Outcome of a board operation; truthy when the operation succeeded."""

    phase: MutationPhase
    value: T | None = None
    error: TaskboardError | None = None

    @property
    def ok(self) -> bool:
        return self.phase in _SUCCESS_PHASES

    @property
    def denied(self) -> bool:
        return self.phase == MutationPhase.DENIED

    @property
    def rejected(self) -> bool:
        return self.phase == MutationPhase.REJECTED

    @property
    def reconciled(self) -> bool:
        return self.phase == MutationPhase.RECONCILED

    def __bool__(self) -> bool:
        return self.ok

    def raise_for_error(self) -> T | None:
        """Raise the carried error for unsuccessful results, else return the value."""
        if not self.ok and self.error is not None:
            raise self.error
        return self.value

    @classmethod
    def refused(cls, error: TaskboardError) -> MutationResult[T]:
        phase = (
            MutationPhase.DENIED
            if isinstance(error, PermissionDeniedError)
            else MutationPhase.REJECTED
        )
        return cls(phase=phase, error=error)


class PendingMutation(Generic[T]):
    """Handle on a mutation that may still be awaiting remote confirmation."""

    def __init__(
        self,
        *,
        board_id: UUID | None,
        value: T | None,
        description: str,
        commit: Callable[[], Awaitable[T]] | None = None,
        settle: Callable[[T], T] | None = None,
        reconcile: Callable[[RemoteCommitError], Awaitable[None]] | None = None,
        on_failure: Iterable[Callable[[], None]] = (),
        phase: MutationPhase = MutationPhase.TENTATIVE,
        error: TaskboardError | None = None,
    ) -> None:
        self.board_id = board_id
        self.value = value
        self.description = description
        self.phase = phase
        self.error = error
        self._commit = commit
        self._settle = settle
        self._reconcile = reconcile
        self._on_failure = tuple(on_failure)

    @classmethod
    def finished(cls, result: MutationResult[T], *, description: str) -> PendingMutation[T]:
        """Wrap an already-final result (refusal or no-op)."""
        return cls(
            board_id=None,
            value=result.value,
            description=description,
            phase=result.phase,
            error=result.error,
        )

    @property
    def result(self) -> MutationResult[T]:
        return MutationResult(phase=self.phase, value=self.value, error=self.error)

    @property
    def tentative(self) -> bool:
        return self.phase == MutationPhase.TENTATIVE

    async def commit(self) -> MutationResult[T]:
        """Confirm the mutation remotely; re-fetch the board on failure.

        Calling `commit()` on a finished mutation returns its final result.
        """
        if self.phase != MutationPhase.TENTATIVE or self._commit is None:
            return self.result
        try:
            remote = await self._commit()
        except TaskboardError as exc:
            error = RemoteCommitError(
                f"Failed to {self.description}: {exc}",
                board_id=str(self.board_id) if self.board_id else None,
            )
            error.__cause__ = exc
            logger.warning(
                "mutation.commit.failed",
                extra={
                    "description": self.description,
                    "board_id": str(self.board_id),
                    "error_code": exc.code,
                },
            )
            for hook in self._on_failure:
                hook()
            if self._reconcile is not None:
                await self._reconcile(error)
            self.phase = MutationPhase.RECONCILED
            self.value = None
            self.error = error
            return self.result
        self.value = self._settle(remote) if self._settle is not None else remote
        self.phase = MutationPhase.SETTLED
        logger.debug(
            "mutation.commit.settled",
            extra={"description": self.description, "board_id": str(self.board_id)},
        )
        return self.result
