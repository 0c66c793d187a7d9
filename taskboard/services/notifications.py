"""User-facing notices emitted by board operations."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol

from taskboard.core.logging import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class Notice:
    """One message for the presentation layer to display."""

    level: str
    title: str
    message: str
    retryable: bool = False


class Notifier(Protocol):
    """Receiver for notices; the UI toast layer implements this."""

    def notify(self, notice: Notice) -> None: ...


class LoggingNotifier:
    """Default notifier that records notices in the application log."""

    def notify(self, notice: Notice) -> None:
        log = logger.warning if notice.level == "error" else logger.info
        log(
            "notice.%s",
            notice.level,
            extra={
                "title": notice.title,
                "detail": notice.message,
                "retryable": notice.retryable,
            },
        )


class CollectingNotifier:
    """Notifier that keeps every notice in memory, in emission order."""

    def __init__(self) -> None:
        self.notices: list[Notice] = []

    def notify(self, notice: Notice) -> None:
        self.notices.append(notice)

    def errors(self) -> list[Notice]:
        return [notice for notice in self.notices if notice.level == "error"]
