"""Composition root wiring the board store and its collaborating services."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from taskboard.core.config import settings as default_settings
from taskboard.core.logging import configure_logging, get_logger
from taskboard.schemas.boards import BoardMode
from taskboard.services.attachments import AttachmentManager
from taskboard.services.comments import CommentThreadManager
from taskboard.services.movement import TaskMovementProtocol
from taskboard.services.persistence import build_adapter
from taskboard.services.store import BoardStore

if TYPE_CHECKING:
    from taskboard.core.config import Settings
    from taskboard.services.attachments import AttachmentStorage
    from taskboard.services.notifications import Notifier
    from taskboard.services.persistence.base import PersistenceAdapter

logger = get_logger(__name__)


@dataclass
class KanbanEngine:
    """Board store plus the movement, comment, and attachment services."""

    store: BoardStore
    movement: TaskMovementProtocol
    comments: CommentThreadManager
    attachments: AttachmentManager

    @property
    def adapter(self) -> PersistenceAdapter:
        return self.store.adapter

    async def aclose(self) -> None:
        await self.store.adapter.aclose()


def assemble_engine(
    adapter: PersistenceAdapter,
    *,
    settings: Settings | None = None,
    notifier: Notifier | None = None,
    storage: AttachmentStorage | None = None,
) -> KanbanEngine:
    """Wire services around an existing adapter."""
    config = settings or default_settings
    store = BoardStore(
        adapter,
        notifier=notifier,
        strict_capacity=config.strict_column_capacity,
        default_mode=BoardMode(config.default_board_mode),
    )
    return KanbanEngine(
        store=store,
        movement=TaskMovementProtocol(store),
        comments=CommentThreadManager(store),
        attachments=AttachmentManager(
            store,
            storage=storage,
            max_bytes=config.max_attachment_bytes,
        ),
    )


async def open_engine(
    settings: Settings | None = None,
    *,
    notifier: Notifier | None = None,
    storage: AttachmentStorage | None = None,
    setup_logging: bool = True,
) -> KanbanEngine:
    """Configure logging, build the configured adapter, and wire the services."""
    config = settings or default_settings
    if setup_logging:
        configure_logging(
            level=config.log_level,
            log_format=config.log_format,
            use_utc=config.log_use_utc,
        )
    adapter = await build_adapter(config)
    logger.info(
        "engine.opened",
        extra={"backend": config.persistence_backend.value, "environment": config.environment},
    )
    return assemble_engine(adapter, settings=config, notifier=notifier, storage=storage)
