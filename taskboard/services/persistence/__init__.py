"""Persistence backends and the factory selecting one from settings."""

from __future__ import annotations

from typing import TYPE_CHECKING

from taskboard.core.config import PersistenceBackend
from taskboard.core.logging import get_logger
from taskboard.services.persistence.base import PersistenceAdapter
from taskboard.services.persistence.http import HttpPersistenceAdapter
from taskboard.services.persistence.memory import InMemoryPersistenceAdapter
from taskboard.services.persistence.sql import SqlPersistenceAdapter

if TYPE_CHECKING:
    from taskboard.core.config import Settings

logger = get_logger(__name__)

__all__ = [
    "HttpPersistenceAdapter",
    "InMemoryPersistenceAdapter",
    "PersistenceAdapter",
    "SqlPersistenceAdapter",
    "build_adapter",
]


async def build_adapter(settings: Settings) -> PersistenceAdapter:
    """Create the adapter named by `settings.persistence_backend`."""
    backend = settings.persistence_backend
    logger.info("persistence.adapter.selected", extra={"backend": backend.value})
    if backend == PersistenceBackend.SQL:
        return await SqlPersistenceAdapter.from_settings(settings)
    if backend == PersistenceBackend.HTTP:
        return HttpPersistenceAdapter(
            settings.api_base_url,
            token=settings.api_token or None,
            timeout=settings.http_timeout_seconds,
        )
    return InMemoryPersistenceAdapter()
