# ruff: noqa

from __future__ import annotations

import pytest
from pydantic import ValidationError

from taskboard.core.config import PersistenceBackend, Settings


def test_defaults_are_memory_backend_with_capacity_three() -> None:
    settings = Settings(_env_file=None, environment="test")

    assert settings.persistence_backend == PersistenceBackend.MEMORY
    assert settings.strict_column_capacity == 3
    assert settings.default_board_mode == "freelancer"
    assert settings.db_auto_create is False


def test_dev_environment_auto_creates_schema() -> None:
    assert Settings(_env_file=None, environment="dev").db_auto_create is True
    assert Settings(_env_file=None, environment="dev", db_auto_create=False).db_auto_create is False


def test_env_prefix_is_applied(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("TASKBOARD_STRICT_COLUMN_CAPACITY", "5")
    monkeypatch.setenv("TASKBOARD_PERSISTENCE_BACKEND", "sql")

    settings = Settings(_env_file=None)

    assert settings.strict_column_capacity == 5
    assert settings.persistence_backend == PersistenceBackend.SQL


def test_http_backend_requires_base_url() -> None:
    with pytest.raises(ValidationError, match="API_BASE_URL"):
        Settings(_env_file=None, persistence_backend=PersistenceBackend.HTTP)

    settings = Settings(
        _env_file=None,
        persistence_backend=PersistenceBackend.HTTP,
        api_base_url="https://kanban.example.test",
    )
    assert settings.api_base_url == "https://kanban.example.test"


@pytest.mark.parametrize(
    "overrides",
    [
        {"strict_column_capacity": 0},
        {"default_board_mode": "chaotic"},
        {"log_format": "xml"},
        {"http_timeout_seconds": 0},
    ],
)
def test_invalid_values_are_rejected(overrides: dict[str, object]) -> None:
    with pytest.raises(ValidationError):
        Settings(_env_file=None, **overrides)
