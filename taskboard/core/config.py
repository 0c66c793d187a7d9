"""Application settings and environment configuration loading."""

from __future__ import annotations

from enum import Enum
from pathlib import Path
from typing import Self

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

PROJECT_ROOT = Path(__file__).resolve().parents[2]
DEFAULT_ENV_FILE = PROJECT_ROOT / ".env"


class PersistenceBackend(str, Enum):
    """Supported persistence adapters for the board store."""

    MEMORY = "memory"
    SQL = "sql"
    HTTP = "http"


class Settings(BaseSettings):
    """Typed runtime configuration sourced from environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="TASKBOARD_",
        env_file=[DEFAULT_ENV_FILE, ".env"],
        env_file_encoding="utf-8",
        extra="ignore",
    )

    environment: str = "dev"

    # Persistence
    persistence_backend: PersistenceBackend = PersistenceBackend.MEMORY
    database_url: str = "sqlite+aiosqlite:///./taskboard.db"
    db_auto_create: bool = False
    api_base_url: str = ""
    api_token: str = ""
    http_timeout_seconds: float = Field(default=10.0, gt=0)

    # Board rules
    strict_column_capacity: int = 3
    default_board_mode: str = "freelancer"
    max_attachment_bytes: int = Field(default=10 * 1024 * 1024, ge=0)

    # Logging
    log_level: str = "INFO"
    log_format: str = "text"
    log_use_utc: bool = False

    @model_validator(mode="after")
    def _defaults(self) -> Self:
        if self.strict_column_capacity < 1:
            raise ValueError("STRICT_COLUMN_CAPACITY must be at least 1.")
        if self.persistence_backend == PersistenceBackend.HTTP and not self.api_base_url.strip():
            raise ValueError(
                "TASKBOARD_API_BASE_URL must be set when TASKBOARD_PERSISTENCE_BACKEND=http.",
            )
        if self.default_board_mode not in {"strict", "freelancer"}:
            raise ValueError("TASKBOARD_DEFAULT_BOARD_MODE must be 'strict' or 'freelancer'.")
        if self.log_format not in {"text", "json"}:
            raise ValueError("TASKBOARD_LOG_FORMAT must be 'text' or 'json'.")
        # Local development creates the SQL schema on first use.
        if "db_auto_create" not in self.model_fields_set and self.environment == "dev":
            self.db_auto_create = True
        return self


settings = Settings()
