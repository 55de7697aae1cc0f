"""Centralized application settings loaded from environment variables.

All configuration is defined once here. Other modules should import
``get_settings()`` rather than calling ``os.getenv()`` directly.
"""

from __future__ import annotations

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application-wide configuration backed by environment variables.

    Field names are **lowercased** versions of the env-var names.
    ``pydantic-settings`` maps them automatically (case-insensitive).

    Example::

        settings = Settings()  # reads .env + real env
        page_size = settings.default_page_size
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # -- Azure AI / Foundry ------------------------------------------------

    azure_ai_project_endpoint: str = ""
    """Foundry project endpoint URL."""

    azure_ai_model_deployment_name: str = "gpt-4o"
    """Model deployment used to generate SQL from questions."""

    azure_client_id: str | None = None
    """Managed-identity client ID (None → system-assigned)."""

    ai_request_timeout_seconds: float = 60.0
    """Upper bound on a single model call before it counts as a timeout."""

    max_history_messages: int = 3
    """Number of earlier user messages forwarded to the model."""

    max_message_length: int = 800
    """User messages at or above this length are left out of the history."""

    # -- Azure SQL ---------------------------------------------------------

    azure_sql_server: str = ""
    """SQL Server hostname."""

    azure_sql_database: str = "WideWorldImporters"
    """Target database name."""

    schema_exclude_exact: list[str] = Field(default_factory=list)
    """Tables left out of the schema summary (``Schema.Table`` or ``Table``)."""

    schema_exclude_like: list[str] = Field(default_factory=list)
    """SQL LIKE patterns (``%``, ``_``); matching tables are left out of the summary."""

    # -- Paging ------------------------------------------------------------

    default_page_size: int = 100
    """Rows per page when a query carries no OFFSET/FETCH clause yet."""

    # -- Operational -------------------------------------------------------

    session_ttl_seconds: int = 30 * 60
    """Idle lifetime of a cached chat session."""

    max_session_cache_size: int = 1000
    """Upper bound on cached session objects."""

    cors_allow_origins: list[str] = Field(
        default_factory=lambda: ["http://localhost:3000", "http://127.0.0.1:3000"]
    )
    """Origins allowed by the CORS middleware."""


def get_settings() -> Settings:
    """Return a cached ``Settings`` instance.

    Uses ``lru_cache`` semantics via a module-level singleton so the
    ``.env`` file is read at most once per process.

    Returns:
        The global ``Settings`` object.
    """
    return _settings


_settings = Settings()
