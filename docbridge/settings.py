"""Configuration loaded from DOCBRIDGE_* environment variables."""

from __future__ import annotations

from typing import Literal

from pydantic import Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict


class DocbridgeSettings(BaseSettings):
    """docbridge settings.

    All fields are read from environment variables with the ``DOCBRIDGE_``
    prefix.  For example, ``DOCBRIDGE_LOG_LEVEL=DEBUG`` maps to ``log_level``.
    List values are given as JSON: ``DOCBRIDGE_HOSTS='["https://es1:9200"]'``.
    """

    model_config = SettingsConfigDict(
        env_prefix="DOCBRIDGE_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # -- Logging ---------------------------------------------------------------
    log_level: str = "INFO"
    log_serialize: bool = False
    """Write log records as JSON lines instead of the coloured text format."""
    client_log_level: str = "WARNING"
    """Level cap for the opensearch-py and urllib3 loggers."""

    # -- Connection ------------------------------------------------------------
    connection: Literal["memory", "opensearch"] = "memory"

    hosts: list[str] = Field(default_factory=lambda: ["http://localhost:9200"])
    username: str | None = None
    password: SecretStr | None = None
    verify_certs: bool = True

    index_prefix: str | None = None
    """Prepended to every index name: ``{index_prefix}-{storage_type}``."""

    # -- Bulk ------------------------------------------------------------------
    bulk_commit_size: int = Field(default=100, ge=1)
    """Pending operations that trigger an automatic commit."""

    refresh_on_commit: bool = True


def get_settings() -> DocbridgeSettings:
    """Return a cached settings instance.

    Reads from environment variables and ``.env`` on first call, then returns
    the same object.  Call ``_get_settings_cached.cache_clear()`` in tests to
    force a re-read after overriding env vars.
    """
    return _get_settings_cached()


def _get_settings_cached() -> DocbridgeSettings:
    """Inner function wrapped by lru_cache (allows type-safe cache_clear)."""
    return DocbridgeSettings()


# Apply lru_cache at runtime so the function is only called once.
from functools import lru_cache  # noqa: E402

_get_settings_cached = lru_cache(maxsize=1)(_get_settings_cached)
