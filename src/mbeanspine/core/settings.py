"""Settings for the property cache and its logging.

Manifesto:
    Configuration should be explicit, validated, and environment-driven.
    A collector embedding the cache reads ``MBEANSPINE_*`` variables (or a
    ``.env`` file) once at startup and builds its cache from the result.

    - **Pydantic validation:** Bad log levels fail at startup
    - **Environment-driven:** Reads from env vars and .env files
    - **Extra ignore:** Unknown env vars don't cause startup failures

Examples:
    >>> from mbeanspine.core.settings import PropertyCacheSettings
    >>> settings = PropertyCacheSettings(single_flight=True)
    >>> settings.single_flight
    True

Tags:
    settings, configuration, pydantic, environment, mbean-spine

Doc-Types:
    - API Reference
    - Configuration Guide
"""

from __future__ import annotations

import pydantic
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from mbeanspine.core.errors import InvalidConfigError
from mbeanspine.core.logging import configure_logging

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


class PropertyCacheSettings(BaseSettings):
    """Settings for :class:`~mbeanspine.cache.MBeanPropertyCache`.

    Fields
    ──────
    log_level     : Structlog log level
    log_json      : JSON output (True), console (False) or auto-detect (None)
    service_name  : Value of the ``service.name`` log field
    single_flight : Serialise concurrent misses for the same object name
    """

    model_config = SettingsConfigDict(
        env_prefix="MBEANSPINE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ── Observability ────────────────────────────────────────────
    log_level: str = "INFO"
    log_json: bool | None = None
    service_name: str = "mbean-spine"

    # ── Cache ────────────────────────────────────────────────────
    single_flight: bool = Field(
        default=False,
        description="Parse each object name at most once under concurrent misses",
    )

    @field_validator("log_level")
    @classmethod
    def _normalise_log_level(cls, value: str) -> str:
        level = value.upper()
        if level not in LOG_LEVELS:
            raise ValueError(f"log_level must be one of {', '.join(LOG_LEVELS)}")
        return level

    @classmethod
    def load(cls, **overrides: object) -> PropertyCacheSettings:
        """Build settings, translating validation failures to :class:`InvalidConfigError`."""
        try:
            return cls(**overrides)
        except pydantic.ValidationError as exc:
            first = exc.errors()[0]
            key = ".".join(str(part) for part in first["loc"]) or "settings"
            raise InvalidConfigError(key, first.get("input"), first["msg"], cause=exc) from exc

    def configure_logging(self) -> None:
        """Apply the logging fields of these settings to structlog."""
        configure_logging(
            level=self.log_level,
            json_format=self.log_json,
            service=self.service_name,
        )


__all__ = ["LOG_LEVELS", "PropertyCacheSettings"]
