# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Application configuration settings using Pydantic Settings.

This module provides centralized process configuration for ScribeSignal.
Settings are loaded from environment variables with sensible defaults.
Analysis policy (thresholds, marker phrases) is not configured here; it
lives in YAML and is loaded by ``src.core.writing.config``.

Example:
    >>> from src.core.config.settings import get_settings
    >>> settings = get_settings()
    >>> print(settings.writing_analysis.max_concurrent_student_scans)
    8
"""

from functools import lru_cache
from typing import Annotated, Literal, Self

from pydantic import Field, SecretStr, field_validator, model_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict


class RedisSettings(BaseSettings):
    """Redis configuration for the Dramatiq message broker.

    Attributes:
        host: Redis server host.
        port: Redis server port.
        password: Redis password.
        database: Redis database number.
    """

    model_config = SettingsConfigDict(
        env_prefix="REDIS_",
        extra="ignore",
    )

    host: str = "scribesignal-redis"
    port: int = 6379
    password: SecretStr = SecretStr("")
    database: int = 0

    @property
    def url(self) -> str:
        """Build the Redis connection URL."""
        pwd = self.password.get_secret_value()
        auth = f":{pwd}@" if pwd else ""
        return f"redis://{auth}{self.host}:{self.port}/{self.database}"


class WorkerSettings(BaseSettings):
    """Background worker configuration.

    Attributes:
        processes: Number of worker processes.
        threads: Number of threads per process.
        scan_time_limit_ms: Hard time limit for one course scan actor.
    """

    model_config = SettingsConfigDict(
        env_prefix="WORKER_",
        extra="ignore",
    )

    processes: int = 2
    threads: int = 4
    scan_time_limit_ms: int = 600000


class SchedulerSettings(BaseSettings):
    """Periodic intervention scan configuration.

    Attributes:
        enabled: Whether the scheduler registers the course scan job.
        course_scan_cron: Cron expression (minute hour day month weekday).
        course_ids: Courses scanned on each run, comma separated in env.
    """

    model_config = SettingsConfigDict(
        env_prefix="SCHEDULER_",
        extra="ignore",
    )

    enabled: bool = True
    course_scan_cron: str = "0 6 * * *"
    course_ids: Annotated[list[str], NoDecode] = Field(default_factory=list)

    @field_validator("course_ids", mode="before")
    @classmethod
    def split_course_ids(cls, value: object) -> object:
        """Accept a comma separated string as well as a JSON list."""
        if isinstance(value, str):
            return [part.strip() for part in value.split(",") if part.strip()]
        return value

    @field_validator("course_scan_cron")
    @classmethod
    def validate_cron(cls, value: str) -> str:
        """Require the five-field cron form used by the scheduler."""
        if len(value.split()) != 5:
            raise ValueError(f"Invalid cron expression: {value}")
        return value


class WritingAnalysisSettings(BaseSettings):
    """Writing analysis runtime configuration.

    Attributes:
        config_dir: Directory holding thresholds.yaml and markers.yaml.
            None means the bundled config/writing_analysis directory.
        max_concurrent_student_scans: Upper bound on student scans running
            at once during a course-wide analysis.
        default_timeframe_days: Window length for student progress scans.
    """

    model_config = SettingsConfigDict(
        env_prefix="WRITING_ANALYSIS_",
        extra="ignore",
    )

    config_dir: str | None = None
    max_concurrent_student_scans: int = Field(default=8, ge=1)
    default_timeframe_days: int = Field(default=7, ge=1)


class Settings(BaseSettings):
    """Main application settings aggregating all subsettings.

    Use get_settings() to obtain a cached singleton instance.

    Attributes:
        environment: Current environment (development, staging, production).
        debug: Enable debug mode.
        log_level: Logging level.
        redis: Redis settings.
        worker: Background worker settings.
        scheduler: Periodic scan settings.
        writing_analysis: Analysis runtime settings.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        case_sensitive=False,
    )

    environment: Literal["development", "staging", "production"] = "development"
    debug: bool = True
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "DEBUG"

    # Subsettings - loaded with their own env prefixes
    redis: RedisSettings = Field(default_factory=RedisSettings)
    worker: WorkerSettings = Field(default_factory=WorkerSettings)
    scheduler: SchedulerSettings = Field(default_factory=SchedulerSettings)
    writing_analysis: WritingAnalysisSettings = Field(
        default_factory=WritingAnalysisSettings
    )

    @model_validator(mode="after")
    def validate_production_settings(self) -> Self:
        """Validate that production settings are properly configured.

        Raises:
            ValueError: If running in production with debug enabled.
        """
        if self.environment == "production" and self.debug:
            raise ValueError(
                "Debug mode must be disabled in production. Set DEBUG=false."
            )
        return self

    @property
    def is_development(self) -> bool:
        """Check if running in development environment."""
        return self.environment == "development"

    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.environment == "production"


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Get cached settings instance.

    Uses lru_cache to ensure settings are only loaded once.
    Call clear_settings_cache() if you need to reload settings.

    Returns:
        Cached Settings instance.
    """
    return Settings()


def clear_settings_cache() -> None:
    """Clear the settings cache.

    Call this if you need to reload settings from environment.
    Useful for testing or dynamic configuration updates.
    """
    get_settings.cache_clear()
