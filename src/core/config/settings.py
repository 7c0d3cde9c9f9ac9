# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Application configuration settings using Pydantic Settings.

This module provides centralized configuration management for the
promotion engine. Settings are loaded from environment variables with
sensible defaults.

The Settings class is the main entry point and aggregates all subsettings.
A singleton instance is provided via get_settings() for dependency injection.

Example:
    >>> from src.core.config.settings import get_settings
    >>> settings = get_settings()
    >>> print(settings.promotion.terminal_class_name)
    'Last Year Students'
"""

from functools import lru_cache
from typing import Literal, Self

from pydantic import Field, SecretStr, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class DatabaseSettings(BaseSettings):
    """School database configuration.

    The school database stores the classes and students tables the
    promotion engine reads and writes.

    Attributes:
        user: PostgreSQL username.
        password: PostgreSQL password.
        host: Database host address.
        port: Database port number.
        database: Database name.
        pool_size: Connection pool size.
        max_overflow: Maximum overflow connections.
        url_override: Full async URL, used instead of the components if set.
    """

    model_config = SettingsConfigDict(
        env_prefix="DB_",
        extra="ignore",
    )

    user: str = "school"
    password: SecretStr = SecretStr("school_password")
    host: str = "localhost"
    port: int = 5432
    database: str = "school"
    pool_size: int = 10
    max_overflow: int = 20
    url_override: str | None = Field(
        default=None,
        validation_alias="DATABASE_URL",
    )

    @property
    def url(self) -> str:
        """Build the async database URL from components."""
        if self.url_override:
            return self.url_override
        pwd = self.password.get_secret_value()
        return f"postgresql+asyncpg://{self.user}:{pwd}@{self.host}:{self.port}/{self.database}"


class RedisSettings(BaseSettings):
    """Redis configuration for the distributed cycle lock.

    Attributes:
        host: Redis server host.
        port: Redis server port.
        password: Redis password.
        database: Redis database number.
        max_connections: Maximum connection pool size.
    """

    model_config = SettingsConfigDict(
        env_prefix="REDIS_",
        extra="ignore",
    )

    host: str = "localhost"
    port: int = 6379
    password: SecretStr | None = None
    database: int = 0
    max_connections: int = 10

    @property
    def url(self) -> str:
        """Build the Redis connection URL."""
        if self.password is None:
            return f"redis://{self.host}:{self.port}/{self.database}"
        pwd = self.password.get_secret_value()
        return f"redis://:{pwd}@{self.host}:{self.port}/{self.database}"


class PromotionSettings(BaseSettings):
    """Promotion cycle configuration.

    Attributes:
        max_ordinal: Highest sequential grade; classes at this ordinal move
            into the terminal pool.
        terminal_class_name: Name of the pool holding students awaiting
            graduation.
        lock_backend: Single-flight guard implementation. "local" works for
            one API process, "redis" is required when several run.
        lock_key: Redis key used by the redis lock backend.
        lock_ttl_seconds: Expiry of the redis lock, bounds a crashed holder.
    """

    model_config = SettingsConfigDict(
        env_prefix="PROMOTION_",
        extra="ignore",
    )

    max_ordinal: int = Field(default=10, ge=1)
    terminal_class_name: str = "Last Year Students"
    lock_backend: Literal["local", "redis"] = "local"
    lock_key: str = "promotion:cycle:lock"
    lock_ttl_seconds: int = Field(default=900, ge=1)

    @model_validator(mode="after")
    def validate_terminal_name(self) -> Self:
        """Reject a terminal pool name that would parse as a grade.

        Raises:
            ValueError: If the terminal name contains digits or is blank.
        """
        name = self.terminal_class_name.strip()
        if not name:
            raise ValueError("PROMOTION_TERMINAL_CLASS_NAME must not be empty")
        if any(ch.isdigit() for ch in name):
            raise ValueError(
                "PROMOTION_TERMINAL_CLASS_NAME must not contain digits, "
                "otherwise the pool would be promoted like a grade"
            )
        return self


class APISettings(BaseSettings):
    """API server configuration.

    Attributes:
        host: Host to bind to.
        port: Port to listen on.
        workers: Number of worker processes.
        reload: Whether to enable auto-reload.
    """

    model_config = SettingsConfigDict(
        env_prefix="API_",
        extra="ignore",
    )

    host: str = "0.0.0.0"
    port: int = 8000
    workers: int = 1
    reload: bool = False


class Settings(BaseSettings):
    """Main application settings aggregating all subsettings.

    Use get_settings() to obtain a cached singleton instance.

    Attributes:
        environment: Current environment (development, staging, production).
        debug: Enable debug mode.
        log_level: Logging level.
        database: School database settings.
        redis: Redis settings.
        promotion: Promotion cycle settings.
        api: API server settings.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        case_sensitive=False,
    )

    # Environment
    environment: Literal["development", "staging", "production"] = "development"
    debug: bool = True
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "DEBUG"

    # Subsettings - loaded with their own env prefixes
    database: DatabaseSettings = Field(default_factory=DatabaseSettings)
    redis: RedisSettings = Field(default_factory=RedisSettings)
    promotion: PromotionSettings = Field(default_factory=PromotionSettings)
    api: APISettings = Field(default_factory=APISettings)

    @model_validator(mode="after")
    def validate_production_settings(self) -> Self:
        """Validate that production settings are properly configured.

        Raises:
            ValueError: If running in production with insecure defaults.
        """
        if self.environment == "production":
            if self.database.password.get_secret_value() == "school_password" and not self.database.url_override:
                raise ValueError(
                    "Database password must be changed from default in production. "
                    "Set DB_PASSWORD environment variable."
                )
            if self.debug:
                raise ValueError("DEBUG must be disabled in production.")
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
