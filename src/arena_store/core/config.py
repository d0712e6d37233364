"""
Configuration management for the arena store.

Uses Pydantic settings for type-safe configuration with environment variable support.
All settings can be overridden via environment variables.
"""

from functools import lru_cache
from typing import Optional
from urllib.parse import quote

from pydantic import Field, computed_field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Connection and pool settings for the persistence layer.

    Either set DATABASE_URL directly or provide the individual
    DATABASE_HOST / DATABASE_PORT / DATABASE_NAME / DATABASE_USER /
    DATABASE_PASSWORD parts and let `db_url` assemble the DSN.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ==========================================================================
    # Database Endpoint
    # ==========================================================================
    database_url: Optional[str] = Field(
        default=None,
        description="PostgreSQL connection string",
    )
    database_host: str = "localhost"
    database_port: int = Field(default=5432, ge=1, le=65535)
    database_name: str = "arena"
    database_user: str = "arena"
    database_password: str = ""
    database_search_path: Optional[str] = Field(
        default=None,
        description="Schema search_path set on every pooled connection",
    )

    @computed_field
    @property
    def db_url(self) -> str:
        """Get the effective database URL."""
        if self.database_url:
            return self.database_url
        auth = quote(self.database_user, safe="")
        if self.database_password:
            auth = f"{auth}:{quote(self.database_password, safe='')}"
        return (
            f"postgresql://{auth}@{self.database_host}:{self.database_port}"
            f"/{self.database_name}"
        )

    # ==========================================================================
    # Pool
    # ==========================================================================
    database_min_pool_size: int = Field(default=1, ge=0, le=50)
    database_pool_size: int = Field(default=10, ge=1, le=50)
    database_pool_timeout: float = Field(
        default=30.0,
        gt=0,
        description="Seconds acquire() waits for a free connection",
    )

    # ==========================================================================
    # Timeouts and Reconnection
    # ==========================================================================
    statement_timeout_ms: int = Field(
        default=5000,
        ge=0,
        description="Server-side statement timeout; 0 disables it",
    )
    connect_timeout: int = Field(
        default=10,
        ge=1,
        description="Seconds to wait when opening a new connection",
    )
    reconnect_max_attempts: int = Field(default=5, ge=1)
    reconnect_backoff_base: float = Field(default=0.5, gt=0)
    reconnect_backoff_max: float = Field(default=8.0, gt=0)


@lru_cache
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Uses lru_cache to ensure settings are only loaded once.
    """
    return Settings()
