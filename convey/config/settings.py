"""
Application settings using pydantic-settings.

Loads configuration from environment variables with validation.
"""

from functools import lru_cache
from typing import Literal

from pydantic import Field, SecretStr, computed_field
from pydantic_settings import BaseSettings, SettingsConfigDict


class MongoSettings(BaseSettings):
    """MongoDB connection settings."""

    model_config = SettingsConfigDict(
        env_prefix="MONGO_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    host: str = Field(default="localhost", description="MongoDB host")
    port: int = Field(default=27017, ge=1, le=65535, description="MongoDB port")
    root_user: str = Field(default="admin", description="MongoDB root username")
    root_password: SecretStr = Field(
        default=SecretStr("secret"), description="MongoDB root password"
    )
    auth_source: str = Field(default="admin", description="Authentication database")

    # Connection pool settings
    min_pool_size: int = Field(default=1, ge=0, description="Minimum connection pool size")
    max_pool_size: int = Field(default=10, ge=1, description="Maximum connection pool size")

    # Timeouts
    connect_timeout_ms: int = Field(default=5000, ge=1000, description="Connection timeout in ms")
    server_selection_timeout_ms: int = Field(
        default=5000, ge=1000, description="Server selection timeout in ms"
    )

    @computed_field  # type: ignore[misc]
    @property
    def uri(self) -> str:
        """Build MongoDB connection URI."""
        password = self.root_password.get_secret_value()
        return (
            f"mongodb://{self.root_user}:{password}@{self.host}:{self.port}"
            f"/?authSource={self.auth_source}"
        )


class ConveySettings(BaseSettings):
    """Orchestrator settings."""

    model_config = SettingsConfigDict(
        env_prefix="CONVEY_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    config_path: str = Field(default="convey.json", description="Configuration file path")
    modules_dir: str = Field(
        default=".",
        description="Directory design module paths are resolved against",
    )
    documents_collection: str = Field(
        default="documents",
        min_length=1,
        description="Collection holding each database's documents",
    )
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO",
        description="Logging level",
    )


class Settings(BaseSettings):
    """Main settings container."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    mongo: MongoSettings = Field(default_factory=MongoSettings)
    convey: ConveySettings = Field(default_factory=ConveySettings)


@lru_cache
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Uses lru_cache to ensure settings are loaded only once.
    """
    return Settings()
