"""
Application settings with Pydantic v2 validation.

Loads configuration from environment variables with sensible defaults.
"""

from pathlib import Path
from typing import Any, Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class StorageSettings(BaseSettings):
    """Local, shared and server storage configuration."""

    model_config = SettingsConfigDict(env_prefix="STORAGE_")

    data_dir: Path = Path("data")

    # Storage scope shared between the primary process and the extension
    shared_group_dir: Path = Path("data/group")
    shared_db_name: str = "shared.db"
    reminders_key: str = "yomo_local_reminders"
    intents_key: str = "yomo_pending_extension_actions"
    seed_samples: bool = False

    # Server document store
    server_db_name: str = "remindsync.db"
    reader_connections: int = 4
    busy_timeout: int = 30000  # ms

    @property
    def shared_db_path(self) -> Path:
        return self.shared_group_dir / self.shared_db_name

    @property
    def server_db_path(self) -> Path:
        return self.data_dir / self.server_db_name


class ParserSettings(BaseSettings):
    """Natural-language parsing configuration."""

    model_config = SettingsConfigDict(env_prefix="PARSER_")

    ai_enabled: bool = True
    providers: list[Literal["claude", "openai"]] = ["claude", "openai"]
    timeout_seconds: float = 8.0

    claude_api_key: str | None = None
    claude_base_url: str = "https://api.anthropic.com"
    claude_model: str = "claude-haiku-4-5-20251001"
    anthropic_version: str = "2023-06-01"

    openai_api_key: str | None = None
    openai_base_url: str = "https://api.openai.com"
    openai_model: str = "gpt-4o-mini"

    max_tokens: int = 256

    # Circuit breaker settings
    failure_threshold: int = 3
    cooldown_seconds: int = 60

    # Retry settings
    max_retries: int = 2
    retry_delay: float = 0.5
    retry_multiplier: float = 2.0


class NotificationSettings(BaseSettings):
    """Alert scheduling configuration."""

    model_config = SettingsConfigDict(env_prefix="NOTIFY_")

    default_snooze_minutes: int = 15
    min_snooze_minutes: int = 1
    max_snooze_minutes: int = 60


class SyncSettings(BaseSettings):
    """Remote backend and device fan-out configuration."""

    model_config = SettingsConfigDict(env_prefix="SYNC_")

    remote_base_url: str | None = None
    request_timeout: float = 10.0
    poll_interval_seconds: float = 15.0

    stale_device_days: int = 30
    sweep_interval_hours: float = 24.0

    fcm_project_id: str | None = None
    fcm_access_token: str | None = None
    fcm_base_url: str = "https://fcm.googleapis.com"
    push_timeout_seconds: float = 10.0


class APISettings(BaseSettings):
    """API server configuration."""

    model_config = SettingsConfigDict(env_prefix="API_")

    host: str = "0.0.0.0"
    port: int = 8000
    debug: bool = False
    cors_origins: list[str] = ["*"]


class Settings(BaseSettings):
    """Main application settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    app_name: str = "RemindSync"
    app_version: str = "1.0.0"
    environment: Literal["development", "staging", "production"] = "development"
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"

    # Sub-settings
    storage: StorageSettings = Field(default_factory=StorageSettings)
    parser: ParserSettings = Field(default_factory=ParserSettings)
    notifications: NotificationSettings = Field(default_factory=NotificationSettings)
    sync: SyncSettings = Field(default_factory=SyncSettings)
    api: APISettings = Field(default_factory=APISettings)

    @field_validator("storage", mode="before")
    @classmethod
    def ensure_data_dirs(cls, v: Any) -> StorageSettings:
        if isinstance(v, dict):
            settings = StorageSettings(**v)
        else:
            settings = v or StorageSettings()
        settings.data_dir.mkdir(parents=True, exist_ok=True)
        settings.shared_group_dir.mkdir(parents=True, exist_ok=True)
        return settings


# Global settings instance
_settings: Settings | None = None


def get_settings() -> Settings:
    """Get or create global settings instance."""
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings


def reset_settings() -> None:
    """Reset settings (for testing)."""
    global _settings
    _settings = None
