from functools import lru_cache
from pathlib import Path
from typing import Any

import yaml
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Database
    database_url: str = Field(default="sqlite+aiosqlite:///./recurring_orders.db")

    # Application
    debug: bool = Field(default=False)

    # Scheduler
    scheduler_enabled: bool = Field(default=True)
    check_interval_seconds: float = Field(default=60.0, gt=0)

    # Execution log
    execution_log_capacity: int = Field(default=100, ge=1)
    log_retention_days: int = Field(default=30, ge=0)

    # Notifications (empty = log only)
    notification_webhook_url: str = Field(default="")
    notification_timeout_seconds: float = Field(default=10.0)


class RecurringOrdersConfig:
    """Recurring order execution configuration from config.yml and environment."""

    def __init__(self, data: dict[str, Any], settings: "Settings") -> None:
        self.scheduler_enabled: bool = data.get("scheduler_enabled", settings.scheduler_enabled)
        self.check_interval_seconds: float = float(
            data.get("check_interval_seconds", settings.check_interval_seconds)
        )
        self.log_capacity: int = int(data.get("log_capacity", settings.execution_log_capacity))
        self.log_retention_days: int = int(
            data.get("log_retention_days", settings.log_retention_days)
        )


class NotificationConfig:
    """Notification sink configuration."""

    def __init__(self, data: dict[str, Any], settings: "Settings") -> None:
        # Env takes precedence over config.yml
        self.webhook_url: str = settings.notification_webhook_url or data.get("webhook_url", "")
        self.timeout_seconds: float = float(
            data.get("timeout_seconds", settings.notification_timeout_seconds)
        )


class AppConfig:
    """Combined application configuration from .env and config.yml."""

    def __init__(self, config_path: Path | None = None) -> None:
        self.settings = Settings()
        self._load_yaml(config_path or Path("config.yml"))

    def _load_yaml(self, config_path: Path) -> None:
        if config_path.exists():
            with open(config_path) as f:
                data = yaml.safe_load(f) or {}
        else:
            data = {}

        self.recurring_orders = RecurringOrdersConfig(
            data.get("recurring_orders", {}), self.settings
        )
        self.notifications = NotificationConfig(data.get("notifications", {}), self.settings)


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


@lru_cache
def get_config() -> AppConfig:
    """Get cached full config instance."""
    return AppConfig()
