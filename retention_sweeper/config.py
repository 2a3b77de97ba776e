"""Configuration system for the Retention Sweeper."""

from pathlib import Path
from typing import Any, Literal

from pydantic import Field
from pydantic_settings import BaseSettings

from retention_sweeper.core.errors import ConfigurationError
from retention_sweeper.core.models import MIN_SCAN_INTERVAL


class Settings(BaseSettings):
    """Retention Sweeper Configuration."""

    # Storage
    store_path: Path = Field(
        default=Path("./mail"),
        description="Root directory of the mailbox store (one sub-directory per mailbox)",
    )

    # Retention
    retention_minutes: int = Field(
        default=0,
        description="Delete messages older than this many minutes (0 disables the sweeper)",
    )
    retention_sleep_ms: int = Field(
        default=100,
        ge=0,
        description="Milliseconds to pause between mailboxes during a pass",
    )
    history_size: int = Field(
        default=50,
        ge=1,
        description="Number of passes kept in the per-pass metric histories",
    )

    # Logging
    log_level: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR)",
    )
    log_format: Literal["text", "json"] = Field(
        default="text",
        description="Log output format",
    )

    # Metrics
    metrics_port: int = Field(
        default=0,
        ge=0,
        le=65535,
        description="Port for the prometheus HTTP endpoint (0 disables it)",
    )
    metrics_addr: str = Field(
        default="127.0.0.1",
        description="Address the prometheus HTTP endpoint binds to",
    )

    model_config = {
        "env_prefix": "RETENTION_",
        "env_file": ".env",
        "env_file_encoding": "utf-8",
    }


def validate_startup(settings: Settings) -> list[str]:
    """Check settings before the sweeper starts.

    Args:
        settings: Settings to validate.

    Returns:
        Warnings worth logging; an empty list means nothing looked odd.

    Raises:
        ConfigurationError: If the settings cannot work at all.
    """
    warnings: list[str] = []

    if settings.store_path.exists() and not settings.store_path.is_dir():
        raise ConfigurationError(f"Store path is not a directory: {settings.store_path}")

    if settings.retention_minutes < 0:
        warnings.append(
            f"retention_minutes={settings.retention_minutes} is negative; "
            "retention sweeping is disabled"
        )
    elif settings.retention_minutes > 0 and not settings.store_path.exists():
        warnings.append(f"Store path does not exist yet: {settings.store_path}")

    if settings.retention_sleep_ms / 1000 > MIN_SCAN_INTERVAL.total_seconds():
        warnings.append(
            "retention_sleep_ms exceeds the scan interval; passes over many mailboxes "
            "will run back to back"
        )

    return warnings


# Settings singleton with dependency injection support
_settings: Settings | None = None


def get_settings() -> Settings:
    """Get the settings instance (lazy-loaded singleton).

    Returns:
        The Settings instance.
    """
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings


def override_settings(new_settings: Settings) -> None:
    """Override the settings instance (for testing).

    Args:
        new_settings: The new Settings instance to use.
    """
    global _settings
    _settings = new_settings


def reset_settings() -> None:
    """Reset settings to None (forces reload on next get_settings call)."""
    global _settings
    _settings = None


def settings_summary(settings: Settings) -> dict[str, Any]:
    """Settings rendered for a startup log line."""
    return {
        "store_path": str(settings.store_path),
        "retention_minutes": settings.retention_minutes,
        "retention_sleep_ms": settings.retention_sleep_ms,
        "metrics_port": settings.metrics_port,
    }
