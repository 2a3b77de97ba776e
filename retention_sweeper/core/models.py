"""Data models for the Retention Sweeper."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta
from enum import Enum
from typing import TYPE_CHECKING

from pydantic import BaseModel, ConfigDict, Field, field_validator

from retention_sweeper.core.utils import whole_seconds

if TYPE_CHECKING:
    from retention_sweeper.config import Settings

# Passes never start more often than this, however fast a scan finishes.
MIN_SCAN_INTERVAL = timedelta(minutes=1)

DEFAULT_HISTORY_SIZE = 50


class SweeperStatus(str, Enum):
    """Lifecycle of a retention sweeper.

    DISABLED -> STOPPED                      (zero retention configured)
    ENABLED -> RUNNING -> STOPPING -> STOPPED (normal operation)
    """

    DISABLED = "disabled"
    ENABLED = "enabled"
    RUNNING = "running"
    STOPPING = "stopping"
    STOPPED = "stopped"


class RetentionConfig(BaseModel):
    """Immutable retention settings for the lifetime of a sweeper."""

    model_config = ConfigDict(frozen=True)

    max_age: timedelta = Field(
        default=timedelta(0),
        description="Messages older than this are deleted; <= 0 disables the sweeper",
    )
    min_interval: timedelta = Field(
        default=MIN_SCAN_INTERVAL,
        description="Minimum time between the starts of two passes",
    )
    per_mailbox_delay: timedelta = Field(
        default=timedelta(0),
        description="Throttle between mailboxes to bound store load",
    )
    history_size: int = Field(
        default=DEFAULT_HISTORY_SIZE,
        ge=1,
        description="Number of passes kept in the delete/retained histories",
    )

    @field_validator("min_interval")
    @classmethod
    def _positive_interval(cls, v: timedelta) -> timedelta:
        if v <= timedelta(0):
            raise ValueError("min_interval must be positive")
        return v

    @field_validator("per_mailbox_delay")
    @classmethod
    def _non_negative_delay(cls, v: timedelta) -> timedelta:
        if v < timedelta(0):
            raise ValueError("per_mailbox_delay must not be negative")
        return v

    @property
    def enabled(self) -> bool:
        """Whether retention sweeping is enabled."""
        return self.max_age > timedelta(0)

    @property
    def period_seconds(self) -> int:
        """Configured retention period in whole seconds."""
        return whole_seconds(self.max_age)

    @classmethod
    def from_settings(cls, settings: Settings) -> RetentionConfig:
        """Build a config from minutes/milliseconds settings values.

        The scan interval is not configurable and stays at MIN_SCAN_INTERVAL.
        """
        return cls(
            max_age=timedelta(minutes=settings.retention_minutes),
            per_mailbox_delay=timedelta(milliseconds=settings.retention_sleep_ms),
            history_size=settings.history_size,
        )


@dataclass
class ScanPass:
    """Outcome of one sweep over the store.

    Attributes:
        cutoff: Messages dated strictly before this are expired.
        started_at: When the pass began.
        deleted: Expired messages successfully deleted.
        failed: Expired messages whose deletion failed.
        retained: Messages not yet expired.
        mailboxes_visited: Mailboxes whose messages were fully processed.
        completed_at: Set only when every mailbox was visited.
        aborted: True when shutdown cut the pass short.
    """

    cutoff: datetime
    started_at: datetime
    deleted: int = 0
    failed: int = 0
    retained: int = 0
    mailboxes_visited: int = 0
    completed_at: datetime | None = None
    aborted: bool = False

    @property
    def completed(self) -> bool:
        return self.completed_at is not None

    def summary(self) -> dict[str, object]:
        return {
            "cutoff": self.cutoff.isoformat(),
            "started_at": self.started_at.isoformat(),
            "completed_at": self.completed_at.isoformat() if self.completed_at else None,
            "aborted": self.aborted,
            "mailboxes_visited": self.mailboxes_visited,
            "deleted": self.deleted,
            "failed": self.failed,
            "retained": self.retained,
        }
