"""Core components for the Retention Sweeper."""

from retention_sweeper.core.errors import (
    ConfigurationError,
    RetentionSweeperError,
    ScanError,
    StoreError,
)
from retention_sweeper.core.metrics import RetentionCollector, RetentionMetrics
from retention_sweeper.core.models import (
    MIN_SCAN_INTERVAL,
    RetentionConfig,
    ScanPass,
    SweeperStatus,
)
from retention_sweeper.core.rwlock import ReadWriteLock
from retention_sweeper.core.utils import to_aware_utc, utc_now

__all__ = [
    # Errors
    "ConfigurationError",
    "RetentionSweeperError",
    "ScanError",
    "StoreError",
    # Metrics
    "RetentionCollector",
    "RetentionMetrics",
    # Models
    "MIN_SCAN_INTERVAL",
    "RetentionConfig",
    "ScanPass",
    "SweeperStatus",
    # Utilities
    "ReadWriteLock",
    "to_aware_utc",
    "utc_now",
]
