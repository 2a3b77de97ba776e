"""Retention Sweeper - background deletion of expired mailbox messages."""

__version__ = "0.1.0"

# Re-export core components for convenience
from retention_sweeper.config import Settings, get_settings
from retention_sweeper.core import (
    ConfigurationError,
    RetentionConfig,
    RetentionMetrics,
    RetentionSweeperError,
    ScanError,
    ScanPass,
    StoreError,
    SweeperStatus,
)
from retention_sweeper.services import (
    RetentionScanner,
    RetentionSweeper,
    ShutdownCoordinator,
)

__all__ = [
    # Version info
    "__version__",
    # Configuration
    "Settings",
    "get_settings",
    # Errors
    "RetentionSweeperError",
    "StoreError",
    "ScanError",
    "ConfigurationError",
    # Models
    "RetentionConfig",
    "ScanPass",
    "SweeperStatus",
    # Services
    "RetentionMetrics",
    "RetentionScanner",
    "RetentionSweeper",
    "ShutdownCoordinator",
]
