"""Service layer for the Retention Sweeper."""

from retention_sweeper.services.scanner import RetentionScanner
from retention_sweeper.services.shutdown import ShutdownCoordinator
from retention_sweeper.services.sweeper import RetentionSweeper

__all__ = [
    "RetentionScanner",
    "RetentionSweeper",
    "ShutdownCoordinator",
]
