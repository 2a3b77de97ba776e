"""Service factory for dependency injection and initialization.

This module centralizes how the store, metrics, shutdown coordinator and
sweeper are built from Settings, so the CLI and any embedding host wire them
the same way and tests can substitute individual pieces.

Usage:
    from retention_sweeper.factory import ServiceFactory

    factory = ServiceFactory(settings)
    services = factory.create_all()
    services.sweeper.start()
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

from retention_sweeper.adapters.file_store import FileMessageStore
from retention_sweeper.config import Settings
from retention_sweeper.core.metrics import RetentionCollector, RetentionMetrics, register
from retention_sweeper.core.models import RetentionConfig
from retention_sweeper.services.shutdown import ShutdownCoordinator
from retention_sweeper.services.sweeper import RetentionSweeper

if TYPE_CHECKING:
    from prometheus_client.registry import CollectorRegistry

    from retention_sweeper.ports.store import MessageStoreProtocol

logger = logging.getLogger(__name__)


@dataclass
class ServiceContainer:
    """Container for all initialized services.

    Attributes:
        store: Message store being swept.
        config: Retention settings derived from Settings.
        coordinator: Process-wide shutdown signal.
        metrics: Retention counters.
        sweeper: The background sweeper (not yet started).
        collector: Prometheus collector, if a registry was supplied.
    """

    store: MessageStoreProtocol
    config: RetentionConfig
    coordinator: ShutdownCoordinator
    metrics: RetentionMetrics
    sweeper: RetentionSweeper
    collector: RetentionCollector | None


class ServiceFactory:
    """Factory for creating and wiring retention services.

    Example:
        factory = ServiceFactory(settings, registry=REGISTRY)
        services = factory.create_all()
    """

    def __init__(
        self,
        settings: Settings,
        store: MessageStoreProtocol | None = None,
        coordinator: ShutdownCoordinator | None = None,
        registry: CollectorRegistry | None = None,
    ) -> None:
        """Initialize the factory.

        Args:
            settings: Application settings.
            store: Optional store override (defaults to the filesystem store).
            coordinator: Optional shared shutdown coordinator.
            registry: Prometheus registry to publish metrics to, if any.
        """
        self._settings = settings
        self._store = store
        self._coordinator = coordinator
        self._registry = registry

    def create_store(self) -> MessageStoreProtocol:
        if self._store is not None:
            return self._store
        logger.debug("Using filesystem store at %s", self._settings.store_path)
        return FileMessageStore(self._settings.store_path)

    def create_config(self) -> RetentionConfig:
        return RetentionConfig.from_settings(self._settings)

    def create_metrics(self, config: RetentionConfig) -> RetentionMetrics:
        return RetentionMetrics(history_size=config.history_size)

    def create_all(self) -> ServiceContainer:
        """Create all services with proper dependency wiring.

        Returns:
            ServiceContainer with all services initialized.
        """
        store = self.create_store()
        config = self.create_config()
        coordinator = self._coordinator or ShutdownCoordinator()
        metrics = self.create_metrics(config)

        collector = None
        if self._registry is not None:
            collector = register(metrics, self._registry)

        sweeper = RetentionSweeper(
            store=store,
            config=config,
            coordinator=coordinator,
            metrics=metrics,
        )

        return ServiceContainer(
            store=store,
            config=config,
            coordinator=coordinator,
            metrics=metrics,
            sweeper=sweeper,
            collector=collector,
        )
