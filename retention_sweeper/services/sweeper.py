"""Background retention sweeper.

Follows the same daemon-thread pattern as the other long-running services:
- __init__: threading primitives, config
- start(): idempotent, creates daemon thread
- stop(timeout): requests shutdown, waits for the worker, logs stats
- _background_worker(): loop with a cancellable wait between passes

Passes never start closer together than ``min_interval``. A pass that takes
longer than the interval is followed immediately by the next one; a quick pass
is followed by a wait that a shutdown request interrupts.

Architecture:
    start()
       │
       ▼
    [retention-sweeper thread]
       │  wait_for_stop(remaining interval)  ◄── request_stop()
       ▼
    RetentionScanner.scan()  ──►  store / RetentionMetrics
       │
       ▼
    stop requested? ── yes ──►  mark_stopped()  ──►  join() returns
"""

from __future__ import annotations

import logging
import threading
import time
from collections.abc import Callable
from datetime import datetime
from typing import TYPE_CHECKING, Any

from retention_sweeper.core.errors import ScanError
from retention_sweeper.core.metrics import RetentionMetrics
from retention_sweeper.core.models import RetentionConfig, ScanPass, SweeperStatus
from retention_sweeper.core.utils import utc_now
from retention_sweeper.services.scanner import RetentionScanner
from retention_sweeper.services.shutdown import ShutdownCoordinator

if TYPE_CHECKING:
    from retention_sweeper.ports.store import MessageStoreProtocol

logger = logging.getLogger(__name__)


class RetentionSweeper:
    """Periodically deletes expired messages from a store.

    The sweeper owns its metrics and shares a ShutdownCoordinator with the
    host. Once stopped it cannot be restarted; build a new one instead.
    """

    def __init__(
        self,
        store: MessageStoreProtocol,
        config: RetentionConfig,
        coordinator: ShutdownCoordinator | None = None,
        metrics: RetentionMetrics | None = None,
        clock: Callable[[], float] = time.monotonic,
        now: Callable[[], datetime] = utc_now,
    ) -> None:
        """Initialize the sweeper.

        Args:
            store: Store to sweep.
            config: Retention settings.
            coordinator: Shared stop signal; a private one is created if omitted.
            metrics: Counters to update; created from config if omitted.
            clock: Monotonic clock used for the scan interval.
            now: Wall clock used for cutoffs and completion timestamps.
        """
        self._config = config
        self._coordinator = coordinator or ShutdownCoordinator()
        self._metrics = metrics or RetentionMetrics(history_size=config.history_size, now=now)
        self._metrics.set_period(config.period_seconds)
        self._scanner = RetentionScanner(store, self._metrics, self._coordinator, now=now)
        self._clock = clock

        # Threading primitives
        self._lock = threading.Lock()
        self._worker_thread: threading.Thread | None = None
        self._status = SweeperStatus.ENABLED if config.enabled else SweeperStatus.DISABLED

        # Statistics
        self._stats_lock = threading.Lock()
        self._passes_started = 0
        self._passes_completed = 0
        self._passes_aborted = 0
        self._passes_failed = 0

    @property
    def config(self) -> RetentionConfig:
        return self._config

    @property
    def coordinator(self) -> ShutdownCoordinator:
        return self._coordinator

    @property
    def metrics(self) -> RetentionMetrics:
        return self._metrics

    @property
    def status(self) -> SweeperStatus:
        with self._lock:
            return self._status

    def start(self) -> None:
        """Start the background sweeper.

        With retention disabled no thread is started and the sweeper is
        immediately reported as fully stopped. Safe to call multiple times -
        will only start if not already running.
        """
        with self._lock:
            if self._status is SweeperStatus.DISABLED:
                logger.info("Retention scanner disabled")
                self._status = SweeperStatus.STOPPED
                self._coordinator.mark_stopped()
                return

            if self._status is not SweeperStatus.ENABLED:
                logger.debug("Retention sweeper already %s", self._status.value)
                return

            if not self._coordinator.arm():
                logger.warning("Shutdown coordinator already used; not starting sweeper")
                self._status = SweeperStatus.STOPPED
                return

            logger.info(
                "Retention configured for %d minutes",
                self._config.period_seconds // 60,
            )

            self._status = SweeperStatus.RUNNING
            self._worker_thread = threading.Thread(
                target=self._background_worker,
                name="retention-sweeper",
                daemon=True,
            )
            self._worker_thread.start()

    def stop(self, timeout: float | None = 5.0) -> bool:
        """Request shutdown and wait for the worker to exit.

        Args:
            timeout: Maximum seconds to wait, or None to wait indefinitely.

        Returns:
            True if the sweeper is fully stopped.
        """
        with self._lock:
            if self._status is SweeperStatus.RUNNING:
                self._status = SweeperStatus.STOPPING
                logger.info("Stopping retention sweeper...")
        self._coordinator.request_stop()

        if not self.join(timeout):
            logger.warning("Retention sweeper did not stop within timeout")
            return False

        with self._stats_lock:
            logger.info(
                "Retention sweeper stopped. Passes: %d, Completed: %d, Aborted: %d, Failed: %d",
                self._passes_started,
                self._passes_completed,
                self._passes_aborted,
                self._passes_failed,
            )
        return True

    def join(self, timeout: float | None = None) -> bool:
        """Block until the sweeper has fully stopped.

        Returns immediately if the sweeper is disabled or was never started.

        Returns:
            True if the sweeper is stopped, False on timeout.
        """
        return self._coordinator.wait_until_stopped(timeout)

    def scan_once(self) -> ScanPass:
        """Run a single pass in the calling thread, ignoring the interval.

        Raises:
            ScanError: If the store could not be enumerated.
        """
        return self._scanner.scan(self._config.max_age, self._config.per_mailbox_delay)

    def get_stats(self) -> dict[str, Any]:
        """Get sweeper statistics.

        Returns:
            Dictionary with lifecycle state, pass counts and metric values.
        """
        with self._stats_lock:
            stats: dict[str, Any] = {
                "passes_started": self._passes_started,
                "passes_completed": self._passes_completed,
                "passes_aborted": self._passes_aborted,
                "passes_failed": self._passes_failed,
            }
        stats["status"] = self.status.value
        stats["worker_alive"] = (
            self._worker_thread is not None and self._worker_thread.is_alive()
        )
        stats.update(self._metrics.snapshot())
        return stats

    # =========================================================================
    # Background Worker
    # =========================================================================

    def _background_worker(self) -> None:
        """Background worker that runs passes until shutdown."""
        logger.debug("Retention sweeper worker started")
        try:
            self._run_loop()
        finally:
            with self._lock:
                self._status = SweeperStatus.STOPPED
            logger.debug("Retention scanner shut down")
            self._coordinator.mark_stopped()

    def _run_loop(self) -> None:
        min_interval = self._config.min_interval.total_seconds()
        start = self._clock()

        while True:
            # Prevent scanner from running more than once per interval
            if self._wait_for_interval(start, min_interval):
                break

            start = self._clock()
            self._run_pass()

            if self._coordinator.stop_requested:
                break

        with self._lock:
            if self._status is SweeperStatus.RUNNING:
                self._status = SweeperStatus.STOPPING

    def _wait_for_interval(self, start: float, min_interval: float) -> bool:
        """Sleep out the rest of the interval since ``start``.

        Returns:
            True if shutdown was requested during the wait.
        """
        remaining = min_interval - (self._clock() - start)
        if remaining > 0:
            logger.debug("Retention scanner sleeping for %.1fs", remaining)
        while remaining > 0:
            if self._coordinator.wait_for_stop(remaining):
                return True
            remaining = min_interval - (self._clock() - start)
        # Interval already elapsed: the pass runs and its own stop checks apply
        return False

    def _run_pass(self) -> None:
        with self._stats_lock:
            self._passes_started += 1

        try:
            scan_pass = self.scan_once()
        except ScanError as e:
            logger.error("Error during retention scan: %s", e)
            with self._stats_lock:
                self._passes_failed += 1
            return
        except Exception:
            logger.error("Unexpected error during retention scan", exc_info=True)
            with self._stats_lock:
                self._passes_failed += 1
            return

        if scan_pass.aborted:
            logger.info(
                "Retention scan aborted by shutdown: %d deleted in %d mailboxes",
                scan_pass.deleted,
                scan_pass.mailboxes_visited,
            )
            with self._stats_lock:
                self._passes_aborted += 1
            return

        logger.info(
            "Retention scan completed: %d deleted, %d retained, %d failed in %d mailboxes",
            scan_pass.deleted,
            scan_pass.retained,
            scan_pass.failed,
            scan_pass.mailboxes_visited,
        )
        with self._stats_lock:
            self._passes_completed += 1
