"""Live retention counters and histories.

The sweeper writes to a single RetentionMetrics instance; observability
transports read it. Nothing is pushed: every read recomputes or copies the
current value.

Published fields (namespace ``retention``):
    SecondsSinceScanCompleted  computed on read from the last full pass
    DeletesTotal               monotonic count of deleted messages
    Period                     configured retention period in seconds
    RetainedCurrent            retained messages seen by the last full pass
    DeletesHist                per-pass delete counts, comma delimited
    RetainedHist               per-pass retained counts, comma delimited

Usage:
    from prometheus_client import start_http_server
    from retention_sweeper.core.metrics import RetentionMetrics, register

    metrics = RetentionMetrics()
    register(metrics)  # default prometheus registry
    start_http_server(9090)
"""

from __future__ import annotations

import logging
import threading
from collections import deque
from collections.abc import Callable, Iterable
from datetime import datetime
from typing import Any

from prometheus_client.core import (
    CounterMetricFamily,
    GaugeMetricFamily,
    InfoMetricFamily,
    Metric,
)
from prometheus_client.registry import REGISTRY, Collector, CollectorRegistry

from retention_sweeper.core.models import DEFAULT_HISTORY_SIZE
from retention_sweeper.core.rwlock import ReadWriteLock
from retention_sweeper.core.utils import utc_now, whole_seconds

logger = logging.getLogger(__name__)

NAMESPACE = "retention"


class RetentionMetrics:
    """Process-wide retention counters owned by one sweeper.

    Thread Safety:
        The last-completed-scan timestamp is guarded by a ReadWriteLock so
        readers never observe a torn value. Counters share a plain lock.
        Histories are bounded deques written only by the sweeper thread.
    """

    def __init__(
        self,
        history_size: int = DEFAULT_HISTORY_SIZE,
        now: Callable[[], datetime] = utc_now,
    ) -> None:
        """Initialize the metrics.

        Args:
            history_size: Passes kept per history; oldest entries are evicted.
            now: Wall clock, injectable for tests.
        """
        if history_size < 1:
            raise ValueError("history_size must be at least 1")

        self._now = now

        # Starts at creation time so the age reads as "since startup"
        self._scan_lock = ReadWriteLock()
        self._scan_completed = now()

        self._lock = threading.Lock()
        self._deletes_total = 0
        self._period = 0
        self._retained_current = 0

        self._deletes_hist: deque[int] = deque(maxlen=history_size)
        self._retained_hist: deque[int] = deque(maxlen=history_size)

    # -------------------------------------------------------------------------
    # Writers (sweeper side)
    # -------------------------------------------------------------------------

    def set_period(self, seconds: int) -> None:
        with self._lock:
            self._period = seconds

    def record_delete(self, count: int = 1) -> None:
        """Add successfully deleted messages to the running total."""
        if count < 0:
            raise ValueError("delete count must not be negative")
        with self._lock:
            self._deletes_total += count

    def set_scan_completed(self, completed_at: datetime) -> bool:
        """Advance the last-completed-scan timestamp.

        Returns:
            False if ``completed_at`` is older than the stored value, in which
            case nothing changes.
        """
        with self._scan_lock.write_locked():
            if completed_at < self._scan_completed:
                logger.debug(
                    "Ignoring out-of-order scan completion %s (have %s)",
                    completed_at.isoformat(),
                    self._scan_completed.isoformat(),
                )
                return False
            self._scan_completed = completed_at
            return True

    def record_pass(self, deleted: int, retained: int, completed_at: datetime) -> None:
        """Publish the results of a pass that visited every mailbox."""
        self.set_scan_completed(completed_at)
        with self._lock:
            self._retained_current = retained
        self._deletes_hist.append(deleted)
        self._retained_hist.append(retained)

    # -------------------------------------------------------------------------
    # Readers (transport side)
    # -------------------------------------------------------------------------

    @property
    def scan_completed(self) -> datetime:
        with self._scan_lock.read_locked():
            return self._scan_completed

    def seconds_since_scan_completed(self) -> int:
        return whole_seconds(self._now() - self.scan_completed)

    @property
    def deletes_total(self) -> int:
        with self._lock:
            return self._deletes_total

    @property
    def period(self) -> int:
        with self._lock:
            return self._period

    @property
    def retained_current(self) -> int:
        with self._lock:
            return self._retained_current

    @property
    def history_size(self) -> int:
        return self._deletes_hist.maxlen or 0

    @property
    def deletes_history(self) -> str:
        return ",".join(str(n) for n in list(self._deletes_hist))

    @property
    def retained_history(self) -> str:
        return ",".join(str(n) for n in list(self._retained_hist))

    def snapshot(self) -> dict[str, dict[str, Any]]:
        """Get all fields grouped under the ``retention`` namespace.

        Returns:
            JSON-serializable mapping, e.g. for a debug/vars endpoint.
        """
        return {
            NAMESPACE: {
                "SecondsSinceScanCompleted": self.seconds_since_scan_completed(),
                "DeletesHist": self.deletes_history,
                "DeletesTotal": self.deletes_total,
                "Period": self.period,
                "RetainedHist": self.retained_history,
                "RetainedCurrent": self.retained_current,
            }
        }


class RetentionCollector(Collector):
    """Prometheus collector that reads RetentionMetrics on every scrape."""

    def __init__(self, metrics: RetentionMetrics) -> None:
        self._metrics = metrics

    def collect(self) -> Iterable[Metric]:
        fields = self._metrics.snapshot()[NAMESPACE]

        yield GaugeMetricFamily(
            f"{NAMESPACE}_seconds_since_scan_completed",
            "Seconds since the last retention pass visited every mailbox",
            value=fields["SecondsSinceScanCompleted"],
        )
        yield CounterMetricFamily(
            f"{NAMESPACE}_deletes",
            "Messages deleted by the retention sweeper",
            value=fields["DeletesTotal"],
        )
        yield GaugeMetricFamily(
            f"{NAMESPACE}_period_seconds",
            "Configured retention period",
            value=fields["Period"],
        )
        yield GaugeMetricFamily(
            f"{NAMESPACE}_retained_current",
            "Messages retained by the last completed pass",
            value=fields["RetainedCurrent"],
        )
        yield InfoMetricFamily(
            f"{NAMESPACE}_history",
            "Recent per-pass delete and retained counts",
            value={
                "deletes": fields["DeletesHist"],
                "retained": fields["RetainedHist"],
            },
        )


def register(
    metrics: RetentionMetrics,
    registry: CollectorRegistry = REGISTRY,
) -> RetentionCollector:
    """Attach a collector for ``metrics`` to a prometheus registry."""
    collector = RetentionCollector(metrics)
    registry.register(collector)
    return collector
