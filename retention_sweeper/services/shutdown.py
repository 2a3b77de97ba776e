"""Shutdown coordination between the host process and the sweeper.

Two separate signals, never conflated:

    request_stop()  ──►  stop requested  ──►  sweeper loop / scan notice it
                                                    │
                                                    ▼
    wait_until_stopped()  ◄──  fully stopped  ◄──  mark_stopped()

"Fully stopped" starts out set: a join on a sweeper that was never started
(or is disabled) returns immediately. arm() clears it when a worker thread is
actually launched, and the worker sets it again exactly once on exit.
"""

from __future__ import annotations

import logging
import threading

logger = logging.getLogger(__name__)


class ShutdownCoordinator:
    """Process-wide stop signal plus a one-shot "fully stopped" signal.

    Thread Safety:
        All methods may be called from any thread. wait_until_stopped() may be
        awaited by any number of callers at once.
    """

    def __init__(self) -> None:
        self._stop_requested = threading.Event()
        self._stopped = threading.Event()
        self._stopped.set()

        self._lock = threading.Lock()
        self._armed = False
        self._marked = False

    # -------------------------------------------------------------------------
    # Stop requested
    # -------------------------------------------------------------------------

    def request_stop(self) -> None:
        """Ask every component watching this coordinator to stop.

        Idempotent.
        """
        if not self._stop_requested.is_set():
            logger.info("Shutdown requested")
        self._stop_requested.set()

    @property
    def stop_requested(self) -> bool:
        """Non-blocking check of the stop signal."""
        return self._stop_requested.is_set()

    def wait_for_stop(self, timeout: float | None = None) -> bool:
        """Block until stop is requested or ``timeout`` seconds pass.

        Returns:
            True if stop was requested, False on timeout.
        """
        return self._stop_requested.wait(timeout)

    # -------------------------------------------------------------------------
    # Fully stopped
    # -------------------------------------------------------------------------

    def arm(self) -> bool:
        """Clear "fully stopped" ahead of launching a worker.

        Returns:
            False if the coordinator was already armed or already marked
            stopped; the caller must not launch a worker in that case.
        """
        with self._lock:
            if self._armed or self._marked:
                return False
            self._armed = True
            self._stopped.clear()
            return True

    def mark_stopped(self) -> bool:
        """Signal that the sweeper has exited. Only the first call counts.

        Returns:
            True if this call set the signal.
        """
        with self._lock:
            if self._marked:
                logger.debug("Sweeper already marked stopped")
                return False
            self._marked = True
            self._stopped.set()
            return True

    @property
    def is_stopped(self) -> bool:
        return self._stopped.is_set()

    def wait_until_stopped(self, timeout: float | None = None) -> bool:
        """Block until the sweeper has fully stopped.

        Args:
            timeout: Seconds to wait, or None to wait indefinitely.

        Returns:
            True if the sweeper is stopped, False on timeout.
        """
        return self._stopped.wait(timeout)
