"""Retention scan engine: one pass over every mailbox in the store.

A pass computes its cutoff once, walks mailboxes in store order, deletes every
message dated strictly before the cutoff, and counts the rest as retained.

Failure handling differs by level:
    - listing mailboxes or a mailbox's messages fails -> ScanError, pass aborted
    - deleting one message fails -> logged, pass continues

Shutdown is checked after each mailbox and during the throttle between
mailboxes. A pass cut short by shutdown is not an error: its deletions stand,
but the completion timestamp and retained count are left untouched.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import datetime, timedelta
from typing import TYPE_CHECKING

from retention_sweeper.core.errors import ScanError
from retention_sweeper.core.models import ScanPass
from retention_sweeper.core.utils import to_aware_utc, utc_now

if TYPE_CHECKING:
    from retention_sweeper.core.metrics import RetentionMetrics
    from retention_sweeper.ports.store import MessageProtocol, MessageStoreProtocol
    from retention_sweeper.services.shutdown import ShutdownCoordinator

logger = logging.getLogger(__name__)


class RetentionScanner:
    """Executes single retention passes against a message store."""

    def __init__(
        self,
        store: MessageStoreProtocol,
        metrics: RetentionMetrics,
        coordinator: ShutdownCoordinator,
        now: Callable[[], datetime] = utc_now,
    ) -> None:
        """Initialize the scanner.

        Args:
            store: Store to sweep.
            metrics: Counters updated as messages are deleted.
            coordinator: Source of the stop signal.
            now: Wall clock, injectable for tests.
        """
        self._store = store
        self._metrics = metrics
        self._coordinator = coordinator
        self._now = now

    def scan(self, max_age: timedelta, per_mailbox_delay: timedelta) -> ScanPass:
        """Run one pass.

        Args:
            max_age: Messages older than this are deleted.
            per_mailbox_delay: Pause between mailboxes.

        Returns:
            The pass record; ``aborted`` is set if shutdown cut it short.

        Raises:
            ScanError: If mailboxes or messages could not be listed.
        """
        logger.debug("Starting retention scan")
        started = self._now()
        scan_pass = ScanPass(cutoff=started - max_age, started_at=started)
        delay = per_mailbox_delay.total_seconds()

        try:
            mailboxes = list(self._store.get_mailboxes())
        except Exception as e:
            raise ScanError(f"Failed to list mailboxes: {e}", stage="mailboxes") from e

        for index, mailbox in enumerate(mailboxes):
            try:
                messages = mailbox.get_messages()
            except Exception as e:
                raise ScanError(
                    f"Failed to list messages in mailbox {mailbox.name}: {e}",
                    stage="messages",
                    mailbox=mailbox.name,
                ) from e

            for message in messages:
                self._process_message(message, scan_pass)
            scan_pass.mailboxes_visited += 1

            if self._coordinator.stop_requested:
                return self._abort(scan_pass)

            # Throttle before the next mailbox; shutdown cuts the pause short
            if delay > 0 and index < len(mailboxes) - 1:
                if self._coordinator.wait_for_stop(delay):
                    return self._abort(scan_pass)

        completed = self._now()
        scan_pass.completed_at = completed
        self._metrics.record_pass(
            deleted=scan_pass.deleted,
            retained=scan_pass.retained,
            completed_at=completed,
        )
        return scan_pass

    def _process_message(self, message: MessageProtocol, scan_pass: ScanPass) -> None:
        if to_aware_utc(message.date) >= scan_pass.cutoff:
            scan_pass.retained += 1
            return

        logger.debug("Purging expired message %s", message.id)
        try:
            message.delete()
        except Exception as e:
            # Log but don't abort
            logger.error("Failed to purge message %s: %s", message.id, e)
            scan_pass.failed += 1
            return

        scan_pass.deleted += 1
        self._metrics.record_delete()

    def _abort(self, scan_pass: ScanPass) -> ScanPass:
        logger.debug(
            "Retention scan aborted due to shutdown after %d mailboxes",
            scan_pass.mailboxes_visited,
        )
        scan_pass.aborted = True
        return scan_pass
