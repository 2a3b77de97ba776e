"""Integration tests for the sweeper against a real directory store.

Tests cover:
- Background passes delete expired files and keep fresh ones
- Metrics reflect the completed pass
- Shutdown during the per-mailbox throttle is prompt
- Store errors do not stop later passes
"""

from __future__ import annotations

import os
import time
from collections.abc import Callable
from datetime import timedelta
from email.utils import format_datetime
from pathlib import Path

import pytest

from retention_sweeper.adapters.file_store import FileMessageStore
from retention_sweeper.core.metrics import RetentionMetrics
from retention_sweeper.core.models import RetentionConfig, SweeperStatus
from retention_sweeper.core.utils import utc_now
from retention_sweeper.services.sweeper import RetentionSweeper

pytestmark = pytest.mark.integration


def write_eml(path: Path, age: timedelta, with_header: bool = True) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    sent = utc_now() - age
    headers = "From: a@example.com\r\nSubject: hello\r\n"
    if with_header:
        headers += f"Date: {format_datetime(sent)}\r\n"
    path.write_text(headers + "\r\nbody\r\n", encoding="utf-8")
    if not with_header:
        os.utime(path, (sent.timestamp(), sent.timestamp()))
    return path


def wait_until(predicate: Callable[[], bool], timeout: float = 5.0) -> bool:
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(0.02)
    return predicate()


@pytest.fixture
def mail_root(tmp_path: Path) -> Path:
    root = tmp_path / "mail"
    root.mkdir()
    return root


class TestBackgroundSweep:
    """Tests for passes run by the background thread."""

    def test_expired_messages_removed(self, mail_root: Path) -> None:
        old_header = write_eml(mail_root / "alice" / "1.eml", timedelta(days=40))
        fresh = write_eml(mail_root / "alice" / "2.eml", timedelta(hours=1))
        old_mtime = write_eml(mail_root / "bob" / "3.eml", timedelta(days=100), with_header=False)

        config = RetentionConfig(
            max_age=timedelta(days=30),
            min_interval=timedelta(milliseconds=100),
        )
        metrics = RetentionMetrics(history_size=config.history_size)
        sweeper = RetentionSweeper(FileMessageStore(mail_root), config, metrics=metrics)

        sweeper.start()
        try:
            assert wait_until(lambda: metrics.retained_history != "")
        finally:
            assert sweeper.stop(timeout=5.0) is True

        assert not old_header.exists()
        assert not old_mtime.exists()
        assert fresh.exists()
        assert metrics.deletes_total == 2
        assert metrics.retained_current == 1
        assert metrics.period == 30 * 24 * 60 * 60
        assert metrics.deletes_history.split(",")[0] == "2"
        assert sweeper.status == SweeperStatus.STOPPED

    def test_later_passes_see_new_expired_mail(self, mail_root: Path) -> None:
        (mail_root / "alice").mkdir()
        config = RetentionConfig(
            max_age=timedelta(days=1),
            min_interval=timedelta(milliseconds=100),
        )
        sweeper = RetentionSweeper(FileMessageStore(mail_root), config)

        sweeper.start()
        try:
            late = write_eml(mail_root / "alice" / "late.eml", timedelta(days=2))
            assert wait_until(lambda: not late.exists())
        finally:
            sweeper.stop(timeout=5.0)

        assert sweeper.metrics.deletes_total == 1

    def test_missing_root_does_not_kill_worker(self, tmp_path: Path) -> None:
        root = tmp_path / "not-yet"
        config = RetentionConfig(
            max_age=timedelta(days=1),
            min_interval=timedelta(milliseconds=100),
        )
        sweeper = RetentionSweeper(FileMessageStore(root), config)

        sweeper.start()
        try:
            assert wait_until(lambda: sweeper.get_stats()["passes_failed"] >= 1)
            root.mkdir()
            expired = write_eml(root / "carol" / "x.eml", timedelta(days=3))
            assert wait_until(lambda: not expired.exists())
        finally:
            sweeper.stop(timeout=5.0)

        assert sweeper.get_stats()["passes_completed"] >= 1


class TestShutdown:
    """Tests for shutdown while a pass is in flight."""

    def test_stop_interrupts_throttle(self, mail_root: Path) -> None:
        for name in ("a", "b", "c"):
            write_eml(mail_root / name / "old.eml", timedelta(days=10))

        config = RetentionConfig(
            max_age=timedelta(days=1),
            min_interval=timedelta(milliseconds=100),
            per_mailbox_delay=timedelta(seconds=30),
        )
        sweeper = RetentionSweeper(FileMessageStore(mail_root), config)

        sweeper.start()
        assert wait_until(lambda: not (mail_root / "a" / "old.eml").exists())

        started = time.monotonic()
        assert sweeper.stop(timeout=5.0) is True
        assert time.monotonic() - started < 2.0

        # later mailboxes untouched by the aborted pass
        assert (mail_root / "c" / "old.eml").exists()
        assert sweeper.metrics.retained_history == ""
        assert sweeper.get_stats()["passes_aborted"] == 1
