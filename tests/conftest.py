"""Pytest fixtures for Retention Sweeper tests."""

from __future__ import annotations

from collections.abc import Callable, Generator
from datetime import datetime
from pathlib import Path

import pytest

from retention_sweeper.config import Settings, override_settings, reset_settings
from retention_sweeper.core.metrics import RetentionMetrics
from retention_sweeper.services.shutdown import ShutdownCoordinator
from tests.fakes import FIXED_NOW, FakeMailbox, FakeMessage, FakeStore, aged


# ---------------------------------------------------------------------------
# Basic fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def now() -> Callable[[], datetime]:
    """Frozen wall clock."""
    return lambda: FIXED_NOW


@pytest.fixture
def metrics(now: Callable[[], datetime]) -> RetentionMetrics:
    return RetentionMetrics(history_size=5, now=now)


@pytest.fixture
def coordinator() -> ShutdownCoordinator:
    return ShutdownCoordinator()


@pytest.fixture
def scenario_store() -> FakeStore:
    """Mailbox A: 40d and 1d old messages. Mailbox B: one 100d old message."""
    return FakeStore(
        [
            FakeMailbox(
                "alice",
                [
                    FakeMessage("a-old", aged(40)),
                    FakeMessage("a-new", aged(1)),
                ],
            ),
            FakeMailbox("bob", [FakeMessage("b-old", aged(100))]),
        ]
    )


@pytest.fixture
def test_settings(tmp_path: Path) -> Generator[Settings, None, None]:
    """Provide test settings with a temp store."""
    settings = Settings(
        store_path=tmp_path / "mail",
        retention_minutes=60,
        retention_sleep_ms=0,
        log_level="DEBUG",
    )
    override_settings(settings)
    yield settings
    reset_settings()
