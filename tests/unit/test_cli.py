"""Unit tests for the command line entry point."""

from __future__ import annotations

import json
import signal
from collections.abc import Generator
from datetime import timedelta
from email.utils import format_datetime
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest

from retention_sweeper import __version__
from retention_sweeper.__main__ import build_parser, main, run_scan, run_sweeper
from retention_sweeper.config import Settings
from retention_sweeper.core.utils import utc_now


@pytest.fixture(autouse=True)
def quiet_logging() -> Generator[MagicMock, None, None]:
    """Keep the CLI from replacing pytest's log handlers."""
    with patch("retention_sweeper.core.logging.configure_logging") as mock:
        yield mock


def write_eml(mailbox: Path, name: str, age: timedelta) -> Path:
    mailbox.mkdir(parents=True, exist_ok=True)
    path = mailbox / f"{name}.eml"
    date = format_datetime(utc_now() - age)
    path.write_text(f"From: a@example.com\r\nDate: {date}\r\n\r\nbody", encoding="utf-8")
    return path


@pytest.mark.unit
class TestParser:
    """Tests for argument parsing."""

    def test_scan_arguments(self) -> None:
        args = build_parser().parse_args(
            ["scan", "--store", "/srv/mail", "--retention-minutes", "30", "-v"]
        )

        assert args.command == "scan"
        assert args.store == "/srv/mail"
        assert args.retention_minutes == 30
        assert args.verbose is True

    def test_run_defaults(self) -> None:
        args = build_parser().parse_args(["run"])

        assert args.command == "run"
        assert args.store is None
        assert args.retention_minutes is None
        assert args.verbose is False


@pytest.mark.unit
class TestMain:
    """Tests for main() dispatch."""

    def test_version(self, capsys: pytest.CaptureFixture[str]) -> None:
        with pytest.raises(SystemExit) as exc_info:
            main(["--version"])

        assert exc_info.value.code == 0
        assert __version__ in capsys.readouterr().out

    def test_defaults_to_run(self) -> None:
        with patch("retention_sweeper.__main__.run_sweeper", return_value=0) as mock_run:
            with pytest.raises(SystemExit) as exc_info:
                main([])

        assert exc_info.value.code == 0
        assert mock_run.call_args.args[0].command == "run"

    def test_scan_dispatch(self) -> None:
        with patch("retention_sweeper.__main__.run_scan", return_value=1) as mock_scan:
            with pytest.raises(SystemExit) as exc_info:
                main(["scan"])

        assert exc_info.value.code == 1
        mock_scan.assert_called_once()


@pytest.mark.unit
class TestRunScan:
    """Tests for the one-shot scan command."""

    def test_deletes_expired_and_prints_json(
        self,
        test_settings: Settings,
        capsys: pytest.CaptureFixture[str],
    ) -> None:
        box = test_settings.store_path / "alice"
        old = write_eml(box, "old", timedelta(days=3))
        new = write_eml(box, "new", timedelta(minutes=5))

        code = run_scan(build_parser().parse_args(["scan"]))

        assert code == 0
        assert not old.exists()
        assert new.exists()
        output = json.loads(capsys.readouterr().out)
        assert output["pass"]["deleted"] == 1
        assert output["pass"]["retained"] == 1
        assert output["pass"]["aborted"] is False
        assert output["retention"]["DeletesTotal"] == 1
        assert output["retention"]["RetainedCurrent"] == 1
        assert output["retention"]["Period"] == 3600

    def test_command_line_overrides_settings(self, test_settings: Settings, tmp_path: Path) -> None:
        other = tmp_path / "other"
        keep = write_eml(other / "bob", "m", timedelta(hours=2))

        code = run_scan(
            build_parser().parse_args(
                ["scan", "--store", str(other), "--retention-minutes", "600"]
            )
        )

        assert code == 0
        assert keep.exists()

    def test_disabled_returns_error(
        self,
        test_settings: Settings,
        capsys: pytest.CaptureFixture[str],
    ) -> None:
        code = run_scan(build_parser().parse_args(["scan", "--retention-minutes", "0"]))

        assert code == 1
        assert "disabled" in capsys.readouterr().out

    def test_missing_store_returns_error(self, test_settings: Settings) -> None:
        # fixture store path is never created
        code = run_scan(build_parser().parse_args(["scan"]))

        assert code == 1


@pytest.mark.unit
class TestRunSweeper:
    """Tests for the long-running command."""

    def test_disabled_exits_cleanly(self, test_settings: Settings) -> None:
        with patch("retention_sweeper.__main__.signal.signal") as mock_signal:
            code = run_sweeper(build_parser().parse_args(["run", "--retention-minutes", "0"]))

        assert code == 0
        assert mock_signal.call_count == 2

    def test_invalid_store_path(self, test_settings: Settings, tmp_path: Path) -> None:
        not_a_dir = tmp_path / "file"
        not_a_dir.write_text("x")

        with patch("retention_sweeper.__main__.signal.signal") as mock_signal:
            code = run_sweeper(build_parser().parse_args(["run", "--store", str(not_a_dir)]))

        assert code == 1
        mock_signal.assert_not_called()

    def test_signal_requests_stop(self, test_settings: Settings) -> None:
        test_settings.store_path.mkdir()
        handlers = {}

        def capture(signum: int, handler: object) -> None:
            handlers[signum] = handler

        def fake_join(self: object, timeout: float | None = None) -> bool:
            # deliver SIGTERM once the sweeper is running, then wait for it
            handlers[signal.SIGTERM](signal.SIGTERM, None)
            return self.coordinator.wait_until_stopped(5.0)  # type: ignore[attr-defined]

        with patch("retention_sweeper.__main__.signal.signal", side_effect=capture):
            with patch("retention_sweeper.services.sweeper.RetentionSweeper.join", fake_join):
                code = run_sweeper(build_parser().parse_args(["run"]))

        assert code == 0
