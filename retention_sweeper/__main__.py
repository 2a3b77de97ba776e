"""Entry point for running the Retention Sweeper and its CLI commands."""

from __future__ import annotations

import argparse
import json
import logging
import signal
import sys
from pathlib import Path
from types import FrameType
from typing import TYPE_CHECKING, NoReturn

if TYPE_CHECKING:
    from retention_sweeper.config import Settings

logger = logging.getLogger(__name__)


def _load_settings(args: argparse.Namespace) -> Settings:
    """Settings from the environment with command line overrides applied."""
    from retention_sweeper.config import get_settings

    settings = get_settings()
    overrides: dict[str, object] = {}
    if args.store is not None:
        overrides["store_path"] = Path(args.store)
    if args.retention_minutes is not None:
        overrides["retention_minutes"] = args.retention_minutes
    if args.verbose:
        overrides["log_level"] = "DEBUG"
    return settings.model_copy(update=overrides) if overrides else settings


def run_sweeper(args: argparse.Namespace) -> int:
    """Run the sweeper until SIGINT/SIGTERM.

    Args:
        args: Parsed command line arguments.

    Returns:
        Exit code (0 for success, 1 for error).
    """
    from prometheus_client import REGISTRY, start_http_server

    from retention_sweeper.config import settings_summary, validate_startup
    from retention_sweeper.core.errors import ConfigurationError
    from retention_sweeper.core.logging import configure_logging
    from retention_sweeper.factory import ServiceFactory

    settings = _load_settings(args)
    configure_logging(level=settings.log_level, json_format=settings.log_format == "json")

    try:
        for warning in validate_startup(settings):
            logger.warning(warning)
    except ConfigurationError as e:
        logger.error("Invalid configuration: %s", e)
        return 1

    logger.info("Starting retention sweeper: %s", settings_summary(settings))

    registry = REGISTRY if settings.metrics_port else None
    services = ServiceFactory(settings, registry=registry).create_all()

    if settings.metrics_port:
        start_http_server(settings.metrics_port, addr=settings.metrics_addr)
        logger.info(
            "Prometheus metrics on http://%s:%d/metrics",
            settings.metrics_addr,
            settings.metrics_port,
        )

    coordinator = services.coordinator

    def _handle_signal(signum: int, frame: FrameType | None) -> None:
        logger.info("Received %s", signal.Signals(signum).name)
        coordinator.request_stop()

    signal.signal(signal.SIGINT, _handle_signal)
    signal.signal(signal.SIGTERM, _handle_signal)

    services.sweeper.start()
    services.sweeper.join()

    if not services.config.enabled:
        logger.info("Nothing to do with retention disabled, exiting")
    return 0


def run_scan(args: argparse.Namespace) -> int:
    """Run a single retention pass now and print the result as JSON.

    Args:
        args: Parsed command line arguments.

    Returns:
        Exit code (0 for success, 1 for error).
    """
    from retention_sweeper.core.errors import ScanError
    from retention_sweeper.core.logging import configure_logging
    from retention_sweeper.factory import ServiceFactory

    settings = _load_settings(args)
    configure_logging(level=settings.log_level, json_format=settings.log_format == "json")

    services = ServiceFactory(settings).create_all()
    if not services.config.enabled:
        print("Retention is disabled; set RETENTION_RETENTION_MINUTES or --retention-minutes")
        return 1

    try:
        scan_pass = services.sweeper.scan_once()
    except ScanError as e:
        logger.error("Error during retention scan: %s", e)
        return 1

    output = {"pass": scan_pass.summary()}
    output.update(services.metrics.snapshot())
    print(json.dumps(output, indent=2))
    return 0


def _add_common_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--store",
        metavar="PATH",
        default=None,
        help="Mailbox store root (overrides RETENTION_STORE_PATH)",
    )
    parser.add_argument(
        "--retention-minutes",
        type=int,
        default=None,
        metavar="N",
        help="Delete messages older than N minutes (0 disables)",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Enable debug logging",
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="retention-sweeper",
        description="Delete expired messages from a mailbox store",
    )
    parser.add_argument(
        "--version",
        "-V",
        action="store_true",
        help="Show version and exit",
    )

    subparsers = parser.add_subparsers(
        dest="command",
        title="commands",
        description="Available commands",
    )

    run_parser = subparsers.add_parser(
        "run",
        help="Run the background sweeper until interrupted (default)",
    )
    _add_common_arguments(run_parser)

    scan_parser = subparsers.add_parser(
        "scan",
        help="Run one retention pass now and print the results",
    )
    _add_common_arguments(scan_parser)

    return parser


def main(argv: list[str] | None = None) -> NoReturn:
    """Main entry point with subcommand support."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.version:
        from retention_sweeper import __version__

        print(f"retention-sweeper {__version__}")
        sys.exit(0)

    if args.command == "scan":
        sys.exit(run_scan(args))

    if args.command is None:
        args = parser.parse_args(["run"])
    sys.exit(run_sweeper(args))


if __name__ == "__main__":
    main()
