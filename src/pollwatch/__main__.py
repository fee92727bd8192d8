"""Command-line entry point for the polling file watcher."""
from __future__ import annotations

import argparse
import logging
import signal
from pathlib import Path
from types import FrameType
from typing import Any, Dict, List, Optional

from .config import DEFAULT_INTERVAL, DEFAULT_ROOT, ConfigError, default_config, load_config, override
from .deletion import PlaceholderFetcher
from .executor import JobExecutor
from .ledger import SuppressionLedger
from .monitor import DirectoryMonitor, MonitorStartupError
from .registry import HandlerRegistry

logger = logging.getLogger("pollwatch")


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(description="Watch a directory for file changes and dispatch handlers")
    parser.add_argument(
        "path",
        nargs="?",
        default=None,
        help=f"The path to watch for file changes (default: {DEFAULT_ROOT})",
    )
    parser.add_argument(
        "--interval",
        type=float,
        default=None,
        help=f"The interval in seconds to check for changes (default: {DEFAULT_INTERVAL})",
    )
    parser.add_argument(
        "--config",
        default=None,
        help="Optional YAML configuration file with monitor, endpoint and handler settings",
    )
    parser.add_argument(
        "--log-level",
        default="INFO",
        help="Logging level (DEBUG, INFO, WARNING, ERROR)",
    )
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=getattr(logging, args.log_level.upper(), logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s - %(message)s",
    )

    root_override = Path(args.path) if args.path is not None else None
    try:
        if args.config is not None:
            app_config = load_config(Path(args.config))
        else:
            app_config = default_config(Path(DEFAULT_ROOT))
        override(app_config, root_path=root_override, poll_interval=args.interval)
    except ConfigError as exc:
        logger.error("%s", exc)
        return 2

    monitor_cfg = app_config.monitor
    ledger = SuppressionLedger(monitor_cfg.suppression_ttl)
    executor = JobExecutor(monitor_cfg.max_workers)
    try:
        registry = HandlerRegistry(
            app_config.handlers,
            ledger=ledger,
            executor=executor,
            on_delete=PlaceholderFetcher(
                ledger,
                app_config.endpoints.placeholder_api,
                timeout=app_config.endpoints.timeout,
            ),
            endpoints=app_config.endpoints,
        )
    except RuntimeError as exc:
        logger.error("Could not start file watcher: %s", exc)
        executor.shutdown(wait=False)
        return 1

    monitor = DirectoryMonitor(monitor_cfg, registry, ledger)
    previous_handlers = install_stop_handlers(monitor)
    try:
        try:
            monitor.start()
        except MonitorStartupError as exc:
            logger.error("Could not start file watcher: %s", exc)
            return 1

        try:
            monitor.run()
        except Exception as exc:
            logger.error("An error occurred while watching the directory: %s", exc)
            return 1
    finally:
        restore_handlers(previous_handlers)
        executor.shutdown(wait=True)

    return 0


def install_stop_handlers(monitor: DirectoryMonitor) -> Dict[int, Any]:
    """Route SIGINT and SIGTERM to ``monitor.stop`` so the loop only exits between cycles."""

    def _request_stop(signum: int, _frame: Optional[FrameType]) -> None:
        logger.info("Received %s, stopping after the current cycle", signal.Signals(signum).name)
        monitor.stop()

    previous: Dict[int, Any] = {}
    for signum in (signal.SIGINT, signal.SIGTERM):
        previous[signum] = signal.signal(signum, _request_stop)
    return previous


def restore_handlers(previous: Dict[int, Any]) -> None:
    for signum, handler in previous.items():
        if handler is not None:
            signal.signal(signum, handler)


if __name__ == "__main__":
    raise SystemExit(main())
