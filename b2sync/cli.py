"""Command-line entry point running the periodic backup loop."""

from __future__ import annotations

import argparse
import signal
import threading

from .config import Config, ConfigError, config_path, load_config
from .logger import Logger, parse_level
from .notifier import Notifier
from .syncer import B2NotAvailableError, SyncManager

_HELP = """\
B2Sync - Automated Backblaze Backup Utility

Usage:
  b2sync [options]

Options:
  --help    Show this help message

Configuration:
  Config file: {path}
  Supports duration formats: 1m, 5m, 1h, 30s, etc.

For more information, see README.md"""


def _perform_sync(
    log: Logger, manager: SyncManager, notifier: Notifier, config: Config
) -> None:
    log.debug("Starting sync cycle")
    try:
        log.rotate_if_needed()
    except OSError as exc:
        log.warn(f"Log rotation failed: {exc}")
    notifier.notify_sync_results(manager.sync_all(), config.notification_threshold)
    log.debug("Sync cycle completed")


def _run(config: Config, log: Logger) -> int:
    log.info("B2Sync started")
    notifier = Notifier(log)
    manager = SyncManager(config, log)

    try:
        manager.check_b2_available()
    except B2NotAvailableError as exc:
        log.error(f"B2 CLI not available: {exc}")
        notifier.notify_b2_not_installed()
        return 1

    notifier.notify_startup()

    interval = config.sync_frequency.total_seconds()
    if interval <= 0:
        log.error("non-positive sync frequency")
        return 1

    stop = threading.Event()
    received: list[int] = []

    def handle(signum, _frame):
        received.append(signum)
        stop.set()

    previous = {sig: signal.signal(sig, handle) for sig in (signal.SIGINT, signal.SIGTERM)}
    try:
        _perform_sync(log, manager, notifier, config)
        while not stop.wait(interval):
            _perform_sync(log, manager, notifier, config)
        log.info(f"Received signal {signal.Signals(received[0]).name}, shutting down")
        notifier.notify_shutdown()
        return 0
    finally:
        for sig, handler in previous.items():
            if handler is not None:
                signal.signal(sig, handler)


def main(argv: list[str] | None = None) -> int:
    """Run b2sync until interrupted; returns the process exit status."""
    parser = argparse.ArgumentParser(prog="b2sync", add_help=False)
    parser.add_argument("-help", "--help", action="store_true", dest="help")
    args = parser.parse_args(argv)

    if args.help:
        print(_HELP.format(path=config_path()))
        return 0

    try:
        config = load_config(config_path())
    except ConfigError as exc:
        print(f"Error loading config: {exc}")
        return 1

    try:
        log = Logger(config.log_dir, parse_level(config.log_level))
    except OSError as exc:
        print(f"Error initializing logger: {exc}")
        return 1

    with log:
        return _run(config, log)


if __name__ == "__main__":
    raise SystemExit(main())