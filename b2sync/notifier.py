"""Desktop notifications about sync activity."""

from __future__ import annotations

import shutil
import subprocess
from collections.abc import Iterable

from .logger import Logger
from .syncer import ALREADY_RUNNING, SyncResult

_ERROR_TITLE = "B2Sync Error"


class Notifier:
    """Sends notifications through terminal-notifier, or osascript without it."""

    def __init__(self, logger: Logger) -> None:
        self.logger = logger
        self.use_terminal_notifier = shutil.which("terminal-notifier") is not None
        if self.use_terminal_notifier:
            logger.debug("Using terminal-notifier for notifications")
        else:
            logger.warn(
                "terminal-notifier not found, falling back to osascript: "
                "terminal-notifier is not in PATH"
            )

    def send(self, title: str, message: str) -> None:
        """Show one notification; raises if the helper program fails."""
        if self.use_terminal_notifier:
            method = "terminal-notifier"
            command = [
                "terminal-notifier",
                "-title",
                title,
                "-message",
                message,
                "-sender",
                "com.apple.finder",
            ]
        else:
            method = "osascript"
            command = [
                "osascript",
                "-e",
                f'display notification "{message}" with title "{title}"',
            ]

        try:
            proc = subprocess.run(
                command,
                stdout=subprocess.PIPE,
                stderr=subprocess.STDOUT,
                check=False,
            )
        except OSError as exc:
            self.logger.error(f"Failed to send notification via {method}: {exc}, output: ")
            raise
        output = proc.stdout.decode("utf-8", errors="replace")
        if proc.returncode != 0:
            self.logger.error(
                f"Failed to send notification via {method}: "
                f"exit status {proc.returncode}, output: {output}"
            )
            raise subprocess.CalledProcessError(proc.returncode, command, output=output)
        self.logger.debug(f"Notification sent via {method}: {title} - {message}")

    def _notify(self, title: str, message: str) -> None:
        try:
            self.send(title, message)
        except (OSError, subprocess.SubprocessError):
            pass  # already logged by send()

    def notify_b2_not_installed(self) -> None:
        self._notify(
            _ERROR_TITLE, "Backblaze B2 CLI is not installed. Please install it first."
        )

    def notify_sync_error(self, error: object) -> None:
        self._notify(_ERROR_TITLE, f"Sync failed: {error}")

    def notify_sync_skipped(self) -> None:
        self._notify(
            "B2Sync Info", "Sync skipped - another sync is already in progress"
        )

    def notify_sync_results(self, results: Iterable[SyncResult], threshold: int) -> None:
        """Report failures individually, or a summary once enough files synced."""
        total_files = 0
        has_errors = False
        has_skipped = False
        for result in results:
            if result.success:
                total_files += result.files_count
            elif result.error is not None and ALREADY_RUNNING in str(result.error):
                has_skipped = True
                self.notify_sync_skipped()
            else:
                has_errors = True
                self.notify_sync_error(result.error)

        if not has_errors and not has_skipped and total_files >= threshold:
            self._notify(
                "B2Sync Complete",
                f"Successfully synced {total_files} files to Backblaze B2",
            )

    def notify_startup(self) -> None:
        self._notify(
            "B2Sync Started", "B2Sync background service has started successfully"
        )

    def notify_shutdown(self) -> None:
        self._notify("B2Sync Stopped", "B2Sync background service has been stopped")