"""Running ``b2 sync`` for every configured pair, one cycle at a time."""

from __future__ import annotations

import os
import re
import shutil
import signal
import subprocess
import time
from dataclasses import dataclass
from datetime import timedelta
from pathlib import Path

from .config import Config, SyncPair, format_duration
from .logger import Logger

EXCLUDE_REGEX = (
    r"(.*\.DS_Store)|(.*\.Spotlight-V100)|(.*\.localized)"
    r"|(.*\.wd_tv/)|(.*node_modules/)|(.*\.venv/)"
)
PID_FILENAME = "b2sync.pid"
ALREADY_RUNNING = "sync already running"

_SUMMARY_PATTERNS = [
    re.compile(pattern, re.ASCII)
    for pattern in (
        r"(\d+) files? uploaded",
        r"uploaded (\d+) files?",
        r"(\d+) files? transferred",
        r"transferred (\d+) files?",
    )
]
_UPLOAD_LINE = re.compile(r"upload\s+\S+", re.ASCII)
_PID_TEXT = re.compile(r"[+-]?[0-9]+")
_MAX_INT = (1 << 63) - 1


class B2NotAvailableError(RuntimeError):
    """Raised when the ``b2`` command cannot be found on PATH."""


@dataclass
class SyncResult:
    """Outcome of syncing one pair, or of a cycle that could not start."""

    success: bool
    files_count: int = 0
    duration: timedelta = timedelta(0)
    error: Exception | None = None
    output: str = ""


def parse_files_count(output: str) -> int:
    """Count the files a ``b2 sync`` run reports as uploaded."""
    for pattern in _SUMMARY_PATTERNS:
        match = pattern.search(output)
        if match:
            count = int(match.group(1))
            if 0 < count <= _MAX_INT:
                return count
    return sum(1 for line in output.split("\n") if _UPLOAD_LINE.match(line.strip()))


def _default_pid_dir() -> Path:
    return Path.home() / ".config" / "b2sync" / "pids"


def _process_alive(pid: int) -> bool:
    if pid <= 0:
        return False
    try:
        os.kill(pid, 0)
    except (OSError, OverflowError):
        return False
    return True


def _describe_exit(returncode: int) -> str:
    if returncode >= 0:
        return f"exit status {returncode}"
    try:
        name = signal.Signals(-returncode).name
    except ValueError:
        name = str(-returncode)
    return f"signal: {name}"


class SyncManager:
    """Runs sync cycles, guarding against overlapping runs with a PID file."""

    def __init__(
        self,
        config: Config,
        logger: Logger,
        pid_dir: str | Path | None = None,
    ) -> None:
        self.config = config
        self.logger = logger
        self.pid_dir = Path(pid_dir) if pid_dir is not None else _default_pid_dir()
        try:
            self.pid_dir.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            logger.error(f"Failed to create PID directory: {exc}")

    @property
    def pid_file(self) -> Path:
        """Path of the file holding the PID of the running sync."""
        return self.pid_dir / PID_FILENAME

    def check_b2_available(self) -> None:
        """Raise B2NotAvailableError unless ``b2`` is on PATH."""
        if shutil.which("b2") is None:
            raise B2NotAvailableError("b2 CLI not found in PATH")

    def is_sync_running(self) -> bool:
        """Whether the PID file names a live process; stale files are removed."""
        try:
            data = self.pid_file.read_bytes()
        except FileNotFoundError:
            return False
        text = data.decode("utf-8", errors="replace").strip()
        if not _PID_TEXT.fullmatch(text) or not _process_alive(int(text)):
            self._remove_pid_file()
            return False
        return True

    def _create_pid_file(self) -> None:
        self.pid_file.write_text(str(os.getpid()), encoding="utf-8")

    def _remove_pid_file(self) -> None:
        try:
            self.pid_file.unlink()
        except OSError:
            pass

    def sync_all(self) -> list[SyncResult]:
        """Sync every configured pair and return one result per pair."""
        try:
            self.check_b2_available()
        except B2NotAvailableError as exc:
            self.logger.error(f"b2 CLI check failed: {exc}")
            return [SyncResult(success=False, error=exc)]

        try:
            running = self.is_sync_running()
        except OSError as exc:
            self.logger.warn(f"Failed to check if sync is running: {exc}")
            running = False
        if running:
            self.logger.info("Sync already running, skipping this cycle")
            return [SyncResult(success=False, error=RuntimeError(ALREADY_RUNNING))]

        try:
            self._create_pid_file()
        except OSError as exc:
            self.logger.error(f"Failed to create PID file: {exc}")
            return [SyncResult(success=False, error=exc)]

        try:
            results = []
            for pair in self.config.sync_pairs:
                result = self.sync_pair(pair)
                results.append(result)
                self._log_result(pair, result)
            return results
        finally:
            self._remove_pid_file()

    def _log_result(self, pair: SyncPair, result: SyncResult) -> None:
        route = f"{pair.source} -> {pair.destination}"
        if result.success:
            self.logger.info(
                f"Sync completed: {route} ({result.files_count} files, "
                f"{format_duration(result.duration)})"
            )
        elif result.output:
            self.logger.error(
                f"Sync failed: {route}: {result.error}\n"
                f"B2 output: {result.output.strip()}"
            )
        else:
            self.logger.error(f"Sync failed: {route}: {result.error}")

    def _command(self, pair: SyncPair) -> list[str]:
        args = ["b2", "sync"]
        if self.config.keep_days > 0:
            args += ["--keep-days", str(self.config.keep_days)]
        args += ["--exclude-regex", EXCLUDE_REGEX, pair.source, pair.destination]
        return args

    def sync_pair(self, pair: SyncPair) -> SyncResult:
        """Run ``b2 sync`` for one pair."""
        start = time.monotonic()

        def elapsed() -> timedelta:
            return timedelta(seconds=time.monotonic() - start)

        try:
            os.stat(pair.source)
        except FileNotFoundError:
            return SyncResult(
                success=False,
                duration=elapsed(),
                error=RuntimeError(f"source directory does not exist: {pair.source}"),
            )
        except OSError:
            pass

        try:
            proc = subprocess.run(
                self._command(pair),
                stdout=subprocess.PIPE,
                stderr=subprocess.STDOUT,
                check=False,
            )
        except OSError as exc:
            return SyncResult(
                success=False,
                duration=elapsed(),
                error=RuntimeError(f"b2 sync failed: {exc}"),
            )

        output = proc.stdout.decode("utf-8", errors="replace")
        if proc.returncode != 0:
            return SyncResult(
                success=False,
                duration=elapsed(),
                error=RuntimeError(f"b2 sync failed: {_describe_exit(proc.returncode)}"),
                output=output,
            )
        return SyncResult(
            success=True,
            files_count=parse_files_count(output),
            duration=elapsed(),
            output=output,
        )