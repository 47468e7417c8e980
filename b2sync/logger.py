"""Leveled logging to a daily log file."""

from __future__ import annotations

from datetime import datetime
from enum import IntEnum
from pathlib import Path
from typing import Callable, TextIO


class Level(IntEnum):
    """Severity of a log message."""

    DEBUG = 0
    INFO = 1
    WARN = 2
    ERROR = 3

    def __str__(self) -> str:
        return self.name


def parse_level(text: str) -> Level:
    """Map a level name (any case) to a Level, defaulting to INFO."""
    try:
        return Level[text.upper()]
    except KeyError:
        return Level.INFO


class Logger:
    """Appends timestamped messages to b2sync-<date>.log in a directory."""

    def __init__(
        self,
        log_dir: str | Path,
        level: Level = Level.INFO,
        clock: Callable[[], datetime] = datetime.now,
    ) -> None:
        self.log_dir = Path(log_dir)
        self.level = level
        self._clock = clock
        self.log_dir.mkdir(parents=True, exist_ok=True)
        self.filename = self._expected_filename()
        self._file: TextIO | None = self._open(self.filename)

    @property
    def path(self) -> Path:
        """Path of the file currently written to."""
        return self.log_dir / self.filename

    def _expected_filename(self) -> str:
        return f"b2sync-{self._clock():%Y-%m-%d}.log"

    def _open(self, filename: str) -> TextIO:
        return open(self.log_dir / filename, "a", encoding="utf-8")

    def _log(self, level: Level, msg: str) -> None:
        if level < self.level or self._file is None:
            return
        stamp = self._clock().strftime("%Y-%m-%d %H:%M:%S")
        self._file.write(f"[{stamp}] {level}: {msg}\n")
        self._file.flush()

    def debug(self, msg: str) -> None:
        self._log(Level.DEBUG, msg)

    def info(self, msg: str) -> None:
        self._log(Level.INFO, msg)

    def warn(self, msg: str) -> None:
        self._log(Level.WARN, msg)

    def error(self, msg: str) -> None:
        self._log(Level.ERROR, msg)

    def close(self) -> None:
        """Close the log file; later messages are dropped."""
        if self._file is not None:
            self._file.close()
            self._file = None

    def rotate_if_needed(self) -> None:
        """Switch to a new file when the date has changed."""
        expected = self._expected_filename()
        if expected == self.filename:
            return
        self.close()
        try:
            self._file = self._open(expected)
        except OSError as exc:
            raise OSError(f"failed to rotate log file: {exc}") from exc
        self.filename = expected
        self.info("Log file rotated")

    def __enter__(self) -> Logger:
        return self

    def __exit__(self, *args) -> None:
        self.close()