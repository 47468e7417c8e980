import shlex
import subprocess

import pytest

from b2sync.logger import Level, Logger
from b2sync.notifier import Notifier
from b2sync.syncer import SyncResult


@pytest.fixture
def logger(tmp_path):
    with Logger(tmp_path / "logs", Level.DEBUG) as log:
        yield log


def _install(tmp_path, monkeypatch, name, exit_code=0):
    bin_dir = tmp_path / "bin"
    bin_dir.mkdir(exist_ok=True)
    record = tmp_path / f"{name}.calls"
    quoted = shlex.quote(str(record))
    script = bin_dir / name
    script.write_text(
        "#!/bin/sh\n"
        f"for a in \"$@\"; do printf '%s\\n' \"$a\"; done >> {quoted}\n"
        f"printf '%s\\n' '--END--' >> {quoted}\n"
        f"exit {exit_code}\n"
    )
    script.chmod(0o755)
    monkeypatch.setenv("PATH", str(bin_dir))
    return record


def _calls(record):
    if not record.exists():
        return []
    chunks = record.read_text().split("--END--\n")
    return [chunk.splitlines() for chunk in chunks[:-1]]


def _messages(record):
    return [call[call.index("-message") + 1] for call in _calls(record)]


def test_startup_uses_terminal_notifier(tmp_path, monkeypatch, logger):
    record = _install(tmp_path, monkeypatch, "terminal-notifier")
    notifier = Notifier(logger)
    assert notifier.use_terminal_notifier is True
    notifier.notify_startup()
    assert _calls(record) == [
        [
            "-title",
            "B2Sync Started",
            "-message",
            "B2Sync background service has started successfully",
            "-sender",
            "com.apple.finder",
        ]
    ]


def test_falls_back_to_osascript(tmp_path, monkeypatch, logger):
    record = _install(tmp_path, monkeypatch, "osascript")
    notifier = Notifier(logger)
    notifier.send("Title", "Body")
    assert notifier.use_terminal_notifier is False
    assert _calls(record) == [["-e", 'display notification "Body" with title "Title"']]
    assert "falling back to osascript" in logger.path.read_text()


def test_shutdown_and_b2_missing_messages(tmp_path, monkeypatch, logger):
    record = _install(tmp_path, monkeypatch, "terminal-notifier")
    notifier = Notifier(logger)
    assert notifier.use_terminal_notifier is True
    notifier.notify_shutdown()
    notifier.notify_b2_not_installed()
    assert _messages(record) == [
        "B2Sync background service has been stopped",
        "Backblaze B2 CLI is not installed. Please install it first.",
    ]
    assert "Failed to send notification" not in logger.path.read_text()


def test_results_summary_at_threshold(tmp_path, monkeypatch, logger):
    record = _install(tmp_path, monkeypatch, "terminal-notifier")
    notifier = Notifier(logger)
    assert notifier.use_terminal_notifier is True
    notifier.notify_sync_results([SyncResult(success=True, files_count=4)], 4)
    assert _messages(record) == ["Successfully synced 4 files to Backblaze B2"]


def test_results_below_threshold_are_silent(tmp_path, monkeypatch, logger):
    record = _install(tmp_path, monkeypatch, "terminal-notifier")
    notifier = Notifier(logger)
    assert notifier.use_terminal_notifier is True
    notifier.notify_sync_results([SyncResult(success=True, files_count=1)], 5)
    assert _calls(record) == []


def test_results_report_errors_and_suppress_summary(tmp_path, monkeypatch, logger):
    record = _install(tmp_path, monkeypatch, "terminal-notifier")
    notifier = Notifier(logger)
    assert notifier.use_terminal_notifier is True
    results = [
        SyncResult(success=True, files_count=10),
        SyncResult(success=False, error=RuntimeError("boom")),
    ]
    notifier.notify_sync_results(results, 0)
    assert _messages(record) == ["Sync failed: boom"]


def test_results_report_skipped_sync(tmp_path, monkeypatch, logger):
    record = _install(tmp_path, monkeypatch, "terminal-notifier")
    notifier = Notifier(logger)
    assert notifier.use_terminal_notifier is True
    results = [SyncResult(success=False, error=RuntimeError("sync already running"))]
    notifier.notify_sync_results(results, 0)
    calls = _calls(record)
    assert len(calls) == 1
    assert calls[0][1] == "B2Sync Info"
    assert calls[0][3] == "Sync skipped - another sync is already in progress"


def test_send_raises_when_helper_fails(tmp_path, monkeypatch, logger):
    _install(tmp_path, monkeypatch, "terminal-notifier", exit_code=2)
    notifier = Notifier(logger)
    with pytest.raises(subprocess.CalledProcessError):
        notifier.send("Title", "Body")


def test_notify_logs_failure_instead_of_raising(tmp_path, monkeypatch, logger):
    _install(tmp_path, monkeypatch, "terminal-notifier", exit_code=2)
    notifier = Notifier(logger)
    notifier.notify_startup()
    assert "Failed to send notification via terminal-notifier" in logger.path.read_text()


def test_missing_helpers_are_logged(tmp_path, monkeypatch, logger):
    empty = tmp_path / "empty"
    empty.mkdir()
    monkeypatch.setenv("PATH", str(empty))
    notifier = Notifier(logger)
    notifier.notify_shutdown()
    assert "Failed to send notification via osascript" in logger.path.read_text()