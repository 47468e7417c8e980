import json

import pytest

from b2sync.cli import main
from b2sync.config import config_path


@pytest.fixture
def home(tmp_path, monkeypatch):
    home_dir = tmp_path / "home"
    home_dir.mkdir()
    monkeypatch.setenv("HOME", str(home_dir))
    return home_dir


def _write_config(home_dir, data):
    path = home_dir / ".config" / "b2sync" / "config.json"
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(data))
    return path


def _bin_dir(tmp_path, monkeypatch):
    bin_dir = tmp_path / "bin"
    bin_dir.mkdir()
    monkeypatch.setenv("PATH", str(bin_dir))
    return bin_dir


def _log_text(log_dir):
    return "".join(p.read_text() for p in sorted(log_dir.glob("b2sync-*.log")))


@pytest.mark.parametrize("flag", ["--help", "-help"])
def test_help_prints_usage(home, capsys, flag):
    assert main([flag]) == 0
    out = capsys.readouterr().out
    assert out.startswith("B2Sync - Automated Backblaze Backup Utility\n")
    assert f"  Config file: {config_path()}\n" in out
    assert str(home) in out


def test_bad_config_exits_with_error(home, capsys):
    _write_config(home, {}).write_text("{not json")
    assert main([]) == 1
    assert capsys.readouterr().out.startswith("Error loading config:")


def test_unknown_option_exits(home):
    with pytest.raises(SystemExit) as info:
        main(["--bogus"])
    assert info.value.code == 2


def test_missing_b2_exits_with_error(home, tmp_path, monkeypatch):
    _bin_dir(tmp_path, monkeypatch)
    log_dir = tmp_path / "logs"
    _write_config(home, {"sync_frequency": "1h", "log_dir": str(log_dir)})
    assert main([]) == 1
    text = _log_text(log_dir)
    assert "INFO: B2Sync started" in text
    assert "ERROR: B2 CLI not available: b2 CLI not found in PATH" in text


def test_runs_a_cycle_and_stops_on_sigterm(home, tmp_path, monkeypatch):
    bin_dir = _bin_dir(tmp_path, monkeypatch)
    script = bin_dir / "b2"
    script.write_text('#!/bin/sh\nkill -TERM $PPID\necho "upload photo.jpg"\n')
    script.chmod(0o755)

    source = tmp_path / "src"
    source.mkdir()
    log_dir = tmp_path / "logs"
    _write_config(
        home,
        {
            "sync_pairs": [{"source": str(source), "destination": "b2://bucket/photos"}],
            "sync_frequency": "1h",
            "notification_threshold": 1,
            "log_level": "debug",
            "log_dir": str(log_dir),
        },
    )

    assert main([]) == 0
    text = _log_text(log_dir)
    assert f"Sync completed: {source} -> b2://bucket/photos (1 files," in text
    assert "Received signal SIGTERM, shutting down" in text
    assert text.index("Sync cycle completed") < text.index("Received signal SIGTERM")
    assert not (home / ".config" / "b2sync" / "pids" / "b2sync.pid").exists()