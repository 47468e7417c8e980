# b2sync

b2sync is a small background service. It keeps local folders backed up to
Backblaze B2 by running `b2 sync` on a fixed schedule. It sends a macOS
desktop notification in these cases:

- when it starts
- when it stops
- when a sync fails or is skipped
- when enough files have been uploaded in one cycle

## Requirements

- The Backblaze `b2` command-line tool on your `PATH`, already authorised
  for your account. b2sync does not log in to B2 for you.
- macOS notifications. If `terminal-notifier` is on `PATH`, b2sync uses it.
  Otherwise it uses `osascript`.

## Installation

```
pip install .
```

To run the tests:

```
pip install ".[test]"
pytest
```

## Usage

```
b2sync
b2sync --help
```

`--help` (or `-help`) prints a short usage text and the path of the config
file, then exits.

Without options, b2sync does the following:

1. It loads the configuration and opens the log file.
2. It checks that `b2` is on `PATH`. If `b2` is missing, it logs an error,
   sends a "B2 CLI is not installed" notification and exits with status 1.
3. It sends a startup notification.
4. It runs one sync cycle straight away.
5. It then runs another cycle every `sync_frequency`, until it receives
   SIGINT or SIGTERM.
6. On SIGINT or SIGTERM it logs the signal, sends a shutdown notification
   and exits with status 0.

It also exits with status 1 in these cases:

- The config file cannot be read or decoded. The message
  `Error loading config: ...` is printed.
- The log directory or log file cannot be opened. The message
  `Error initializing logger: ...` is printed.
- `sync_frequency` is zero or negative.

### What happens in a sync cycle

Each cycle does these steps in order:

1. If the date has changed, b2sync switches to a new log file.
2. It checks again that `b2` is on `PATH`.
3. It makes sure that no other sync is in progress. A PID file,
   `~/.config/b2sync/pids/b2sync.pid`, marks a sync in progress. If that
   file names a live process, the cycle is skipped. If the file is stale or
   cannot be read as a PID, it is removed.
4. For each sync pair in turn, it runs this command and captures the
   combined output:
   `b2 sync [--keep-days N] --exclude-regex <pattern> <source> <destination>`

The exclude pattern skips these paths:

- `.DS_Store`
- `.Spotlight-V100`
- `.localized`
- `.wd_tv/`
- `node_modules/`
- `.venv/`

If a source directory does not exist, that pair fails and `b2` is not run
for it.

The number of uploaded files is read from the `b2` output. b2sync first
looks for a summary such as `12 files uploaded` or `transferred 3 files`.
If there is none, it counts the lines that begin with `upload`.

### Notifications

These notifications are sent after each cycle:

- Each failed pair gets its own "Sync failed" notification.
- A cycle skipped because another sync is running gets a "Sync skipped"
  notification.
- If nothing failed and nothing was skipped, a "B2Sync Complete"
  notification is sent once the total number of uploaded files reaches
  `notification_threshold`.

## Configuration

The configuration is read from `~/.config/b2sync/config.json`. If that file
does not exist, these defaults are used:

- one pair: `~/Pictures` to `b2://your-bucket-name/Pictures`
- a frequency of 10 minutes
- a threshold of 5
- level `INFO`
- logs in `~/Library/Logs/b2sync`
- `keep_days` of 30

If the file exists, any field it leaves out gets a zero value. The one
exception is `log_dir`, which falls back to `~/Library/Logs/b2sync`.

Here is an example config file:

```json
{
  "sync_pairs": [
    {"source": "/Users/me/Pictures", "destination": "b2://your-bucket-name/Pictures"}
  ],
  "sync_frequency": "10m",
  "notification_threshold": 5,
  "log_level": "INFO",
  "log_dir": "/Users/me/Library/Logs/b2sync",
  "keep_days": 30
}
```

- `sync_frequency`: a duration string made of number and unit parts, such
  as `30s`, `5m`, `1h30m` or `1.5s`. The units are `ns`, `us`, `ms`, `s`,
  `m` and `h`. A bare JSON number is read as nanoseconds.
- `notification_threshold`: the smallest number of uploaded files in one
  cycle that triggers a "sync complete" notification.
- `log_level`: `DEBUG`, `INFO`, `WARN` or `ERROR`, in any case. Any other
  value means `INFO`.
- `keep_days`: passed to `b2 sync --keep-days` when it is greater than zero.

Logs are written to `log_dir`, one file per day, named
`b2sync-YYYY-MM-DD.log`. Each line has this form:

```
[YYYY-MM-DD HH:MM:SS] LEVEL: message
```

## Using it as a library

```python
from b2sync.config import load_config, config_path
from b2sync.logger import Logger, parse_level
from b2sync.syncer import SyncManager
from b2sync.notifier import Notifier

cfg = load_config(config_path())
with Logger(cfg.log_dir, parse_level(cfg.log_level)) as log:
    results = SyncManager(cfg, log).sync_all()
    Notifier(log).notify_sync_results(results, cfg.notification_threshold)
```

The modules are:

- `b2sync.config`:
  - `Config`, with `from_dict`, `to_dict` and `save`
  - `SyncPair`
  - `load_config`, `default_config` and `config_path`
  - `parse_duration` and `format_duration`
  - `ConfigError`
- `b2sync.logger`: `Logger` and `Level`. `Logger` takes an optional `clock`
  callable. `parse_level` turns a level name into a `Level`.
- `b2sync.syncer`:
  - `SyncManager`. It takes an optional `pid_dir`. Its methods are
    `check_b2_available`, `is_sync_running`, `sync_all` and `sync_pair`.
  - `SyncResult`
  - `parse_files_count`
  - `B2NotAvailableError`
- `b2sync.notifier`: `Notifier`. `Notifier.send` raises if the notification
  helper fails. The `notify_*` methods log such failures and carry on.
- `b2sync.cli`: `main`, the entry point of the `b2sync` command.

## What it does not do

- It does not write a config file for you. `Config.save` can write one.
- It does not install itself as a login item or launch agent.
- It does not detach from the terminal. Run it under a service manager if
  you want it in the background.