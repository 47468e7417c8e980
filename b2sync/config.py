"""Loading and saving the b2sync configuration file."""

from __future__ import annotations

import json
import re
from dataclasses import dataclass, field
from datetime import timedelta
from pathlib import Path
from typing import Any


class ConfigError(ValueError):
    """Raised when a configuration value or file cannot be read or written."""


_UNITS = {
    "ns": 1, "us": 10**3, "\u00b5s": 10**3, "\u03bcs": 10**3,
    "ms": 10**6, "s": 10**9, "m": 60 * 10**9, "h": 3600 * 10**9,
}
_COMPONENT = re.compile(r"(\d*)(?:\.(\d*))?([^\d.]*)")


def _ns_to_timedelta(ns: int) -> timedelta:
    micros = abs(ns) // 1000
    return timedelta(microseconds=-micros if ns < 0 else micros)


def parse_duration(text: str) -> timedelta:
    """Parse a duration such as "10m", "1h30m" or "1.5s"."""
    negative = text.startswith("-")
    rest = text[1:] if text[:1] in "-+" and text else text
    if rest == "0":
        return timedelta(0)
    if not rest:
        raise ConfigError(f'invalid duration "{text}"')
    total = 0
    pos = 0
    while pos < len(rest):
        match = _COMPONENT.match(rest, pos)
        whole, fraction, unit = match.groups()
        if not whole and not fraction:
            raise ConfigError(f'invalid duration "{text}"')
        if unit not in _UNITS:
            raise ConfigError(f'unknown unit "{unit}" in duration "{text}"')
        scale = _UNITS[unit]
        total += int(whole or "0") * scale
        if fraction:
            total += int(fraction) * scale // 10 ** len(fraction)
        if total >= (1 << 63) + negative:
            raise ConfigError(f'invalid duration "{text}"')
        pos = match.end()
    return _ns_to_timedelta(-total if negative else total)


def _fixed(value: int, digits: int) -> str:
    whole, frac = divmod(value, 10**digits)
    return f"{whole}" + (f".{frac:0{digits}d}".rstrip("0") if frac else "")


def format_duration(value: timedelta) -> str:
    """Render a duration in the compact "1h2m3.5s" form."""
    ns = (value // timedelta(microseconds=1)) * 1000
    if ns == 0:
        return "0s"
    sign = "-" if ns < 0 else ""
    ns = abs(ns)
    if ns < 10**6:
        return f"{sign}{_fixed(ns, 3)}\u00b5s"
    if ns < 10**9:
        return f"{sign}{_fixed(ns, 6)}ms"
    minutes, secs = divmod(ns, 60 * 10**9)
    hours, minutes = divmod(minutes, 60)
    prefix = f"{hours}h{minutes}m" if hours else (f"{minutes}m" if minutes else "")
    return f"{sign}{prefix}{_fixed(secs, 9)}s"


def _decode_duration(value: Any) -> timedelta:
    if isinstance(value, str):
        try:
            return parse_duration(value)
        except ConfigError:
            raise ConfigError(f"invalid duration format: {value}") from None
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ConfigError(f"invalid duration type: {type(value).__name__}")
    return _ns_to_timedelta(int(value))


def _default_log_dir() -> str:
    return str(Path.home() / "Library" / "Logs" / "b2sync")


def _field(data: dict, key: str, kind: type) -> Any:
    value = data.get(key)
    if value is None:
        return kind()
    if isinstance(value, bool) or not isinstance(value, kind):
        raise ConfigError(f"field {key!r} must be of type {kind.__name__}")
    return value


@dataclass(frozen=True)
class SyncPair:
    """A local directory and the B2 location it is mirrored to."""

    source: str
    destination: str


@dataclass
class Config:
    """Settings controlling what is synced, how often and where logs go."""

    sync_pairs: list[SyncPair] = field(default_factory=list)
    sync_frequency: timedelta = timedelta(0)
    notification_threshold: int = 0
    log_level: str = ""
    log_dir: str = ""
    keep_days: int = 0

    @classmethod
    def from_dict(cls, data: Any) -> Config:
        """Build a config from decoded JSON; absent fields take zero values."""
        if data is None:
            return cls()
        if not isinstance(data, dict):
            raise ConfigError("config must be a JSON object")
        raw_pairs = data.get("sync_pairs") or []
        if not isinstance(raw_pairs, list):
            raise ConfigError("field 'sync_pairs' must be a list")
        pairs = []
        for item in raw_pairs:
            item = item or {}
            if not isinstance(item, dict):
                raise ConfigError("each sync pair must be an object")
            pairs.append(SyncPair(_field(item, "source", str), _field(item, "destination", str)))
        return cls(
            sync_pairs=pairs,
            sync_frequency=(
                _decode_duration(data["sync_frequency"])
                if "sync_frequency" in data
                else timedelta(0)
            ),
            notification_threshold=_field(data, "notification_threshold", int),
            log_level=_field(data, "log_level", str),
            log_dir=_field(data, "log_dir", str),
            keep_days=_field(data, "keep_days", int),
        )

    def to_dict(self) -> dict[str, Any]:
        """Return the JSON-ready form of this config."""
        return {
            "sync_pairs": [
                {"source": p.source, "destination": p.destination} for p in self.sync_pairs
            ],
            "sync_frequency": format_duration(self.sync_frequency),
            "notification_threshold": self.notification_threshold,
            "log_level": self.log_level,
            "log_dir": self.log_dir,
            "keep_days": self.keep_days,
        }

    def save(self, path: str | Path) -> None:
        """Write the config as indented JSON, creating parent directories."""
        path = Path(path)
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise ConfigError(f"failed to create config directory: {exc}") from exc
        try:
            path.write_text(
                json.dumps(self.to_dict(), indent=2, ensure_ascii=False) + "\n",
                encoding="utf-8",
            )
        except OSError as exc:
            raise ConfigError(f"failed to create config file: {exc}") from exc


def config_path() -> Path:
    """Location of the user's config file."""
    return Path.home() / ".config" / "b2sync" / "config.json"


def default_config() -> Config:
    """The configuration used when no config file exists."""
    return Config(
        sync_pairs=[SyncPair(str(Path.home() / "Pictures"), "b2://your-bucket-name/Pictures")],
        sync_frequency=timedelta(minutes=10),
        notification_threshold=5,
        log_level="INFO",
        log_dir=_default_log_dir(),
        keep_days=30,
    )


def load_config(path: str | Path) -> Config:
    """Read the config at *path*, or return the defaults if it does not exist."""
    path = Path(path)
    if not path.exists():
        return default_config()
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise ConfigError(f"failed to open config file: {exc}") from exc
    try:
        data, _ = json.JSONDecoder().raw_decode(text.lstrip())
        config = Config.from_dict(data)
    except (json.JSONDecodeError, ConfigError) as exc:
        raise ConfigError(f"failed to decode config: {exc}") from exc
    if not config.log_dir:
        config.log_dir = _default_log_dir()
    return config