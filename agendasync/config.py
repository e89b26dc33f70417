"""Schedule configuration loading helpers."""

from __future__ import annotations

from pathlib import Path

import tomllib

from pydantic import BaseModel, ConfigDict, Field

CONFIG_FILE = Path.home() / ".config" / "agendasync" / "config.toml"

DEFAULT_IDLE_SECONDS = 300.0
DEFAULT_AGENDA_COOLDOWN_SECONDS = 86400.0


class ScheduleConfig(BaseModel):
    """Shape of the scheduler configuration file."""

    model_config = ConfigDict(frozen=True)

    enabled: bool = False
    idle_seconds: float = Field(default=DEFAULT_IDLE_SECONDS, ge=0)
    agenda_cooldown_seconds: float = Field(default=DEFAULT_AGENDA_COOLDOWN_SECONDS, ge=0)
    agenda_gating_enabled: bool = True
    watched_paths: tuple[str, ...] = ()

    def with_enabled(self, enabled: bool) -> ScheduleConfig:
        """Return a copy with the mode toggle updated."""

        return self.model_copy(update={"enabled": enabled})

    def with_watched_paths(self, *paths: str) -> ScheduleConfig:
        """Return a copy with extra watch-list entries appended (duplicates dropped)."""

        merged = list(self.watched_paths)
        for path in paths:
            if path not in merged:
                merged.append(path)
        return self.model_copy(update={"watched_paths": tuple(merged)})


def load_config() -> ScheduleConfig:
    """Load configuration from disk; fall back to defaults if missing."""

    try:
        data = _read_config_file()
    except FileNotFoundError:
        return ScheduleConfig()
    except (tomllib.TOMLDecodeError, OSError):
        return ScheduleConfig()
    return ScheduleConfig(**data)


def save_config(config: ScheduleConfig) -> None:
    """Persist configuration to disk."""

    CONFIG_FILE.parent.mkdir(parents=True, exist_ok=True)
    lines: list[str] = [
        f"enabled = {str(config.enabled).lower()}",
        f"idle_seconds = {config.idle_seconds:g}",
        f"agenda_cooldown_seconds = {config.agenda_cooldown_seconds:g}",
        f"agenda_gating_enabled = {str(config.agenda_gating_enabled).lower()}",
    ]
    if config.watched_paths:
        entries = ", ".join(_quote(path) for path in config.watched_paths)
        lines.append(f"watched_paths = [{entries}]")
    CONFIG_FILE.write_text("\n".join(lines) + "\n")


def _read_config_file() -> dict[str, object]:
    with CONFIG_FILE.open("rb") as handle:
        raw = tomllib.load(handle)
    data: dict[str, object] = {}
    for key in ("enabled", "agenda_gating_enabled"):
        value = raw.get(key)
        if isinstance(value, bool):
            data[key] = value
    for key in ("idle_seconds", "agenda_cooldown_seconds"):
        value = raw.get(key)
        # bool is an int subclass; reject it explicitly.
        if isinstance(value, (int, float)) and not isinstance(value, bool) and value >= 0:
            data[key] = float(value)
    paths = raw.get("watched_paths")
    if isinstance(paths, list):
        data["watched_paths"] = tuple(str(path) for path in paths if isinstance(path, str))
    return data


def _quote(value: str) -> str:
    escaped = value.replace("\\", "\\\\").replace('"', '\\"')
    return f'"{escaped}"'


__all__ = [
    "CONFIG_FILE",
    "DEFAULT_AGENDA_COOLDOWN_SECONDS",
    "DEFAULT_IDLE_SECONDS",
    "ScheduleConfig",
    "load_config",
    "save_config",
]
