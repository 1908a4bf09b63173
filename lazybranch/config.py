"""Persistent JSON config helpers.

Holds the log-pane preferences and the optional periodic refresh interval.
All access is defensive: malformed or missing config falls back safely.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field, replace
from pathlib import Path

from loguru import logger
from platformdirs import user_config_dir

APP_NAME = "lazybranch"
CONFIG_FILENAME = "config.json"
CONFIG_PATH = Path(user_config_dir(APP_NAME, appauthor=False)) / CONFIG_FILENAME


@dataclass(frozen=True)
class BranchesConfig:
    open_log_in_floating: bool = False
    log_args: tuple[str, ...] = field(default_factory=tuple)
    refresh_seconds: float = 0.0

    def with_overrides(
        self,
        open_log_in_floating: bool | None = None,
        log_args: list[str] | None = None,
        refresh_seconds: float | None = None,
    ) -> BranchesConfig:
        """Return a copy with CLI-provided values replacing file values."""
        updated = self
        if open_log_in_floating is not None:
            updated = replace(updated, open_log_in_floating=open_log_in_floating)
        if log_args:
            updated = replace(updated, log_args=tuple(log_args))
        if refresh_seconds is not None:
            updated = replace(updated, refresh_seconds=max(0.0, float(refresh_seconds)))
        return updated


def load_config_data() -> dict[str, object]:
    """Load the persisted JSON config object.

    Returns an empty dict when the file is missing, unreadable, malformed, or
    does not decode to a top-level JSON object.
    """
    try:
        data = json.loads(CONFIG_PATH.read_text(encoding="utf-8"))
    except FileNotFoundError:
        return {}
    except Exception as exc:
        logger.warning("Ignoring unreadable config {}: {}", CONFIG_PATH, exc)
        return {}
    return data if isinstance(data, dict) else {}


def save_config_data(data: dict[str, object]) -> None:
    """Persist config data as pretty-printed JSON.

    Filesystem/serialization errors are logged and otherwise ignored.
    """
    try:
        CONFIG_PATH.parent.mkdir(parents=True, exist_ok=True)
        CONFIG_PATH.write_text(json.dumps(data, indent=2) + "\n", encoding="utf-8")
    except Exception as exc:
        logger.warning("Could not write config {}: {}", CONFIG_PATH, exc)


def _coerce_bool(value: object) -> bool:
    """Accept JSON booleans and ``"true"``/``"false"`` strings; anything else is ``False``."""
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        return value.strip().lower() == "true"
    return False


def _coerce_log_args(value: object) -> tuple[str, ...]:
    """Accept a list of strings or a single space-separated string."""
    if isinstance(value, str):
        return tuple(part for part in value.split(" ") if part)
    if isinstance(value, list):
        return tuple(item for item in value if isinstance(item, str) and item)
    return ()


def _coerce_refresh_seconds(value: object) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return 0.0
    return max(0.0, float(value))


def load_branches_config() -> BranchesConfig:
    data = load_config_data()
    return BranchesConfig(
        open_log_in_floating=_coerce_bool(data.get("open_log_in_floating")),
        log_args=_coerce_log_args(data.get("log_args")),
        refresh_seconds=_coerce_refresh_seconds(data.get("refresh_seconds")),
    )


def save_branches_config(config: BranchesConfig) -> None:
    data = load_config_data()
    data["open_log_in_floating"] = bool(config.open_log_in_floating)
    data["log_args"] = list(config.log_args)
    data["refresh_seconds"] = config.refresh_seconds
    save_config_data(data)
