"""Process settings, read from the environment."""

import os
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Mapping, Optional

from .watchers.config_loader import DEFAULT_CONFIG_PATH


DEFAULT_DATA_DIR = Path("~/.local/share/frouter").expanduser()


@dataclass(frozen=True)
class Settings:
    """Where frouter keeps its files and how it paces routing.

    Attributes:
        config_path: YAML routing configuration (watched for live reloads)
        db_path: SQLite move log
        error_log_path: JSON-lines error log, or None to disable
        delay_seconds: Quiet period before an accumulated batch is flushed
        debounce_seconds: Window in which repeat notifications are dropped
        tick_seconds: Receive timeout of the router loop
    """
    config_path: Path = DEFAULT_CONFIG_PATH
    db_path: Path = DEFAULT_DATA_DIR / "frouter.db"
    error_log_path: Optional[Path] = DEFAULT_DATA_DIR / "error.log"
    delay_seconds: float = 10.0
    debounce_seconds: float = 10.0
    tick_seconds: float = 0.5

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "Settings":
        """Build settings from FROUTER_* environment variables."""
        env = os.environ if environ is None else environ
        settings = cls()

        if "FROUTER_CONFIG" in env:
            settings = replace(settings, config_path=_path(env["FROUTER_CONFIG"]))
        if "FROUTER_DB_PATH" in env:
            settings = replace(settings, db_path=_path(env["FROUTER_DB_PATH"]))
        if "FROUTER_ERROR_LOG" in env:
            value = env["FROUTER_ERROR_LOG"]
            settings = replace(settings, error_log_path=_path(value) if value else None)
        if "FROUTER_DELAY_SECONDS" in env:
            settings = replace(settings, delay_seconds=float(env["FROUTER_DELAY_SECONDS"]))
        if "FROUTER_DEBOUNCE_SECONDS" in env:
            settings = replace(settings, debounce_seconds=float(env["FROUTER_DEBOUNCE_SECONDS"]))
        if "FROUTER_TICK_SECONDS" in env:
            settings = replace(settings, tick_seconds=float(env["FROUTER_TICK_SECONDS"]))
        return settings

    def with_overrides(self, **overrides) -> "Settings":
        """Copy with every non-None override applied (used by CLI flags)."""
        changes = {k: v for k, v in overrides.items() if v is not None}
        for key in ("config_path", "db_path", "error_log_path"):
            if key in changes:
                changes[key] = _path(changes[key])
        return replace(self, **changes)


def _path(value: str | Path) -> Path:
    return Path(os.path.expandvars(str(value))).expanduser().absolute()
