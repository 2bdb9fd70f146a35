"""Centralized application configuration."""
from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Optional
import os
import sys


DATA_DIR_ENV = "TASKFLOW_DATA_DIR"


def get_default_data_dir(
    app_name: str,
    *,
    platform: Optional[str] = None,
    env: Optional[Mapping[str, str]] = None,
    home: Optional[Path] = None,
) -> Path:
    """Return an OS-specific user data directory for ``app_name``.

    ``TASKFLOW_DATA_DIR`` in ``env`` wins over the platform default.
    """

    platform_id = (platform or sys.platform).lower()
    environ = dict(os.environ if env is None else env)
    override = (environ.get(DATA_DIR_ENV) or "").strip()
    if override:
        return Path(override).expanduser()

    home_dir = Path(home or Path.home())
    sanitized = app_name.strip() or "app"
    sanitized = sanitized.replace("/", "-").replace("\\", "-")

    if platform_id.startswith("win"):
        base = Path(environ.get("APPDATA") or home_dir / "AppData" / "Roaming")
    elif platform_id == "darwin":
        base = Path(environ.get("APPDATA") or home_dir / "Library" / "Application Support")
    else:
        base = Path(environ.get("XDG_DATA_HOME") or home_dir / ".local" / "share")

    return (base.expanduser() / sanitized)


APP_NAME = "TaskFlow"


DATA_DIR = get_default_data_dir(APP_NAME)
LOG_DIR = DATA_DIR / "logs"
BACKUP_DIR = DATA_DIR / "backups"

for _dir in (DATA_DIR, LOG_DIR, BACKUP_DIR):
    _dir.mkdir(parents=True, exist_ok=True)


DB_PATH = DATA_DIR / "taskflow.db"
CONFIG_PATH = DATA_DIR / "config.json"
LOG_PATH = LOG_DIR / "taskflow.log"


@dataclass(frozen=True)
class StorageSettings:
    key: str = "tasks"
    export_filename: str = "task-progress.json"


STORAGE = StorageSettings()


@dataclass(frozen=True)
class AnalyticsSettings:
    window_days: int = 7


ANALYTICS = AnalyticsSettings()


@dataclass(frozen=True)
class BackupSettings:
    enabled: bool = True
    directory: Path = BACKUP_DIR
    keep_days: int = 7


BACKUP = BackupSettings()


@dataclass(frozen=True)
class LoggingSettings:
    level: str = os.getenv("TASKFLOW_LOG_LEVEL", "INFO")
    path: Path = LOG_PATH
    max_bytes: int = 1_000_000
    backup_count: int = 3


LOGGING = LoggingSettings()


__all__ = [
    "APP_NAME",
    "DATA_DIR",
    "DATA_DIR_ENV",
    "LOG_DIR",
    "BACKUP_DIR",
    "DB_PATH",
    "CONFIG_PATH",
    "LOG_PATH",
    "STORAGE",
    "ANALYTICS",
    "BACKUP",
    "LOGGING",
    "get_default_data_dir",
]
