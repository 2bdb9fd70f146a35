"""User preferences kept next to the database in ``config.json``."""
from __future__ import annotations

import json
from dataclasses import asdict, dataclass, fields
from pathlib import Path
from typing import Any, Dict, Optional

from core.log import get_logger
from core.settings import CONFIG_PATH
from storage.transfer import atomic_write_text


logger = get_logger(__name__)

STATUS_FILTERS = ("all", "active", "completed", "overdue")


@dataclass
class AppConfig:
    status_filter: str = "all"
    export_dir: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "AppConfig":
        status = str(data.get("status_filter") or "all").strip().lower()
        if status == "incomplete":
            status = "active"
        export_dir = data.get("export_dir")
        return cls(
            status_filter=status if status in STATUS_FILTERS else "all",
            export_dir=str(export_dir) if export_dir else None,
        )


_KNOWN_KEYS = frozenset(f.name for f in fields(AppConfig))


def load_config(path: Optional[Path] = None) -> AppConfig:
    """Read preferences; a missing or unreadable file yields the defaults."""

    target = path or CONFIG_PATH
    try:
        data = json.loads(target.read_text(encoding="utf-8"))
    except FileNotFoundError:
        return AppConfig()
    except (OSError, json.JSONDecodeError) as exc:
        logger.warning("Ignoring unreadable preferences %s: %s", target, exc)
        return AppConfig()
    return AppConfig.from_dict(data if isinstance(data, dict) else {})


def save_config(config: AppConfig, path: Optional[Path] = None) -> None:
    payload = json.dumps(asdict(config), ensure_ascii=False, indent=2, sort_keys=True)
    atomic_write_text(path or CONFIG_PATH, payload)


def update_config(path: Optional[Path] = None, **changes: Any) -> AppConfig:
    unknown = set(changes) - _KNOWN_KEYS
    if unknown:
        logger.warning("Ignoring unknown preferences: %s", ", ".join(sorted(unknown)))
    current = asdict(load_config(path))
    current.update({key: value for key, value in changes.items() if key in _KNOWN_KEYS})
    config = AppConfig.from_dict(current)
    save_config(config, path)
    return config


__all__ = ["AppConfig", "STATUS_FILTERS", "load_config", "save_config", "update_config"]
