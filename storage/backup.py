"""Daily JSON snapshots of the task collection."""
from __future__ import annotations

from datetime import date, datetime, timedelta
from pathlib import Path
from typing import Iterator, Tuple

from core.log import get_logger
from core.settings import STORAGE


logger = get_logger(__name__)


def _dated_snapshots(backups: Path, prefix: str) -> Iterator[Tuple[Path, date]]:
    for file in backups.glob(f"{prefix}_*.json"):
        stamp = file.stem[len(prefix) + 1 :]
        try:
            yield file, date.fromisoformat(stamp)
        except ValueError:
            continue


def ensure_daily_snapshot(
    payload: str,
    backup_dir: str | Path,
    *,
    keep_days: int = 7,
    prefix: str = STORAGE.key,
) -> Path | None:
    """Write ``{prefix}_YYYY-MM-DD.json`` once per day and prune old ones.

    Snapshots dated before the last ``keep_days`` days are removed; a
    non-positive ``keep_days`` keeps everything. Returns the new file, or
    ``None`` when today's snapshot already exists.
    """

    backups = Path(backup_dir)
    backups.mkdir(parents=True, exist_ok=True)
    today = datetime.now().date()

    destination = backups / f"{prefix}_{today.isoformat()}.json"
    created = None
    if not destination.exists():
        destination.write_text(payload, encoding="utf-8")
        created = destination

    if keep_days > 0:
        oldest_kept = today - timedelta(days=keep_days - 1)
        for file, stamp in list(_dated_snapshots(backups, prefix)):
            if stamp >= oldest_kept:
                continue
            try:
                file.unlink()
            except OSError as exc:
                logger.warning("Could not remove old snapshot %s: %s", file, exc)
    return created


__all__ = ["ensure_daily_snapshot"]
