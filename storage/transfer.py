# taskflow/storage/transfer.py
"""JSON snapshot of the task collection: persistence payload, export, import."""
from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Iterable, List, Optional, Sequence

from core.errors import ImportFormatError
from core.settings import STORAGE
from models.task import Task
from storage import migrations


def serialize_tasks(tasks: Iterable[Task], *, indent: Optional[int] = None) -> str:
    return json.dumps([task.to_dict() for task in tasks], ensure_ascii=False, indent=indent)


def _check_shape(data: Any) -> List[dict]:
    if not isinstance(data, list):
        raise ImportFormatError("Expected a JSON array of tasks.")
    for index, item in enumerate(data):
        if not isinstance(item, dict):
            raise ImportFormatError(f"Item {index} is not an object.")
        missing = [key for key in ("id", "title") if key not in item]
        if missing:
            raise ImportFormatError(f"Item {index} is missing {', '.join(missing)}.")
    return data


def _check_unique_ids(tasks: Sequence[Task]) -> None:
    seen = set()
    for task in tasks:
        for entity_id in (task.id, *(sub.id for sub in task.subtasks)):
            if entity_id in seen:
                raise ImportFormatError(f"Duplicate id {entity_id!r}.")
            seen.add(entity_id)


def deserialize_tasks(payload: str) -> List[Task]:
    """Parse a snapshot document into tasks.

    Only the minimal shape (a list of objects with ``id`` and ``title``) is
    required; older records are upgraded before conversion. Any problem
    raises :class:`ImportFormatError` and nothing is returned.
    """

    try:
        data = json.loads(payload)
    except (TypeError, json.JSONDecodeError) as exc:
        raise ImportFormatError(f"Invalid JSON: {exc}") from exc

    records = migrations.run_all(_check_shape(data))
    tasks: List[Task] = []
    for record in records:
        try:
            tasks.append(Task.from_dict(record))
        except (KeyError, TypeError, ValueError) as exc:
            raise ImportFormatError(str(exc)) from exc
    _check_unique_ids(tasks)
    return tasks


def read_import_file(path: str | Path) -> List[Task]:
    source = Path(path)
    try:
        payload = source.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        raise ImportFormatError(f"Cannot read {source.name}: {exc}") from exc
    return deserialize_tasks(payload)


def export_path(target: str | Path | None = None) -> Path:
    """Resolve the export destination; directories get the default file name."""

    if target is None:
        return Path.cwd() / STORAGE.export_filename
    path = Path(target).expanduser()
    if path.is_dir():
        return path / STORAGE.export_filename
    return path


def atomic_write_text(path: Path, text: str) -> None:
    """Write through a sibling ``.tmp`` file so readers never see a partial file."""

    path.parent.mkdir(parents=True, exist_ok=True)
    tmp = path.with_suffix(path.suffix + ".tmp")
    try:
        tmp.write_text(text, encoding="utf-8")
        tmp.replace(path)
    finally:
        if tmp.exists():
            try:
                tmp.unlink()
            except OSError:
                pass


def write_export_file(tasks: Iterable[Task], target: str | Path | None = None) -> Path:
    destination = export_path(target)
    atomic_write_text(destination, serialize_tasks(tasks, indent=2))
    return destination


__all__ = [
    "atomic_write_text",
    "deserialize_tasks",
    "export_path",
    "read_import_file",
    "serialize_tasks",
    "write_export_file",
]
