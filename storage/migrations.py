"""Upgrades for task records written by older versions of the app."""

from __future__ import annotations

from typing import Any, Dict, Iterable, List

from datetime_utils import to_iso, utc_now
from models.task import new_id


def ensure_subtasks(record: Dict[str, Any]) -> None:
    subtasks = record.get("subtasks")
    if not isinstance(subtasks, list):
        record["subtasks"] = []
        return
    upgraded = []
    for raw in subtasks:
        if isinstance(raw, str):
            raw = {"title": raw}
        if not isinstance(raw, dict):
            continue
        entry = dict(raw)
        if not entry.get("id"):
            entry["id"] = new_id()
        entry.setdefault("completed", False)
        upgraded.append(entry)
    record["subtasks"] = upgraded


def ensure_completion_fields(record: Dict[str, Any]) -> None:
    if record.get("completed") is None:
        record["completed"] = False
    completed = record["completed"]
    if not isinstance(completed, bool):
        return
    subtasks = record["subtasks"]
    if subtasks and all(isinstance(sub.get("completed"), bool) for sub in subtasks):
        completed = all(sub["completed"] for sub in subtasks)
        record["completed"] = completed
    # completedAt only travels with a completed task
    if not completed:
        record.pop("completedAt", None)
    elif not record.get("completedAt"):
        record["completedAt"] = to_iso(utc_now())


def ensure_recurrence_flag(record: Dict[str, Any]) -> None:
    if record.get("isRecurring") is None:
        record["isRecurring"] = False
    if record["isRecurring"] is False:
        for key in ("recurringInterval", "recurringIntervalUnit", "repetitions"):
            record.pop(key, None)


def drop_empty_optionals(record: Dict[str, Any]) -> None:
    for key in ("description", "imageUrl", "startTime", "dueDate", "completedAt"):
        if key in record and record[key] is None:
            del record[key]


def upgrade_record(raw: Dict[str, Any]) -> Dict[str, Any]:
    record = dict(raw)
    drop_empty_optionals(record)
    ensure_subtasks(record)
    ensure_completion_fields(record)
    ensure_recurrence_flag(record)
    return record


def run_all(records: Iterable[Dict[str, Any]]) -> List[Dict[str, Any]]:
    return [upgrade_record(record) for record in records]


__all__ = ["run_all", "upgrade_record"]
