"""Entities and ORM models exposed by the TaskFlow application."""
from .kv_record import KeyValueRecord
from .task import (
    Daily,
    IntervalUnit,
    Recurrence,
    Scheduled,
    Subtask,
    Task,
    TaskDraft,
    TaskType,
)

__all__ = [
    "Daily",
    "IntervalUnit",
    "KeyValueRecord",
    "Recurrence",
    "Scheduled",
    "Subtask",
    "Task",
    "TaskDraft",
    "TaskType",
]
