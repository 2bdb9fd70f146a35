# taskflow/models/task.py
"""Task and subtask entities.

Entities are frozen; the lifecycle engine produces new instances with
``dataclasses.replace``. ``to_dict``/``from_dict`` convert to and from the
persisted record, which keeps the flat camelCase shape of the exported
``task-progress.json`` files (``type``/``dueDate`` for the schedule,
``isRecurring``/``recurringInterval``/``recurringIntervalUnit``/``repetitions``
for the recurrence).
"""
from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple, Union

from core.errors import ValidationError
from datetime_utils import ensure_utc, parse_iso, to_iso
from helpers.datetime_utils import parse_time_input


class TaskType(str, Enum):
    DAILY = "daily"
    SCHEDULED = "scheduled"


class IntervalUnit(str, Enum):
    MINUTES = "minutes"
    HOURS = "hours"
    DAYS = "days"


def new_id() -> str:
    return str(uuid.uuid4())


@dataclass(frozen=True)
class Subtask:
    id: str
    title: str
    completed: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {"id": self.id, "title": self.title, "completed": self.completed}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Subtask":
        sub_id = _required_text(data, "id", "Subtask")
        owner = f"Subtask {sub_id}"
        return cls(
            id=sub_id,
            title=_required_text(data, "title", owner),
            completed=_flag(data, "completed", owner),
        )


@dataclass(frozen=True)
class Daily:
    """Repeats every day; carries no due date."""

    @property
    def type(self) -> TaskType:
        return TaskType.DAILY

    @property
    def due_date(self) -> None:
        return None


@dataclass(frozen=True)
class Scheduled:
    due_date: datetime
    start_time: Optional[str] = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "due_date", ensure_utc(self.due_date))

    @property
    def type(self) -> TaskType:
        return TaskType.SCHEDULED


Schedule = Union[Daily, Scheduled]


@dataclass(frozen=True)
class Recurrence:
    """Repeat configuration.

    ``interval``/``unit`` describe the cadence for display only; a successor
    is spawned when the task is completed, never on a timer.
    """

    interval: int
    unit: IntervalUnit
    repetitions: int

    def with_repetitions(self, repetitions: int) -> "Recurrence":
        return Recurrence(interval=self.interval, unit=self.unit, repetitions=repetitions)


@dataclass(frozen=True)
class Task:
    id: str
    title: str
    schedule: Schedule = field(default_factory=Daily)
    description: Optional[str] = None
    image_url: Optional[str] = None
    completed: bool = False
    completed_at: Optional[datetime] = None
    subtasks: Tuple[Subtask, ...] = ()
    recurrence: Optional[Recurrence] = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "completed_at", ensure_utc(self.completed_at))
        object.__setattr__(self, "subtasks", tuple(self.subtasks))

    @property
    def type(self) -> TaskType:
        return self.schedule.type

    @property
    def due_date(self) -> Optional[datetime]:
        return self.schedule.due_date

    @property
    def is_recurring(self) -> bool:
        return self.recurrence is not None

    @property
    def all_subtasks_completed(self) -> bool:
        return all(sub.completed for sub in self.subtasks)

    # ----- persistence record -----
    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"id": self.id, "title": self.title}
        if self.description is not None:
            data["description"] = self.description
        data["type"] = self.type.value
        if isinstance(self.schedule, Scheduled):
            data["dueDate"] = to_iso(self.schedule.due_date)
            if self.schedule.start_time is not None:
                data["startTime"] = self.schedule.start_time
        if self.image_url is not None:
            data["imageUrl"] = self.image_url
        data["completed"] = self.completed
        if self.completed_at is not None:
            data["completedAt"] = to_iso(self.completed_at)
        data["subtasks"] = [sub.to_dict() for sub in self.subtasks]
        data["isRecurring"] = self.is_recurring
        if self.recurrence is not None:
            data["recurringInterval"] = self.recurrence.interval
            data["recurringIntervalUnit"] = self.recurrence.unit.value
            data["repetitions"] = self.recurrence.repetitions
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Task":
        """Build a task from a persisted record.

        Raises ``ValueError`` with a message naming the task when a field
        cannot be interpreted.
        """

        task_id = _required_text(data, "id", "Task")
        owner = f"Task {task_id}"
        return cls(
            id=task_id,
            title=_required_text(data, "title", owner),
            schedule=_schedule_from_record(task_id, data),
            description=data.get("description"),
            image_url=data.get("imageUrl"),
            completed=_flag(data, "completed", owner),
            completed_at=_timestamp(task_id, data, "completedAt"),
            subtasks=tuple(Subtask.from_dict(raw) for raw in data.get("subtasks") or []),
            recurrence=_recurrence_from_record(task_id, data),
        )


def _required_text(data: Dict[str, Any], key: str, owner: str) -> str:
    value = data.get(key)
    if not isinstance(value, str) or not value.strip():
        raise ValueError(f"{owner}: {key} must be non-empty text, got {value!r}")
    return value


def _flag(data: Dict[str, Any], key: str, owner: str) -> bool:
    value = data.get(key, False)
    if not isinstance(value, bool):
        raise ValueError(f"{owner}: {key} must be true or false, got {value!r}")
    return value


def _timestamp(task_id: str, data: Dict[str, Any], key: str) -> Optional[datetime]:
    raw = data.get(key)
    if raw in (None, ""):
        return None
    parsed = parse_iso(str(raw))
    if parsed is None:
        raise ValueError(f"Task {task_id}: {key} is not an ISO-8601 timestamp: {raw!r}")
    return parsed


def _schedule_from_record(task_id: str, data: Dict[str, Any]) -> Schedule:
    raw_type = data.get("type") or TaskType.DAILY.value
    try:
        task_type = TaskType(raw_type)
    except ValueError:
        raise ValueError(f"Task {task_id}: unknown type {raw_type!r}") from None
    if task_type is TaskType.DAILY:
        return Daily()
    due = _timestamp(task_id, data, "dueDate")
    if due is None:
        raise ValueError(f"Task {task_id}: scheduled task has no dueDate")
    return Scheduled(due_date=due, start_time=data.get("startTime"))


def _recurrence_from_record(task_id: str, data: Dict[str, Any]) -> Optional[Recurrence]:
    if not _flag(data, "isRecurring", f"Task {task_id}"):
        return None
    missing = [
        key
        for key in ("recurringInterval", "recurringIntervalUnit", "repetitions")
        if data.get(key) is None
    ]
    if missing:
        raise ValueError(f"Task {task_id}: recurring task lacks {', '.join(missing)}")
    try:
        return Recurrence(
            interval=int(data["recurringInterval"]),
            unit=IntervalUnit(data["recurringIntervalUnit"]),
            repetitions=int(data["repetitions"]),
        )
    except (TypeError, ValueError):
        raise ValueError(f"Task {task_id}: invalid recurrence settings") from None


@dataclass
class TaskDraft:
    """User input for a new task, before ids and completion state exist."""

    title: str
    type: str = TaskType.DAILY.value
    description: Optional[str] = None
    due_date: Optional[Union[date, datetime]] = None
    start_time: Optional[str] = None
    image_url: Optional[str] = None
    subtasks: List[str] = field(default_factory=list)
    is_recurring: bool = False
    recurring_interval: Optional[int] = None
    recurring_interval_unit: Optional[str] = None
    repetitions: Optional[int] = None

    def add_subtask(self, title: str) -> bool:
        cleaned = (title or "").strip()
        if not cleaned:
            return False
        self.subtasks.append(cleaned)
        return True

    def remove_subtask(self, index: int) -> None:
        if 0 <= index < len(self.subtasks):
            del self.subtasks[index]


REQUIRED = "Required"


def _positive_int(value: Any) -> Optional[int]:
    if value is None or isinstance(value, bool):
        return None
    try:
        number = int(value)
    except (TypeError, ValueError):
        return None
    return number if number > 0 else None


def validate_draft(draft: TaskDraft) -> Dict[str, str]:
    """Return field-level error messages; an empty dict means valid."""

    errors: Dict[str, str] = {}
    if not (draft.title or "").strip():
        errors["title"] = "Title is required."

    if draft.type not in {t.value for t in TaskType}:
        errors["type"] = "Task type is required."
    elif draft.type == TaskType.SCHEDULED.value:
        if draft.due_date is None:
            errors["due_date"] = "Due date is required for scheduled tasks."
        if draft.start_time and parse_time_input(draft.start_time) is None:
            errors["start_time"] = "Use HH:MM."

    if draft.is_recurring:
        if draft.recurring_interval is None:
            errors["recurring_interval"] = REQUIRED
        elif _positive_int(draft.recurring_interval) is None:
            errors["recurring_interval"] = "Must be a positive number."
        if not draft.recurring_interval_unit:
            errors["recurring_interval_unit"] = REQUIRED
        elif draft.recurring_interval_unit not in {u.value for u in IntervalUnit}:
            errors["recurring_interval_unit"] = "Choose minutes, hours or days."
        if draft.repetitions is None:
            errors["repetitions"] = REQUIRED
        elif _positive_int(draft.repetitions) is None:
            errors["repetitions"] = "Must be a positive number."
    return errors


def ensure_valid(draft: TaskDraft) -> TaskDraft:
    """Raise ``ValidationError`` unless ``draft`` may be handed to the engine."""

    errors = validate_draft(draft)
    if errors:
        raise ValidationError(errors)
    return draft


__all__ = [
    "Daily",
    "IntervalUnit",
    "Recurrence",
    "Schedule",
    "Scheduled",
    "Subtask",
    "Task",
    "TaskDraft",
    "TaskType",
    "ensure_valid",
    "new_id",
    "validate_draft",
]
