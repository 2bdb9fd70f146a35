# taskflow/services/views.py
"""Read-only projections of the task collection for display."""
from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, tzinfo
from enum import Enum
from typing import Iterable, List, Optional, Sequence, Tuple

from core.settings import ANALYTICS
from datetime_utils import UTC, ensure_utc, local_day, local_tz, trailing_days, utc_now
from models.task import Task


class StatusFilter(str, Enum):
    ALL = "all"
    ACTIVE = "active"
    COMPLETED = "completed"
    OVERDUE = "overdue"

    @classmethod
    def parse(cls, raw: "str | StatusFilter | None") -> "StatusFilter":
        """Accept filter names from the UI or saved preferences.

        ``incomplete`` is the older name of ``active``; unknown values fall
        back to ``all``.
        """
        if isinstance(raw, StatusFilter):
            return raw
        value = (raw or "").strip().lower()
        if value == "incomplete":
            return cls.ACTIVE
        try:
            return cls(value)
        except ValueError:
            return cls.ALL


_EPOCH = datetime(1970, 1, 1, tzinfo=UTC)


def is_overdue(task: Task, now: Optional[datetime] = None) -> bool:
    due = task.due_date
    if task.completed or due is None:
        return False
    return due < (ensure_utc(now) or utc_now())


def matches(task: Task, status: StatusFilter, now: datetime) -> bool:
    if status is StatusFilter.ACTIVE:
        return not task.completed
    if status is StatusFilter.COMPLETED:
        return task.completed
    if status is StatusFilter.OVERDUE:
        return is_overdue(task, now)
    return True


def filter_tasks(
    tasks: Iterable[Task],
    status: "str | StatusFilter" = StatusFilter.ALL,
    *,
    now: Optional[datetime] = None,
) -> List[Task]:
    selected = StatusFilter.parse(status)
    moment = ensure_utc(now) or utc_now()
    return [task for task in tasks if matches(task, selected, moment)]


def _sort_key(task: Task) -> Tuple[int, float]:
    due = task.due_date or _EPOCH
    return (1 if task.completed else 0, -due.timestamp())


def sort_tasks(tasks: Iterable[Task]) -> List[Task]:
    """Incomplete first, then latest due date first; ties keep insertion order."""
    return sorted(tasks, key=_sort_key)


def visible_tasks(
    tasks: Iterable[Task],
    status: "str | StatusFilter" = StatusFilter.ALL,
    *,
    now: Optional[datetime] = None,
) -> List[Task]:
    return sort_tasks(filter_tasks(tasks, status, now=now))


def progress(task: Task) -> float:
    """Share of completed subtasks in percent (0 or 100 without subtasks)."""
    if task.subtasks:
        done = sum(1 for sub in task.subtasks if sub.completed)
        return done / len(task.subtasks) * 100
    return 100.0 if task.completed else 0.0


def subtask_counts(task: Task) -> Tuple[int, int]:
    return sum(1 for sub in task.subtasks if sub.completed), len(task.subtasks)


# ---------- analytics ----------
@dataclass(frozen=True)
class DayBucket:
    day: date
    completed: int

    @property
    def label(self) -> str:
        return f"{self.day:%b} {self.day.day}"

    @property
    def short_label(self) -> str:
        return self.day.strftime("%a")


@dataclass(frozen=True)
class Analytics:
    days: Tuple[DayBucket, ...]
    total: int
    completed: int

    @property
    def completion_rate(self) -> float:
        if self.total == 0:
            return 0.0
        return round(self.completed / self.total * 100, 1)

    @property
    def completion_rate_display(self) -> str:
        return f"{self.completion_rate:.1f}%"

    @property
    def daily_counts(self) -> List[int]:
        return [bucket.completed for bucket in self.days]


def completions_by_day(
    tasks: Sequence[Task],
    *,
    today: date,
    window_days: int = ANALYTICS.window_days,
    tz: Optional[tzinfo] = None,
) -> Tuple[DayBucket, ...]:
    zone = tz or local_tz()
    days = trailing_days(today, window_days)
    counts = {day: 0 for day in days}
    for task in tasks:
        if not task.completed or task.completed_at is None:
            continue
        day = local_day(task.completed_at, zone)
        if day in counts:
            counts[day] += 1
    return tuple(DayBucket(day=day, completed=counts[day]) for day in days)


def analytics(
    tasks: Sequence[Task],
    *,
    now: Optional[datetime] = None,
    window_days: int = ANALYTICS.window_days,
    tz: Optional[tzinfo] = None,
) -> Analytics:
    zone = tz or local_tz()
    moment = ensure_utc(now) or utc_now()
    today = local_day(moment, zone)
    return Analytics(
        days=completions_by_day(tasks, today=today, window_days=window_days, tz=zone),
        total=len(tasks),
        completed=sum(1 for task in tasks if task.completed),
    )


__all__ = [
    "Analytics",
    "DayBucket",
    "StatusFilter",
    "analytics",
    "completions_by_day",
    "filter_tasks",
    "is_overdue",
    "matches",
    "progress",
    "sort_tasks",
    "subtask_counts",
    "visible_tasks",
]
