# taskflow/services/lifecycle.py
"""Pure reducers for the task collection.

Every function takes the current collection (an ordered list with unique
ids) and returns a new list; inputs are never mutated. ``update`` runs in a
fixed order:

1. apply the caller's changes (shallow merge),
2. derive ``completed``/``completed_at`` from the subtasks,
3. on a false -> true transition of a recurring task, decrement its
   repetitions and append a successor while repetitions remain.

Drafts are expected to be validated (``models.task.ensure_valid``) before
``create`` is called.
"""
from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import datetime, tzinfo
from typing import Any, Callable, List, Mapping, Optional, Sequence, Tuple

from datetime_utils import ensure_utc, utc_now
from helpers.datetime_utils import build_due_datetime
from models.task import (
    Daily,
    IntervalUnit,
    Recurrence,
    Schedule,
    Scheduled,
    Subtask,
    Task,
    TaskDraft,
    TaskType,
    new_id,
)


IdFactory = Callable[[], str]

UPDATABLE_FIELDS = frozenset(
    {"title", "description", "schedule", "image_url", "subtasks", "recurrence", "completed"}
)


@dataclass(frozen=True)
class UpdateOutcome:
    tasks: List[Task]
    task: Optional[Task] = None
    successor: Optional[Task] = None

    @property
    def found(self) -> bool:
        return self.task is not None


def find_task(tasks: Sequence[Task], task_id: str) -> Optional[Task]:
    for task in tasks:
        if task.id == task_id:
            return task
    return None


def _index_of(tasks: Sequence[Task], task_id: str) -> Optional[int]:
    for index, task in enumerate(tasks):
        if task.id == task_id:
            return index
    return None


# ---------- create ----------
def _schedule_from_draft(draft: TaskDraft, tz: Optional[tzinfo]) -> Schedule:
    if draft.type != TaskType.SCHEDULED.value:
        return Daily()
    due = build_due_datetime(draft.due_date, draft.start_time, tz=tz)
    return Scheduled(due_date=due, start_time=(draft.start_time or "").strip() or None)


def _recurrence_from_draft(draft: TaskDraft) -> Optional[Recurrence]:
    if not draft.is_recurring:
        return None
    return Recurrence(
        interval=int(draft.recurring_interval),
        unit=IntervalUnit(draft.recurring_interval_unit),
        repetitions=int(draft.repetitions),
    )


def build_task(
    draft: TaskDraft,
    *,
    id_factory: IdFactory = new_id,
    tz: Optional[tzinfo] = None,
) -> Task:
    subtasks = tuple(
        Subtask(id=id_factory(), title=title.strip())
        for title in draft.subtasks
        if title and title.strip()
    )
    return Task(
        id=id_factory(),
        title=draft.title.strip(),
        schedule=_schedule_from_draft(draft, tz),
        description=(draft.description or "").strip() or None,
        image_url=draft.image_url or None,
        completed=False,
        completed_at=None,
        subtasks=subtasks,
        recurrence=_recurrence_from_draft(draft),
    )


def create(
    tasks: Sequence[Task],
    draft: TaskDraft,
    *,
    id_factory: IdFactory = new_id,
    tz: Optional[tzinfo] = None,
) -> Tuple[List[Task], Task]:
    """Append a new task built from ``draft``; returns ``(tasks, task)``."""

    task = build_task(draft, id_factory=id_factory, tz=tz)
    return [*tasks, task], task


# ---------- update ----------
def apply_changes(task: Task, changes: Mapping[str, Any]) -> Task:
    """Shallow-merge the updatable fields of ``changes`` into ``task``.

    Setting ``completed`` on a task with subtasks, without sending new
    subtasks, marks every subtask with the same value.
    """

    fields = {key: value for key, value in changes.items() if key in UPDATABLE_FIELDS}
    if "subtasks" in fields:
        fields["subtasks"] = tuple(fields["subtasks"])
    if "completed" in fields:
        fields["completed"] = bool(fields["completed"])
        if "subtasks" not in fields and task.subtasks:
            fields["subtasks"] = tuple(
                replace(sub, completed=fields["completed"]) for sub in task.subtasks
            )
    return replace(task, **fields) if fields else task


def derive_completion(before: Task, after: Task, now: datetime) -> Task:
    completed = after.all_subtasks_completed if after.subtasks else after.completed
    if completed and not before.completed:
        completed_at = now
    elif not completed:
        completed_at = None
    else:
        completed_at = before.completed_at or now
    if completed == after.completed and completed_at == after.completed_at:
        return after
    return replace(after, completed=completed, completed_at=completed_at)


def make_successor(task: Task, *, id_factory: IdFactory = new_id) -> Task:
    return replace(
        task,
        id=id_factory(),
        completed=False,
        completed_at=None,
        subtasks=tuple(Subtask(id=id_factory(), title=sub.title) for sub in task.subtasks),
    )


def spawn_successor(
    before: Task,
    after: Task,
    *,
    id_factory: IdFactory = new_id,
) -> Tuple[Task, Optional[Task]]:
    """Edge-triggered recurrence step; returns ``(task, successor or None)``."""

    if before.completed or not after.completed:
        return after, None
    recurrence = before.recurrence
    # the same update may switch recurrence off
    if recurrence is None or after.recurrence is None or recurrence.repetitions <= 0:
        return after, None

    remaining = recurrence.repetitions - 1
    after = replace(after, recurrence=after.recurrence.with_repetitions(remaining))
    if remaining <= 0:
        return after, None
    return after, make_successor(after, id_factory=id_factory)


def update_task(
    tasks: Sequence[Task],
    task_id: str,
    changes: Mapping[str, Any],
    *,
    now: Optional[datetime] = None,
    id_factory: IdFactory = new_id,
) -> UpdateOutcome:
    index = _index_of(tasks, task_id)
    if index is None:
        return UpdateOutcome(tasks=list(tasks))

    moment = ensure_utc(now) or utc_now()
    before = tasks[index]
    merged = apply_changes(before, changes)
    derived = derive_completion(before, merged, moment)
    after, successor = spawn_successor(before, derived, id_factory=id_factory)

    result = list(tasks)
    result[index] = after
    if successor is not None:
        result.append(successor)
    return UpdateOutcome(tasks=result, task=after, successor=successor)


def update(
    tasks: Sequence[Task],
    task_id: str,
    changes: Mapping[str, Any],
    *,
    now: Optional[datetime] = None,
    id_factory: IdFactory = new_id,
) -> List[Task]:
    """Apply ``changes`` to the task with ``task_id``; unknown ids are a no-op."""

    return update_task(tasks, task_id, changes, now=now, id_factory=id_factory).tasks


def set_subtask_completed(
    tasks: Sequence[Task],
    task_id: str,
    subtask_id: str,
    completed: bool,
    *,
    now: Optional[datetime] = None,
    id_factory: IdFactory = new_id,
) -> UpdateOutcome:
    task = find_task(tasks, task_id)
    if task is None or not any(sub.id == subtask_id for sub in task.subtasks):
        return UpdateOutcome(tasks=list(tasks))
    subtasks = [
        replace(sub, completed=bool(completed)) if sub.id == subtask_id else sub
        for sub in task.subtasks
    ]
    return update_task(tasks, task_id, {"subtasks": subtasks}, now=now, id_factory=id_factory)


# ---------- delete ----------
def delete(tasks: Sequence[Task], task_id: str) -> List[Task]:
    """Remove the task (its subtasks go with it); unknown ids are a no-op."""

    return [task for task in tasks if task.id != task_id]


__all__ = [
    "UPDATABLE_FIELDS",
    "UpdateOutcome",
    "apply_changes",
    "build_task",
    "create",
    "delete",
    "derive_completion",
    "find_task",
    "make_successor",
    "set_subtask_completed",
    "spawn_successor",
    "update",
    "update_task",
]
