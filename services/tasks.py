# taskflow/services/tasks.py
from __future__ import annotations

from datetime import datetime, tzinfo
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Set

from core.errors import ImportFormatError
from core.log import get_logger
from core.settings import BACKUP
from datetime_utils import utc_now
from models.task import Task, TaskDraft, ensure_valid, new_id
from services import lifecycle, views
from storage.backup import ensure_daily_snapshot
from storage.task_store import TaskStore
from storage.transfer import deserialize_tasks, read_import_file, serialize_tasks, write_export_file


logger = get_logger(__name__)

Listener = Callable[[Optional[str]], None]


class TaskService:
    """Boundary between the UI and the lifecycle engine.

    Holds the in-memory collection loaded from ``store`` on construction.
    Every mutation runs the pure engine, saves the result and only then
    swaps it in, so a failed save leaves the collection unchanged.
    """

    EVENTS = ("after_create", "after_update", "after_delete", "after_import")

    def __init__(
        self,
        store: TaskStore,
        *,
        clock: Callable[[], datetime] = utc_now,
        id_factory: Callable[[], str] = new_id,
        tz: Optional[tzinfo] = None,
    ) -> None:
        self.store = store
        self.clock = clock
        self.id_factory = id_factory
        self.tz = tz
        self._listeners: Dict[str, Set[Listener]] = {event: set() for event in self.EVENTS}
        self._tasks: List[Task] = store.load()
        logger.info("TaskService ready with %d tasks", len(self._tasks))

    # ---------- events ----------
    def subscribe(self, event: str, callback: Listener) -> None:
        if event not in self._listeners:
            raise ValueError(f"Unsupported event: {event}")
        self._listeners[event].add(callback)

    def unsubscribe(self, event: str, callback: Listener) -> None:
        if event not in self._listeners:
            return
        self._listeners[event].discard(callback)

    def _emit(self, event: str, task_id: Optional[str]) -> None:
        for listener in list(self._listeners.get(event, [])):
            try:
                listener(task_id)
            except Exception:
                logger.exception("Listener for %s failed", event)

    def _commit(self, tasks: List[Task]) -> None:
        self.store.save(tasks)
        self._tasks = tasks

    # ---------- queries ----------
    @property
    def tasks(self) -> List[Task]:
        return list(self._tasks)

    def get(self, task_id: str) -> Optional[Task]:
        return lifecycle.find_task(self._tasks, task_id)

    def visible(self, status: "str | views.StatusFilter" = views.StatusFilter.ALL) -> List[Task]:
        return views.visible_tasks(self._tasks, status, now=self.clock())

    def analytics(self) -> views.Analytics:
        return views.analytics(self._tasks, now=self.clock(), tz=self.tz)

    # ---------- CRUD ----------
    def add(self, draft: TaskDraft) -> Task:
        ensure_valid(draft)
        tasks, task = lifecycle.create(self._tasks, draft, id_factory=self.id_factory, tz=self.tz)
        self._commit(tasks)
        logger.info("Task created: %s", task.id)
        self._emit("after_create", task.id)
        return task

    def update(self, task_id: str, **changes: Any) -> Optional[Task]:
        outcome = lifecycle.update_task(
            self._tasks, task_id, changes, now=self.clock(), id_factory=self.id_factory
        )
        return self._finish_update(task_id, outcome)

    def set_completed(self, task_id: str, completed: bool) -> Optional[Task]:
        return self.update(task_id, completed=completed)

    def set_subtask_completed(self, task_id: str, subtask_id: str, completed: bool) -> Optional[Task]:
        outcome = lifecycle.set_subtask_completed(
            self._tasks,
            task_id,
            subtask_id,
            completed,
            now=self.clock(),
            id_factory=self.id_factory,
        )
        return self._finish_update(task_id, outcome)

    def _finish_update(self, task_id: str, outcome: lifecycle.UpdateOutcome) -> Optional[Task]:
        if not outcome.found:
            logger.debug("Update skipped, task %s not found", task_id)
            return None
        self._commit(outcome.tasks)
        logger.debug("Task updated: %s", task_id)
        self._emit("after_update", task_id)
        if outcome.successor is not None:
            logger.info(
                "Recurring task %s completed; successor %s has %d repetitions left",
                task_id,
                outcome.successor.id,
                outcome.successor.recurrence.repetitions,
            )
            self._emit("after_create", outcome.successor.id)
        return outcome.task

    def delete(self, task_id: str) -> bool:
        if self.get(task_id) is None:
            logger.debug("Delete skipped, task %s not found", task_id)
            return False
        self._commit(lifecycle.delete(self._tasks, task_id))
        logger.info("Task deleted: %s", task_id)
        self._emit("after_delete", task_id)
        return True

    # ---------- export / import ----------
    def export_json(self) -> str:
        return serialize_tasks(self._tasks, indent=2)

    def export_to(self, target: str | Path | None = None) -> Path:
        path = write_export_file(self._tasks, target)
        logger.info("Exported %d tasks to %s", len(self._tasks), path)
        return path

    def import_json(self, payload: str) -> int:
        """Replace the whole collection with ``payload``; all or nothing."""

        try:
            tasks = deserialize_tasks(payload)
        except ImportFormatError as exc:
            logger.warning("Import rejected: %s", exc)
            raise
        return self._replace(tasks)

    def import_file(self, path: str | Path) -> int:
        try:
            tasks = read_import_file(path)
        except ImportFormatError as exc:
            logger.warning("Import of %s rejected: %s", path, exc)
            raise
        return self._replace(tasks)

    def _replace(self, tasks: List[Task]) -> int:
        self._commit(tasks)
        logger.info("Imported %d tasks", len(tasks))
        self._emit("after_import", None)
        return len(tasks)

    # ---------- maintenance ----------
    def backup_if_needed(self, backup_dir: Optional[Path] = None) -> Optional[Path]:
        if not BACKUP.enabled:
            return None
        created = ensure_daily_snapshot(
            self.store.snapshot(),
            backup_dir or BACKUP.directory,
            keep_days=BACKUP.keep_days,
        )
        if created is not None:
            logger.info("Snapshot written to %s", created)
        return created


__all__ = ["TaskService"]
