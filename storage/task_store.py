"""Durable holder for the task collection: one JSON array under a fixed key."""
from __future__ import annotations

from typing import List, Optional, Sequence

from core.errors import ImportFormatError
from core.log import get_logger
from core.settings import STORAGE
from datetime_utils import utc_now
from models.task import Task
from storage.store import KeyValueStore
from storage.transfer import deserialize_tasks, serialize_tasks


logger = get_logger(__name__)


class TaskStore:
    """Load-on-start, write-through persistence for the collection."""

    def __init__(self, kv: Optional[KeyValueStore] = None, *, key: str = STORAGE.key):
        self.kv = kv or KeyValueStore()
        self.key = key

    def load(self) -> List[Task]:
        payload = self.kv.get(self.key)
        if payload is None:
            return []
        try:
            tasks = deserialize_tasks(payload)
        except ImportFormatError as exc:
            quarantine = f"{self.key}.corrupt-{utc_now().strftime('%Y%m%dT%H%M%S')}"
            logger.error("Stored tasks are unreadable (%s); moved to %s", exc, quarantine)
            self.kv.put(quarantine, payload)
            return []
        logger.debug("Loaded %d tasks from key %s", len(tasks), self.key)
        return tasks

    def save(self, tasks: Sequence[Task]) -> None:
        self.kv.put(self.key, serialize_tasks(tasks))
        logger.debug("Saved %d tasks under key %s", len(tasks), self.key)

    def snapshot(self) -> str:
        """Raw stored payload (an empty array when nothing was saved yet)."""
        return self.kv.get(self.key) or "[]"


__all__ = ["TaskStore"]
