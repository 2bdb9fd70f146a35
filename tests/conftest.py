from __future__ import annotations

import itertools
import os
import sys
import tempfile
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parent.parent
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

# core.settings creates its directories on import; keep them out of $HOME.
os.environ.setdefault("TASKFLOW_DATA_DIR", tempfile.mkdtemp(prefix="taskflow-tests-"))

from sqlmodel import Session  # noqa: E402

from storage.db import create_db_engine, init_db  # noqa: E402
from storage.store import KeyValueStore  # noqa: E402
from storage.task_store import TaskStore  # noqa: E402


@pytest.fixture()
def ids():
    """Deterministic id factory: id-1, id-2, ..."""
    counter = itertools.count(1)
    return lambda: f"id-{next(counter)}"


@pytest.fixture()
def kv(tmp_path: Path) -> KeyValueStore:
    engine = init_db(create_db_engine(tmp_path / "taskflow.db"))
    return KeyValueStore(session_factory=lambda: Session(engine))


@pytest.fixture()
def task_store(kv: KeyValueStore) -> TaskStore:
    return TaskStore(kv)
