# taskflow/storage/db.py
from pathlib import Path
from typing import Optional

from sqlalchemy.engine import Engine
from sqlmodel import Session, SQLModel, create_engine

from core.settings import DB_PATH

# Ensure SQLModel metadata is populated
import models.kv_record  # noqa: F401


_engine: Optional[Engine] = None


def create_db_engine(path: Path) -> Engine:
    path.parent.mkdir(parents=True, exist_ok=True)
    return create_engine(f"sqlite:///{path.as_posix()}", echo=False)


def init_db(engine: Optional[Engine] = None) -> Engine:
    actual_engine = engine or get_engine()
    SQLModel.metadata.create_all(actual_engine)
    return actual_engine


def get_engine() -> Engine:
    """Return (and lazily create) the engine for the application database."""

    global _engine
    if _engine is None:
        _engine = create_db_engine(DB_PATH)
    return _engine


def get_session() -> Session:
    return Session(get_engine())
