"""Key-value store on top of the application SQLite database."""
from __future__ import annotations

from typing import Callable, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session

from core.errors import StoreError
from core.log import get_logger
from datetime_utils import utc_now
from models.kv_record import KeyValueRecord
from storage.db import get_session


logger = get_logger(__name__)


class KeyValueStore:
    """High level helper around the ``keyvalue`` table.

    Values are opaque strings; callers own the encoding. Backend failures
    surface as :class:`StoreError`.
    """

    def __init__(self, session_factory: Callable[[], Session] = get_session):
        self._session_factory = session_factory

    def get(self, key: str) -> Optional[str]:
        try:
            with self._session_factory() as session:
                row = session.get(KeyValueRecord, key)
                return row.value if row else None
        except SQLAlchemyError as exc:
            logger.error("Reading key %s failed: %s", key, exc)
            raise StoreError(f"Failed to read {key!r}") from exc

    def put(self, key: str, value: str) -> None:
        try:
            with self._session_factory() as session:
                row = session.get(KeyValueRecord, key)
                if row is None:
                    row = KeyValueRecord(key=key, value=value)
                else:
                    row.value = value
                    row.updated_at = utc_now()
                session.add(row)
                session.commit()
        except SQLAlchemyError as exc:
            logger.error("Writing key %s failed: %s", key, exc)
            raise StoreError(f"Failed to write {key!r}") from exc


__all__ = ["KeyValueStore"]
