# taskflow/models/kv_record.py
from datetime import datetime

from sqlmodel import Field, SQLModel

from datetime_utils import utc_now


class KeyValueRecord(SQLModel, table=True):
    """One JSON document stored under a fixed key."""

    __tablename__ = "keyvalue"

    key: str = Field(primary_key=True)
    value: str
    updated_at: datetime = Field(default_factory=utc_now)


__all__ = ["KeyValueRecord"]
