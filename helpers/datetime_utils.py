"""Shared utilities for parsing and normalizing date/time input."""
from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, time, tzinfo
from typing import Optional

from datetime_utils import combine_local


@dataclass(frozen=True)
class ParsedDateTime:
    """Container for parsed date/time information."""

    date: Optional[date]
    time: Optional[time]

    def combine(self, tz: Optional[tzinfo] = None) -> Optional[datetime]:
        if self.date is None:
            return None
        return combine_local(self.date, self.time, tz)


def _parse_int(value: str) -> Optional[int]:
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def parse_date_input(value: str | None) -> Optional[date]:
    """Parse ISO ``YYYY-MM-DD`` or ``DD.MM.YYYY`` string into a ``date`` object."""

    if not value:
        return None
    text = value.strip()
    if not text:
        return None

    for fmt in ("%Y-%m-%d", "%d.%m.%Y"):
        try:
            return datetime.strptime(text, fmt).date()
        except ValueError:
            continue
    return None


def parse_time_input(value: str | None) -> Optional[time]:
    """Parse ``HH:MM`` (or ``HH.MM``) strings into a ``time``."""

    if not value:
        return None
    text = value.strip()
    if not text:
        return None

    for fmt in ("%H:%M", "%H.%M"):
        try:
            dt = datetime.strptime(text, fmt)
            return time(dt.hour, dt.minute)
        except ValueError:
            continue

    # short hhmm (e.g. 930 -> 09:30)
    if len(text) in {3, 4} and text.isdigit():
        hours = _parse_int(text[:-2])
        minutes = _parse_int(text[-2:])
        if hours is not None and minutes is not None and 0 <= hours <= 23 and 0 <= minutes <= 59:
            return time(hours, minutes)

    return None


def build_due_datetime(
    due: date | datetime | None,
    start_time: str | None,
    *,
    tz: Optional[tzinfo] = None,
) -> Optional[datetime]:
    """Combine a due day with an optional ``HH:MM`` start time.

    A ``datetime`` keeps its own clock time unless ``start_time`` overrides
    it; a plain ``date`` without a start time means local midnight. Naive
    values are read in ``tz`` (the machine zone by default). The result is
    in UTC.
    """

    if due is None:
        return None
    parsed_time = parse_time_input(start_time)
    if isinstance(due, datetime):
        clock = parsed_time or due.time()
        return combine_local(due.date(), clock, due.tzinfo or tz)
    return ParsedDateTime(date=due, time=parsed_time).combine(tz)


__all__ = [
    "ParsedDateTime",
    "build_due_datetime",
    "parse_date_input",
    "parse_time_input",
]
