from __future__ import annotations

from datetime import date, datetime, time, timedelta, timezone, tzinfo
from typing import List, Optional


UTC = timezone.utc


def utc_now() -> datetime:
    return datetime.now(UTC)


def ensure_utc(dt: Optional[datetime]) -> Optional[datetime]:
    if dt is None:
        return None
    if dt.tzinfo is None:
        return dt.replace(tzinfo=UTC)
    return dt.astimezone(UTC)


def local_tz() -> tzinfo:
    return datetime.now().astimezone().tzinfo or UTC


def local_day(dt: datetime, tz: Optional[tzinfo] = None) -> date:
    """Calendar day of ``dt`` in ``tz`` (the machine's zone by default)."""

    value = ensure_utc(dt)
    return value.astimezone(tz or local_tz()).date()


def trailing_days(today: date, count: int) -> List[date]:
    """``count`` consecutive days ending with ``today``, oldest first."""

    if count <= 0:
        return []
    start = today - timedelta(days=count - 1)
    return [start + timedelta(days=offset) for offset in range(count)]


def _normalize_fraction(s: str) -> str:
    """Pad or trim fractional seconds to 6 digits."""

    digits = s[:6]
    if len(digits) < 6:
        digits = digits + "0" * (6 - len(digits))
    return digits


def parse_iso(s: Optional[str]) -> Optional[datetime]:
    """Parse an ISO-8601 timestamp and return a timezone-aware UTC datetime.

    Accepts the ``Z`` suffix and 1-6 fractional digits (``toISOString``
    output has three). Date-only strings are read as UTC midnight.
    Returns ``None`` for empty or unparseable input.
    """

    if not s:
        return None

    value = s.strip()
    if not value:
        return None

    if value.endswith("Z") or value.endswith("z"):
        value = value[:-1] + "+00:00"

    if "." in value:
        head, tail = value.split(".", 1)
        tz_suffix = ""
        if "+" in tail:
            frac, rest = tail.split("+", 1)
            tz_suffix = "+" + rest
        elif "-" in tail:
            frac, rest = tail.split("-", 1)
            tz_suffix = "-" + rest
        else:
            frac = tail
        value = f"{head}.{_normalize_fraction(frac)}{tz_suffix}"
    try:
        dt = datetime.fromisoformat(value)
    except ValueError:
        return None

    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=UTC)
    else:
        dt = dt.astimezone(UTC)
    return dt


def to_iso(dt: Optional[datetime]) -> Optional[str]:
    """Serialize a datetime as ISO-8601 in UTC with a ``Z`` suffix.

    Microseconds are kept so that ``parse_iso(to_iso(dt)) == dt``.
    """

    if dt is None:
        return None
    value = ensure_utc(dt)
    return value.isoformat().replace("+00:00", "Z")


def combine_local(day: date, at: Optional[time] = None, tz: Optional[tzinfo] = None) -> datetime:
    """Local ``day`` at ``at`` (midnight when omitted), returned in UTC."""

    naive = datetime.combine(day, at or time(0, 0))
    return naive.replace(tzinfo=tz or local_tz()).astimezone(UTC)


__all__ = [
    "UTC",
    "combine_local",
    "ensure_utc",
    "local_day",
    "local_tz",
    "parse_iso",
    "to_iso",
    "trailing_days",
    "utc_now",
]
