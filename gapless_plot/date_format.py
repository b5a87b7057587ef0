from __future__ import annotations

import datetime as dt
from typing import Protocol
from zoneinfo import ZoneInfo

DEFAULT_MONTH_CHARS = 3

_MONTH_NAMES = (
    "JANUARY",
    "FEBRUARY",
    "MARCH",
    "APRIL",
    "MAY",
    "JUNE",
    "JULY",
    "AUGUST",
    "SEPTEMBER",
    "OCTOBER",
    "NOVEMBER",
    "DECEMBER",
)


class DateLabelFormatter(Protocol):
    def format(self, timestamp_ms: int) -> str:
        ...

    def reset(self) -> None:
        ...


def resolve_timezone(tz: dt.tzinfo | str | None) -> dt.tzinfo:
    if tz is None:
        return dt.timezone.utc
    if isinstance(tz, str):
        if tz.upper() == "UTC":
            return dt.timezone.utc
        return ZoneInfo(tz)
    return tz


def to_datetime(timestamp_ms: int, tz: dt.tzinfo) -> dt.datetime:
    return dt.datetime.fromtimestamp(timestamp_ms / 1000.0, tz=tz)


class MinimalDateFormat:
    """Tick labels with as little month text as possible.

    Prints the abbreviated month on the first tick that falls in a new month and the
    bare day of month otherwise. The previously formatted date is instance state, so
    one instance serves one render pass at a time; call ``reset`` between passes.
    """

    def __init__(self, month_chars: int = DEFAULT_MONTH_CHARS, *, tz: dt.tzinfo | str | None = None) -> None:
        if month_chars < 1:
            raise ValueError(f"month characters must be at least 1 but {month_chars} was specified")
        self.month_chars = month_chars
        self.tz = resolve_timezone(tz)
        self._last_date: dt.date | None = None

    @property
    def last_date(self) -> dt.date | None:
        return self._last_date

    def reset(self) -> None:
        self._last_date = None

    def format(self, timestamp_ms: int) -> str:
        current = to_datetime(timestamp_ms, self.tz).date()
        last = self._last_date
        self._last_date = current
        if last is not None and (current.year, current.month) != (last.year, last.month):
            name = _MONTH_NAMES[current.month - 1]
            return name[:1].upper() + name[1 : self.month_chars].lower()
        return str(current.day)


class PatternDateFormat:
    """Stateless ``strftime`` formatter."""

    def __init__(self, pattern: str = "%Y-%m-%d", *, tz: dt.tzinfo | str | None = None) -> None:
        self.pattern = pattern
        self.tz = resolve_timezone(tz)

    def reset(self) -> None:
        return None

    def format(self, timestamp_ms: int) -> str:
        return to_datetime(timestamp_ms, self.tz).strftime(self.pattern)
