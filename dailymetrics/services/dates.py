"""
Date Keys
=========
Conversions between calendar dates and the ``YYYY-MM-DD`` keys used to
index tracked days. All keys are in the engine's local time zone.
"""

from __future__ import annotations

from datetime import date, datetime, timedelta, tzinfo
from typing import Iterator, Optional

DATE_KEY_FORMAT = "%Y-%m-%d"


def format_date_key(d: date) -> str:
    return d.strftime(DATE_KEY_FORMAT)


def parse_date_key(key: str) -> date:
    return datetime.strptime(key, DATE_KEY_FORMAT).date()


def local_now(now: Optional[datetime] = None, tz: Optional[tzinfo] = None) -> datetime:
    """Return *now* expressed in the engine's zone.

    Naive datetimes are taken as local wall-clock time and returned as is.
    With no *tz*, aware datetimes are converted to the system local zone.
    """
    if now is None:
        return datetime.now(tz) if tz is not None else datetime.now().astimezone()
    if now.tzinfo is None:
        return now
    return now.astimezone(tz) if tz is not None else now.astimezone()


def today_key(now: Optional[datetime] = None, tz: Optional[tzinfo] = None) -> str:
    """Date key for *now* (default: the current time) in the local zone."""
    return format_date_key(local_now(now, tz).date())


def weekday_for(date_key: str) -> int:
    """Weekday of *date_key*, 0 = Sunday … 6 = Saturday."""
    # date.weekday() is 0 = Monday
    return (parse_date_key(date_key).weekday() + 1) % 7


class DateKeyRange:
    """``n`` consecutive date keys ending at ``end_key``, ascending.

    Keys are produced lazily and the range can be iterated any number of
    times. ``end_key`` is parsed but not otherwise validated.
    """

    def __init__(self, n: int, end_key: str) -> None:
        if n < 1:
            raise ValueError(f"n must be >= 1, got {n}")
        self.n = n
        self.end_key = end_key

    def __len__(self) -> int:
        return self.n

    def __iter__(self) -> Iterator[str]:
        end = parse_date_key(self.end_key)
        for offset in range(self.n - 1, -1, -1):
            yield format_date_key(end - timedelta(days=offset))

    def __repr__(self) -> str:
        return f"DateKeyRange(n={self.n}, end_key={self.end_key!r})"


def last_n_dates(n: int, end_key: str) -> DateKeyRange:
    return DateKeyRange(n, end_key)
