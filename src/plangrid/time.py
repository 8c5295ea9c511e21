# SPDX-License-Identifier: MIT

import datetime
from typing import Any, Optional, cast

import pendulum

MINUTES_PER_DAY = 1440
MILLISECONDS_PER_MINUTE = 60 * 1000


def to_pendulum(value: Any, tz: str = "local") -> Optional[pendulum.DateTime]:
    """
    Coerce an incoming timestamp into a pendulum.DateTime.

    Accepts pendulum and python datetimes (naive values are read in `tz`),
    ISO strings and epoch milliseconds. Returns None for anything else,
    including strings pendulum cannot parse and out-of-range epoch values.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, pendulum.DateTime):
        return value
    if isinstance(value, datetime.datetime):
        return pendulum.instance(value, tz=tz)
    if isinstance(value, datetime.date):
        return pendulum.datetime(value.year, value.month, value.day, tz=tz)
    if isinstance(value, int | float):
        try:
            return pendulum.from_timestamp(value / 1000, tz="UTC")
        except (ValueError, OverflowError, OSError):
            return None
    if isinstance(value, str):
        try:
            parsed = pendulum.parse(value, tz=tz)
        except ValueError:
            return None
        if isinstance(parsed, pendulum.DateTime):
            return parsed
        if isinstance(parsed, pendulum.Date):
            return pendulum.datetime(parsed.year, parsed.month, parsed.day, tz=tz)
    return None


def to_epoch_ms(datetime: pendulum.DateTime) -> int:
    return int(datetime.timestamp() * 1000)


def from_epoch_ms(epoch_ms: int, tz: str = "local") -> pendulum.DateTime:
    return pendulum.from_timestamp(epoch_ms / 1000, tz="UTC").in_tz(tz)


def date_key(datetime: pendulum.DateTime, tz: str = "local") -> str:
    """Calendar day of `datetime` in `tz`, formatted 'YYYY-MM-DD'."""
    return datetime.in_tz(tz).format("YYYY-MM-DD")


def date_key_from_epoch_ms(epoch_ms: int, tz: str = "local") -> str:
    return date_key(from_epoch_ms(epoch_ms, tz), tz)


def month_key(day_key: str) -> str:
    return day_key[:7]


def year_key(day_key: str) -> str:
    return day_key[:4]


def hour_of_day(epoch_ms: int, tz: str = "local") -> int:
    return from_epoch_ms(epoch_ms, tz).hour


def day_key_of(value: Any, tz: str = "local") -> Optional[str]:
    """
    Resolve a query day argument (date, datetime or string) to a day key.

    Plain dates and 'YYYY-MM-DD' strings are taken as calendar days without
    any time zone shift.
    """
    if isinstance(value, datetime.datetime):
        return date_key(cast(pendulum.DateTime, to_pendulum(value, tz)), tz)
    if isinstance(value, datetime.date):
        return value.isoformat()
    datetime_value = to_pendulum(value, tz)
    if datetime_value is None:
        return None
    return date_key(datetime_value, tz)


def iterate_day_keys(start_key: str, end_key: str) -> list[str]:
    """All day keys from start_key to end_key inclusive; empty if reversed."""
    start = datetime.date.fromisoformat(start_key)
    end = datetime.date.fromisoformat(end_key)
    keys: list[str] = []
    current = start
    while current <= end:
        keys.append(current.isoformat())
        current += datetime.timedelta(days=1)
    return keys


def epoch_ms_to_display_str(epoch_ms: int, tz: str = "local") -> str:
    return from_epoch_ms(epoch_ms, tz).format("YYYY-MM-DD HH:mm")
