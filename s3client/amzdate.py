"""Timestamp formatting for AWS Signature Version 4.

Timestamps are integer seconds since the Unix epoch, UTC, without
leap seconds.
"""
import time

from .errors import InvalidTimestamp

SECONDS_PER_DAY = 86400
MAX_YEAR = 9999

_DAYS_IN_MONTH = (31, 28, 31, 30, 31, 30, 31, 31, 30, 31, 30, 31)


def is_leap_year(year: int) -> bool:
    return year % 4 == 0 and (year % 100 != 0 or year % 400 == 0)


def current_timestamp() -> int:
    return int(time.time())


def validate_timestamp(timestamp) -> int:
    # bool is an int subclass but never a timestamp
    if isinstance(timestamp, bool) or not isinstance(timestamp, int):
        raise InvalidTimestamp(f"Timestamp must be an integer, got {timestamp!r}")
    if timestamp < 0:
        raise InvalidTimestamp(f"Timestamp must not be negative, got {timestamp}")
    return timestamp


def _civil_from_timestamp(timestamp: int) -> tuple:
    validate_timestamp(timestamp)
    days, day_seconds = divmod(timestamp, SECONDS_PER_DAY)

    year = 1970
    while True:
        days_in_year = 366 if is_leap_year(year) else 365
        if days < days_in_year:
            break
        days -= days_in_year
        year += 1
        if year > MAX_YEAR:
            raise InvalidTimestamp(f"Timestamp {timestamp} is beyond year {MAX_YEAR}")

    month = 1
    for length in _DAYS_IN_MONTH:
        if month == 2 and is_leap_year(year):
            length += 1
        if days < length:
            break
        days -= length
        month += 1

    hours, rest = divmod(day_seconds, 3600)
    minutes, seconds = divmod(rest, 60)
    return year, month, days + 1, hours, minutes, seconds


def format_amz_datetime(timestamp: int) -> str:
    """Format as ``YYYYMMDDTHHMMSSZ`` (the ``x-amz-date`` form)."""
    year, month, day, hours, minutes, seconds = _civil_from_timestamp(timestamp)
    return f"{year:04d}{month:02d}{day:02d}T{hours:02d}{minutes:02d}{seconds:02d}Z"


def format_amz_date(timestamp: int) -> str:
    """Format as ``YYYYMMDD`` (the credential scope date)."""
    return format_amz_datetime(timestamp)[:8]
