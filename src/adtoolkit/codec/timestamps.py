"""
ADToolkit Timestamp Interpreter

Active Directory stores times such as accountExpires, pwdLastSet and
lastLogonTimestamp as FILETIME: a signed 64-bit count of 100-nanosecond
intervals since 1601-01-01 00:00 UTC.

Two raw values are sentinels rather than instants:
- 0: not set
- 0x7FFFFFFFFFFFFFFF: never expires
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

from adtoolkit.core.types import (
    TIMESTAMP_NEVER,
    TIMESTAMP_NOT_SET,
    DirectoryTimestamp,
)

FILETIME_EPOCH = datetime(1601, 1, 1, tzinfo=timezone.utc)
TICKS_PER_MICROSECOND = 10

_MIN_DATETIME = datetime.min.replace(tzinfo=timezone.utc)
_MAX_DATETIME = datetime.max.replace(tzinfo=timezone.utc)


def is_set_to_expire(raw: int) -> bool:
    """True unless ``raw`` is one of the two sentinels."""
    return raw not in (TIMESTAMP_NEVER, TIMESTAMP_NOT_SET)


def filetime_to_datetime(raw: int) -> datetime:
    """
    Convert FILETIME ticks to an aware UTC datetime.

    Sub-microsecond precision is truncated. Values outside the range
    ``datetime`` can represent are clamped to its bounds.
    """
    try:
        return FILETIME_EPOCH + timedelta(microseconds=raw // TICKS_PER_MICROSECOND)
    except OverflowError:
        return _MAX_DATETIME if raw > 0 else _MIN_DATETIME


def to_filetime(when: datetime) -> int:
    """
    Convert a datetime to FILETIME ticks.

    Naive datetimes are taken to be UTC.
    """
    if when.tzinfo is None:
        when = when.replace(tzinfo=timezone.utc)
    delta = when - FILETIME_EPOCH
    microseconds = (delta.days * 86400 + delta.seconds) * 1_000_000 + delta.microseconds
    return microseconds * TICKS_PER_MICROSECOND


def interpret_timestamp(raw: int) -> DirectoryTimestamp:
    """
    Interpret a raw FILETIME attribute value.

    Never raises: sentinels produce a timestamp with no calendar instant,
    every other value is converted (clamped if out of range).
    """
    raw = int(raw)
    if not is_set_to_expire(raw):
        return DirectoryTimestamp(raw=raw, is_set_to_expire=False)

    return DirectoryTimestamp(
        raw=raw,
        is_set_to_expire=True,
        as_datetime=filetime_to_datetime(raw),
    )
