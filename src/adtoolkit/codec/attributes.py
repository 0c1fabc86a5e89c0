"""
Attribute read helpers for directory entries.
"""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING, Any, List

from adtoolkit.codec.timestamps import interpret_timestamp, to_filetime
from adtoolkit.core.types import TIMESTAMP_NOT_SET, DirectoryTimestamp

if TYPE_CHECKING:
    from adtoolkit.directory.connection import DirectoryEntry

MISSING_INT64 = -1


def _as_text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, (bytes, bytearray)):
        return bytes(value).decode("utf-8", errors="replace")
    return str(value)


def get_string(entry: DirectoryEntry, name: str) -> str:
    """First value of ``name`` as a string, or '' when absent."""
    values = entry.get(name)
    if not values:
        return ""
    return _as_text(values[0])


def get_strings(entry: DirectoryEntry, name: str) -> List[str]:
    """Every value of a multi-valued attribute, as strings."""
    return [_as_text(value) for value in entry.get(name)]


def get_int64(entry: DirectoryEntry, name: str) -> int:
    """First value of ``name`` as an integer, or -1 when absent."""
    values = entry.get(name)
    if not values or values[0] is None:
        return MISSING_INT64

    value = values[0]
    if isinstance(value, datetime):
        return to_filetime(value)
    if isinstance(value, (bytes, bytearray)):
        value = bytes(value).decode("ascii")
    return int(value)


def read_timestamp(entry: DirectoryEntry, name: str) -> DirectoryTimestamp:
    """
    Read a FILETIME attribute (accountExpires, pwdLastSet...).

    An absent attribute reads as "not set".
    """
    if not entry.get(name):
        return interpret_timestamp(TIMESTAMP_NOT_SET)
    return interpret_timestamp(get_int64(entry, name))
