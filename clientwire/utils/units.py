"""Parsing helpers for duration and data size configuration values."""

from __future__ import annotations

import re
from datetime import timedelta
from typing import Any, Final

_DURATION_PATTERN: Final = re.compile(r"^\s*(-?\d+(?:\.\d+)?)\s*(ms|s|m|h|d)?\s*$", re.IGNORECASE)
_DURATION_UNITS: Final[dict[str, str]] = {
    "ms": "milliseconds",
    "s": "seconds",
    "m": "minutes",
    "h": "hours",
    "d": "days",
}

_DATA_SIZE_PATTERN: Final = re.compile(r"^\s*(\d+)\s*(B|KB|MB|GB|TB)?\s*$", re.IGNORECASE)
_DATA_SIZE_MULTIPLIERS: Final[dict[str, int]] = {
    "B": 1,
    "KB": 1024,
    "MB": 1024**2,
    "GB": 1024**3,
    "TB": 1024**4,
}


def parse_duration(value: Any) -> timedelta | None:
    """Parse a duration from a timedelta, a number of seconds or a suffixed string.

    Supported suffixes are ``ms``, ``s``, ``m``, ``h`` and ``d``; a bare number
    is read as seconds.

    Examples:
        >>> parse_duration("500ms")
        datetime.timedelta(microseconds=500000)
        >>> parse_duration(30)
        datetime.timedelta(seconds=30)
    """

    if value is None or isinstance(value, timedelta):
        return value
    if isinstance(value, bool):
        raise ValueError("durations must be numbers or strings, not booleans")
    if isinstance(value, (int, float)):
        return timedelta(seconds=value)
    if isinstance(value, str):
        match = _DURATION_PATTERN.match(value)
        if match is None:
            raise ValueError(f"'{value}' is not a valid duration")
        amount, unit = match.groups()
        return timedelta(**{_DURATION_UNITS[(unit or "s").lower()]: float(amount)})
    raise ValueError(f"Unsupported duration value: {value!r}")


def parse_data_size(value: Any) -> int | None:
    """Parse a data size in bytes from an int or a string such as ``16KB``."""

    if value is None:
        return None
    if isinstance(value, bool):
        raise ValueError("data sizes must be numbers or strings, not booleans")
    if isinstance(value, int):
        if value < 0:
            raise ValueError("data sizes must be non-negative")
        return value
    if isinstance(value, str):
        match = _DATA_SIZE_PATTERN.match(value)
        if match is None:
            raise ValueError(f"'{value}' is not a valid data size")
        amount, unit = match.groups()
        return int(amount) * _DATA_SIZE_MULTIPLIERS[(unit or "B").upper()]
    raise ValueError(f"Unsupported data size value: {value!r}")


def to_millis(value: timedelta | None) -> int | None:
    """Render a duration as whole milliseconds."""

    if value is None:
        return None
    return value // timedelta(milliseconds=1)


def to_seconds(value: timedelta | None) -> int | None:
    """Render a duration as whole seconds, truncating any fraction."""

    if value is None:
        return None
    return value // timedelta(seconds=1)
