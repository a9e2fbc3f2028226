#!/usr/bin/env python3
"""Date spec parsing and validation helpers for calbase."""

from __future__ import annotations

from datetime import date, datetime, time
from typing import Any, Mapping, Union

DATETIME_FMT = "%Y-%m-%d %H:%M:%S"
DATE_FMT = "%Y-%m-%d"
TIME_FMT = "%H:%M:%S"

# Raw forms a caller may supply for a single date entry. Mappings carry
# either {"date", "time"} or {"start", "end", "span"}.
DateSpec = Union[date, datetime, str, int, float, Mapping[str, Any]]


class ValidationError(Exception):
    pass


def parse_datetime(value: str) -> datetime:
    value = value.strip()

    # Accept ISO-8601 formats like YYYY-MM-DDTHH:MM[:SS][+HH:MM|Z]
    iso_candidate = value
    if iso_candidate.endswith("Z"):
        iso_candidate = iso_candidate[:-1] + "+00:00"
    iso_candidate = iso_candidate.replace("T", " ")
    try:
        return datetime.fromisoformat(iso_candidate)
    except ValueError:
        pass

    # Accept YYYY-MM-DD HH:MM and normalize seconds
    try:
        if len(value) == 16 and "T" not in value:  # YYYY-MM-DD HH:MM
            value = f"{value}:00"
        return datetime.strptime(value, DATETIME_FMT)
    except ValueError as exc:
        raise ValidationError(
            f"Invalid datetime format: '{value}'. Expected YYYY-MM-DD[ HH:MM[:SS]]"
        ) from exc


def is_date_only(value: str) -> bool:
    """True when a string names a day without any time of day."""
    try:
        datetime.strptime(value.strip(), DATE_FMT)
    except ValueError:
        return False
    return True


def parse_time_of_day(value: str | time) -> time:
    if isinstance(value, time):
        return value
    candidate = str(value).strip()
    if len(candidate) == 5:  # HH:MM
        candidate = f"{candidate}:00"
    try:
        return datetime.strptime(candidate, TIME_FMT).time()
    except ValueError as exc:
        raise ValidationError(
            f"Invalid time of day: '{value}'. Expected HH:MM[:SS]"
        ) from exc


def is_range_spec(spec: object) -> bool:
    if not isinstance(spec, Mapping):
        return False
    return any(key in spec for key in ("start", "end", "span"))


def coerce_span(value: object) -> int:
    if isinstance(value, bool) or not isinstance(value, (int, str)):
        raise ValidationError(f"Range 'span' must be a whole number of days, got {value!r}")
    try:
        span = int(value)
    except ValueError as exc:
        raise ValidationError(f"Range 'span' must be numeric, got {value!r}") from exc
    if span < 1:
        raise ValidationError("Range 'span' must be at least 1 day")
    return span


__all__ = [
    "DateSpec",
    "ValidationError",
    "parse_datetime",
    "parse_time_of_day",
    "is_date_only",
    "is_range_spec",
    "coerce_span",
    "DATETIME_FMT",
    "DATE_FMT",
    "TIME_FMT",
]
