#!/usr/bin/env python3
"""Date range type and day-boundary helpers."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, time, timedelta, timezone, tzinfo
from typing import Optional, Tuple

from models import ValidationError

END_OF_DAY = time(23, 59, 59)


def as_utc(instant: datetime) -> datetime:
    """Absolute form of an aware instant; naive values pass through.

    Aware datetimes sharing one tzinfo compare by wall clock and ignore
    `fold`, so ranges compare in UTC to stay exact on a repeated hour.
    """
    if instant.tzinfo is None:
        return instant
    return instant.astimezone(timezone.utc)


@dataclass(frozen=True)
class DateRange:
    start: Optional[datetime]
    end: Optional[datetime]

    def __post_init__(self) -> None:
        if self.start is not None and self.end is not None and as_utc(self.start) > as_utc(self.end):
            raise ValidationError(
                f"Range start {self.start.isoformat()} is after end {self.end.isoformat()}"
            )

    @property
    def is_all_time(self) -> bool:
        return self.start is None and self.end is None

    def contains(self, instant: datetime) -> bool:
        point = as_utc(instant)
        if self.start is not None and point < as_utc(self.start):
            return False
        if self.end is not None and point > as_utc(self.end):
            return False
        return True

    def intersects(self, start: datetime, end: datetime) -> bool:
        """Closed-interval overlap with [start, end]."""
        if self.start is not None and as_utc(self.start) > as_utc(end):
            return False
        if self.end is not None and as_utc(self.end) < as_utc(start):
            return False
        return True


def start_of_day(day: date, tz: tzinfo) -> datetime:
    return datetime.combine(day, time.min, tzinfo=tz)


def end_of_day(day: date, tz: tzinfo) -> datetime:
    return datetime.combine(day, END_OF_DAY, tzinfo=tz)


def day_bounds(day: date, tz: tzinfo) -> Tuple[datetime, datetime]:
    return start_of_day(day, tz), end_of_day(day, tz)


def shift_seconds(instant: datetime, seconds: int) -> datetime:
    """Move an aware instant by absolute seconds, keeping its zone.

    Aware arithmetic in Python is wall-clock arithmetic, so the shift is
    done in UTC to stay exact across DST transitions.
    """
    if instant.tzinfo is None:
        raise ValidationError("Cannot shift a naive datetime by absolute seconds")
    shifted = instant.astimezone(timezone.utc) + timedelta(seconds=seconds)
    return shifted.astimezone(instant.tzinfo)


__all__ = [
    "DateRange",
    "END_OF_DAY",
    "as_utc",
    "start_of_day",
    "end_of_day",
    "day_bounds",
    "shift_seconds",
]
