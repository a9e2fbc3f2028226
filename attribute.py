#!/usr/bin/env python3
"""Calendar attributes: prioritized include/exclude date sets."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Iterable, List, Literal, Sequence, Tuple

from calendar_locale import Locale
from date_ranges import DateRange, as_utc, shift_seconds
from models import ValidationError
from theme import Theme

ExcludeMode = Literal["includes", "intervals"]
EXCLUDE_MODES: Sequence[ExcludeMode] = ("includes", "intervals")

DISABLED_ATTRIBUTE_KEY = "disabled"
DISABLED_ATTRIBUTE_ORDER = 100

Segment = Tuple[datetime, datetime]


@dataclass(frozen=True)
class Attribute:
    """A set of dates a renderer decorates, with holes punched by exclusions.

    ``exclude_mode="includes"`` drops a day when it touches any exclusion
    range, regardless of how it relates to ``dates``. ``"intervals"``
    subtracts the exclusions from ``dates`` and drops the day only when
    nothing of it is left. Higher ``order`` wins when attributes overlap.
    """

    key: str
    dates: Tuple[DateRange, ...]
    exclude_dates: Tuple[DateRange, ...]
    exclude_mode: ExcludeMode
    order: int
    theme: Theme
    locale: Locale

    def __post_init__(self) -> None:
        if self.exclude_mode not in EXCLUDE_MODES:
            raise ValidationError(f"Invalid exclude mode '{self.exclude_mode}'")

    def intersects_day(self, day: date) -> bool:
        start, end = self.locale.day_bounds(day)
        return any(r.intersects(start, end) for r in self.dates)

    def excludes_day(self, day: date) -> bool:
        start, end = self.locale.day_bounds(day)
        if self.exclude_mode == "includes":
            return any(r.intersects(start, end) for r in self.exclude_dates)
        covered = _clip(self.dates, start, end)
        return bool(covered) and not _subtract(covered, self.exclude_dates)

    def applies_to_day(self, day: date) -> bool:
        return self.intersects_day(day) and not self.excludes_day(day)

    def applies_to(self, instant: datetime) -> bool:
        if not any(r.contains(instant) for r in self.dates):
            return False
        return not any(r.contains(instant) for r in self.exclude_dates)


def _clip(ranges: Iterable[DateRange], start: datetime, end: datetime) -> List[Segment]:
    segments: List[Segment] = []
    for r in ranges:
        if not r.intersects(start, end):
            continue
        seg_start = start if r.start is None else max(start, r.start, key=as_utc)
        seg_end = end if r.end is None else min(end, r.end, key=as_utc)
        segments.append((seg_start, seg_end))
    return segments


def _subtract(segments: List[Segment], exclusions: Iterable[DateRange]) -> List[Segment]:
    remaining = segments
    for r in exclusions:
        survivors: List[Segment] = []
        for seg_start, seg_end in remaining:
            if not r.intersects(seg_start, seg_end):
                survivors.append((seg_start, seg_end))
                continue
            if r.start is not None and as_utc(r.start) > as_utc(seg_start):
                head_end = shift_seconds(r.start, -1)
                if as_utc(head_end) >= as_utc(seg_start):
                    survivors.append((seg_start, head_end))
            if r.end is not None and as_utc(r.end) < as_utc(seg_end):
                tail_start = shift_seconds(r.end, 1)
                if as_utc(tail_start) <= as_utc(seg_end):
                    survivors.append((tail_start, seg_end))
        remaining = survivors
    return remaining


def build_disabled_attribute(
    disabled_dates: Iterable[DateRange],
    available_dates: Iterable[DateRange],
    theme: Theme,
    locale: Locale,
) -> Attribute:
    return Attribute(
        key=DISABLED_ATTRIBUTE_KEY,
        dates=tuple(disabled_dates),
        exclude_dates=tuple(available_dates),
        exclude_mode="includes",
        order=DISABLED_ATTRIBUTE_ORDER,
        theme=theme,
        locale=locale,
    )


__all__ = [
    "Attribute",
    "ExcludeMode",
    "EXCLUDE_MODES",
    "DISABLED_ATTRIBUTE_KEY",
    "DISABLED_ATTRIBUTE_ORDER",
    "build_disabled_attribute",
]
