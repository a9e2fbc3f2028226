#!/usr/bin/env python3
"""Locale configuration and timezone-aware date normalization."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta, tzinfo
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple, Union
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from date_ranges import DateRange, day_bounds, end_of_day, start_of_day
from models import (
    DATE_FMT,
    DateSpec,
    ValidationError,
    coerce_span,
    is_date_only,
    is_range_spec,
    parse_datetime,
    parse_time_of_day,
)

LOGGER = logging.getLogger(__name__)

DEFAULT_LOCALE_ID = "en-US"
START_OF_DAY_TIME = "00:00:00"
END_OF_DAY_TIME = "23:59:59"

MaskValue = Union[str, Sequence[str]]

DEFAULT_MASKS: Dict[str, MaskValue] = {
    "title": "MMMM YYYY",
    "weekdays": "W",
    "navMonths": "MMM",
    "hours": "h A",
    "input": ("L", "YYYY-MM-DD", "YYYY/MM/DD"),
    "inputDateTime": ("L h:mm A", "YYYY-MM-DD h:mm A", "YYYY/MM/DD h:mm A"),
    "inputDateTime24hr": ("L HH:mm", "YYYY-MM-DD HH:mm", "YYYY/MM/DD HH:mm"),
    "inputTime": ("h:mm A",),
    "inputTime24hr": ("HH:mm",),
    "dayPopover": "WWW, MMM D, YYYY",
    "data": ("L", "YYYY-MM-DD", "YYYY/MM/DD"),
    "model": "iso",
    "iso": "YYYY-MM-DDTHH:mm:ss.SSSZ",
}

# First day of week uses 0=Sunday ... 6=Saturday.
LOCALES: Dict[str, Dict[str, Any]] = {
    "en-US": {"first_day_of_week": 0, "masks": {"L": "MM/DD/YYYY"}},
    "en-GB": {"first_day_of_week": 1, "masks": {"L": "DD/MM/YYYY"}},
    "de-DE": {"first_day_of_week": 1, "masks": {"L": "DD.MM.YYYY"}},
    "fr-FR": {"first_day_of_week": 1, "masks": {"L": "DD/MM/YYYY"}},
    "es-ES": {"first_day_of_week": 1, "masks": {"L": "DD/MM/YYYY"}},
    "ja-JP": {"first_day_of_week": 0, "masks": {"L": "YYYY/MM/DD"}},
}

_MASK_TOKENS = re.compile(r"YYYY|YY|MMMM|MMM|MM|M|DD|D|HH|H|hh|h|mm|ss|A|L")
_STRPTIME_TOKENS = {
    "YYYY": "%Y",
    "YY": "%y",
    "MMMM": "%B",
    "MMM": "%b",
    "MM": "%m",
    "M": "%m",
    "DD": "%d",
    "D": "%d",
    "HH": "%H",
    "H": "%H",
    "hh": "%I",
    "h": "%I",
    "mm": "%M",
    "ss": "%S",
    "A": "%p",
}


@dataclass
class LocaleConfig:
    id: Optional[str] = None
    first_day_of_week: Optional[int] = None
    masks: Dict[str, MaskValue] = field(default_factory=dict)

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "LocaleConfig":
        first_day = data.get("first_day_of_week", data.get("firstDayOfWeek"))
        return cls(
            id=data.get("id"),
            first_day_of_week=first_day,
            masks=dict(data.get("masks") or {}),
        )


def resolve_timezone(name: Optional[str]) -> tzinfo:
    if name is None:
        local = datetime.now().astimezone().tzinfo
        if local is None:
            raise ValidationError("Cannot determine the local timezone")
        return local
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError) as exc:
        raise ValidationError(f"Unknown timezone '{name}'") from exc


def _resolve_locale_id(requested: Optional[str], locales: Mapping[str, Any]) -> str:
    if requested is None:
        return DEFAULT_LOCALE_ID
    if requested in locales:
        return requested
    language = requested.split("-")[0].lower()
    for candidate in locales:
        if candidate.split("-")[0].lower() == language:
            return candidate
    LOGGER.warning(
        "Unknown locale '%s', falling back to %s", requested, DEFAULT_LOCALE_ID
    )
    return DEFAULT_LOCALE_ID


def _as_list(value: Optional[MaskValue]) -> List[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [value]
    return list(value)


class Locale:
    """Calendar configuration bound to a timezone.

    Turns the loose date specs callers hand to a calendar into aware
    instants and ``DateRange`` lists in the configured zone.
    """

    def __init__(
        self,
        config: Union[LocaleConfig, Mapping[str, Any], str, None] = None,
        *,
        locales: Optional[Mapping[str, Mapping[str, Any]]] = None,
        timezone: Optional[str] = None,
    ) -> None:
        if isinstance(config, LocaleConfig):
            cfg = config
        elif isinstance(config, Mapping):
            cfg = LocaleConfig.from_mapping(config)
        else:
            cfg = LocaleConfig(id=config)

        known = locales if locales is not None else LOCALES
        self.id = _resolve_locale_id(cfg.id, known)
        definition = known.get(self.id) or LOCALES[DEFAULT_LOCALE_ID]

        first_day = cfg.first_day_of_week
        if first_day is None:
            first_day = definition.get("first_day_of_week", 0)
        if isinstance(first_day, bool) or not isinstance(first_day, int) or not 0 <= first_day <= 6:
            raise ValidationError(f"first_day_of_week must be 0-6, got {first_day!r}")
        self.first_day_of_week: int = first_day

        masks: Dict[str, MaskValue] = dict(DEFAULT_MASKS)
        masks.update(definition.get("masks") or {})
        masks.update(cfg.masks or {})
        self.masks: Dict[str, MaskValue] = masks

        self.timezone = timezone
        self.tz = resolve_timezone(timezone)

    def __repr__(self) -> str:
        return f"Locale(id={self.id!r}, timezone={self.timezone!r})"

    # Parsing

    def _mask_to_format(self, mask: str) -> str:
        def replace(match: "re.Match[str]") -> str:
            token = match.group(0)
            if token == "L":
                return self._mask_to_format(str(self.masks.get("L", "YYYY-MM-DD")))
            return _STRPTIME_TOKENS[token]

        escaped = mask.replace("%", "%%")
        return _MASK_TOKENS.sub(replace, escaped)

    def _parse_string(self, value: str) -> Union[date, datetime]:
        text = value.strip()
        for mask in _as_list(self.masks.get("data")):
            fmt = self._mask_to_format(mask)
            try:
                parsed = datetime.strptime(text, fmt)
            except ValueError:
                continue
            if "%H" in fmt or "%I" in fmt:
                return parsed
            return parsed.date()
        if is_date_only(text):
            return datetime.strptime(text, DATE_FMT).date()
        return parse_datetime(text)

    def _coerce(self, spec: DateSpec) -> Union[date, datetime]:
        if isinstance(spec, (date, datetime)):
            return spec
        if isinstance(spec, bool):
            raise ValidationError(f"Unsupported date spec: {spec!r}")
        if isinstance(spec, (int, float)):
            return datetime.fromtimestamp(spec, tz=self.tz)
        if isinstance(spec, str):
            return self._parse_string(spec)
        raise ValidationError(f"Unsupported date spec: {spec!r}")

    # Single dates

    def normalize_date(self, spec: DateSpec, *, time: Optional[str] = None) -> datetime:
        """Resolve a single date spec to an aware instant in this zone.

        ``time`` ("HH:MM:SS") is applied only when the spec has no time of
        day of its own.
        """
        if isinstance(spec, Mapping):
            if is_range_spec(spec):
                raise ValidationError("Expected a single date, got a range spec")
            if "date" not in spec:
                raise ValidationError(f"Date mapping needs a 'date' key: {dict(spec)!r}")
            explicit = spec.get("time")
            if explicit is not None:
                day = self.to_local_date(spec["date"])
                return self._at(day, explicit)
            return self.normalize_date(spec["date"], time=time)

        value = self._coerce(spec)
        if isinstance(value, datetime):
            if value.tzinfo is None:
                return value.replace(tzinfo=self.tz)
            return value.astimezone(self.tz)
        return self._at(value, time or START_OF_DAY_TIME)

    def to_local_date(self, spec: DateSpec) -> date:
        """Calendar day a spec falls on in this zone."""
        if isinstance(spec, Mapping) and "date" in spec:
            return self.to_local_date(spec["date"])
        value = self._coerce(spec)
        if isinstance(value, datetime):
            if value.tzinfo is None:
                return value.date()
            return value.astimezone(self.tz).date()
        return value

    def _at(self, day: date, time_of_day: str) -> datetime:
        return datetime.combine(day, parse_time_of_day(time_of_day), tzinfo=self.tz)

    def day_bounds(self, day: date) -> Tuple[datetime, datetime]:
        return day_bounds(day, self.tz)

    # Ranges

    def normalize_dates(
        self, specs: Optional[Iterable[DateSpec]], *, is_all_day: bool
    ) -> List[DateRange]:
        """Map a list of date specs to ranges ordered by start.

        ``None`` or an empty list gives an empty list. With ``is_all_day``
        each range is snapped to local start/end of day; otherwise exact
        instants are kept.
        """
        if specs is None:
            return []
        if isinstance(specs, (str, date, Mapping, DateRange)):
            specs = [specs]
        ranges = [self._normalize_range(spec, is_all_day) for spec in specs]
        ranges.sort(key=_range_sort_key)
        return ranges

    def _normalize_range(self, spec: Union[DateSpec, DateRange], is_all_day: bool) -> DateRange:
        if isinstance(spec, DateRange):
            return self._bounded(spec.start, spec.end, is_all_day)

        if isinstance(spec, Mapping) and is_range_spec(spec):
            start_spec = spec.get("start")
            end_spec = spec.get("end")
            span = spec.get("span")
            if span is not None:
                if end_spec is not None:
                    raise ValidationError("Range spec cannot have both 'end' and 'span'")
                if start_spec is None:
                    raise ValidationError("Range 'span' requires a 'start'")
                last_day = self.to_local_date(start_spec) + timedelta(days=coerce_span(span) - 1)
                return self._bounded(
                    self.normalize_date(start_spec),
                    end_of_day(last_day, self.tz),
                    is_all_day,
                )
            start = self.normalize_date(start_spec) if start_spec is not None else None
            end = (
                self.normalize_date(end_spec, time=END_OF_DAY_TIME)
                if end_spec is not None
                else None
            )
            return self._bounded(start, end, is_all_day)

        if is_all_day:
            day = self.to_local_date(spec)
            return DateRange(start_of_day(day, self.tz), end_of_day(day, self.tz))
        # A spec without its own time of day covers the whole day.
        return DateRange(
            self.normalize_date(spec),
            self.normalize_date(spec, time=END_OF_DAY_TIME),
        )

    def _bounded(
        self, start: Optional[datetime], end: Optional[datetime], is_all_day: bool
    ) -> DateRange:
        if start is None and end is None:
            raise ValidationError("Range with no start and no end would cover all time")
        if start is not None:
            start = self.normalize_date(start)
            if is_all_day:
                start = start_of_day(start.date(), self.tz)
        if end is not None:
            end = self.normalize_date(end)
            if is_all_day:
                end = end_of_day(end.date(), self.tz)
        return DateRange(start, end)


def _range_sort_key(item: DateRange) -> tuple:
    if item.start is None:
        return (0, 0.0)
    return (1, item.start.timestamp())


__all__ = [
    "Locale",
    "LocaleConfig",
    "LOCALES",
    "DEFAULT_LOCALE_ID",
    "DEFAULT_MASKS",
    "START_OF_DAY_TIME",
    "END_OF_DAY_TIME",
    "resolve_timezone",
]
