#!/usr/bin/env python3
"""Calendar-focused data helpers for calbase."""

from __future__ import annotations

import calendar
from dataclasses import dataclass
from datetime import date
from typing import Any, List, Optional, Sequence

from base_context import BaseContext, BaseProps, build_locale, create_base
from config import Config
from date_ranges import DateRange
from models import DateSpec
from store import DateSets, SetName, append_ranges, load_date_sets


@dataclass(frozen=True)
class DayState:
    day: date
    disabled: bool


class CalendarService:
    """Wrapper around stored date sets and base context composition."""

    def __init__(self, config: Config) -> None:
        self._config = config

    @property
    def config(self) -> Config:
        return self._config

    def load_date_sets(self) -> DateSets:
        """Load stored disabled/available ranges."""
        return load_date_sets(self._config.date_sets_path)

    def props(self, **overrides: Any) -> BaseProps:
        """Config defaults plus stored ranges plus call-time overrides."""
        stored = self.load_date_sets()
        disabled: List[Any] = list(stored.disabled)
        disabled.extend(overrides.pop("disabled_dates", None) or [])
        available: List[Any] = list(stored.available)
        available.extend(overrides.pop("available_dates", None) or [])
        return self._config.to_props(
            disabled_dates=disabled,
            available_dates=available,
            **overrides,
        )

    def build_context(self, **overrides: Any) -> BaseContext:
        return create_base(self.props(**overrides))

    @staticmethod
    def month_states(context: BaseContext, year: int, month: int) -> List[DayState]:
        _, days_in_month = calendar.monthrange(year, month)
        attribute = context.disabled_attribute
        return [
            DayState(day=day, disabled=attribute.applies_to_day(day))
            for day in (date(year, month, n) for n in range(1, days_in_month + 1))
        ]

    def add_specs(
        self,
        name: SetName,
        specs: Sequence[DateSpec],
        *,
        props: Optional[BaseProps] = None,
    ) -> List[DateRange]:
        """Normalize specs with the configured locale and store them.

        Disabled specs are stored as whole days, available specs keep
        their exact instants.
        """
        locale = build_locale(props or self._config.to_props())
        ranges = locale.normalize_dates(specs, is_all_day=(name == "disabled"))
        sets = append_ranges(self._config.date_sets_path, name, ranges)
        return list(sets.for_name(name))


__all__ = ["CalendarService", "DayState"]
