#!/usr/bin/env python3
"""Base calendar context: locale, disabled/available dates and the disabled attribute.

Raw props flow one way through pure stages::

    props -> Locale -> boundary ranges -> disabled/available lists -> Attribute

``create_base`` runs the whole pipeline once. ``BaseComposer`` keeps the
last result of every stage and only reruns the stages whose inputs changed,
publishing a fresh ``BaseContext`` each time something did.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from types import MappingProxyType
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence, Tuple, Union

from attribute import Attribute, build_disabled_attribute
from calendar_locale import END_OF_DAY_TIME, START_OF_DAY_TIME, Locale, LocaleConfig
from date_ranges import DateRange, shift_seconds
from models import DateSpec
from theme import DEFAULT_COLOR, DarkModeConfig, Theme, resolve_theme

LOGGER = logging.getLogger(__name__)

BASE_CONTEXT_KEY = "__calbase_base_context__"
MISSING_CONTEXT_MESSAGE = (
    "Base context missing. Please verify this component is nested within a "
    "valid context provider."
)
# Boundary ranges stop one second short of the boundary itself so the
# min/max day stays selectable.
BOUNDARY_EPSILON_SECONDS = 1


class MissingContextError(RuntimeError):
    pass


@dataclass
class BaseProps:
    locale: Union[str, Mapping[str, Any], Locale, None] = None
    timezone: Optional[str] = None
    first_day_of_week: Optional[int] = None
    masks: Optional[Mapping[str, Any]] = None
    min_date: Optional[DateSpec] = None
    min_date_exact: Optional[DateSpec] = None
    max_date: Optional[DateSpec] = None
    max_date_exact: Optional[DateSpec] = None
    disabled_dates: Optional[Sequence[DateSpec]] = None
    available_dates: Optional[Sequence[DateSpec]] = None
    color: str = DEFAULT_COLOR
    is_dark: DarkModeConfig = False


@dataclass(frozen=True)
class BaseContext:
    theme: Theme
    locale: Locale
    masks: Mapping[str, Any]
    disabled_dates: Tuple[DateRange, ...]
    available_dates: Tuple[DateRange, ...]
    disabled_attribute: Attribute


def build_locale(props: BaseProps) -> Locale:
    if isinstance(props.locale, Locale):
        return props.locale
    if isinstance(props.locale, Mapping):
        config = LocaleConfig.from_mapping(props.locale)
    else:
        config = LocaleConfig(
            id=props.locale,
            first_day_of_week=props.first_day_of_week,
            masks=dict(props.masks or {}),
        )
    return Locale(config, timezone=props.timezone)


def synthesize_boundary_ranges(
    locale: Locale,
    *,
    min_date: Optional[DateSpec] = None,
    min_date_exact: Optional[DateSpec] = None,
    max_date: Optional[DateSpec] = None,
    max_date_exact: Optional[DateSpec] = None,
) -> List[DateRange]:
    """Turn min/max boundaries into open-ended exclusion ranges.

    The exact variants are used as given; plain dates are snapped to the
    start (min) or end (max) of their local day. Inverted boundaries are
    not checked and simply disable every day.
    """
    ranges: List[DateRange] = []

    if min_date_exact is not None or min_date is not None:
        if min_date_exact is not None:
            boundary = locale.normalize_date(min_date_exact)
        else:
            boundary = locale.normalize_date(
                locale.to_local_date(min_date), time=START_OF_DAY_TIME
            )
        ranges.append(
            DateRange(start=None, end=shift_seconds(boundary, -BOUNDARY_EPSILON_SECONDS))
        )
        LOGGER.debug("Disabled before minimum %s", boundary.isoformat())

    if max_date_exact is not None or max_date is not None:
        if max_date_exact is not None:
            boundary = locale.normalize_date(max_date_exact)
        else:
            boundary = locale.normalize_date(
                locale.to_local_date(max_date), time=END_OF_DAY_TIME
            )
        ranges.append(
            DateRange(start=shift_seconds(boundary, BOUNDARY_EPSILON_SECONDS), end=None)
        )
        LOGGER.debug("Disabled after maximum %s", boundary.isoformat())

    return ranges


def compose_disabled_dates(
    locale: Locale,
    disabled_dates: Optional[Sequence[DateSpec]],
    *,
    min_date: Optional[DateSpec] = None,
    min_date_exact: Optional[DateSpec] = None,
    max_date: Optional[DateSpec] = None,
    max_date_exact: Optional[DateSpec] = None,
) -> List[DateRange]:
    dates = locale.normalize_dates(disabled_dates, is_all_day=True)
    dates.extend(
        synthesize_boundary_ranges(
            locale,
            min_date=min_date,
            min_date_exact=min_date_exact,
            max_date=max_date,
            max_date_exact=max_date_exact,
        )
    )
    return dates


def compose_available_dates(
    locale: Locale, available_dates: Optional[Sequence[DateSpec]]
) -> List[DateRange]:
    return locale.normalize_dates(available_dates, is_all_day=False)


def _publish(
    theme: Theme,
    locale: Locale,
    disabled_dates: Sequence[DateRange],
    available_dates: Sequence[DateRange],
    attribute: Attribute,
) -> BaseContext:
    return BaseContext(
        theme=theme,
        locale=locale,
        masks=MappingProxyType(dict(locale.masks)),
        disabled_dates=tuple(disabled_dates),
        available_dates=tuple(available_dates),
        disabled_attribute=attribute,
    )


def create_base(props: BaseProps, scope: Optional["ContextScope"] = None) -> BaseContext:
    theme = resolve_theme(props.color, props.is_dark)
    locale = build_locale(props)
    disabled = compose_disabled_dates(
        locale,
        props.disabled_dates,
        min_date=props.min_date,
        min_date_exact=props.min_date_exact,
        max_date=props.max_date,
        max_date_exact=props.max_date_exact,
    )
    available = compose_available_dates(locale, props.available_dates)
    attribute = build_disabled_attribute(disabled, available, theme, locale)
    context = _publish(theme, locale, disabled, available, attribute)
    if scope is not None:
        provide_base(scope, context)
    return context


class _Same:
    """Key part compared by identity rather than value."""

    __slots__ = ("value",)

    def __init__(self, value: Any) -> None:
        self.value = value

    def __eq__(self, other: object) -> bool:
        return isinstance(other, _Same) and other.value is self.value

    __hash__ = None  # type: ignore[assignment]


def _freeze(value: Any) -> Any:
    # Snapshot so in-place edits of a caller's list still count as a change.
    if isinstance(value, Mapping):
        return {key: _freeze(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return tuple(_freeze(item) for item in value)
    return value


class BaseComposer:
    """Incremental version of ``create_base``.

    Each stage is memoized on its inputs: raw props by value, upstream
    stage results by identity. ``context`` is replaced, never mutated.
    """

    def __init__(self, props: Optional[BaseProps] = None, scope: Optional["ContextScope"] = None) -> None:
        self._props = props or BaseProps()
        self._scope = scope
        self._memo: Dict[str, Tuple[Tuple[Any, ...], Any]] = {}
        self._context: BaseContext = self._recompute(None)

    @property
    def props(self) -> BaseProps:
        return self._props

    @property
    def context(self) -> BaseContext:
        return self._context

    def update(self, **changes: Any) -> BaseContext:
        """Apply prop changes and return the (possibly new) context."""
        self._props = replace(self._props, **changes)
        self._context = self._recompute(self._context)
        return self._context

    def _stage(self, name: str, key: Tuple[Any, ...], compute: Callable[[], Any]) -> Any:
        cached = self._memo.get(name)
        if cached is not None and cached[0] == key:
            return cached[1]
        LOGGER.debug("Recomputing %s", name)
        value = compute()
        self._memo[name] = (key, value)
        return value

    def _recompute(self, current: Optional[BaseContext]) -> BaseContext:
        props = self._props

        theme: Theme = self._stage(
            "theme",
            (props.color, _freeze(props.is_dark)),
            lambda: resolve_theme(props.color, props.is_dark),
        )
        locale: Locale = self._stage(
            "locale",
            (
                _Same(props.locale) if isinstance(props.locale, Locale) else _freeze(props.locale),
                props.timezone,
                props.first_day_of_week,
                _freeze(props.masks),
            ),
            lambda: build_locale(props),
        )
        disabled: List[DateRange] = self._stage(
            "disabled_dates",
            (
                _Same(locale),
                _freeze(props.disabled_dates),
                _freeze(props.min_date),
                _freeze(props.min_date_exact),
                _freeze(props.max_date),
                _freeze(props.max_date_exact),
            ),
            lambda: compose_disabled_dates(
                locale,
                props.disabled_dates,
                min_date=props.min_date,
                min_date_exact=props.min_date_exact,
                max_date=props.max_date,
                max_date_exact=props.max_date_exact,
            ),
        )
        available: List[DateRange] = self._stage(
            "available_dates",
            (_Same(locale), _freeze(props.available_dates)),
            lambda: compose_available_dates(locale, props.available_dates),
        )
        attribute: Attribute = self._stage(
            "disabled_attribute",
            (_Same(disabled), _Same(available), _Same(theme), _Same(locale)),
            lambda: build_disabled_attribute(disabled, available, theme, locale),
        )

        if current is not None and current.disabled_attribute is attribute:
            return current
        context = _publish(theme, locale, disabled, available, attribute)
        if self._scope is not None:
            provide_base(self._scope, context)
        return context


class ContextScope:
    """Explicit provide/inject chain standing in for a component tree."""

    def __init__(self, parent: Optional["ContextScope"] = None) -> None:
        self.parent = parent
        self._provided: Dict[str, Any] = {}

    def child(self) -> "ContextScope":
        return ContextScope(self)

    def provide(self, key: str, value: Any) -> None:
        self._provided[key] = value

    def inject(self, key: str) -> Optional[Any]:
        scope: Optional[ContextScope] = self
        while scope is not None:
            if key in scope._provided:
                return scope._provided[key]
            scope = scope.parent
        return None


def provide_base(scope: ContextScope, context: BaseContext) -> None:
    scope.provide(BASE_CONTEXT_KEY, context)


def use_base(scope: ContextScope) -> BaseContext:
    context = scope.inject(BASE_CONTEXT_KEY)
    if context is not None:
        return context
    raise MissingContextError(MISSING_CONTEXT_MESSAGE)


__all__ = [
    "BaseProps",
    "BaseContext",
    "BaseComposer",
    "ContextScope",
    "MissingContextError",
    "BASE_CONTEXT_KEY",
    "BOUNDARY_EPSILON_SECONDS",
    "build_locale",
    "synthesize_boundary_ranges",
    "compose_disabled_dates",
    "compose_available_dates",
    "create_base",
    "provide_base",
    "use_base",
]
