from datetime import date, datetime, timedelta, timezone
from zoneinfo import ZoneInfo

import pytest

from base_context import (
    BaseComposer,
    BaseProps,
    ContextScope,
    MissingContextError,
    compose_available_dates,
    create_base,
    synthesize_boundary_ranges,
    use_base,
)
from calendar_locale import Locale
from date_ranges import DateRange

NEW_YORK = ZoneInfo("America/New_York")
BERLIN = ZoneInfo("Europe/Berlin")
UTC = timezone.utc


def _ny_locale() -> Locale:
    return Locale("en-US", timezone="America/New_York")


def test_boundary_free_disabled_dates_are_only_normalized_entries() -> None:
    specs = ["2024-03-05", date(2024, 3, 1)]
    context = create_base(BaseProps(timezone="America/New_York", disabled_dates=specs))

    expected = _ny_locale().normalize_dates(specs, is_all_day=True)
    assert list(context.disabled_dates) == expected
    assert context.disabled_dates[0].start == datetime(2024, 3, 1, tzinfo=NEW_YORK)
    assert context.disabled_dates[1].end == datetime(2024, 3, 5, 23, 59, 59, tzinfo=NEW_YORK)


def test_min_date_backs_off_one_second_from_start_of_day() -> None:
    context = create_base(
        BaseProps(timezone="America/New_York", min_date=date(2024, 3, 10))
    )

    assert len(context.disabled_dates) == 1
    boundary = context.disabled_dates[0]
    assert boundary.start is None
    assert boundary.end == datetime(2024, 3, 9, 23, 59, 59, tzinfo=NEW_YORK)

    midnight = datetime(2024, 3, 10, tzinfo=NEW_YORK)
    assert not any(r.contains(midnight) for r in context.disabled_dates)
    assert context.disabled_attribute.applies_to_day(date(2024, 3, 9))
    assert not context.disabled_attribute.applies_to_day(date(2024, 3, 10))


def test_plain_min_date_with_time_is_snapped_to_start_of_day() -> None:
    ranges = synthesize_boundary_ranges(
        _ny_locale(), min_date=datetime(2024, 3, 10, 15, 45)
    )

    assert ranges[0].end == datetime(2024, 3, 9, 23, 59, 59, tzinfo=NEW_YORK)


def test_max_date_exact_starts_one_second_after_instant() -> None:
    exact = datetime(2024, 3, 20, 15, 30, tzinfo=NEW_YORK)
    context = create_base(
        BaseProps(
            timezone="America/New_York",
            max_date=date(2024, 3, 25),
            max_date_exact=exact,
        )
    )

    assert len(context.disabled_dates) == 1
    boundary = context.disabled_dates[0]
    assert boundary.start == exact + timedelta(seconds=1)
    assert boundary.end is None


def test_plain_max_date_is_coerced_to_end_of_day() -> None:
    ranges = synthesize_boundary_ranges(_ny_locale(), max_date="2024-03-20")

    assert ranges == [DateRange(start=datetime(2024, 3, 21, tzinfo=NEW_YORK), end=None)]


def test_exact_min_overrides_plain_min() -> None:
    exact = datetime(2024, 3, 10, 12, 0, tzinfo=NEW_YORK)
    ranges = synthesize_boundary_ranges(
        _ny_locale(), min_date=date(2024, 3, 1), min_date_exact=exact
    )

    assert ranges[0].end == datetime(2024, 3, 10, 11, 59, 59, tzinfo=NEW_YORK)


def test_no_boundaries_synthesize_nothing() -> None:
    assert synthesize_boundary_ranges(_ny_locale()) == []


def test_boundary_epsilon_is_absolute_across_dst() -> None:
    # Clocks in Berlin jump from 02:00 to 03:00 on 2024-03-31.
    exact = datetime(2024, 3, 31, 3, 0, tzinfo=BERLIN)
    ranges = synthesize_boundary_ranges(
        Locale(timezone="Europe/Berlin"), min_date_exact=exact
    )

    end = ranges[0].end
    assert end is not None
    assert exact.timestamp() - end.timestamp() == 1
    assert (end.hour, end.minute, end.second) == (1, 59, 59)



def test_min_date_exact_on_repeated_hour_leaves_instant_enabled() -> None:
    # 2024-11-03 06:00Z is 01:00 EST, the second pass through 01:00 in New York.
    exact = datetime(2024, 11, 3, 6, 0, tzinfo=UTC)
    context = create_base(BaseProps(timezone="America/New_York", min_date_exact=exact))
    boundary = exact.astimezone(NEW_YORK)

    end = context.disabled_dates[0].end
    assert end is not None
    assert boundary.fold == 1
    assert exact.timestamp() - end.timestamp() == 1
    assert not context.disabled_dates[0].contains(boundary)
    assert not context.disabled_attribute.applies_to(boundary)
    assert context.disabled_attribute.applies_to(datetime(2024, 11, 3, 5, 59, 59, tzinfo=UTC))


def test_max_date_exact_on_repeated_hour_leaves_instant_enabled() -> None:
    # 2024-11-03 05:59:59Z is 01:59:59 EDT, one second before clocks fall back.
    exact = datetime(2024, 11, 3, 5, 59, 59, tzinfo=UTC)
    ranges = synthesize_boundary_ranges(_ny_locale(), max_date_exact=exact)
    boundary = exact.astimezone(NEW_YORK)

    start = ranges[0].start
    assert start is not None
    assert start.timestamp() - exact.timestamp() == 1
    assert (start.hour, start.minute, start.fold) == (1, 0, 1)
    assert not ranges[0].contains(boundary)
    assert ranges[0].contains(datetime(2024, 11, 3, 6, 0, tzinfo=UTC))

def test_inverted_boundaries_disable_every_day() -> None:
    context = create_base(
        BaseProps(
            timezone="UTC",
            min_date=date(2024, 3, 20),
            max_date=date(2024, 3, 10),
        )
    )
    attribute = context.disabled_attribute

    day = date(2024, 1, 1)
    while day <= date(2024, 12, 31):
        assert attribute.applies_to_day(day), day
        day += timedelta(days=1)
    instant = datetime(2024, 3, 15, 12, 0, 0, tzinfo=ZoneInfo("UTC"))
    assert any(r.contains(instant) for r in context.disabled_dates)


def test_available_day_punches_hole_in_disabled_range() -> None:
    context = create_base(
        BaseProps(
            timezone="UTC",
            disabled_dates=[{"start": "2024-03-01", "end": "2024-03-31"}],
            available_dates=["2024-03-15"],
        )
    )
    attribute = context.disabled_attribute

    assert attribute.applies_to_day(date(2024, 3, 14))
    assert not attribute.applies_to_day(date(2024, 3, 15))
    assert attribute.applies_to_day(date(2024, 3, 16))


def test_available_before_min_date_is_still_selectable() -> None:
    context = create_base(
        BaseProps(
            timezone="UTC",
            min_date="2024-03-10",
            available_dates=["2024-03-01"],
        )
    )
    attribute = context.disabled_attribute

    assert not attribute.applies_to_day(date(2024, 3, 1))
    assert attribute.applies_to_day(date(2024, 3, 2))


def test_timed_available_dates_keep_exact_instants() -> None:
    ranges = compose_available_dates(
        Locale(timezone="Europe/Berlin"),
        [{"start": "2024-03-15T09:00:00", "end": "2024-03-15T17:30:00"}],
    )

    assert ranges[0].start == datetime(2024, 3, 15, 9, 0, tzinfo=BERLIN)
    assert ranges[0].end == datetime(2024, 3, 15, 17, 30, tzinfo=BERLIN)



def test_timed_available_range_may_cross_the_repeated_hour() -> None:
    # Wall clock goes backwards but the instants are ordered.
    ranges = compose_available_dates(
        _ny_locale(),
        [{"start": "2024-11-03T01:59:00-04:00", "end": "2024-11-03T01:10:00-05:00"}],
    )

    start, end = ranges[0].start, ranges[0].end
    assert start is not None and end is not None
    assert start.timestamp() == datetime(2024, 11, 3, 5, 59, tzinfo=UTC).timestamp()
    assert end.timestamp() == datetime(2024, 11, 3, 6, 10, tzinfo=UTC).timestamp()
    assert ranges[0].contains(datetime(2024, 11, 3, 6, 5, tzinfo=UTC))

def test_nothing_configured_yields_empty_attribute() -> None:
    context = create_base(BaseProps(timezone="UTC"))

    assert context.disabled_dates == ()
    assert context.available_dates == ()
    assert context.disabled_attribute.dates == ()
    assert context.disabled_attribute.key == "disabled"
    assert context.disabled_attribute.order == 100
    assert context.disabled_attribute.exclude_mode == "includes"
    assert not context.disabled_attribute.applies_to_day(date(2024, 3, 1))


def test_locale_prop_instance_is_used_as_is() -> None:
    locale = Locale("de-DE", timezone="Europe/Berlin")
    context = create_base(BaseProps(locale=locale, first_day_of_week=3))

    assert context.locale is locale
    assert context.locale.first_day_of_week == 1
    assert context.disabled_attribute.locale is locale


def test_locale_mapping_prop_ignores_loose_locale_props() -> None:
    context = create_base(
        BaseProps(
            locale={"id": "en-GB", "firstDayOfWeek": 4},
            first_day_of_week=2,
            masks={"title": "YYYY"},
            timezone="UTC",
        )
    )

    assert context.locale.id == "en-GB"
    assert context.locale.first_day_of_week == 4
    assert context.masks["title"] == "MMMM YYYY"


def test_masks_are_read_only_snapshot() -> None:
    context = create_base(BaseProps(timezone="UTC", masks={"title": "YYYY"}))

    assert context.masks["title"] == "YYYY"
    with pytest.raises(TypeError):
        context.masks["title"] = "MMMM"  # type: ignore[index]


def test_composer_reuses_context_when_nothing_changed() -> None:
    composer = BaseComposer(BaseProps(timezone="UTC", disabled_dates=["2024-03-05"]))
    first = composer.context

    assert composer.update(disabled_dates=["2024-03-05"]) is first
    assert composer.update() is first


def test_composer_context_is_ready_after_construction() -> None:
    composer = BaseComposer()

    assert composer.context is composer.context
    assert composer.context.disabled_dates == ()
    assert composer.context.disabled_attribute.dates == ()


def test_composer_recomputes_only_downstream_stages() -> None:
    composer = BaseComposer(BaseProps(timezone="UTC", disabled_dates=["2024-03-05"]))
    first = composer.context

    second = composer.update(available_dates=["2024-03-05"])

    assert second is not first
    assert second.locale is first.locale
    assert second.theme is first.theme
    assert second.disabled_dates == first.disabled_dates
    assert not second.disabled_attribute.applies_to_day(date(2024, 3, 5))
    assert first.disabled_attribute.applies_to_day(date(2024, 3, 5))


def test_composer_sees_in_place_list_edits() -> None:
    specs = ["2024-03-05"]
    composer = BaseComposer(BaseProps(timezone="UTC", disabled_dates=specs))
    first = composer.context

    specs.append("2024-03-06")
    second = composer.update(disabled_dates=specs)

    assert second is not first
    assert len(second.disabled_dates) == 2
    assert len(first.disabled_dates) == 1


def test_composer_rebuilds_locale_on_timezone_change() -> None:
    composer = BaseComposer(BaseProps(timezone="UTC", min_date="2024-03-10"))
    first = composer.context

    second = composer.update(timezone="Europe/Berlin")

    assert second.locale is not first.locale
    assert second.disabled_dates[0].end == datetime(2024, 3, 9, 23, 59, 59, tzinfo=BERLIN)


def test_composer_rejects_unknown_props() -> None:
    composer = BaseComposer(BaseProps(timezone="UTC"))

    with pytest.raises(TypeError):
        composer.update(min_day="2024-03-10")


def test_use_base_without_provider_raises() -> None:
    with pytest.raises(MissingContextError, match="Base context missing"):
        use_base(ContextScope())


def test_nested_scope_reads_provided_context() -> None:
    root = ContextScope()
    context = create_base(BaseProps(timezone="UTC"), scope=root)

    assert use_base(root.child().child()) is context


def test_composer_republishes_into_scope_on_change() -> None:
    root = ContextScope()
    composer = BaseComposer(BaseProps(timezone="UTC"), scope=root)
    child = root.child()
    first = use_base(child)

    composer.update(max_date="2024-03-10")

    assert use_base(child) is composer.context
    assert use_base(child) is not first
