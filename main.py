#!/usr/bin/env python3
"""Thin entrypoint for calbase."""

from __future__ import annotations

import argparse
import logging
import sys
from datetime import date
from importlib.metadata import PackageNotFoundError, version
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

from base_context import MissingContextError
from calendar_service import CalendarService
from config import ConfigError, load_config
from models import DateSpec, ValidationError
from store import StorageError

try:
    __version__ = version("calbase")
except PackageNotFoundError:  # pragma: no cover - fallback for source runs
    __version__ = "0.0.0"

RANGE_SEPARATOR = ".."


def parse_cli_spec(text: str) -> DateSpec:
    """Read one date spec from the command line.

    ``START..END`` is a range and either side may be left empty for an
    open end; anything else is a single date.
    """
    if RANGE_SEPARATOR not in text:
        return text.strip()
    start, _, end = text.partition(RANGE_SEPARATOR)
    spec: Dict[str, Any] = {}
    if start.strip():
        spec["start"] = start.strip()
    if end.strip():
        spec["end"] = end.strip()
    if not spec:
        raise ValidationError(f"Range '{text}' needs a start or an end")
    return spec


def _parse_month(text: str) -> tuple[int, int]:
    try:
        year_text, month_text = text.strip().split("-")
        year, month = int(year_text), int(month_text)
    except ValueError as exc:
        raise ValidationError(f"Invalid month '{text}'. Expected YYYY-MM") from exc
    if not 1 <= month <= 12:
        raise ValidationError(f"Invalid month '{text}'. Expected YYYY-MM")
    return year, month


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="calbase",
        description="Show which days of a month are disabled for a calendar.",
    )
    parser.add_argument("-m", "--month", help="Month to show as YYYY-MM (default: current)")
    parser.add_argument("-l", "--locale", help="Locale id, e.g. en-US")
    parser.add_argument("-t", "--timezone", help="IANA timezone name")
    parser.add_argument("--first-day-of-week", type=int, help="0=Sunday ... 6=Saturday")
    parser.add_argument("--min-date", help="Days before this date are disabled")
    parser.add_argument("--min-date-exact", help="Instants before this are disabled")
    parser.add_argument("--max-date", help="Days after this date are disabled")
    parser.add_argument("--max-date-exact", help="Instants after this are disabled")
    parser.add_argument(
        "-d", "--disabled", action="append", default=[], metavar="SPEC",
        help="Disabled date or START..END range (repeatable)",
    )
    parser.add_argument(
        "-a", "--available", action="append", default=[], metavar="SPEC",
        help="Available date or START..END range (repeatable)",
    )
    parser.add_argument(
        "--add-disabled", action="append", default=[], metavar="SPEC",
        help="Store a disabled date or range",
    )
    parser.add_argument(
        "--add-available", action="append", default=[], metavar="SPEC",
        help="Store an available date or range",
    )
    parser.add_argument("--config", type=Path, help="Path to config.json")
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging")
    parser.add_argument("--version", action="store_true", help="Show version and exit")
    return parser


def _props_overrides(args: argparse.Namespace) -> Dict[str, Any]:
    overrides: Dict[str, Any] = {}
    for name in ("locale", "timezone", "first_day_of_week", "min_date", "min_date_exact", "max_date", "max_date_exact"):
        value = getattr(args, name)
        if value is not None:
            overrides[name] = value
    overrides["disabled_dates"] = [parse_cli_spec(item) for item in args.disabled]
    overrides["available_dates"] = [parse_cli_spec(item) for item in args.available]
    return overrides


def _format_day(day: date, disabled: bool) -> str:
    state = "disabled" if disabled else "available"
    return f"{day.isoformat()} {day.strftime('%a')}  {state}"


def run(args: argparse.Namespace, *, today: Optional[date] = None) -> List[str]:
    service = CalendarService(load_config(args.config))
    overrides = _props_overrides(args)
    lines: List[str] = []

    store_props = service.config.to_props(
        **{k: v for k, v in overrides.items() if k in ("locale", "timezone", "first_day_of_week")}
    )
    if args.add_disabled:
        stored = service.add_specs(
            "disabled", [parse_cli_spec(item) for item in args.add_disabled], props=store_props
        )
        lines.append(f"Stored {len(stored)} disabled range(s)")
    if args.add_available:
        stored = service.add_specs(
            "available", [parse_cli_spec(item) for item in args.add_available], props=store_props
        )
        lines.append(f"Stored {len(stored)} available range(s)")

    if args.month:
        year, month = _parse_month(args.month)
    else:
        current = today or date.today()
        year, month = current.year, current.month

    context = service.build_context(**overrides)
    lines.append(f"{context.locale.id} {context.locale.timezone or 'local time'}")
    for state in service.month_states(context, year, month):
        lines.append(_format_day(state.day, state.disabled))
    return lines


def main(argv: Sequence[str] | None = None) -> int:
    if argv is None:
        argv = sys.argv[1:]

    parser = build_parser()
    args = parser.parse_args(list(argv))

    if args.version:
        print(__version__)
        return 0

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    try:
        lines = run(args)
    except (ValidationError, ConfigError, StorageError, MissingContextError) as exc:
        print(str(exc), file=sys.stderr)
        return 1

    for line in lines:
        print(line)
    return 0


if __name__ == "__main__":
    try:
        sys.exit(main())
    except KeyboardInterrupt:
        sys.exit(130)
