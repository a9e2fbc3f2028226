#!/usr/bin/env python3
"""PyArrow-backed storage for disabled/available date sets."""
from __future__ import annotations

import logging
import os
import tempfile
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Iterable, List, Literal, Optional, Sequence

import pyarrow as pa
import pyarrow.parquet as pq

from date_ranges import DateRange
from models import ValidationError
from paths import ensure_dir

LOGGER = logging.getLogger(__name__)

SetName = Literal["disabled", "available"]
SET_NAMES: Sequence[SetName] = ("disabled", "available")

_SCHEMA = pa.schema(
    [
        ("set", pa.string()),
        ("start", pa.timestamp("us", tz="UTC")),
        ("end", pa.timestamp("us", tz="UTC")),
    ]
)


class StorageError(Exception):
    pass


@dataclass
class DateSets:
    disabled: List[DateRange] = field(default_factory=list)
    available: List[DateRange] = field(default_factory=list)

    def for_name(self, name: SetName) -> List[DateRange]:
        if name == "disabled":
            return self.disabled
        if name == "available":
            return self.available
        raise ValidationError(f"Unknown date set '{name}'. Expected one of: {', '.join(SET_NAMES)}")


def _to_utc(value: Optional[datetime]) -> Optional[datetime]:
    if value is None:
        return None
    if value.tzinfo is None:
        raise StorageError(f"Cannot store naive datetime {value.isoformat()}")
    return value.astimezone(timezone.utc)


def _sets_to_table(sets: DateSets) -> pa.Table:
    names: List[str] = []
    starts: List[Optional[datetime]] = []
    ends: List[Optional[datetime]] = []
    for name in SET_NAMES:
        for item in sets.for_name(name):
            names.append(name)
            starts.append(_to_utc(item.start))
            ends.append(_to_utc(item.end))
    return pa.Table.from_pydict(
        {
            "set": names,
            "start": starts,
            "end": ends,
        },
        schema=_SCHEMA,
    )


def _table_to_sets(table: pa.Table) -> DateSets:
    # Validate schema shape explicitly
    if table.schema != _SCHEMA:
        raise StorageError("Parquet schema mismatch for date sets")
    names = table.column("set").to_pylist()
    starts = table.column("start").to_pylist()
    ends = table.column("end").to_pylist()
    sets = DateSets()
    for name, start, end in zip(names, starts, ends):
        if name not in SET_NAMES:
            raise StorageError(f"Unknown date set '{name}' in stored data")
        try:
            sets.for_name(name).append(DateRange(start, end))
        except ValidationError as exc:
            raise StorageError(f"Invalid stored range: {exc}") from exc
    return sets


def load_date_sets(path: Path) -> DateSets:
    if not path.exists():
        return DateSets()
    try:
        table = pq.read_table(path)
        return _table_to_sets(table)
    except StorageError:
        raise
    except Exception as exc:
        raise StorageError(f"Failed to read date sets from {path}: {exc}") from exc


def _write_atomic(path: Path, table: pa.Table) -> None:
    ensure_dir(path.parent)
    with tempfile.NamedTemporaryFile(dir=str(path.parent), delete=False) as tmp:
        tmp_path = Path(tmp.name)
    try:
        pq.write_table(table, tmp_path)
        tmp_path.replace(path)
    finally:
        if tmp_path.exists():
            try:
                os.remove(tmp_path)
            except OSError:
                pass


def save_date_sets(path: Path, sets: DateSets) -> None:
    for name in SET_NAMES:
        if any(item.is_all_time for item in sets.for_name(name)):
            raise ValidationError(f"Refusing to store an all-time range in '{name}'")
    table = _sets_to_table(sets)
    _write_atomic(path, table)
    LOGGER.debug(
        "Saved %d disabled and %d available ranges to %s",
        len(sets.disabled),
        len(sets.available),
        path,
    )


def append_ranges(path: Path, name: SetName, ranges: Iterable[DateRange]) -> DateSets:
    """Add ranges to one named set and persist the result."""
    sets = load_date_sets(path)
    sets.for_name(name).extend(ranges)
    save_date_sets(path, sets)
    return sets


__all__ = [
    "DateSets",
    "SetName",
    "SET_NAMES",
    "StorageError",
    "load_date_sets",
    "save_date_sets",
    "append_ranges",
]
