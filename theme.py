#!/usr/bin/env python3
"""Theme resolution for calendar attributes."""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Sequence, Union

from models import ValidationError

COLORS: Sequence[str] = (
    "gray",
    "red",
    "orange",
    "yellow",
    "green",
    "teal",
    "blue",
    "indigo",
    "purple",
    "pink",
)
DEFAULT_COLOR = "blue"
DARK_MODE_ENV = "CALBASE_DARK_MODE"

DarkModeConfig = Union[bool, str]


@dataclass(frozen=True)
class Theme:
    color: str
    is_dark: bool

    @property
    def display_mode(self) -> str:
        return "dark" if self.is_dark else "light"


def _system_prefers_dark() -> bool:
    value = os.environ.get(DARK_MODE_ENV, "").strip().lower()
    return value in {"1", "true", "yes", "dark"}


def resolve_dark_mode(is_dark: DarkModeConfig) -> bool:
    if isinstance(is_dark, bool):
        return is_dark
    mode = str(is_dark).strip().lower()
    if mode == "system":
        return _system_prefers_dark()
    if mode in {"dark", "light"}:
        return mode == "dark"
    raise ValidationError(
        f"Invalid dark mode '{is_dark}'. Expected a bool, 'light', 'dark' or 'system'"
    )


def resolve_theme(color: str | None = None, is_dark: DarkModeConfig = False) -> Theme:
    name = (color or DEFAULT_COLOR).strip().lower()
    if name not in COLORS:
        valid = ", ".join(COLORS)
        raise ValidationError(f"Invalid color '{name}'. Expected one of: {valid}")
    return Theme(color=name, is_dark=resolve_dark_mode(is_dark))


__all__ = [
    "Theme",
    "COLORS",
    "DEFAULT_COLOR",
    "DARK_MODE_ENV",
    "DarkModeConfig",
    "resolve_theme",
    "resolve_dark_mode",
]
