#!/usr/bin/env python3
"""Configuration loading and path resolution for calbase."""

from __future__ import annotations

import json
import re
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any, Dict, Optional, Union

from base_context import BaseProps
from paths import app_config_dir, app_data_dir
from theme import DEFAULT_COLOR


class ConfigError(Exception):
    pass


@dataclass
class Config:
    date_sets_path: Path
    locale: Optional[str] = None
    timezone: Optional[str] = None
    first_day_of_week: Optional[int] = None
    masks: Dict[str, Any] = field(default_factory=dict)
    color: str = DEFAULT_COLOR
    is_dark: Union[bool, str] = False

    def to_props(self, **overrides: Any) -> BaseProps:
        """Build calendar props from the configured defaults."""
        props = BaseProps(
            locale=self.locale,
            timezone=self.timezone,
            first_day_of_week=self.first_day_of_week,
            masks=dict(self.masks) or None,
            color=self.color,
            is_dark=self.is_dark,
        )
        return replace(props, **overrides)


DEFAULT_DATE_SETS_FILENAME = "date_sets.parquet"
CONFIG_FILENAME = "config.json"


def default_config_path() -> Path:
    return app_config_dir() / CONFIG_FILENAME


def _default_date_sets_path() -> Path:
    return app_data_dir() / DEFAULT_DATE_SETS_FILENAME


def load_config(path: Optional[Path] = None) -> Config:
    """Load config from the XDG path, falling back to defaults.

    A missing file gives defaults. A file that is not valid JSON, even
    after dropping trailing commas, raises ``ConfigError``.
    """

    config_path = (path or default_config_path()).expanduser()
    raw: Dict[str, Any] = {}

    if config_path.exists():
        raw_text = config_path.read_text()
        try:
            raw = json.loads(raw_text)
        except json.JSONDecodeError:
            try:
                raw = json.loads(_strip_trailing_commas(raw_text))
            except json.JSONDecodeError as exc:
                raise ConfigError(f"Invalid JSON in {config_path}: {exc}") from exc
        if not isinstance(raw, dict):
            raise ConfigError(f"{config_path} must contain a JSON object")

    masks = raw.get("masks") or {}
    if not isinstance(masks, dict):
        raise ConfigError("'masks' must be an object of mask name to format")

    first_day = raw.get("first_day_of_week")
    if first_day is not None and (isinstance(first_day, bool) or not isinstance(first_day, int)):
        raise ConfigError("'first_day_of_week' must be an integer 0-6")

    date_sets_path = Path(raw.get("date_sets_path") or _default_date_sets_path()).expanduser()

    return Config(
        date_sets_path=date_sets_path,
        locale=raw.get("locale"),
        timezone=raw.get("timezone"),
        first_day_of_week=first_day,
        masks=masks,
        color=raw.get("color") or DEFAULT_COLOR,
        is_dark=raw.get("is_dark", False),
    )


def _strip_trailing_commas(text: str) -> str:
    """Remove trailing commas before closing braces/brackets."""
    return re.sub(r",(\s*[}\]])", r"\1", text)


__all__ = ["Config", "ConfigError", "load_config", "default_config_path", "CONFIG_FILENAME"]
