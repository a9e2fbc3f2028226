#!/usr/bin/env python3
"""XDG path helpers for calbase."""

from __future__ import annotations

import os
from pathlib import Path

APP_DIR_NAME = "calbase"


def xdg_config_home() -> Path:
    return Path(os.environ.get("XDG_CONFIG_HOME", "~/.config")).expanduser()


def xdg_data_home() -> Path:
    return Path(os.environ.get("XDG_DATA_HOME", "~/.local/share")).expanduser()


def app_config_dir() -> Path:
    return xdg_config_home() / APP_DIR_NAME


def app_data_dir() -> Path:
    return xdg_data_home() / APP_DIR_NAME


def ensure_dir(path: Path) -> None:
    path.mkdir(parents=True, exist_ok=True)


__all__ = [
    "APP_DIR_NAME",
    "xdg_config_home",
    "xdg_data_home",
    "app_config_dir",
    "app_data_dir",
    "ensure_dir",
]
