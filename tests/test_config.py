from pathlib import Path

import pytest

from base_context import create_base
from config import CONFIG_FILENAME, ConfigError, load_config


def test_missing_config_uses_xdg_defaults(tmp_path, monkeypatch) -> None:
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "config"))
    monkeypatch.setenv("XDG_DATA_HOME", str(tmp_path / "data"))

    config = load_config()

    assert config.date_sets_path == tmp_path / "data" / "calbase" / "date_sets.parquet"
    assert config.locale is None
    assert config.color == "blue"
    assert config.masks == {}


def test_config_tolerates_trailing_commas(tmp_path, monkeypatch) -> None:
    config_dir = tmp_path / "calbase"
    config_dir.mkdir()
    (config_dir / CONFIG_FILENAME).write_text(
        '{"locale": "de-DE", "timezone": "Europe/Berlin", "masks": {"title": "YYYY",},}'
    )
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path))

    config = load_config()

    assert config.locale == "de-DE"
    assert config.timezone == "Europe/Berlin"
    assert config.masks == {"title": "YYYY"}


def test_invalid_json_raises_config_error(tmp_path) -> None:
    path = tmp_path / CONFIG_FILENAME
    path.write_text("{not json")

    with pytest.raises(ConfigError):
        load_config(path)


def test_non_integer_first_day_is_rejected(tmp_path) -> None:
    path = tmp_path / CONFIG_FILENAME
    path.write_text('{"first_day_of_week": "monday"}')

    with pytest.raises(ConfigError):
        load_config(path)


def test_to_props_applies_overrides(tmp_path) -> None:
    path = tmp_path / CONFIG_FILENAME
    path.write_text(
        '{"locale": "en-GB", "timezone": "UTC", "first_day_of_week": 3, '
        '"date_sets_path": "' + str(tmp_path / "sets.parquet") + '"}'
    )
    config = load_config(path)

    props = config.to_props(min_date="2024-03-10")
    context = create_base(props)

    assert config.date_sets_path == Path(tmp_path / "sets.parquet")
    assert props.locale == "en-GB"
    assert context.locale.first_day_of_week == 3
    assert len(context.disabled_dates) == 1
