# tests/test_config.py
from pathlib import Path

import pytest

from mdscope.config import AppConfig, ConfigError, load_config


def write(tmp_path, text):
    path = tmp_path / ".mdscope.toml"
    path.write_text(text, encoding="utf-8")
    return path


def test_missing_file_gives_defaults(tmp_path):
    config = load_config(tmp_path / "absent.toml")
    assert config == AppConfig()
    assert config.search.max_matches_per_file == 5
    assert config.search.debounce_seconds == 0.3
    assert config.scan.prune_build_artifacts is True


def test_values_are_merged_over_defaults(tmp_path):
    path = write(tmp_path, "\n".join([
        "[scan]",
        "prune_build_artifacts = false",
        'extra_excludes = ["archive/"]',
        "batch_size = 50",
        "[search]",
        "max_matches_per_file = 8",
        "debounce_seconds = 0",
        "[history]",
        'path = "~/hist.json"',
        "max_entries = 5",
    ]))
    config = load_config(path)
    assert config.scan.prune_build_artifacts is False
    assert config.scan.extra_excludes == ("archive/",)
    assert config.scan.batch_size == 50
    assert config.search.max_matches_per_file == 8
    assert config.search.debounce_seconds == 0.0
    assert config.search.line_trim == 200
    assert config.search.history_max_entries == 5
    assert config.history_path == Path("~/hist.json").expanduser()


def test_invalid_type_names_the_field(tmp_path):
    path = write(tmp_path, '[search]\nline_trim = "wide"\n')
    with pytest.raises(ConfigError, match="search.line_trim"):
        load_config(path)


def test_non_positive_int_rejected(tmp_path):
    path = write(tmp_path, "[scan]\nbatch_size = 0\n")
    with pytest.raises(ConfigError, match="scan.batch_size"):
        load_config(path)


def test_section_must_be_table(tmp_path):
    path = write(tmp_path, 'search = "fast"\n')
    with pytest.raises(ConfigError, match="section 'search'"):
        load_config(path)


def test_unknown_field_rejected(tmp_path):
    path = write(tmp_path, "[scan]\nfollow_symlinks = true\n")
    with pytest.raises(ConfigError, match="scan.follow_symlinks"):
        load_config(path)


def test_config_error_is_value_error(tmp_path):
    path = write(tmp_path, "not = [valid")
    with pytest.raises(ValueError):
        load_config(path)
