# tests/unit/test_engine_config.py

import logging

from adaptive_perf.engine_config import CONFIG_SECTIONS, load_config


def test_missing_file_yields_empty_config(tmp_path):
    assert load_config(tmp_path / "nope.toml") == {}


def test_malformed_file_yields_empty_config(tmp_path):
    path = tmp_path / "config.toml"
    path.write_text("[storage\ndb_path = ")
    assert load_config(path) == {}


def test_known_sections_load_quietly(tmp_path, caplog):
    path = tmp_path / "config.toml"
    path.write_text("[storage]\ndb_path = ':memory:'\n\n[scheduler]\nenabled = false\n")
    with caplog.at_level(logging.WARNING, logger="adaptive_perf.engine_config"):
        config = load_config(path)
    assert config["storage"]["db_path"] == ":memory:"
    assert set(config) <= set(CONFIG_SECTIONS)
    assert "unknown config section" not in caplog.text


def test_unknown_sections_are_reported(tmp_path, caplog):
    path = tmp_path / "config.toml"
    path.write_text("[storage]\ndb_path = ':memory:'\n\n[shceduler]\nenabled = false\n")
    with caplog.at_level(logging.WARNING, logger="adaptive_perf.engine_config"):
        config = load_config(path)
    assert "shceduler" in config
    assert "unknown config section(s)" in caplog.text
    assert "shceduler" in caplog.text
