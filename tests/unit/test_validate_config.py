# tests/unit/test_validate_config.py

from pathlib import Path

import pytest
import toml

from scripts.validate_config import validate_config

PROJECT_ROOT = Path(__file__).resolve().parents[2]


def _write_config(tmp_path: Path, data: dict) -> str:
    path = tmp_path / "config.toml"
    path.write_text(toml.dumps(data))
    return str(path)


def test_shipped_config_is_valid():
    assert validate_config(str(PROJECT_ROOT / "config.toml")) is True


@pytest.mark.parametrize("period", ["30d", "12h", "1w", "2m", "1y"])
def test_every_period_unit_is_accepted(tmp_path, period):
    path = _write_config(tmp_path, {"profile_manager": {"default_analytics_period": period}})
    assert validate_config(path) is True


@pytest.mark.parametrize("period", ["0d", "30", "d30", "1.5d", "soon"])
def test_malformed_period_is_rejected(tmp_path, capsys, period):
    path = _write_config(tmp_path, {"profile_manager": {"default_analytics_period": period}})
    assert validate_config(path) is False
    assert "default_analytics_period" in capsys.readouterr().out


def test_boolean_is_not_a_number(tmp_path):
    path = _write_config(tmp_path, {"scheduler": {"batch_size": True}})
    assert validate_config(path) is False


def test_out_of_range_value_is_rejected(tmp_path):
    path = _write_config(tmp_path, {"adaptive_optimizer": {"needs_optimization_score_threshold": 150}})
    assert validate_config(path) is False


def test_missing_sections_are_only_warnings(tmp_path, capsys):
    path = _write_config(tmp_path, {"storage": {"db_path": "data/x.db"}})
    assert validate_config(path) is True
    assert "VALID with warnings" in capsys.readouterr().out


def test_bad_trend_window_is_rejected(tmp_path):
    path = _write_config(tmp_path, {"trend_analyzer": {"score": {"recent_window": 0}}})
    assert validate_config(path) is False


def test_missing_file_is_invalid(tmp_path):
    assert validate_config(str(tmp_path / "absent.toml")) is False
