# tests/unit/optimization_modules/test_presets.py

import pytest

from adaptive_perf.engine_helpers.settings_tree import build_changes_from_tree
from adaptive_perf.models.datatypes import OptimizationProfile
from adaptive_perf.optimization_modules.presets import PRESETS, get_preset, list_presets


def test_known_presets():
    assert set(PRESETS) == {"battery_saver", "speed_boost", "data_saver", "balanced", "accessibility"}
    assert [p.key for p in list_presets()] == list(PRESETS)


def test_get_preset_unknown_returns_none():
    assert get_preset("turbo") is None
    assert get_preset("balanced").name == "Balanced"


@pytest.mark.parametrize("key", sorted(PRESETS))
def test_every_preset_is_a_valid_settings_tree(key):
    # Raises InvalidInputError if any preset names an unknown or out-of-range setting
    changes = build_changes_from_tree(OptimizationProfile(subject_id="p"), PRESETS[key].settings)
    assert changes
    assert PRESETS[key].expected_impact
