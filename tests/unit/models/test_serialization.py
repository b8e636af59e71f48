# tests/unit/models/test_serialization.py

import json
from typing import Dict, List, Optional

import pytest

from adaptive_perf.models.datatypes import (
    DeviceInfo, DisplayOptimization, HistoryEntry, OptimizationProfile, PerformanceMetrics, PageLoadMetrics,
    SettingChange,
)
from adaptive_perf.models.enums import (
    CompressionLevel, ConnectionSpeed, DeviceType, OptimizationTrigger, SettingCategory,
)
from adaptive_perf.models.exceptions import InvalidInputError
from adaptive_perf.models.serialization import coerce_value, from_dict, normalize_key, to_dict


@pytest.mark.parametrize("raw, expected", [
    ("firstContentfulPaint", "first_contentful_paint"),
    ("device_type", "device_type"),
    ("slow-2g", "slow_2g"),
    ("enableWebP", "enable_web_p"),
    ("CPUUsage", "cpuusage"),
])
def test_normalize_key(raw, expected):
    assert normalize_key(raw) == expected


def test_normalize_key_rejects_non_strings():
    with pytest.raises(InvalidInputError):
        normalize_key(3)


def test_from_dict_accepts_camel_case_and_enum_values():
    device = from_dict(DeviceInfo, {
        "deviceType": "tablet", "connectionSpeed": "slow",
        "screenResolution": {"width": 1024, "height": 768}, "unknownField": True,
    })
    assert device.device_type == DeviceType.TABLET
    assert device.connection_speed == ConnectionSpeed.SLOW
    assert device.screen_resolution.width == 1024
    # Untouched fields keep defaults
    assert device.browser == "chrome"


def test_from_dict_rejects_bad_enum():
    with pytest.raises(InvalidInputError) as excinfo:
        from_dict(DeviceInfo, {"deviceType": "phablet"})
    assert "device_type" in str(excinfo.value)


def test_from_dict_rejects_non_object():
    with pytest.raises(InvalidInputError):
        from_dict(DeviceInfo, ["mobile"])


def test_from_dict_wraps_post_init_errors():
    with pytest.raises(InvalidInputError):
        from_dict(DisplayOptimization, {"fontSizeMultiplier": 3.0})


@pytest.mark.parametrize("value, hint, expected", [
    (5, float, 5.0),
    (5.0, int, 5),
    (None, Optional[float], None),
    ([1, 2], List[int], [1, 2]),
    ({"a": 1}, Dict[str, float], {"a": 1.0}),
    ("high", CompressionLevel, CompressionLevel.HIGH),
])
def test_coerce_value(value, hint, expected):
    assert coerce_value(value, hint) == expected


@pytest.mark.parametrize("value, hint", [
    (True, int),
    (True, float),
    ("1", float),
    (5.5, int),
    (1, bool),
    (3, str),
    ("x", List[int]),
    (float("nan"), float),
    (float("inf"), Optional[float]),
])
def test_coerce_value_rejects(value, hint):
    with pytest.raises(InvalidInputError):
        coerce_value(value, hint)


def test_profile_document_survives_json():
    profile = OptimizationProfile(subject_id="round-trip")
    profile.performance_metrics = PerformanceMetrics(page_load=PageLoadMetrics(first_contentful_paint=1800))
    profile.performance_settings.image_optimization.compression_level = CompressionLevel.MAX
    profile.optimization_history.append(HistoryEntry(
        action="a", reason="r", trigger=OptimizationTrigger.MANUAL,
        changes=[SettingChange(SettingCategory.IMAGE, "compression_level", CompressionLevel.MAX,
                               CompressionLevel.MEDIUM)],
    ))

    restored = from_dict(OptimizationProfile, json.loads(json.dumps(to_dict(profile))))

    assert restored.profile_id == profile.profile_id
    assert restored.performance_settings.image_optimization.compression_level == CompressionLevel.MAX
    assert restored.performance_metrics.page_load.first_contentful_paint == 1800
    assert restored.performance_metrics.network is None
    assert restored.optimization_history[0].trigger == OptimizationTrigger.MANUAL
    assert restored.optimization_history[0].changes[0].category == SettingCategory.IMAGE


def test_setting_change_rejects_unknown_field():
    with pytest.raises(ValueError):
        SettingChange(SettingCategory.IMAGE, "not_a_field", 1)
