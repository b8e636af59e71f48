# tests/unit/optimization_modules/test_adaptive_optimizer.py

import time

import pytest

from adaptive_perf.models.datatypes import (
    OptimizationProfile, DeviceInfo, PerformanceMetrics, PageLoadMetrics, NetworkMetrics, ResourceMetrics,
    ImpactSnapshot,
)
from adaptive_perf.models.enums import (
    CompressionLevel, ConnectionSpeed, ConnectionType, DeviceType, NotificationFrequency, OperatingSystem,
    OptimizationTrigger, SettingCategory,
)
from adaptive_perf.optimization_modules import adaptive_optimizer
from adaptive_perf.optimization_modules.adaptive_optimizer import (
    apply_adaptive, apply_plan, decide_adaptive, decide_aggressive, decide_initial,
    has_degraded_metrics, needs_optimization,
)


def _profile(**device) -> OptimizationProfile:
    device.setdefault("device_type", DeviceType.DESKTOP)
    device.setdefault("operating_system", OperatingSystem.LINUX)
    return OptimizationProfile(subject_id="subject-1", device_info=DeviceInfo(**device))


def test_slow_connection_scenario():
    profile = _profile(connection_speed=ConnectionSpeed.SLOW)
    profile.performance_settings.content_optimization.enable_minification = False
    profile.mobile_features.offline_capabilities.enable_offline_reading = False

    actions = apply_adaptive(profile)

    assert profile.performance_settings.image_optimization.compression_level == CompressionLevel.HIGH
    assert profile.performance_settings.content_optimization.enable_minification is True
    assert profile.mobile_features.offline_capabilities.enable_offline_reading is True
    assert len(profile.optimization_history) == 1
    assert actions == ["Enabled aggressive compression for slow connection"]


def test_one_history_entry_per_batch():
    profile = _profile(connection_speed=ConnectionSpeed.SLOW, device_type=DeviceType.MOBILE, is_low_power_mode=True)
    profile.performance_metrics = PerformanceMetrics(page_load=PageLoadMetrics(first_contentful_paint=4000))
    actions = apply_adaptive(profile, trigger=OptimizationTrigger.SCHEDULED)
    assert len(actions) == 4
    assert len(profile.optimization_history) == 1
    entry = profile.optimization_history[0]
    assert entry.trigger == OptimizationTrigger.SCHEDULED
    assert entry.actions_applied == actions


def test_history_written_even_when_no_rule_fires():
    profile = _profile()
    assert apply_adaptive(profile) == []
    assert len(profile.optimization_history) == 1
    assert profile.optimization_history[0].changes == []


def test_slow_connection_never_lowers_max_compression():
    profile = _profile(connection_speed=ConnectionSpeed.SLOW)
    profile.performance_settings.image_optimization.compression_level = CompressionLevel.MAX
    apply_adaptive(profile)
    assert profile.performance_settings.image_optimization.compression_level == CompressionLevel.MAX


def test_low_power_mode_reduces_activity_and_notifications():
    profile = _profile(is_low_power_mode=True)
    apply_adaptive(profile)
    battery = profile.performance_settings.battery_optimization
    assert battery.reduced_animations is True
    assert battery.reduced_background_activity is True
    assert profile.ux_settings.notification_settings.notification_frequency == NotificationFrequency.HOURLY


def test_notification_frequency_is_never_increased():
    profile = _profile(is_low_power_mode=True)
    profile.ux_settings.notification_settings.notification_frequency = NotificationFrequency.WEEKLY
    apply_adaptive(profile)
    assert profile.ux_settings.notification_settings.notification_frequency == NotificationFrequency.WEEKLY


def test_mobile_touch_target_raised_but_never_lowered():
    profile = _profile(device_type=DeviceType.MOBILE)
    profile.ux_settings.touch_optimization.touch_target_size = 30
    profile.ux_settings.navigation_optimization.enable_bottom_navigation = False
    apply_adaptive(profile)
    assert profile.ux_settings.touch_optimization.touch_target_size == 44
    assert profile.ux_settings.navigation_optimization.enable_bottom_navigation is True

    profile.ux_settings.touch_optimization.touch_target_size = 60
    apply_adaptive(profile)
    assert profile.ux_settings.touch_optimization.touch_target_size == 60


def test_metric_rules():
    profile = _profile()
    profile.performance_settings.loading_optimization.enable_progressive_loading = False
    profile.performance_metrics = PerformanceMetrics(
        page_load=PageLoadMetrics(first_contentful_paint=3500),
        resources=ResourceMetrics(battery_usage=20, memory_usage=200),
        network=NetworkMetrics(error_rate=12),
    )
    plan = decide_adaptive(profile)
    assert plan.rules_fired == ["slow_page_load", "high_battery_usage", "high_error_rate", "high_memory_usage"]
    apply_plan(profile, plan, "adaptive_optimization", "test", OptimizationTrigger.MANUAL)

    assert profile.performance_settings.loading_optimization.enable_progressive_loading is True
    assert profile.performance_settings.battery_optimization.enable_battery_saver is True
    assert profile.ux_settings.notification_settings.notification_frequency == NotificationFrequency.DAILY
    assert profile.adaptive_behavior.bandwidth_management.enable_background_sync is False
    assert profile.performance_settings.loading_optimization.enable_prefetching is False


def test_offline_connection_enables_offline_features():
    profile = _profile(connection_type=ConnectionType.OFFLINE)
    profile.mobile_features.offline_capabilities.sync_when_online = False
    plan = decide_adaptive(profile)
    assert plan.rules_fired == ["offline_connection"]


def test_trigger_flags_gate_rules():
    profile = _profile(connection_speed=ConnectionSpeed.SLOW, is_low_power_mode=True)
    profile.adaptive_behavior.auto_optimization.adjust_for_slow_connection = False
    profile.adaptive_behavior.auto_optimization.adjust_for_low_battery = False
    assert decide_adaptive(profile).is_empty


def test_decide_does_not_mutate_profile():
    profile = _profile(connection_speed=ConnectionSpeed.SLOW)
    plan = decide_adaptive(profile)
    assert plan.changes
    assert profile.performance_settings.image_optimization.compression_level == CompressionLevel.MEDIUM
    assert profile.optimization_history == []


def test_apply_plan_records_effective_changes_only():
    profile = _profile(connection_speed=ConnectionSpeed.SLOW)
    # Minification and offline reading are already on by default
    entry = apply_plan(profile, decide_adaptive(profile), "adaptive_optimization", "r", OptimizationTrigger.MANUAL)
    assert [(c.category, c.field) for c in entry.changes] == [(SettingCategory.IMAGE, "compression_level")]
    assert entry.changes[0].previous == CompressionLevel.MEDIUM
    assert entry.changes[0].value == CompressionLevel.HIGH


def test_apply_plan_snapshots_and_check_time():
    profile = _profile()
    profile.last_optimization_check = 1000.0
    profile.performance_metrics = PerformanceMetrics(page_load=PageLoadMetrics(first_contentful_paint=3500))
    before = ImpactSnapshot(load_time=1200, score=100)
    entry = apply_plan(profile, decide_adaptive(profile), "a", "r", OptimizationTrigger.PERFORMANCE,
                       before=before, now=5000.0)
    assert entry.performance_impact.before == before
    assert entry.performance_impact.after.load_time == 3500
    assert entry.performance_impact.after.score == 80
    assert entry.timestamp == 5000.0
    assert profile.last_optimization_check == 5000.0


def test_apply_plan_never_moves_check_backwards():
    profile = _profile()
    profile.last_optimization_check = 9000.0
    apply_plan(profile, decide_adaptive(profile), "a", "r", OptimizationTrigger.MANUAL, now=5000.0)
    assert profile.last_optimization_check == 9000.0


def test_initial_rules_mobile_android_slow():
    profile = _profile(device_type=DeviceType.MOBILE, operating_system=OperatingSystem.ANDROID,
                       connection_speed=ConnectionSpeed.SLOW)
    plan = decide_initial(profile)
    assert plan.rules_fired == ["initial_mobile", "initial_slow_connection", "initial_android"]
    apply_plan(profile, plan, "initial_optimization", "r", OptimizationTrigger.INITIAL)
    assert profile.performance_settings.image_optimization.max_image_width == 800
    assert profile.adaptive_behavior.bandwidth_management.enable_data_saver is True
    assert profile.ux_settings.display_optimization.font_size_multiplier == pytest.approx(1.1)


def test_initial_rules_tablet_ios():
    profile = _profile(device_type=DeviceType.TABLET, operating_system=OperatingSystem.IOS)
    plan = decide_initial(profile)
    assert plan.rules_fired == ["initial_tablet", "initial_ios"]
    apply_plan(profile, plan, "initial_optimization", "r", OptimizationTrigger.INITIAL)
    assert profile.performance_settings.image_optimization.max_image_width == 1200
    assert profile.ux_settings.navigation_optimization.enable_side_drawer is True


def test_aggressive_plan_forces_maximum_compression():
    profile = _profile()
    profile.performance_settings.content_optimization.enable_minification = False
    plan = decide_aggressive(profile)
    apply_plan(profile, plan, "aggressive_optimization", "r", OptimizationTrigger.AGGRESSIVE)
    assert profile.performance_settings.image_optimization.compression_level == CompressionLevel.MAX
    assert profile.performance_settings.content_optimization.enable_minification is True
    assert profile.adaptive_behavior.bandwidth_management.enable_data_saver is True


def test_needs_optimization_gating():
    now = time.time()
    healthy = _profile()
    healthy.performance_metrics = PerformanceMetrics(page_load=PageLoadMetrics(first_contentful_paint=3500))  # 80
    healthy.last_optimization_check = now - 3600
    assert needs_optimization(healthy, now=now) is False

    degraded = _profile()
    degraded.performance_metrics = PerformanceMetrics(
        page_load=PageLoadMetrics(first_contentful_paint=3500),
        resources=ResourceMetrics(memory_usage=200),
    )  # 65
    degraded.last_optimization_check = now - 3600
    assert needs_optimization(degraded, now=now) is True


def test_needs_optimization_when_stale():
    now = time.time()
    profile = _profile()
    profile.last_optimization_check = now - 25 * 3600
    assert needs_optimization(profile, now=now) is True
    assert needs_optimization(profile, now=now, stale_after_hours=48) is False


def test_has_degraded_metrics():
    profile = _profile()
    assert has_degraded_metrics(profile) is False
    profile.performance_metrics = PerformanceMetrics(resources=ResourceMetrics(battery_usage=16))
    assert has_degraded_metrics(profile) is True


def test_rule_tables_only_touch_known_categories():
    for rule in adaptive_optimizer.ADAPTIVE_RULES + adaptive_optimizer.INITIAL_RULES:
        for change in rule.changes(_profile()):
            assert isinstance(change.category, SettingCategory)
