# adaptive_perf/optimization_modules/adaptive_optimizer.py

"""
Rule-driven configuration adjustments.

Decisions and application are separate steps: ``decide_*`` functions are pure
and return an ``OptimizationPlan`` (the rules that fired plus the setting
changes they want), ``apply_plan`` mutates the profile in place and appends
exactly one history entry for the whole batch. Persisting the result is the
caller's job.
"""

import logging
import time
from dataclasses import dataclass, field
from typing import Callable, List, Optional

from ..engine_helpers.settings_tree import apply_changes
from ..models.datatypes import HistoryEntry, ImpactSnapshot, OptimizationProfile, PerformanceImpact, SettingChange
from ..models.enums import (
    CompressionLevel, ConnectionSpeed, ConnectionType, DeviceType, NotificationFrequency,
    OperatingSystem, OptimizationTrigger, SettingCategory,
)
from .performance_scorer import impact_snapshot, metric_value, score

logger_adaptive_optimizer = logging.getLogger(__name__)

DEFAULT_NEEDS_OPTIMIZATION_SCORE = 75
DEFAULT_STALE_AFTER_HOURS = 24

MIN_MOBILE_TOUCH_TARGET = 44
SLOW_PAGE_LOAD_FCP_MS = 3000
HIGH_BATTERY_USAGE = 15
HIGH_ERROR_RATE = 10
HIGH_MEMORY_MB = 150

# Ordered weakest to strongest; rules only ever move along these upwards
_COMPRESSION_ORDER = [CompressionLevel.LOW, CompressionLevel.MEDIUM, CompressionLevel.HIGH, CompressionLevel.MAX]
_NOTIFICATION_ORDER = [
    NotificationFrequency.IMMEDIATE, NotificationFrequency.HOURLY, NotificationFrequency.DAILY,
    NotificationFrequency.WEEKLY, NotificationFrequency.DISABLED,
]

ChangeBuilder = Callable[[OptimizationProfile], List[SettingChange]]


@dataclass(frozen=True)
class AdaptiveRule:
    name: str
    description: str
    condition: Callable[[OptimizationProfile], bool]
    changes: ChangeBuilder
    # Name of the AutoOptimization flag that must be on for this rule to fire
    trigger_flag: Optional[str] = None


@dataclass
class OptimizationPlan:
    rules_fired: List[str] = field(default_factory=list)
    actions: List[str] = field(default_factory=list)
    changes: List[SettingChange] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not self.rules_fired


# --- Change helpers ---

def _set(category: SettingCategory, field_name: str, value) -> Callable[[OptimizationProfile], SettingChange]:
    return lambda profile: SettingChange(category, field_name, value)


def _at_least_compression(level: CompressionLevel) -> Callable[[OptimizationProfile], SettingChange]:
    def build(profile: OptimizationProfile) -> SettingChange:
        current = profile.performance_settings.image_optimization.compression_level
        target = max(current, level, key=_COMPRESSION_ORDER.index)
        return SettingChange(SettingCategory.IMAGE, "compression_level", target)
    return build


def _notifications_at_most(frequency: NotificationFrequency) -> Callable[[OptimizationProfile], SettingChange]:
    def build(profile: OptimizationProfile) -> SettingChange:
        current = profile.ux_settings.notification_settings.notification_frequency
        target = max(current, frequency, key=_NOTIFICATION_ORDER.index)
        return SettingChange(SettingCategory.NOTIFICATION, "notification_frequency", target)
    return build


def _touch_target_at_least(size: int) -> Callable[[OptimizationProfile], SettingChange]:
    def build(profile: OptimizationProfile) -> SettingChange:
        current = profile.ux_settings.touch_optimization.touch_target_size
        return SettingChange(SettingCategory.TOUCH, "touch_target_size", max(size, current))
    return build


def _changes(*builders: Callable[[OptimizationProfile], SettingChange]) -> ChangeBuilder:
    return lambda profile: [build(profile) for build in builders]


def _metric_above(group: str, metric: str, threshold: float) -> Callable[[OptimizationProfile], bool]:
    def check(profile: OptimizationProfile) -> bool:
        value = metric_value(profile.performance_metrics, group, metric)
        return value is not None and value > threshold
    return check


# --- Rule tables ---

ADAPTIVE_RULES: List[AdaptiveRule] = [
    AdaptiveRule(
        "slow_connection", "Enabled aggressive compression for slow connection",
        lambda p: p.device_info.connection_speed == ConnectionSpeed.SLOW,
        _changes(
            _at_least_compression(CompressionLevel.HIGH),
            _set(SettingCategory.CONTENT, "enable_minification", True),
            _set(SettingCategory.OFFLINE, "enable_offline_reading", True),
        ),
        trigger_flag="adjust_for_slow_connection",
    ),
    AdaptiveRule(
        "low_power_mode", "Enabled battery saving mode",
        lambda p: p.device_info.is_low_power_mode,
        _changes(
            _set(SettingCategory.BATTERY, "reduced_animations", True),
            _set(SettingCategory.BATTERY, "reduced_background_activity", True),
            _notifications_at_most(NotificationFrequency.HOURLY),
        ),
        trigger_flag="adjust_for_low_battery",
    ),
    AdaptiveRule(
        "mobile_device", "Optimized for mobile touch interface",
        lambda p: p.device_info.device_type == DeviceType.MOBILE,
        _changes(
            _set(SettingCategory.NAVIGATION, "enable_bottom_navigation", True),
            _touch_target_at_least(MIN_MOBILE_TOUCH_TARGET),
        ),
    ),
    AdaptiveRule(
        "slow_page_load", "Enabled lazy loading and progressive loading for slow page loads",
        _metric_above("page_load", "first_contentful_paint", SLOW_PAGE_LOAD_FCP_MS),
        _changes(
            _set(SettingCategory.IMAGE, "enable_lazy_loading", True),
            _set(SettingCategory.CONTENT, "enable_minification", True),
            _set(SettingCategory.LOADING, "enable_progressive_loading", True),
        ),
    ),
    AdaptiveRule(
        "high_battery_usage", "Enabled battery saver for high battery usage",
        _metric_above("resources", "battery_usage", HIGH_BATTERY_USAGE),
        _changes(
            _set(SettingCategory.BATTERY, "enable_battery_saver", True),
            _set(SettingCategory.BATTERY, "reduced_animations", True),
            _notifications_at_most(NotificationFrequency.DAILY),
        ),
        trigger_flag="adjust_for_low_battery",
    ),
    AdaptiveRule(
        "high_error_rate", "Enabled offline reading for unreliable network",
        _metric_above("network", "error_rate", HIGH_ERROR_RATE),
        _changes(
            _set(SettingCategory.OFFLINE, "enable_offline_reading", True),
            _set(SettingCategory.BANDWIDTH, "enable_background_sync", False),
        ),
    ),
    AdaptiveRule(
        "high_memory_usage", "Enabled caching and lazy loading for high memory usage",
        _metric_above("resources", "memory_usage", HIGH_MEMORY_MB),
        _changes(
            _set(SettingCategory.CONTENT, "enable_content_caching", True),
            _set(SettingCategory.IMAGE, "enable_lazy_loading", True),
            _set(SettingCategory.LOADING, "enable_prefetching", False),
        ),
        trigger_flag="adjust_for_low_memory",
    ),
    AdaptiveRule(
        "offline_connection", "Enabled offline mode while disconnected",
        lambda p: p.device_info.connection_type == ConnectionType.OFFLINE,
        _changes(
            _set(SettingCategory.CONTENT, "enable_offline_mode", True),
            _set(SettingCategory.OFFLINE, "enable_offline_reading", True),
            _set(SettingCategory.OFFLINE, "sync_when_online", True),
        ),
        trigger_flag="adjust_for_offline_mode",
    ),
]

# Applied once, when a profile is first created
INITIAL_RULES: List[AdaptiveRule] = [
    AdaptiveRule(
        "initial_mobile", "Configured navigation and image sizes for mobile",
        lambda p: p.device_info.device_type == DeviceType.MOBILE,
        _changes(
            _set(SettingCategory.NAVIGATION, "enable_bottom_navigation", True),
            _set(SettingCategory.TOUCH, "touch_target_size", MIN_MOBILE_TOUCH_TARGET),
            _set(SettingCategory.IMAGE, "max_image_width", 800),
        ),
    ),
    AdaptiveRule(
        "initial_tablet", "Configured navigation and image sizes for tablet",
        lambda p: p.device_info.device_type == DeviceType.TABLET,
        _changes(
            _set(SettingCategory.NAVIGATION, "enable_side_drawer", True),
            _set(SettingCategory.IMAGE, "max_image_width", 1200),
        ),
    ),
    AdaptiveRule(
        "initial_slow_connection", "Enabled compression and data saver for slow connection",
        lambda p: p.device_info.connection_speed == ConnectionSpeed.SLOW,
        _changes(
            _at_least_compression(CompressionLevel.HIGH),
            _set(SettingCategory.CONTENT, "enable_minification", True),
            _set(SettingCategory.BANDWIDTH, "enable_data_saver", True),
        ),
    ),
    AdaptiveRule(
        "initial_ios", "Applied iOS display and PWA defaults",
        lambda p: p.device_info.operating_system == OperatingSystem.IOS,
        _changes(
            _set(SettingCategory.DISPLAY, "font_size_multiplier", 1.0),
            _set(SettingCategory.APP, "enable_pwa", True),
        ),
    ),
    AdaptiveRule(
        "initial_android", "Applied Android display and home-screen defaults",
        lambda p: p.device_info.operating_system == OperatingSystem.ANDROID,
        _changes(
            _set(SettingCategory.DISPLAY, "font_size_multiplier", 1.1),
            _set(SettingCategory.APP, "enable_home_screen_install", True),
        ),
    ),
]

AGGRESSIVE_RULE = AdaptiveRule(
    "aggressive_fast_path", "Forced maximum compression and data saver for severely slow page loads",
    lambda p: True,
    _changes(
        _set(SettingCategory.IMAGE, "compression_level", CompressionLevel.MAX),
        _set(SettingCategory.CONTENT, "enable_minification", True),
        _set(SettingCategory.BANDWIDTH, "enable_data_saver", True),
    ),
)


# --- Decisions (pure) ---

def _rule_enabled(profile: OptimizationProfile, rule: AdaptiveRule) -> bool:
    if rule.trigger_flag is None:
        return True
    return bool(getattr(profile.adaptive_behavior.auto_optimization, rule.trigger_flag))


def decide(profile: OptimizationProfile, rules: List[AdaptiveRule]) -> OptimizationPlan:
    """Evaluate every rule against ``profile`` without touching it."""
    plan = OptimizationPlan()
    for rule in rules:
        if not _rule_enabled(profile, rule):
            logger_adaptive_optimizer.debug(f"{profile.subject_id}: rule '{rule.name}' disabled by {rule.trigger_flag}")
            continue
        if not rule.condition(profile):
            continue
        logger_adaptive_optimizer.debug(f"{profile.subject_id}: rule '{rule.name}' fired")
        plan.rules_fired.append(rule.name)
        plan.actions.append(rule.description)
        plan.changes.extend(rule.changes(profile))
    return plan


def decide_adaptive(profile: OptimizationProfile) -> OptimizationPlan:
    return decide(profile, ADAPTIVE_RULES)


def decide_initial(profile: OptimizationProfile) -> OptimizationPlan:
    return decide(profile, INITIAL_RULES)


def decide_aggressive(profile: OptimizationProfile) -> OptimizationPlan:
    return decide(profile, [AGGRESSIVE_RULE])


def needs_optimization(profile: OptimizationProfile,
                       now: Optional[float] = None,
                       score_threshold: float = DEFAULT_NEEDS_OPTIMIZATION_SCORE,
                       stale_after_hours: float = DEFAULT_STALE_AFTER_HOURS) -> bool:
    """True when the score is below threshold or the last check is older than ``stale_after_hours``."""
    now = time.time() if now is None else now
    hours_since_check = (now - profile.last_optimization_check) / 3600.0
    return score(profile.performance_metrics) < score_threshold or hours_since_check > stale_after_hours


DEGRADED_METRIC_THRESHOLDS = (
    ("page_load", "first_contentful_paint", SLOW_PAGE_LOAD_FCP_MS),
    ("resources", "battery_usage", HIGH_BATTERY_USAGE),
    ("interaction", "bounce_rate", 70),
)


def has_degraded_metrics(profile: OptimizationProfile) -> bool:
    """True when a key metric is past its degradation threshold, regardless of score or staleness."""
    metrics = profile.performance_metrics
    for group, metric, threshold in DEGRADED_METRIC_THRESHOLDS:
        value = metric_value(metrics, group, metric)
        if value is not None and value > threshold:
            return True
    return False


# --- Application ---

def apply_plan(profile: OptimizationProfile,
               plan: OptimizationPlan,
               action: str,
               reason: str,
               trigger: OptimizationTrigger,
               before: Optional[ImpactSnapshot] = None,
               now: Optional[float] = None) -> HistoryEntry:
    """
    Apply ``plan`` to ``profile`` in place and append one history entry for it.

    ``before`` is the impact snapshot prior to whatever prompted this run; it
    defaults to the current snapshot. ``last_optimization_check`` is advanced.
    """
    now = time.time() if now is None else now
    effective = apply_changes(profile, plan.changes)
    after = impact_snapshot(profile.performance_metrics)
    entry = HistoryEntry(
        action=action,
        reason=reason,
        trigger=trigger,
        timestamp=now,
        changes=effective,
        actions_applied=list(plan.actions),
        performance_impact=PerformanceImpact(before=before if before is not None else after, after=after),
    )
    profile.optimization_history.append(entry)
    profile.mark_checked(now)
    profile.updated_at = max(profile.updated_at, now)
    logger_adaptive_optimizer.info(
        f"{profile.subject_id}: {action} ({trigger.value}) fired {len(plan.rules_fired)} rule(s), "
        f"{len(effective)} setting(s) changed")
    return entry


def apply_adaptive(profile: OptimizationProfile,
                   trigger: OptimizationTrigger = OptimizationTrigger.MANUAL,
                   reason: str = "Adaptive optimization",
                   before: Optional[ImpactSnapshot] = None) -> List[str]:
    """Run the adaptive rule table against ``profile`` and return the applied action descriptions."""
    plan = decide_adaptive(profile)
    apply_plan(profile, plan, action="adaptive_optimization", reason=reason, trigger=trigger, before=before)
    return plan.actions
