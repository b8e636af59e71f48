# adaptive_perf/optimization_modules/recommendation_generator.py

import logging
from typing import Any, Callable, Dict, List, NamedTuple, Optional

from ..models.datatypes import OptimizationProfile, Recommendation
from ..models.enums import CompressionLevel, ConnectionSpeed, DeviceType, RecommendationPriority
from ..models.serialization import to_dict
from .performance_scorer import metric_value

logger_recommendations = logging.getLogger(__name__)

PRIORITY_WEIGHTS: Dict[RecommendationPriority, int] = {
    RecommendationPriority.HIGH: 3,
    RecommendationPriority.MEDIUM: 2,
    RecommendationPriority.LOW: 1,
}

SLOW_FCP_MS = 2500
HIGH_BATTERY_USAGE = 15
HIGH_MEMORY_MB = 150
HIGH_BOUNCE_RATE = 60
SHORT_SESSION_S = 60


class RecommendationRule(NamedTuple):
    name: str
    applies: Callable[[OptimizationProfile], bool]
    recommendation: Recommendation


def _metric_above(group: str, metric: str, threshold: float) -> Callable[[OptimizationProfile], bool]:
    def check(profile: OptimizationProfile) -> bool:
        value = metric_value(profile.performance_metrics, group, metric)
        return value is not None and value > threshold
    return check


def _metric_below(group: str, metric: str, threshold: float) -> Callable[[OptimizationProfile], bool]:
    def check(profile: OptimizationProfile) -> bool:
        value = metric_value(profile.performance_metrics, group, metric)
        return value is not None and value < threshold
    return check


def _mobile_without_bottom_nav(profile: OptimizationProfile) -> bool:
    return (profile.device_info.device_type == DeviceType.MOBILE
            and not profile.ux_settings.navigation_optimization.enable_bottom_navigation)


def _slow_connection_low_compression(profile: OptimizationProfile) -> bool:
    compression = profile.performance_settings.image_optimization.compression_level
    return (profile.device_info.connection_speed == ConnectionSpeed.SLOW
            and compression in (CompressionLevel.LOW, CompressionLevel.MEDIUM))


# --- Rule tables, evaluated in order ---

METRIC_RULES: List[RecommendationRule] = [
    RecommendationRule(
        "slow_page_load", _metric_above("page_load", "first_contentful_paint", SLOW_FCP_MS),
        Recommendation(
            type="performance", priority=RecommendationPriority.HIGH,
            title="Improve page load speed",
            description="Your pages are loading slowly. Consider enabling image optimization and compression.",
            actions=["Enable WebP images", "Increase compression level", "Enable lazy loading"],
        ),
    ),
    RecommendationRule(
        "high_battery_usage", _metric_above("resources", "battery_usage", HIGH_BATTERY_USAGE),
        Recommendation(
            type="battery", priority=RecommendationPriority.MEDIUM,
            title="Reduce battery usage",
            description="The app is using more battery than expected.",
            actions=["Enable battery saver mode", "Reduce background activity", "Optimize polling frequency"],
        ),
    ),
    RecommendationRule(
        "high_memory_usage", _metric_above("resources", "memory_usage", HIGH_MEMORY_MB),
        Recommendation(
            type="memory", priority=RecommendationPriority.MEDIUM,
            title="Optimize memory usage",
            description="Memory usage is higher than recommended.",
            actions=["Enable content caching", "Reduce image sizes", "Enable lazy loading"],
        ),
    ),
    RecommendationRule(
        "high_bounce_rate", _metric_above("interaction", "bounce_rate", HIGH_BOUNCE_RATE),
        Recommendation(
            type="ux", priority=RecommendationPriority.HIGH,
            title="Improve user experience",
            description="Users are leaving quickly. Consider UX improvements.",
            actions=["Optimize navigation", "Improve content loading", "Enhance touch interactions"],
        ),
    ),
]

DEVICE_RULES: List[RecommendationRule] = [
    RecommendationRule(
        "mobile_bottom_navigation", _mobile_without_bottom_nav,
        Recommendation(
            type="navigation", priority=RecommendationPriority.MEDIUM,
            title="Enable bottom navigation",
            description="Bottom navigation improves usability on mobile devices",
            actions=["Enable bottom navigation bar", "Optimize for thumb-friendly interaction"],
        ),
    ),
    RecommendationRule(
        "slow_connection_compression", _slow_connection_low_compression,
        Recommendation(
            type="performance", priority=RecommendationPriority.HIGH,
            title="Increase image compression",
            description="High compression reduces data usage on slow connections",
            actions=["Set compression to high", "Enable WebP format", "Reduce image dimensions"],
        ),
    ),
]

USAGE_PATTERN_RULES: List[RecommendationRule] = [
    RecommendationRule(
        "short_sessions", _metric_below("interaction", "average_session_duration", SHORT_SESSION_S),
        Recommendation(
            type="engagement", priority=RecommendationPriority.HIGH,
            title="Improve content engagement",
            description="Users are leaving quickly. Consider improving content loading and presentation.",
            actions=["Optimize page load speed", "Improve content layout", "Add interactive elements"],
        ),
    ),
]

ALL_RULES: List[RecommendationRule] = METRIC_RULES + DEVICE_RULES + USAGE_PATTERN_RULES


def recommend(profile: OptimizationProfile,
              limit: Optional[int] = None,
              rules: Optional[List[RecommendationRule]] = None) -> List[Recommendation]:
    """
    Evaluate every rule independently and return matches ordered by priority
    (high > medium > low). Ties keep rule-evaluation order. ``limit`` only
    truncates the ordered result.
    """
    matched: List[Recommendation] = []
    for rule in (ALL_RULES if rules is None else rules):
        if rule.applies(profile):
            logger_recommendations.debug(f"{profile.subject_id}: recommendation rule '{rule.name}' matched")
            # Copy so callers can't mutate the shared template
            template = rule.recommendation
            matched.append(Recommendation(
                type=template.type, priority=template.priority, title=template.title,
                description=template.description, actions=list(template.actions),
            ))
    ordered = sorted(matched, key=lambda r: PRIORITY_WEIGHTS[r.priority], reverse=True)
    return ordered if limit is None else ordered[:max(0, limit)]


def recommendations_as_dicts(recommendations: List[Recommendation]) -> List[Dict[str, Any]]:
    return [to_dict(r) for r in recommendations]
