# adaptive_perf/optimization_modules/performance_scorer.py

"""
Deterministic health score over a profile's performance metrics.

The score starts at 100 and loses a fixed number of points for each metric that
crosses its threshold. Deductions are independent and the result is floored at 0.
A metric group that was never reported contributes no deduction.
"""

from typing import NamedTuple, Optional, Tuple

from ..models.datatypes import ImpactSnapshot, PerformanceMetrics
from ..models.enums import OptimizationStatus

MAX_SCORE = 100
MIN_SCORE = 0


class ScoreDeduction(NamedTuple):
    group: str
    metric: str
    threshold: float
    points: int


SCORE_DEDUCTIONS: Tuple[ScoreDeduction, ...] = (
    ScoreDeduction("page_load", "first_contentful_paint", 3000, 20),
    ScoreDeduction("page_load", "time_to_interactive", 5000, 20),
    ScoreDeduction("resources", "battery_usage", 10, 15),
    ScoreDeduction("resources", "memory_usage", 100, 15),
    ScoreDeduction("interaction", "bounce_rate", 70, 15),
    ScoreDeduction("network", "error_rate", 5, 15),
)

# Lower bound (inclusive) for each status, highest first
STATUS_THRESHOLDS: Tuple[Tuple[int, OptimizationStatus], ...] = (
    (90, OptimizationStatus.EXCELLENT),
    (75, OptimizationStatus.GOOD),
    (60, OptimizationStatus.FAIR),
    (40, OptimizationStatus.POOR),
)


def metric_value(metrics: Optional[PerformanceMetrics], group: str, metric: str) -> Optional[float]:
    """Return a reported metric, or None when the group or field is absent."""
    if metrics is None:
        return None
    group_obj = getattr(metrics, group, None)
    if group_obj is None:
        return None
    return getattr(group_obj, metric, None)


def score(metrics: Optional[PerformanceMetrics]) -> int:
    """Integer score in [0, 100]."""
    result = MAX_SCORE
    for deduction in SCORE_DEDUCTIONS:
        value = metric_value(metrics, deduction.group, deduction.metric)
        if value is not None and value > deduction.threshold:
            result -= deduction.points
    return max(MIN_SCORE, result)


def optimization_status(score_value: int) -> OptimizationStatus:
    for lower_bound, status in STATUS_THRESHOLDS:
        if score_value >= lower_bound:
            return status
    return OptimizationStatus.CRITICAL


def impact_snapshot(metrics: Optional[PerformanceMetrics]) -> ImpactSnapshot:
    """Condensed metrics view recorded in history entries."""
    return ImpactSnapshot(
        load_time=metric_value(metrics, "page_load", "first_contentful_paint"),
        battery_usage=metric_value(metrics, "resources", "battery_usage"),
        memory_usage=metric_value(metrics, "resources", "memory_usage"),
        score=score(metrics),
    )


def snapshot_score(snapshot: ImpactSnapshot) -> int:
    """Score reconstructed from an impact snapshot (load time, battery, memory only)."""
    if snapshot.score is not None:
        return snapshot.score
    result = MAX_SCORE
    if snapshot.load_time is not None and snapshot.load_time > 3000:
        result -= 20
    if snapshot.battery_usage is not None and snapshot.battery_usage > 10:
        result -= 15
    if snapshot.memory_usage is not None and snapshot.memory_usage > 100:
        result -= 15
    return max(MIN_SCORE, result)
