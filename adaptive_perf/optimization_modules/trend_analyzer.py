# adaptive_perf/optimization_modules/trend_analyzer.py

"""
Qualitative trend labels over a profile's optimization history.

Each history entry carries a ``performance_impact.after`` snapshot. For one
snapshot metric the analyzer keeps only entries where that metric is populated,
then compares the mean of the most recent window against the mean of the
earliest window. With fewer populated entries than both windows need, the
earlier window takes the first half and the recent window the rest. A difference beyond the metric's noise threshold gives
improving/degrading, anything else (including too little data) is stable.
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence

from ..models.datatypes import HistoryEntry
from ..models.enums import Trend

logger_trend_analyzer = logging.getLogger(__name__)

MIN_POPULATED_ENTRIES = 2


@dataclass(frozen=True)
class MetricTrendSpec:
    threshold: float
    higher_is_better: bool
    recent_window: int = 2
    earlier_window: int = 2


DEFAULT_TREND_SPECS: Dict[str, MetricTrendSpec] = {
    "score": MetricTrendSpec(threshold=5, higher_is_better=True, recent_window=3),
    "battery_usage": MetricTrendSpec(threshold=2, higher_is_better=False),
    "load_time": MetricTrendSpec(threshold=500, higher_is_better=False),
    "memory_usage": MetricTrendSpec(threshold=10, higher_is_better=False),
}


def specs_from_config(section: Optional[Dict[str, Any]]) -> Dict[str, MetricTrendSpec]:
    """
    Build per-metric specs from a ``[trend_analyzer]`` config section.

    Each sub-table may override ``threshold``, ``recent_window`` and
    ``earlier_window``; direction is fixed per metric. Unknown metric names
    are ignored with a warning.
    """
    specs = dict(DEFAULT_TREND_SPECS)
    for metric, overrides in (section or {}).items():
        base = specs.get(metric)
        if base is None:
            logger_trend_analyzer.warning(f"Ignoring trend config for unknown metric '{metric}'")
            continue
        if not isinstance(overrides, dict):
            logger_trend_analyzer.warning(f"Trend config for '{metric}' must be a table; using defaults")
            continue
        specs[metric] = MetricTrendSpec(
            threshold=float(overrides.get("threshold", base.threshold)),
            higher_is_better=base.higher_is_better,
            recent_window=max(1, int(overrides.get("recent_window", base.recent_window))),
            earlier_window=max(1, int(overrides.get("earlier_window", base.earlier_window))),
        )
    return specs


def _mean(values: Sequence[float]) -> float:
    return sum(values) / len(values)


def trend(history: Sequence[HistoryEntry],
          metric_path: str,
          specs: Optional[Dict[str, MetricTrendSpec]] = None) -> Trend:
    """Trend for one snapshot metric (``score``, ``battery_usage``, ``load_time``, ``memory_usage``)."""
    spec = (specs or DEFAULT_TREND_SPECS).get(metric_path)
    if spec is None:
        raise ValueError(f"No trend configuration for metric '{metric_path}'")

    values: List[float] = []
    for entry in history:
        value = getattr(entry.performance_impact.after, metric_path, None)
        if value is not None:
            values.append(float(value))

    if len(values) < MIN_POPULATED_ENTRIES:
        return Trend.STABLE

    # Windows shrink on short histories so they never overlap
    earlier_n = min(spec.earlier_window, len(values) // 2)
    recent_n = min(spec.recent_window, len(values) - earlier_n)
    recent = _mean(values[-recent_n:])
    earlier = _mean(values[:earlier_n])
    delta = recent - earlier
    if not spec.higher_is_better:
        delta = -delta

    if delta > spec.threshold:
        result = Trend.IMPROVING
    elif delta < -spec.threshold:
        result = Trend.DEGRADING
    else:
        result = Trend.STABLE
    logger_trend_analyzer.debug(
        f"Trend '{metric_path}': earlier={earlier:.2f} recent={recent:.2f} -> {result.value}")
    return result


def trends(history: Sequence[HistoryEntry],
           specs: Optional[Dict[str, MetricTrendSpec]] = None,
           metrics: Optional[Sequence[str]] = None) -> Dict[str, Trend]:
    specs = specs or DEFAULT_TREND_SPECS
    return {metric: trend(history, metric, specs) for metric in (metrics or specs.keys())}
