# tests/unit/optimization_modules/test_performance_scorer.py

import pytest

from adaptive_perf.models.datatypes import (
    PerformanceMetrics, PageLoadMetrics, InteractionMetrics, NetworkMetrics, ResourceMetrics, ImpactSnapshot,
)
from adaptive_perf.models.enums import OptimizationStatus
from adaptive_perf.optimization_modules import performance_scorer
from adaptive_perf.optimization_modules.performance_scorer import (
    score, optimization_status, impact_snapshot, snapshot_score, metric_value,
)


def _worst_metrics() -> PerformanceMetrics:
    return PerformanceMetrics(
        page_load=PageLoadMetrics(first_contentful_paint=9000, time_to_interactive=12000),
        interaction=InteractionMetrics(bounce_rate=95),
        network=NetworkMetrics(error_rate=40),
        resources=ResourceMetrics(battery_usage=50, memory_usage=900),
    )


def test_empty_metrics_score_full_marks():
    assert score(PerformanceMetrics()) == 100
    assert score(None) == 100


def test_documented_scenario_scores_sixty_and_fair():
    metrics = PerformanceMetrics(
        page_load=PageLoadMetrics(first_contentful_paint=3500, time_to_interactive=6000),
        resources=ResourceMetrics(battery_usage=5, memory_usage=50),
        interaction=InteractionMetrics(bounce_rate=30),
        network=NetworkMetrics(error_rate=1),
    )
    result = score(metrics)
    assert result == 60
    assert optimization_status(result) == OptimizationStatus.FAIR


def test_thresholds_are_strictly_greater_than():
    at_threshold = PerformanceMetrics(
        page_load=PageLoadMetrics(first_contentful_paint=3000, time_to_interactive=5000),
        resources=ResourceMetrics(battery_usage=10, memory_usage=100),
        interaction=InteractionMetrics(bounce_rate=70),
        network=NetworkMetrics(error_rate=5),
    )
    assert score(at_threshold) == 100


@pytest.mark.parametrize("metrics, expected", [
    (PerformanceMetrics(page_load=PageLoadMetrics(first_contentful_paint=3001)), 80),
    (PerformanceMetrics(page_load=PageLoadMetrics(time_to_interactive=5001)), 80),
    (PerformanceMetrics(resources=ResourceMetrics(battery_usage=10.5)), 85),
    (PerformanceMetrics(resources=ResourceMetrics(memory_usage=101)), 85),
    (PerformanceMetrics(interaction=InteractionMetrics(bounce_rate=71)), 85),
    (PerformanceMetrics(network=NetworkMetrics(error_rate=6)), 85),
])
def test_each_deduction_independently(metrics, expected):
    assert score(metrics) == expected


def test_all_deductions_floor_at_zero():
    # 20 + 20 + 15 * 4 = 100 points of deductions
    assert score(_worst_metrics()) == 0
    assert optimization_status(score(_worst_metrics())) == OptimizationStatus.CRITICAL


def test_missing_group_is_not_a_penalty():
    metrics = PerformanceMetrics(page_load=PageLoadMetrics(first_contentful_paint=None, time_to_interactive=6000))
    assert score(metrics) == 80


@pytest.mark.parametrize("value, expected", [
    (100, OptimizationStatus.EXCELLENT),
    (90, OptimizationStatus.EXCELLENT),
    (89, OptimizationStatus.GOOD),
    (75, OptimizationStatus.GOOD),
    (74, OptimizationStatus.FAIR),
    (60, OptimizationStatus.FAIR),
    (59, OptimizationStatus.POOR),
    (40, OptimizationStatus.POOR),
    (39, OptimizationStatus.CRITICAL),
    (0, OptimizationStatus.CRITICAL),
])
def test_status_boundaries(value, expected):
    assert optimization_status(value) == expected


def test_status_is_total_over_score_range():
    for value in range(0, 101):
        assert isinstance(optimization_status(value), OptimizationStatus)


def test_score_bounded_for_every_deduction_subset():
    deductions = performance_scorer.SCORE_DEDUCTIONS
    for mask in range(1 << len(deductions)):
        groups = {"page_load": {}, "interaction": {}, "network": {}, "resources": {}}
        for i, deduction in enumerate(deductions):
            if mask & (1 << i):
                groups[deduction.group][deduction.metric] = deduction.threshold + 1
        metrics = PerformanceMetrics(
            page_load=PageLoadMetrics(**groups["page_load"]),
            interaction=InteractionMetrics(**groups["interaction"]),
            network=NetworkMetrics(**groups["network"]),
            resources=ResourceMetrics(**groups["resources"]),
        )
        assert 0 <= score(metrics) <= 100


def test_metric_value_handles_absent_groups():
    metrics = PerformanceMetrics(resources=ResourceMetrics(memory_usage=42))
    assert metric_value(metrics, "resources", "memory_usage") == 42
    assert metric_value(metrics, "page_load", "first_contentful_paint") is None
    assert metric_value(None, "resources", "memory_usage") is None


def test_impact_snapshot_carries_headline_values_and_score():
    metrics = PerformanceMetrics(
        page_load=PageLoadMetrics(first_contentful_paint=3500),
        resources=ResourceMetrics(battery_usage=12, memory_usage=80),
    )
    snapshot = impact_snapshot(metrics)
    assert snapshot.load_time == 3500
    assert snapshot.battery_usage == 12
    assert snapshot.memory_usage == 80
    assert snapshot.score == 65


def test_snapshot_score_prefers_recorded_score():
    assert snapshot_score(ImpactSnapshot(load_time=9000, score=77)) == 77
    assert snapshot_score(ImpactSnapshot(load_time=9000, battery_usage=20, memory_usage=200)) == 50
    assert snapshot_score(ImpactSnapshot()) == 100
