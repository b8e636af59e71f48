# adaptive_perf/engine_helpers/payloads.py

"""Parsing of collaborator payloads (metrics, feedback ratings, analytics periods)."""

import dataclasses
import logging
import re
from typing import Any, Dict, Optional

from ..models.datatypes import (
    PerformanceMetrics, PageLoadMetrics, InteractionMetrics, NetworkMetrics, ResourceMetrics,
)
from ..models.exceptions import InvalidInputError
from ..models.serialization import coerce_value, field_hints, normalize_key

logger_payloads = logging.getLogger(__name__)

METRIC_GROUP_ALIASES: Dict[str, str] = {
    "page_load": "page_load",
    "page_load_metrics": "page_load",
    "interaction": "interaction",
    "interaction_metrics": "interaction",
    "network": "network",
    "network_metrics": "network",
    "resources": "resources",
    "resource": "resources",
    "resource_metrics": "resources",
}

METRIC_GROUP_TYPES = {
    "page_load": PageLoadMetrics,
    "interaction": InteractionMetrics,
    "network": NetworkMetrics,
    "resources": ResourceMetrics,
}

DEFAULT_PERIOD_DAYS = 30.0
PERIOD_UNIT_DAYS = {"h": 1.0 / 24.0, "d": 1.0, "w": 7.0, "m": 30.0, "y": 365.0}
_PERIOD_PATTERN = re.compile(r"^(\d+)([hdwmy])$")

RATING_FIELDS = ("performance_rating", "usability_rating", "battery_rating")


def parse_metrics_payload(raw: Any) -> PerformanceMetrics:
    """
    Validate a metrics object holding any subset of the four metric groups.
    Absent groups/fields stay None; wrong shapes or negative numbers raise InvalidInputError.
    """
    if not isinstance(raw, dict):
        raise InvalidInputError("Valid metrics object is required")

    groups: Dict[str, Any] = {}
    for raw_group, raw_values in raw.items():
        group = METRIC_GROUP_ALIASES.get(normalize_key(raw_group))
        if group is None:
            logger_payloads.warning(f"Ignoring unknown metric group '{raw_group}'")
            continue
        if not isinstance(raw_values, dict):
            raise InvalidInputError(f"Metric group '{raw_group}' must be an object")

        group_type = METRIC_GROUP_TYPES[group]
        hints = field_hints(group_type)
        values: Dict[str, Optional[float]] = {}
        for raw_key, raw_value in raw_values.items():
            key = normalize_key(raw_key)
            if key not in hints:
                logger_payloads.warning(f"Ignoring unknown metric '{raw_group}.{raw_key}'")
                continue
            value = coerce_value(raw_value, hints[key], f"{group}.{key}")
            if value is not None and value < 0:
                raise InvalidInputError(f"Metric '{group}.{key}' cannot be negative, got {value}")
            values[key] = value
        groups[group] = group_type(**values)

    return PerformanceMetrics(**groups)


def merge_performance_metrics(current: PerformanceMetrics, update: PerformanceMetrics) -> PerformanceMetrics:
    """Field-wise merge: reported values in ``update`` replace those in ``current``."""
    merged: Dict[str, Any] = {}
    for group_field in dataclasses.fields(PerformanceMetrics):
        name = group_field.name
        existing = getattr(current, name)
        incoming = getattr(update, name)
        if incoming is None:
            merged[name] = existing
        elif existing is None:
            merged[name] = dataclasses.replace(incoming)
        else:
            reported = {f.name: getattr(incoming, f.name) for f in dataclasses.fields(incoming)
                        if getattr(incoming, f.name) is not None}
            merged[name] = dataclasses.replace(existing, **reported)
    return PerformanceMetrics(**merged)


def parse_period_days(period: Optional[str]) -> float:
    """``<n><h|d|w|m|y>`` -> days. Unparseable periods fall back to 30 days."""
    if isinstance(period, str):
        match = _PERIOD_PATTERN.match(period.strip())
        if match:
            return int(match.group(1)) * PERIOD_UNIT_DAYS[match.group(2)]
    logger_payloads.warning(f"Unrecognised analytics period {period!r}; using {DEFAULT_PERIOD_DAYS:g}d")
    return DEFAULT_PERIOD_DAYS


def parse_ratings(raw: Dict[str, Any]) -> Dict[str, int]:
    """Extract the provided 1-5 ratings; absent or None ratings are omitted."""
    ratings: Dict[str, int] = {}
    for raw_key, raw_value in raw.items():
        key = normalize_key(raw_key)
        if key not in RATING_FIELDS or raw_value is None:
            continue
        value = coerce_value(raw_value, int, key)
        if not 1 <= value <= 5:
            raise InvalidInputError(f"{key} must be between 1 and 5, got {value}")
        ratings[key] = value
    return ratings
