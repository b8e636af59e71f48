# adaptive_perf/engine_helpers/settings_tree.py
import dataclasses
import logging
import math
from typing import Any, Dict, Iterable, List, Tuple

from ..models.datatypes import (
    OptimizationProfile, SettingChange, CATEGORY_BY_PATH, SETTING_BOUNDS,
    TIME_OF_DAY_FIELDS, is_valid_time_of_day,
)
from ..models.exceptions import InvalidInputError
from ..models.serialization import coerce_value, field_hints, normalize_key

logger_settings_tree = logging.getLogger(__name__)

# Top-level profile sections a partial settings tree may address
SETTINGS_ROOTS = ("performance_settings", "ux_settings", "mobile_features", "adaptive_behavior")


def validate_change(change: SettingChange) -> None:
    """Range/format checks beyond plain type coercion."""
    key = (change.category, change.field)
    bounds = SETTING_BOUNDS.get(key)
    if bounds is not None and change.value is not None:
        low, high = bounds
        if isinstance(change.value, float) and not math.isfinite(change.value):
            raise InvalidInputError(f"{change.category.value}.{change.field} must be a finite number, got {change.value}")
        if (low is not None and change.value < low) or (high is not None and change.value > high):
            raise InvalidInputError(
                f"{change.category.value}.{change.field} must be within "
                f"[{low if low is not None else '-inf'}, {high if high is not None else 'inf'}], got {change.value}"
            )
    if key in TIME_OF_DAY_FIELDS and not is_valid_time_of_day(change.value):
        raise InvalidInputError(f"{change.category.value}.{change.field} must be HH:MM, got {change.value!r}")


def _walk(profile: OptimizationProfile, node: Any, tree: Dict[str, Any], path: Tuple[str, ...]) -> Iterable[SettingChange]:
    hints = field_hints(type(node))
    for raw_key, raw_value in tree.items():
        key = normalize_key(raw_key)
        if key not in hints:
            raise InvalidInputError(f"Unknown setting '{'.'.join(path + (raw_key,))}'")
        current = getattr(node, key)
        child_path = path + (key,)
        if dataclasses.is_dataclass(current):
            if not isinstance(raw_value, dict):
                raise InvalidInputError(f"Setting group '{'.'.join(child_path)}' must be an object")
            yield from _walk(profile, current, raw_value, child_path)
            continue
        category = CATEGORY_BY_PATH.get(path)
        if category is None:
            raise InvalidInputError(f"'{'.'.join(child_path)}' is not an adjustable setting")
        value = coerce_value(raw_value, hints[key], ".".join(child_path))
        change = SettingChange(category=category, field=key, value=value, previous=current)
        validate_change(change)
        yield change


def build_changes_from_tree(profile: OptimizationProfile, tree: Dict[str, Any]) -> List[SettingChange]:
    """
    Translate a partial settings tree into validated SettingChange records.
    Does not mutate ``profile``; raises InvalidInputError on the first bad leaf.
    """
    if not isinstance(tree, dict):
        raise InvalidInputError("Settings must be an object")
    changes: List[SettingChange] = []
    for raw_root, subtree in tree.items():
        root = normalize_key(raw_root)
        if root not in SETTINGS_ROOTS:
            raise InvalidInputError(f"Unknown settings section '{raw_root}'")
        if not isinstance(subtree, dict):
            raise InvalidInputError(f"Settings section '{raw_root}' must be an object")
        changes.extend(_walk(profile, getattr(profile, root), subtree, (root,)))
    return changes


def apply_changes(profile: OptimizationProfile, changes: Iterable[SettingChange]) -> List[SettingChange]:
    """Apply changes in place; returns only those that actually altered a value."""
    effective: List[SettingChange] = []
    for change in changes:
        group = profile.settings_group(change.category)
        previous = getattr(group, change.field)
        if previous == change.value:
            continue
        setattr(group, change.field, change.value)
        effective.append(dataclasses.replace(change, previous=previous))
        logger_settings_tree.debug(f"{profile.subject_id}: {change.category.value}.{change.field} {previous!r} -> {change.value!r}")
    return effective


def merge_dataclass(instance: Any, patch: Dict[str, Any], path: str = "") -> Any:
    """Return a copy of ``instance`` with ``patch`` merged in (nested groups merge, leaves replace)."""
    if not isinstance(patch, dict):
        raise InvalidInputError(f"{path or type(instance).__name__}: expected an object")
    hints = field_hints(type(instance))
    updates: Dict[str, Any] = {}
    for raw_key, raw_value in patch.items():
        key = normalize_key(raw_key)
        if key not in hints:
            logger_settings_tree.warning(f"Ignoring unknown field '{raw_key}' for {type(instance).__name__}")
            continue
        current = getattr(instance, key)
        child_path = f"{path}.{key}" if path else key
        if dataclasses.is_dataclass(current) and isinstance(raw_value, dict):
            updates[key] = merge_dataclass(current, raw_value, child_path)
        else:
            updates[key] = coerce_value(raw_value, hints[key], child_path)
    try:
        return dataclasses.replace(instance, **updates)
    except (TypeError, ValueError) as e:
        raise InvalidInputError(f"{path or type(instance).__name__}: {e}") from e


def describe_change(change: SettingChange) -> str:
    value = change.value.value if hasattr(change.value, "value") else change.value
    return f"{change.category.value}.{change.field} = {value}"
