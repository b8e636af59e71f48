"""Validates the adaptive performance engine configuration file."""

import re
import sys
import logging
from pathlib import Path
import toml
from typing import Dict, Any, List, Optional, Tuple, Union


# --- Configuration Requirements ---
REQUIRED_CONFIG_KEYS: Dict[str, Dict[str, Union[type, Tuple[type, ...]]]] = {
    "storage": {
        "db_path": str,
        "history_load_limit": int,
    },
    "profile_manager": {
        "reoptimize_score_threshold": (int, float),
        "significant_screen_width_delta": int,
        "status_recent_history": int,
        "analytics_history_limit": int,
        "recommendation_limit": int,
        "default_analytics_period": str,
    },
    "adaptive_optimizer": {
        "needs_optimization_score_threshold": (int, float),
        "stale_after_hours": (int, float),
    },
    "content_transformer": {
        "mobile_page_size": int,
        "slow_connection_page_size": int,
    },
    "scheduler": {
        "enabled": bool,
        "optimization_interval_s": (int, float),
        "global_stats_interval_s": (int, float),
        "aggressive_interval_s": (int, float),
        "batch_size": int,
        "aggressive_fcp_threshold_ms": (int, float),
        "aggressive_batch_limit": int,
    },
}

# Sub-tables of [trend_analyzer]; each is optional and overrides one metric's defaults
TREND_METRICS = ("score", "battery_usage", "load_time", "memory_usage")
TREND_KEYS: Dict[str, Union[type, Tuple[type, ...]]] = {
    "threshold": (int, float),
    "recent_window": int,
    "earlier_window": int,
}

# Same grammar the engine accepts for analytics periods: <n><h|d|w|m|y>
ANALYTICS_PERIOD_PATTERN = re.compile(r"^([0-9]+)([hdwmy])$")

config: Optional[Dict[str, Any]] = None

VALUE_CHECKS = {
    "storage.db_path": lambda x: len(x.strip()) > 0,
    "storage.history_load_limit": lambda x: x > 0,
    "profile_manager.reoptimize_score_threshold": lambda x: 0 <= x <= 100,
    "profile_manager.significant_screen_width_delta": lambda x: x >= 0,
    "profile_manager.status_recent_history": lambda x: x >= 0,
    "profile_manager.analytics_history_limit": lambda x: x >= 0,
    "profile_manager.recommendation_limit": lambda x: x > 0,
    "profile_manager.default_analytics_period": lambda x: _is_valid_period(x),
    "adaptive_optimizer.needs_optimization_score_threshold": lambda x: 0 <= x <= 100,
    "adaptive_optimizer.stale_after_hours": lambda x: x > 0,
    "content_transformer.mobile_page_size": lambda x: x > 0,
    "content_transformer.slow_connection_page_size": lambda x: x > 0,
    "scheduler.optimization_interval_s": lambda x: x > 0,
    "scheduler.global_stats_interval_s": lambda x: x > 0,
    "scheduler.aggressive_interval_s": lambda x: x > 0,
    "scheduler.batch_size": lambda x: x > 0,
    "scheduler.aggressive_fcp_threshold_ms": lambda x: x > 0,
    "scheduler.aggressive_batch_limit": lambda x: x > 0,
}


def _is_valid_period(value: str) -> bool:
    match = ANALYTICS_PERIOD_PATTERN.match(value.strip())
    return match is not None and int(match.group(1)) > 0


def _type_names(expected: Union[type, Tuple[type, ...]]) -> str:
    if isinstance(expected, tuple):
        return " or ".join(t.__name__ for t in expected)
    return expected.__name__


def _is_expected_type(value: Any, expected: Union[type, Tuple[type, ...]]) -> bool:
    # bool is a subclass of int; a bare true/false is never a valid number here
    if isinstance(value, bool) and expected is not bool:
        return False
    return isinstance(value, expected)


def _custom_validate_trend_analyzer(trend_config: Dict[str, Any], errors: List[str], warnings: List[str]):
    for metric, metric_config in trend_config.items():
        if metric not in TREND_METRICS:
            warnings.append(f"Unknown trend metric '[trend_analyzer.{metric}]' will be ignored. Known: {', '.join(TREND_METRICS)}.")
            continue
        if not isinstance(metric_config, dict):
            errors.append(f"'[trend_analyzer.{metric}]' must be a table.")
            continue
        for key, value in metric_config.items():
            expected = TREND_KEYS.get(key)
            if expected is None:
                warnings.append(f"Unknown key '{key}' in '[trend_analyzer.{metric}]' will be ignored.")
                continue
            if not _is_expected_type(value, expected):
                errors.append(f"Invalid type for '{key}' in '[trend_analyzer.{metric}]'. Expected {_type_names(expected)}, found {type(value).__name__}.")
                continue
            if key == "threshold" and value < 0:
                errors.append(f"'[trend_analyzer.{metric}].threshold' must be >= 0, found {value}.")
            elif key in ("recent_window", "earlier_window") and value < 1:
                errors.append(f"'[trend_analyzer.{metric}].{key}' must be >= 1, found {value}.")


# --- Main Validation Function ---
def validate_config(config_filepath: str = "config.toml") -> bool:
    global config
    config_path = Path(config_filepath)
    is_valid = True
    errors: List[str] = []
    warnings: List[str] = []

    if not config_path.exists() or not config_path.is_file():
        errors.append(f"Configuration file not found or is not a file: {config_path.resolve()}")
        for error in errors: print(f"❌ ERROR: {error}")
        return False

    try:
        config = toml.load(config_path)
        print(f"ℹ️ Successfully parsed config file: {config_path.resolve()}")
    except toml.TomlDecodeError as e:
        errors.append(f"Failed to parse TOML configuration file: {e}")
        is_valid = False
    except OSError as e:
        errors.append(f"Could not read configuration file: {e}")
        is_valid = False

    if not is_valid or config is None:
        for error in errors: print(f"❌ ERROR: {error}")
        return False

    # --- Key and Type Validation ---
    for section, keys_config in REQUIRED_CONFIG_KEYS.items():
        if section not in config:
            warnings.append(f"Configuration section '[{section}]' not found. Component will use defaults.")
            continue
        if not isinstance(config[section], dict):
            errors.append(f"Configuration section '[{section}]' is not a valid table/dictionary.")
            is_valid = False
            continue

        for key, expected in keys_config.items():
            if key not in config[section]:
                warnings.append(f"Key '{key}' not found in section '[{section}]'. Component will use its default.")
                continue
            current_value = config[section][key]
            if not _is_expected_type(current_value, expected):
                errors.append(f"Invalid type for key '{key}' in section '[{section}]'. Expected {_type_names(expected)}, found {type(current_value).__name__}.")
                is_valid = False

        unknown = sorted(set(config[section]) - set(keys_config))
        if unknown:
            warnings.append(f"Unknown key(s) in section '[{section}]' will be ignored: {', '.join(unknown)}")

    # --- Value Validation ---
    for key_path, validation_func in VALUE_CHECKS.items():
        section, key = key_path.split('.', 1)
        if section in config and isinstance(config.get(section), dict) and key in config[section]:
            value = config[section][key]
            expected = REQUIRED_CONFIG_KEYS[section][key]
            if not _is_expected_type(value, expected):
                continue  # already reported as a type error
            if not validation_func(value):
                errors.append(f"Invalid value for '{key_path}': {value}.")
                is_valid = False

    # --- Custom Validations ---
    if "trend_analyzer" in config:
        if isinstance(config["trend_analyzer"], dict):
            errors_before = len(errors)
            _custom_validate_trend_analyzer(config["trend_analyzer"], errors, warnings)
            if len(errors) > errors_before:
                is_valid = False
        else:
            errors.append("Configuration section '[trend_analyzer]' is not a valid table/dictionary.")
            is_valid = False

    scheduler_config = config.get("scheduler")
    if isinstance(scheduler_config, dict):
        opt_interval = scheduler_config.get("optimization_interval_s")
        aggressive_interval = scheduler_config.get("aggressive_interval_s")
        if isinstance(opt_interval, (int, float)) and isinstance(aggressive_interval, (int, float)):
            if aggressive_interval > opt_interval:
                warnings.append(f"scheduler.aggressive_interval_s ({aggressive_interval}) is longer than optimization_interval_s ({opt_interval}); aggressive sweeps will run less often than regular ones.")

    # --- Print Results ---
    if warnings:
        print("\n--- Configuration Warnings ---")
        for warning in warnings: print(f"⚠️ WARNING: {warning}")
    if errors:
        print("\n--- Configuration Errors ---")
        for error in errors: print(f"❌ ERROR: {error}")
        print("\nConfiguration is INVALID.")
    elif warnings: print("\nConfiguration is VALID with warnings.")
    else: print("\n✅ Configuration is VALID.")

    return is_valid


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO, format='%(levelname)s: %(message)s')
    script_dir = Path(__file__).resolve().parent
    default_config_path = script_dir.parent / "config.toml"

    config_to_validate_path_str = sys.argv[1] if len(sys.argv) > 1 else str(default_config_path)

    if not Path(config_to_validate_path_str).exists():
        print(f"❌ ERROR: Config file '{config_to_validate_path_str}' not found. Please specify a valid path or place config.toml in the project root.")
        sys.exit(2)

    if validate_config(config_to_validate_path_str):
        sys.exit(0)
    else:
        sys.exit(1)
