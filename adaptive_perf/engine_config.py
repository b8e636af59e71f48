# adaptive_perf/engine_config.py

import logging
import os
from pathlib import Path
from typing import Any, Dict, Union

import toml

logger_engine_config = logging.getLogger(__name__)

# --- Constants & Configuration ---
DEFAULT_CONFIG_FILENAME = "config.toml"
ENGINE_ROOT_PATH = Path(os.path.dirname(os.path.abspath(__file__))).parent

# Components are created and initialized in this order, shut down in reverse
COMPONENT_INIT_ORDER = [
    "profile_store",
    "content_transformer",
    "profile_manager",
    "reassessment_scheduler",
]

# Sections every config file is expected to carry (missing ones fall back to defaults)
CONFIG_SECTIONS = (
    "storage",
    "profile_manager",
    "adaptive_optimizer",
    "trend_analyzer",
    "content_transformer",
    "scheduler",
)

STATUS_POLL_INTERVAL_S = 60.0


def load_config(config_path: Union[str, Path]) -> Dict[str, Any]:
    """Load a TOML config file. Missing or unreadable files yield an empty config (all defaults)."""
    path = Path(config_path)
    if not (path.exists() and path.is_file()):
        logger_engine_config.warning(f"Config file not found at {path}. Using empty config.")
        return {}
    try:
        with open(path, "r") as f:
            config_data = toml.load(f)
        logger_engine_config.info(f"Loaded configuration from {path}")
        unknown = sorted(set(config_data) - set(CONFIG_SECTIONS))
        if unknown:
            logger_engine_config.warning(f"Ignoring unknown config section(s) in {path}: {', '.join(unknown)}")
        return config_data
    except (toml.TomlDecodeError, OSError) as e:
        logger_engine_config.exception(f"Failed to load config file {path}: {e}")
        return {}
