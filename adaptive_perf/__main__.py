# adaptive_perf/__main__.py
"""Run the engine with its background sweeps until SIGINT/SIGTERM."""

import argparse
import asyncio
import logging
import sys

from .engine_config import DEFAULT_CONFIG_FILENAME, ENGINE_ROOT_PATH
from .engine_controller import OptimizationEngine
from .models.exceptions import ComponentInitializationError

logger_main = logging.getLogger("adaptive_perf")


def main() -> int:
    parser = argparse.ArgumentParser(description="Adaptive client-performance optimization engine.")
    parser.add_argument("--config", default=str(ENGINE_ROOT_PATH / DEFAULT_CONFIG_FILENAME),
                        help="Path to the TOML configuration file.")
    parser.add_argument("--log-level", default="INFO", choices=["DEBUG", "INFO", "WARNING", "ERROR"],
                        help="Root logging level.")
    args = parser.parse_args()

    logging.basicConfig(level=getattr(logging, args.log_level),
                        format="[%(asctime)s] [%(levelname)-7s] [%(name)-30s] %(message)s")

    engine = OptimizationEngine(config_path=args.config)
    try:
        asyncio.run(engine.run_forever())
    except ComponentInitializationError as e:
        logger_main.critical(f"Engine failed to start: {e}")
        return 1
    except KeyboardInterrupt:
        logger_main.info("Interrupted.")
    return 0


if __name__ == "__main__":
    sys.exit(main())
