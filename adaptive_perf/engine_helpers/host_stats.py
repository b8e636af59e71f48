# adaptive_perf/engine_helpers/host_stats.py
import asyncio
import logging
import os
from typing import Any, Dict

import psutil

logger_host_stats = logging.getLogger(__name__)


def _collect() -> Dict[str, Any]:
    process = psutil.Process(os.getpid())
    with process.oneshot():
        memory = process.memory_info()
        return {
            "process_cpu_percent": process.cpu_percent(interval=None),
            "process_memory_mb": round(memory.rss / (1024 * 1024), 2),
            "process_threads": process.num_threads(),
            "system_cpu_percent": psutil.cpu_percent(interval=None),
            "system_memory_percent": psutil.virtual_memory().percent,
        }


async def host_resource_stats() -> Dict[str, Any]:
    """CPU/memory of the engine's own process and host, gathered off the event loop."""
    loop = asyncio.get_running_loop()
    try:
        stats = await loop.run_in_executor(None, _collect)
        logger_host_stats.debug(f"Gathered psutil stats: {stats}")
        return stats
    except RuntimeError as e:
        if "cannot schedule new futures after shutdown" in str(e):
            logger_host_stats.warning("psutil check skipped: Executor shutdown.")
            return {}
        raise
    except psutil.Error as e:
        logger_host_stats.warning(f"Failed to gather psutil stats: {e}")
        return {}
