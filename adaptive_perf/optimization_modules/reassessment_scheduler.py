# adaptive_perf/optimization_modules/reassessment_scheduler.py

import asyncio
import logging
from typing import Any, Awaitable, Callable, Dict, List, Optional

from ..engine_helpers.host_stats import host_resource_stats
from ..engine_helpers.periodic_sweep import PeriodicSweep
from ..protocols import OptimizationComponent

logger_reassessment_scheduler = logging.getLogger(__name__)

DEFAULT_OPTIMIZATION_INTERVAL_S = 3600
DEFAULT_GLOBAL_STATS_INTERVAL_S = 1800
DEFAULT_AGGRESSIVE_INTERVAL_S = 900
DEFAULT_BATCH_SIZE = 20
DEFAULT_AGGRESSIVE_FCP_THRESHOLD_MS = 5000
DEFAULT_AGGRESSIVE_BATCH_LIMIT = 50

SWEEP_OPTIMIZATION = "optimization"
SWEEP_GLOBAL_STATS = "global_stats"
SWEEP_AGGRESSIVE = "aggressive"


class ReassessmentScheduler(OptimizationComponent):
    """
    Three independent periodic sweeps over the profile population:

    - optimization: re-runs the adaptive rules for subjects that need it
    - global_stats: read-only population report
    - aggressive: forces maximum compression for severely slow page loads

    Subjects are processed in concurrent batches. A failure for one subject is
    logged and counted; the sweep carries on with the rest.
    """

    def __init__(self):
        self._controller: Optional[Any] = None
        self._manager: Optional[Any] = None
        self.enabled: bool = True
        self.batch_size: int = DEFAULT_BATCH_SIZE
        self.aggressive_fcp_threshold_ms: float = DEFAULT_AGGRESSIVE_FCP_THRESHOLD_MS
        self.aggressive_batch_limit: int = DEFAULT_AGGRESSIVE_BATCH_LIMIT
        self.sweeps: Dict[str, PeriodicSweep] = {}
        self.latest_global_stats: Optional[Dict[str, Any]] = None

    async def initialize(self, config: Dict[str, Any], controller: Any) -> bool:
        self._controller = controller
        self._manager = getattr(controller, "profile_manager", None)
        if self._manager is None:
            logger_reassessment_scheduler.error("ReassessmentScheduler: profile_manager component not available.")
            return False

        sched_config = config.get("scheduler", {})
        self.enabled = bool(sched_config.get("enabled", True))
        self.batch_size = max(1, int(sched_config.get("batch_size", DEFAULT_BATCH_SIZE)))
        self.aggressive_fcp_threshold_ms = float(
            sched_config.get("aggressive_fcp_threshold_ms", DEFAULT_AGGRESSIVE_FCP_THRESHOLD_MS))
        self.aggressive_batch_limit = max(1, int(sched_config.get("aggressive_batch_limit", DEFAULT_AGGRESSIVE_BATCH_LIMIT)))

        self.sweeps = {
            SWEEP_OPTIMIZATION: PeriodicSweep(
                SWEEP_OPTIMIZATION,
                sched_config.get("optimization_interval_s", DEFAULT_OPTIMIZATION_INTERVAL_S),
                self.optimization_sweep),
            SWEEP_GLOBAL_STATS: PeriodicSweep(
                SWEEP_GLOBAL_STATS,
                sched_config.get("global_stats_interval_s", DEFAULT_GLOBAL_STATS_INTERVAL_S),
                self.global_stats_sweep),
            SWEEP_AGGRESSIVE: PeriodicSweep(
                SWEEP_AGGRESSIVE,
                sched_config.get("aggressive_interval_s", DEFAULT_AGGRESSIVE_INTERVAL_S),
                self.aggressive_sweep),
        }
        logger_reassessment_scheduler.info(
            f"ReassessmentScheduler initialized (enabled={self.enabled}, batch_size={self.batch_size}). "
            f"Intervals: " + ", ".join(f"{name}={s.interval_s:g}s" for name, s in self.sweeps.items()))
        return True

    def start(self) -> None:
        if not self.enabled:
            logger_reassessment_scheduler.info("ReassessmentScheduler disabled by configuration; sweeps not scheduled.")
            return
        for sweep in self.sweeps.values():
            sweep.start()

    async def stop(self) -> None:
        await asyncio.gather(*(sweep.stop() for sweep in self.sweeps.values()))

    async def run_sweep(self, name: str) -> Optional[Dict[str, Any]]:
        """Run one sweep immediately. Returns None if an instance is already running."""
        sweep = self.sweeps.get(name)
        if sweep is None:
            raise KeyError(f"Unknown sweep '{name}'")
        return await sweep.run_once()

    async def _process_in_batches(self,
                                  subject_ids: List[str],
                                  worker: Callable[[str], Awaitable[bool]]) -> Dict[str, int]:
        counts = {"processed": 0, "applied": 0, "skipped": 0, "failed": 0}
        for start in range(0, len(subject_ids), self.batch_size):
            batch = subject_ids[start:start + self.batch_size]
            results = await asyncio.gather(*(worker(s) for s in batch), return_exceptions=True)
            for subject_id, result in zip(batch, results):
                counts["processed"] += 1
                if isinstance(result, asyncio.CancelledError):
                    raise result
                if isinstance(result, BaseException):
                    counts["failed"] += 1
                    logger_reassessment_scheduler.error(
                        f"Sweep processing failed for subject '{subject_id}': {type(result).__name__}: {result}",
                        exc_info=result)
                elif result:
                    counts["applied"] += 1
                else:
                    counts["skipped"] += 1
        return counts

    # --- Sweeps ---

    async def optimization_sweep(self) -> Dict[str, Any]:
        candidates = await self._manager.find_optimization_candidates()
        logger_reassessment_scheduler.info(f"Processing optimization for {len(candidates)} subject(s)")
        summary: Dict[str, Any] = {"candidates": len(candidates)}
        summary.update(await self._process_in_batches(candidates, self._manager.run_scheduled_optimization))
        return summary

    async def aggressive_sweep(self) -> Dict[str, Any]:
        threshold = self.aggressive_fcp_threshold_ms
        candidates = await self._manager.find_aggressive_candidates(threshold, self.aggressive_batch_limit)
        summary: Dict[str, Any] = {"candidates": len(candidates), "fcp_threshold_ms": threshold}
        summary.update(await self._process_in_batches(
            candidates, lambda subject_id: self._manager.run_aggressive_optimization(subject_id, threshold)))
        return summary

    async def global_stats_sweep(self) -> Dict[str, Any]:
        stats = await self._manager.collect_global_stats()
        stats["host"] = await host_resource_stats()
        self.latest_global_stats = stats
        logger_reassessment_scheduler.info(
            f"Global performance stats: {stats['total_profiles']} profile(s), "
            f"average score {stats['average_performance_score']}")
        return stats

    # --- OptimizationComponent ---

    async def process(self, input_state: Optional[Dict[str, Any]] = None) -> Optional[Dict[str, Any]]:
        """Run the sweep named by ``input_state['sweep']`` once."""
        if not input_state or "sweep" not in input_state:
            return None
        summary = await self.run_sweep(input_state["sweep"])
        return {"sweep": input_state["sweep"], "summary": summary}

    async def reset(self) -> None:
        self.latest_global_stats = None
        logger_reassessment_scheduler.info("ReassessmentScheduler reset.")

    async def get_status(self) -> Dict[str, Any]:
        return {
            "component": "ReassessmentScheduler",
            "status": "operational" if self.sweeps else "uninitialized",
            "enabled": self.enabled,
            "sweeps": {name: sweep.get_status() for name, sweep in self.sweeps.items()},
            "latest_global_stats": self.latest_global_stats,
        }

    async def shutdown(self) -> None:
        logger_reassessment_scheduler.info("ReassessmentScheduler shutting down; cancelling sweeps.")
        await self.stop()
