# adaptive_perf/engine_helpers/periodic_sweep.py
import asyncio
import logging
import time
from typing import Any, Awaitable, Callable, Dict, Optional

logger_periodic_sweep = logging.getLogger(__name__)


class PeriodicSweep:
    """
    Runs one sweep coroutine on its own timer.

    Each instance owns an overlap guard: if a run is still in progress when the
    next one is requested (timer tick or manual ``run_once``), the new request is
    skipped rather than queued.
    """

    def __init__(self,
                 name: str,
                 interval_s: float,
                 sweep_func: Callable[[], Awaitable[Dict[str, Any]]],
                 run_on_start: bool = False):
        """
        Args:
            name: Label used in logs and status.
            interval_s: Seconds between the end of one timer wait and the next run.
            sweep_func: Coroutine function performing one sweep; returns a summary dict.
            run_on_start: Run immediately when started instead of waiting one interval.
        """
        if interval_s <= 0:
            logger_periodic_sweep.warning(f"PeriodicSweep '{name}': interval_s ({interval_s}) must be positive. Using 60s.")
            interval_s = 60.0
        self.name = name
        self.interval_s = float(interval_s)
        self._sweep_func = sweep_func
        self._run_on_start = run_on_start
        self._task: Optional[asyncio.Task] = None
        self._run_lock = asyncio.Lock()

        self.runs_completed: int = 0
        self.runs_failed: int = 0
        self.runs_skipped: int = 0
        self.last_started_at: Optional[float] = None
        self.last_duration_s: Optional[float] = None
        self.last_summary: Optional[Dict[str, Any]] = None
        self.last_error: Optional[str] = None

    @property
    def is_running(self) -> bool:
        return self._run_lock.locked()

    @property
    def is_scheduled(self) -> bool:
        return self._task is not None and not self._task.done()

    async def run_once(self) -> Optional[Dict[str, Any]]:
        """Run a single sweep now. Returns None when skipped due to an in-flight run."""
        if self._run_lock.locked():
            self.runs_skipped += 1
            logger_periodic_sweep.warning(f"Sweep '{self.name}' still running; skipping overlapping run.")
            return None

        async with self._run_lock:
            self.last_started_at = time.time()
            started = time.monotonic()
            try:
                summary = await self._sweep_func()
            except asyncio.CancelledError:
                raise
            except Exception as e:
                self.runs_failed += 1
                self.last_error = f"{type(e).__name__}: {e}"
                logger_periodic_sweep.exception(f"Sweep '{self.name}' failed: {e}")
                return None
            finally:
                self.last_duration_s = time.monotonic() - started

            self.runs_completed += 1
            self.last_summary = summary
            self.last_error = None
            logger_periodic_sweep.info(f"Sweep '{self.name}' finished in {self.last_duration_s:.3f}s: {summary}")
            return summary

    async def _loop(self) -> None:
        logger_periodic_sweep.info(f"Sweep '{self.name}' scheduled every {self.interval_s:g}s.")
        try:
            if self._run_on_start:
                await self.run_once()
            while True:
                await asyncio.sleep(self.interval_s)
                await self.run_once()
        except asyncio.CancelledError:
            logger_periodic_sweep.info(f"Sweep '{self.name}' timer cancelled.")
            raise

    def start(self) -> None:
        if self.is_scheduled:
            logger_periodic_sweep.debug(f"Sweep '{self.name}' already scheduled.")
            return
        self._task = asyncio.get_running_loop().create_task(self._loop(), name=f"sweep:{self.name}")

    async def stop(self) -> None:
        if self._task is None:
            return
        task, self._task = self._task, None
        if not task.done():
            task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass

    def get_status(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "interval_s": self.interval_s,
            "scheduled": self.is_scheduled,
            "running": self.is_running,
            "runs_completed": self.runs_completed,
            "runs_failed": self.runs_failed,
            "runs_skipped": self.runs_skipped,
            "last_started_at": self.last_started_at,
            "last_duration_s": self.last_duration_s,
            "last_summary": self.last_summary,
            "last_error": self.last_error,
        }
