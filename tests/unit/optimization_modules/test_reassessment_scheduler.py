# tests/unit/optimization_modules/test_reassessment_scheduler.py

import asyncio
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
import pytest_asyncio

from adaptive_perf.models.exceptions import TransientStorageError
from adaptive_perf.optimization_modules.reassessment_scheduler import ReassessmentScheduler


@pytest.fixture
def mock_manager():
    manager = MagicMock()
    manager.find_optimization_candidates = AsyncMock(return_value=["a", "b", "c"])
    manager.run_scheduled_optimization = AsyncMock(return_value=True)
    manager.find_aggressive_candidates = AsyncMock(return_value=["slow"])
    manager.run_aggressive_optimization = AsyncMock(return_value=True)
    manager.collect_global_stats = AsyncMock(return_value={
        "total_profiles": 3, "average_performance_score": 81.0,
    })
    return manager


@pytest_asyncio.fixture
async def scheduler(mock_manager):
    controller = MagicMock()
    controller.profile_manager = mock_manager
    instance = ReassessmentScheduler()
    config = {"scheduler": {
        "enabled": True, "batch_size": 2, "aggressive_fcp_threshold_ms": 5000, "aggressive_batch_limit": 10,
        "optimization_interval_s": 3600, "global_stats_interval_s": 1800, "aggressive_interval_s": 900,
    }}
    assert await instance.initialize(config, controller)
    yield instance
    await instance.shutdown()


@pytest.mark.asyncio
async def test_initialize_requires_manager():
    controller = MagicMock()
    controller.profile_manager = None
    assert await ReassessmentScheduler().initialize({}, controller) is False


@pytest.mark.asyncio
async def test_three_independent_sweeps(scheduler):
    assert set(scheduler.sweeps) == {"optimization", "global_stats", "aggressive"}
    assert scheduler.sweeps["optimization"].interval_s == 3600
    assert scheduler.sweeps["global_stats"].interval_s == 1800
    assert scheduler.sweeps["aggressive"].interval_s == 900


@pytest.mark.asyncio
async def test_optimization_sweep_processes_all_candidates(scheduler, mock_manager):
    summary = await scheduler.run_sweep("optimization")
    assert summary == {"candidates": 3, "processed": 3, "applied": 3, "skipped": 0, "failed": 0}
    assert mock_manager.run_scheduled_optimization.await_count == 3


@pytest.mark.asyncio
async def test_one_failure_does_not_abort_sweep(scheduler, mock_manager):
    async def run(subject_id):
        if subject_id == "b":
            raise TransientStorageError("write failed")
        return subject_id == "a"

    mock_manager.run_scheduled_optimization = AsyncMock(side_effect=run)
    summary = await scheduler.run_sweep("optimization")
    assert summary["failed"] == 1
    assert summary["applied"] == 1
    assert summary["skipped"] == 1
    assert summary["processed"] == 3


@pytest.mark.asyncio
async def test_aggressive_sweep_passes_threshold(scheduler, mock_manager):
    summary = await scheduler.run_sweep("aggressive")
    assert summary["fcp_threshold_ms"] == 5000
    assert summary["applied"] == 1
    mock_manager.find_aggressive_candidates.assert_awaited_once_with(5000.0, 10)
    mock_manager.run_aggressive_optimization.assert_awaited_once_with("slow", 5000.0)


@pytest.mark.asyncio
async def test_global_stats_sweep_is_read_only_and_cached(scheduler, mock_manager):
    with patch("adaptive_perf.optimization_modules.reassessment_scheduler.host_resource_stats",
               AsyncMock(return_value={"process_memory_mb": 12.5})):
        stats = await scheduler.run_sweep("global_stats")
    assert stats["total_profiles"] == 3
    assert stats["host"] == {"process_memory_mb": 12.5}
    assert scheduler.latest_global_stats is stats
    mock_manager.run_scheduled_optimization.assert_not_awaited()


@pytest.mark.asyncio
async def test_unknown_sweep_raises(scheduler):
    with pytest.raises(KeyError):
        await scheduler.run_sweep("weekly")


@pytest.mark.asyncio
async def test_same_sweep_does_not_overlap(scheduler, mock_manager):
    release = asyncio.Event()

    async def slow_candidates(*args, **kwargs):
        await release.wait()
        return []

    mock_manager.find_optimization_candidates = AsyncMock(side_effect=slow_candidates)
    first = asyncio.create_task(scheduler.run_sweep("optimization"))
    await asyncio.sleep(0)
    assert await scheduler.run_sweep("optimization") is None
    # Other sweep types are unaffected
    assert (await scheduler.run_sweep("aggressive"))["candidates"] == 1
    release.set()
    assert (await first)["candidates"] == 0


@pytest.mark.asyncio
async def test_start_and_stop_schedule_sweeps(scheduler):
    scheduler.start()
    assert all(s.is_scheduled for s in scheduler.sweeps.values())
    await scheduler.stop()
    assert not any(s.is_scheduled for s in scheduler.sweeps.values())


@pytest.mark.asyncio
async def test_disabled_scheduler_does_not_start(mock_manager):
    controller = MagicMock()
    controller.profile_manager = mock_manager
    instance = ReassessmentScheduler()
    await instance.initialize({"scheduler": {"enabled": False}}, controller)
    instance.start()
    assert not any(s.is_scheduled for s in instance.sweeps.values())
    # Manual runs still work
    assert (await instance.run_sweep("optimization"))["candidates"] == 3


@pytest.mark.asyncio
async def test_process_and_status(scheduler):
    output = await scheduler.process({"sweep": "aggressive"})
    assert output["sweep"] == "aggressive"
    assert await scheduler.process({}) is None
    status = await scheduler.get_status()
    assert status["enabled"] is True
    assert status["sweeps"]["aggressive"]["runs_completed"] == 1
