# tests/unit/engine_helpers/test_periodic_sweep.py

import asyncio

import pytest

from adaptive_perf.engine_helpers.periodic_sweep import PeriodicSweep


@pytest.mark.asyncio
async def test_run_once_returns_summary_and_counts():
    async def sweep():
        return {"processed": 3}

    periodic = PeriodicSweep("unit", 60, sweep)
    assert await periodic.run_once() == {"processed": 3}
    status = periodic.get_status()
    assert status["runs_completed"] == 1
    assert status["last_summary"] == {"processed": 3}
    assert status["last_duration_s"] is not None
    assert status["scheduled"] is False


@pytest.mark.asyncio
async def test_overlapping_run_is_skipped():
    release = asyncio.Event()
    started = asyncio.Event()
    calls = 0

    async def slow_sweep():
        nonlocal calls
        calls += 1
        started.set()
        await release.wait()
        return {"ok": True}

    periodic = PeriodicSweep("overlap", 60, slow_sweep)
    first = asyncio.create_task(periodic.run_once())
    await started.wait()
    assert periodic.is_running

    assert await periodic.run_once() is None
    assert periodic.runs_skipped == 1

    release.set()
    assert await first == {"ok": True}
    assert calls == 1
    assert not periodic.is_running


@pytest.mark.asyncio
async def test_failing_sweep_is_recorded_not_raised():
    async def broken():
        raise RuntimeError("db down")

    periodic = PeriodicSweep("broken", 60, broken)
    assert await periodic.run_once() is None
    assert periodic.runs_failed == 1
    assert "db down" in periodic.last_error
    assert not periodic.is_running


@pytest.mark.asyncio
async def test_timer_runs_repeatedly_and_stops():
    ran = asyncio.Event()
    count = 0

    async def sweep():
        nonlocal count
        count += 1
        if count >= 2:
            ran.set()
        return {"count": count}

    periodic = PeriodicSweep("timer", 0.01, sweep)
    periodic.start()
    assert periodic.is_scheduled
    await asyncio.wait_for(ran.wait(), timeout=2)
    await periodic.stop()
    assert not periodic.is_scheduled
    assert periodic.runs_completed >= 2


@pytest.mark.asyncio
async def test_run_on_start_runs_immediately():
    ran = asyncio.Event()

    async def sweep():
        ran.set()
        return {}

    periodic = PeriodicSweep("eager", 3600, sweep, run_on_start=True)
    periodic.start()
    await asyncio.wait_for(ran.wait(), timeout=2)
    await periodic.stop()
    assert periodic.runs_completed == 1


def test_non_positive_interval_falls_back():
    async def sweep():
        return {}

    assert PeriodicSweep("zero", 0, sweep).interval_s == 60.0
