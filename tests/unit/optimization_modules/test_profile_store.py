# tests/unit/optimization_modules/test_profile_store.py

import asyncio
import inspect
import sqlite3
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest
import pytest_asyncio

from adaptive_perf.models.datatypes import HistoryEntry, OptimizationProfile
from adaptive_perf.models.enums import CompressionLevel, DeviceType, OptimizationTrigger
from adaptive_perf.models.exceptions import TransientStorageError
from adaptive_perf.optimization_modules.profile_store import ProfileStore
from adaptive_perf.protocols import ProfileRepository


def _entry(action: str, timestamp: float = 1000.0) -> HistoryEntry:
    return HistoryEntry(action=action, reason="test", trigger=OptimizationTrigger.MANUAL, timestamp=timestamp)


@pytest_asyncio.fixture
async def store():
    instance = ProfileStore()
    mock_controller = MagicMock()
    ok = await instance.initialize({"storage": {"db_path": ":memory:", "history_load_limit": 3}}, mock_controller)
    assert ok
    yield instance
    await instance.shutdown()


def test_is_profile_repository():
    assert isinstance(ProfileStore(), ProfileRepository)


def test_repository_signatures_match_store():
    for name in ("get_profile", "save_profile"):
        expected = list(inspect.signature(getattr(ProfileRepository, name)).parameters)
        assert list(inspect.signature(getattr(ProfileStore, name)).parameters) == expected
    assert "history_limit" in inspect.signature(ProfileRepository.get_profile).parameters


@pytest.mark.asyncio
async def test_get_missing_profile_returns_none(store):
    assert await store.get_profile("nobody") is None


@pytest.mark.asyncio
async def test_create_is_idempotent(store):
    first = OptimizationProfile(subject_id="u1")
    first.optimization_history.append(_entry("initial_optimization"))
    assert await store.create_profile(first) is True

    second = OptimizationProfile(subject_id="u1", device_info=first.device_info)
    second.optimization_history.append(_entry("should_not_be_stored"))
    assert await store.create_profile(second) is False

    loaded = await store.get_profile("u1")
    assert loaded.profile_id == first.profile_id
    assert [e.action for e in loaded.optimization_history] == ["initial_optimization"]
    assert (await store.count()) == {"profiles": 1, "history_entries": 1}


@pytest.mark.asyncio
async def test_save_overwrites_document_but_not_history(store):
    profile = OptimizationProfile(subject_id="u2")
    await store.create_profile(profile)

    profile.performance_settings.image_optimization.compression_level = CompressionLevel.MAX
    profile.device_info.device_type = DeviceType.TABLET
    profile.optimization_history.append(_entry("only_in_memory"))
    await store.save_profile(profile)

    loaded = await store.get_profile("u2")
    assert loaded.performance_settings.image_optimization.compression_level == CompressionLevel.MAX
    assert loaded.device_info.device_type == DeviceType.TABLET
    assert loaded.optimization_history == []


@pytest.mark.asyncio
async def test_save_unknown_profile_raises(store):
    with pytest.raises(TransientStorageError):
        await store.save_profile(OptimizationProfile(subject_id="ghost"))


@pytest.mark.asyncio
async def test_last_optimization_check_never_regresses(store):
    profile = OptimizationProfile(subject_id="u3")
    profile.last_optimization_check = 5000.0
    await store.create_profile(profile)

    stale = await store.get_profile("u3")
    stale.last_optimization_check = 1000.0  # an older writer
    await store.save_profile(stale)

    assert (await store.get_profile("u3")).last_optimization_check == 5000.0


@pytest.mark.asyncio
async def test_history_is_append_only_and_ordered(store):
    await store.create_profile(OptimizationProfile(subject_id="u4"))
    for i in range(5):
        await store.append_history("u4", _entry(f"action-{i}", timestamp=1000.0 + i))

    # Default load limit (3) keeps the most recent entries, oldest first
    loaded = await store.get_profile("u4")
    assert [e.action for e in loaded.optimization_history] == ["action-2", "action-3", "action-4"]

    full = await store.get_profile("u4", history_limit=-1)
    assert [e.action for e in full.optimization_history] == [f"action-{i}" for i in range(5)]

    bare = await store.get_profile("u4", history_limit=0)
    assert bare.optimization_history == []


@pytest.mark.asyncio
async def test_concurrent_appends_are_not_lost(store):
    await store.create_profile(OptimizationProfile(subject_id="u5"))
    await asyncio.gather(*(store.append_history("u5", _entry(f"a{i}")) for i in range(10)))
    profile = OptimizationProfile(subject_id="u5")
    await store.save_profile(profile)
    full = await store.get_profile("u5", history_limit=-1)
    assert len(full.optimization_history) == 10


@pytest.mark.asyncio
async def test_list_subject_ids_sorted(store):
    for subject_id in ("c", "a", "b"):
        await store.create_profile(OptimizationProfile(subject_id=subject_id))
    assert await store.list_subject_ids() == ["a", "b", "c"]


@pytest.mark.asyncio
async def test_reset_clears_everything(store):
    await store.create_profile(OptimizationProfile(subject_id="gone"))
    await store.reset()
    assert await store.list_subject_ids() == []


@pytest.mark.asyncio
async def test_status_reports_counts(store):
    await store.create_profile(OptimizationProfile(subject_id="s"))
    status = await store.get_status()
    assert status["status"] == "operational"
    assert status["profile_count"] == 1
    assert status["db_path"] == ":memory:"


@pytest.mark.asyncio
async def test_operations_after_shutdown_raise_transient_error():
    instance = ProfileStore()
    await instance.initialize({"storage": {"db_path": ":memory:"}}, MagicMock())
    await instance.shutdown()
    with pytest.raises(TransientStorageError):
        await instance.get_profile("x")
    assert (await instance.get_status())["status"] == "uninitialized"


@pytest.mark.asyncio
async def test_file_database_relative_to_engine_root(tmp_path: Path):
    instance = ProfileStore()
    controller = MagicMock()
    controller.engine_root_path = tmp_path
    assert await instance.initialize({"storage": {"db_path": "nested/profiles.db"}}, controller)
    await instance.create_profile(OptimizationProfile(subject_id="disk"))
    await instance.shutdown()

    assert (tmp_path / "nested" / "profiles.db").exists()

    reopened = ProfileStore()
    assert await reopened.initialize({"storage": {"db_path": "nested/profiles.db"}}, controller)
    assert (await reopened.get_profile("disk")) is not None
    await reopened.shutdown()


@pytest.mark.asyncio
async def test_invalid_history_limit_uses_default():
    instance = ProfileStore()
    await instance.initialize({"storage": {"db_path": ":memory:", "history_load_limit": -5}}, MagicMock())
    assert instance.history_load_limit == 50
    await instance.shutdown()


@pytest.mark.asyncio
async def test_save_with_entry_commits_both_together(store):
    profile = OptimizationProfile(subject_id="u6")
    await store.create_profile(profile)
    profile.device_info.device_type = DeviceType.TABLET
    await store.save_profile(profile, _entry("tablet_switch"))

    loaded = await store.get_profile("u6")
    assert loaded.device_info.device_type == DeviceType.TABLET
    assert [e.action for e in loaded.optimization_history] == ["tablet_switch"]


@pytest.mark.asyncio
async def test_failed_history_insert_leaves_document_unchanged(store):
    profile = OptimizationProfile(subject_id="u7")
    await store.create_profile(profile)
    profile.device_info.device_type = DeviceType.TABLET

    with patch.object(ProfileStore, "_insert_history", side_effect=sqlite3.OperationalError("disk I/O error")):
        with pytest.raises(TransientStorageError):
            await store.save_profile(profile, _entry("lost"))

    loaded = await store.get_profile("u7")
    assert loaded.device_info.device_type == DeviceType.MOBILE
    assert loaded.optimization_history == []
