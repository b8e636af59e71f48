# adaptive_perf/optimization_modules/profile_manager.py

import asyncio
import contextlib
import dataclasses
import logging
import time
from collections import Counter
from typing import Any, AsyncIterator, Dict, List, Optional

from ..engine_helpers.payloads import merge_performance_metrics, parse_metrics_payload, parse_period_days, parse_ratings
from ..engine_helpers.settings_tree import apply_changes, build_changes_from_tree, describe_change, merge_dataclass
from ..models.datatypes import DeviceInfo, HistoryEntry, OptimizationProfile, PerformanceImpact
from ..models.enums import OptimizationTrigger
from ..models.exceptions import InvalidInputError, PresetNotFoundError, ProfileNotFoundError, TransientStorageError
from ..models.serialization import from_dict, normalize_key, to_dict
from ..protocols import OptimizationComponent
from . import adaptive_optimizer, performance_scorer, presets, recommendation_generator, trend_analyzer
from .content_transformer import describe_optimizations

logger_profile_manager = logging.getLogger(__name__)

DEFAULT_REOPTIMIZE_SCORE_THRESHOLD = 60
DEFAULT_SIGNIFICANT_SCREEN_WIDTH_DELTA = 100
DEFAULT_STATUS_RECENT_HISTORY = 3
DEFAULT_ANALYTICS_HISTORY_LIMIT = 10
DEFAULT_RECOMMENDATION_LIMIT = 10
DEFAULT_ANALYTICS_PERIOD = "30d"
COMPARE_HISTORY_LIMIT = 5
INITIALIZE_RECOMMENDATIONS = 3
RECORD_METRICS_RECOMMENDATIONS = 5

# Device fields whose change forces re-optimization
SIGNIFICANT_DEVICE_FIELDS = ("device_type", "operating_system", "connection_speed")

ANALYTICS_TARGETS = {"load_time": 2500, "battery_usage": 10, "memory_usage": 100}


def settings_summary(profile: OptimizationProfile) -> Dict[str, Any]:
    return {
        "image_compression": profile.performance_settings.image_optimization.compression_level.value,
        "content_caching": profile.performance_settings.content_optimization.enable_content_caching,
        "battery_optimization": profile.performance_settings.battery_optimization.enable_battery_saver,
        "offline_mode": profile.mobile_features.offline_capabilities.enable_offline_reading,
        "dark_mode": profile.ux_settings.display_optimization.enable_dark_mode,
        "font_size": profile.ux_settings.display_optimization.font_size_multiplier,
        "data_saver": profile.adaptive_behavior.bandwidth_management.enable_data_saver,
    }


def quick_metrics(profile: OptimizationProfile) -> Dict[str, Optional[float]]:
    """Headline metric values; None where never reported."""
    metrics = profile.performance_metrics
    value = performance_scorer.metric_value
    return {
        "load_time": value(metrics, "page_load", "first_contentful_paint"),
        "battery_usage": value(metrics, "resources", "battery_usage"),
        "memory_usage": value(metrics, "resources", "memory_usage"),
        "bounce_rate": value(metrics, "interaction", "bounce_rate"),
    }


def _mean(values: List[float]) -> Optional[float]:
    return sum(values) / len(values) if values else None


class ProfileLifecycleManager(OptimizationComponent):
    """
    Owns the request-path operations on optimization profiles.

    Mutations for one subject are serialized through a per-subject lock so
    they apply in submission order; different subjects proceed concurrently.
    Every mutation persists the document together with the history entry it
    produced, in one storage commit.
    """

    def __init__(self):
        self._controller: Optional[Any] = None
        self._store: Optional[Any] = None
        self._transformer: Optional[Any] = None
        # Held or awaited locks only; an entry is dropped when its last user leaves
        self._subject_locks: Dict[str, asyncio.Lock] = {}
        self._subject_lock_users: Counter = Counter()
        self._trend_specs: Dict[str, trend_analyzer.MetricTrendSpec] = dict(trend_analyzer.DEFAULT_TREND_SPECS)

        self.reoptimize_score_threshold: float = DEFAULT_REOPTIMIZE_SCORE_THRESHOLD
        self.significant_screen_width_delta: int = DEFAULT_SIGNIFICANT_SCREEN_WIDTH_DELTA
        self.status_recent_history: int = DEFAULT_STATUS_RECENT_HISTORY
        self.analytics_history_limit: int = DEFAULT_ANALYTICS_HISTORY_LIMIT
        self.recommendation_limit: int = DEFAULT_RECOMMENDATION_LIMIT
        self.default_analytics_period: str = DEFAULT_ANALYTICS_PERIOD
        self.needs_optimization_score_threshold: float = adaptive_optimizer.DEFAULT_NEEDS_OPTIMIZATION_SCORE
        self.stale_after_hours: float = adaptive_optimizer.DEFAULT_STALE_AFTER_HOURS

        self.operation_counts: Counter = Counter()

    async def initialize(self, config: Dict[str, Any], controller: Any) -> bool:
        self._controller = controller
        self._store = getattr(controller, "profile_store", None)
        self._transformer = getattr(controller, "content_transformer", None)
        if self._store is None:
            logger_profile_manager.error("ProfileLifecycleManager: profile_store component not available.")
            return False

        pm_config = config.get("profile_manager", {})
        self.reoptimize_score_threshold = pm_config.get("reoptimize_score_threshold", DEFAULT_REOPTIMIZE_SCORE_THRESHOLD)
        self.significant_screen_width_delta = pm_config.get(
            "significant_screen_width_delta", DEFAULT_SIGNIFICANT_SCREEN_WIDTH_DELTA)
        self.status_recent_history = pm_config.get("status_recent_history", DEFAULT_STATUS_RECENT_HISTORY)
        self.analytics_history_limit = pm_config.get("analytics_history_limit", DEFAULT_ANALYTICS_HISTORY_LIMIT)
        self.recommendation_limit = pm_config.get("recommendation_limit", DEFAULT_RECOMMENDATION_LIMIT)
        self.default_analytics_period = pm_config.get("default_analytics_period", DEFAULT_ANALYTICS_PERIOD)

        ao_config = config.get("adaptive_optimizer", {})
        self.needs_optimization_score_threshold = ao_config.get(
            "needs_optimization_score_threshold", adaptive_optimizer.DEFAULT_NEEDS_OPTIMIZATION_SCORE)
        self.stale_after_hours = ao_config.get("stale_after_hours", adaptive_optimizer.DEFAULT_STALE_AFTER_HOURS)

        self._trend_specs = trend_analyzer.specs_from_config(config.get("trend_analyzer", {}))

        logger_profile_manager.info(
            f"ProfileLifecycleManager initialized. Reoptimize below score {self.reoptimize_score_threshold}, "
            f"needs-optimization below {self.needs_optimization_score_threshold} or after {self.stale_after_hours}h.")
        return True

    # --- Internal helpers ---

    @contextlib.asynccontextmanager
    async def _subject_lock(self, subject_id: str) -> AsyncIterator[None]:
        """Serialize read-modify-write operations per subject."""
        lock = self._subject_locks.get(subject_id)
        if lock is None:
            lock = self._subject_locks[subject_id] = asyncio.Lock()
        self._subject_lock_users[subject_id] += 1
        try:
            async with lock:
                yield
        finally:
            self._subject_lock_users[subject_id] -= 1
            if self._subject_lock_users[subject_id] <= 0:
                del self._subject_lock_users[subject_id]
                del self._subject_locks[subject_id]

    async def _load(self, subject_id: str, history_limit: Optional[int] = None) -> OptimizationProfile:
        profile = await self._store.get_profile(subject_id, history_limit)
        if profile is None:
            raise ProfileNotFoundError(subject_id)
        return profile

    async def _persist(self, profile: OptimizationProfile, entry: Optional[HistoryEntry] = None) -> None:
        await self._store.save_profile(profile, entry)

    def _score_and_status(self, profile: OptimizationProfile) -> Dict[str, Any]:
        score_value = performance_scorer.score(profile.performance_metrics)
        return {
            "performance_score": score_value,
            "optimization_status": performance_scorer.optimization_status(score_value).value,
        }

    def _recommendations(self, profile: OptimizationProfile, limit: int) -> List[Dict[str, Any]]:
        return recommendation_generator.recommendations_as_dicts(
            recommendation_generator.recommend(profile, limit=limit))

    def _needs_optimization(self, profile: OptimizationProfile, now: Optional[float] = None) -> bool:
        return adaptive_optimizer.needs_optimization(
            profile, now=now,
            score_threshold=self.needs_optimization_score_threshold,
            stale_after_hours=self.stale_after_hours)

    @staticmethod
    def _parse_device_patch(device_info: Any) -> Dict[str, Any]:
        if device_info is None:
            return {}
        if not isinstance(device_info, dict):
            raise InvalidInputError("Device info must be an object")
        return device_info

    def _is_significant_device_change(self, previous: DeviceInfo, current: DeviceInfo, patch: Dict[str, Any]) -> bool:
        provided = {normalize_key(k) for k in patch}
        for name in SIGNIFICANT_DEVICE_FIELDS:
            if name in provided and getattr(previous, name) != getattr(current, name):
                return True
        if "screen_resolution" in provided:
            delta = abs(previous.screen_resolution.width - current.screen_resolution.width)
            if delta > self.significant_screen_width_delta:
                return True
        return False

    # --- Request-path operations ---

    async def initialize_profile(self, subject_id: str, device_info: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        """Create the subject's profile (applying initial heuristics), or merge device info into an existing one."""
        self.operation_counts["initialize"] += 1
        patch = self._parse_device_patch(device_info)

        async with self._subject_lock(subject_id):
            profile = await self._store.get_profile(subject_id)
            created = False
            if profile is None:
                parsed_device = from_dict(DeviceInfo, patch, "device_info")
                profile = OptimizationProfile(subject_id=subject_id, device_info=parsed_device)
                plan = adaptive_optimizer.decide_initial(profile)
                adaptive_optimizer.apply_plan(
                    profile, plan, action="initial_optimization",
                    reason="Initial device-based optimization", trigger=OptimizationTrigger.INITIAL)
                created = await self._store.create_profile(profile)
                if created:
                    logger_profile_manager.info(f"New optimization profile created for subject '{subject_id}'")
                else:
                    # Lost a creation race; fall through to the merge path
                    profile = await self._load(subject_id)

            if not created and patch:
                profile.device_info = merge_dataclass(profile.device_info, patch, "device_info")
                profile.updated_at = time.time()
                await self._persist(profile)
                logger_profile_manager.info(f"Existing optimization profile updated for subject '{subject_id}'")

        result = {"profile_id": profile.profile_id, "created": created}
        result.update(self._score_and_status(profile))
        result["recommendations"] = self._recommendations(profile, INITIALIZE_RECOMMENDATIONS)
        return result

    async def get_profile_status(self, subject_id: str) -> Dict[str, Any]:
        self.operation_counts["status"] += 1
        profile = await self._load(subject_id)
        status = {
            "profile_id": profile.profile_id,
            "last_optimization_check": profile.last_optimization_check,
            "device_info": to_dict(profile.device_info),
            "needs_optimization": self._needs_optimization(profile),
            "current_settings": settings_summary(profile),
            "quick_metrics": quick_metrics(profile),
            "recent_optimizations": [to_dict(e) for e in profile.optimization_history[-self.status_recent_history:]],
        }
        status.update(self._score_and_status(profile))
        return status

    async def update_device_info(self, subject_id: str, device_info: Dict[str, Any]) -> Dict[str, Any]:
        self.operation_counts["update_device"] += 1
        patch = self._parse_device_patch(device_info)

        async with self._subject_lock(subject_id):
            profile = await self._load(subject_id)
            previous = profile.device_info
            updated = merge_dataclass(previous, patch, "device_info")
            profile.device_info = updated
            re_optimized = self._is_significant_device_change(previous, updated, patch)

            entry = None
            now = time.time()
            if re_optimized:
                plan = adaptive_optimizer.decide_adaptive(profile)
                entry = adaptive_optimizer.apply_plan(
                    profile, plan, action="device_update_reoptimization",
                    reason="Significant device change detected", trigger=OptimizationTrigger.DEVICE_UPDATE, now=now)
                logger_profile_manager.info(f"Subject '{subject_id}' re-optimized after device change")
            else:
                profile.mark_checked(now)
                profile.updated_at = now
            await self._persist(profile, entry)

        result = {"re_optimized": re_optimized, "device_info": to_dict(profile.device_info),
                  "settings": settings_summary(profile)}
        result.update(self._score_and_status(profile))
        return result

    async def record_metrics(self, subject_id: str, metrics: Any) -> Dict[str, Any]:
        self.operation_counts["record_metrics"] += 1
        update = parse_metrics_payload(metrics)

        async with self._subject_lock(subject_id):
            profile = await self._load(subject_id)
            before = performance_scorer.impact_snapshot(profile.performance_metrics)
            profile.performance_metrics = merge_performance_metrics(profile.performance_metrics, update)
            now = time.time()
            profile.mark_checked(now)
            profile.updated_at = now

            score_value = performance_scorer.score(profile.performance_metrics)
            entry = None
            if score_value < self.reoptimize_score_threshold:
                logger_profile_manager.warning(
                    f"Subject '{subject_id}' performance degraded (score: {score_value}), applying optimizations")
                plan = adaptive_optimizer.decide_adaptive(profile)
                entry = adaptive_optimizer.apply_plan(
                    profile, plan, action="performance_optimization",
                    reason=f"Performance score dropped to {score_value}",
                    trigger=OptimizationTrigger.PERFORMANCE, before=before, now=now)
            await self._persist(profile, entry)

        logger_profile_manager.info(f"Performance metrics recorded for '{subject_id}' (score: {score_value})")
        result = {"re_optimized": entry is not None}
        result.update(self._score_and_status(profile))
        result["recommendations"] = self._recommendations(profile, RECORD_METRICS_RECOMMENDATIONS)
        return result

    async def get_optimized_content(self, subject_id: str, content_type: str, payload: Any) -> Dict[str, Any]:
        """Never raises for a missing profile or storage trouble; the original payload is returned instead."""
        self.operation_counts["optimized_content"] += 1
        result = {"content_type": content_type, "original_content": payload,
                  "optimized_content": payload, "optimizations_applied": []}
        if self._transformer is None:
            logger_profile_manager.warning("No content transformer available; returning original content.")
            return result
        try:
            profile = await self._store.get_profile(subject_id, 0)
        except TransientStorageError as e:
            logger_profile_manager.exception(f"Could not load profile for content optimization of '{subject_id}': {e}")
            return result
        if profile is None:
            logger_profile_manager.debug(f"No profile for '{subject_id}'; returning original content.")
            return result

        optimized = self._transformer.optimize(profile, content_type, payload)
        result["optimized_content"] = optimized
        result["optimizations_applied"] = describe_optimizations(payload, optimized)
        return result

    async def get_analytics(self, subject_id: str, period: Optional[str] = None) -> Dict[str, Any]:
        self.operation_counts["analytics"] += 1
        period = period or self.default_analytics_period
        days = parse_period_days(period)
        # Full history for the window; only the response is capped
        profile = await self._load(subject_id, history_limit=-1)
        start = time.time() - days * 86400
        relevant = [e for e in profile.optimization_history if e.timestamp >= start]
        metric_trends = trend_analyzer.trends(relevant, self._trend_specs)

        current = quick_metrics(profile)
        interaction = profile.performance_metrics.interaction
        analytics = {
            "period": period,
            "period_days": days,
            "trends": {metric: t.value for metric, t in metric_trends.items()},
            "load_time_metrics": {"current": current["load_time"], "target": ANALYTICS_TARGETS["load_time"],
                                  "trend": metric_trends["load_time"].value},
            "battery_metrics": {"current": current["battery_usage"], "target": ANALYTICS_TARGETS["battery_usage"],
                                "trend": metric_trends["battery_usage"].value},
            "memory_metrics": {"current": current["memory_usage"], "target": ANALYTICS_TARGETS["memory_usage"],
                               "trend": metric_trends["memory_usage"].value},
            "user_experience": {
                "bounce_rate": interaction.bounce_rate if interaction else None,
                "session_duration": interaction.average_session_duration if interaction else None,
                "pages_per_session": interaction.pages_per_session if interaction else None,
            },
            "optimization_history": [to_dict(e) for e in relevant[-self.analytics_history_limit:]],
            "recommendations": self._recommendations(profile, self.recommendation_limit),
            "device_info": to_dict(profile.device_info),
            "settings_summary": settings_summary(profile),
        }
        analytics.update(self._score_and_status(profile))
        return analytics

    async def apply_settings(self, subject_id: str, settings: Dict[str, Any],
                             action: str = "manual_settings_update",
                             reason: str = "User-requested optimization settings change") -> Dict[str, Any]:
        self.operation_counts["apply_settings"] += 1
        async with self._subject_lock(subject_id):
            profile = await self._load(subject_id)
            # Validates every leaf before anything is touched
            changes = build_changes_from_tree(profile, settings)
            now = time.time()
            snapshot = performance_scorer.impact_snapshot(profile.performance_metrics)
            effective = apply_changes(profile, changes)
            entry = HistoryEntry(
                action=action, reason=reason, trigger=OptimizationTrigger.MANUAL, timestamp=now,
                changes=effective, actions_applied=[describe_change(c) for c in effective],
                performance_impact=PerformanceImpact(before=snapshot, after=snapshot),
            )
            profile.optimization_history.append(entry)
            profile.mark_checked(now)
            profile.updated_at = now
            await self._persist(profile, entry)

        logger_profile_manager.info(f"Applied {len(effective)} setting change(s) for '{subject_id}' ({action})")
        result = {"profile": to_dict(profile), "message": "Optimization settings applied successfully",
                  "changes_applied": len(effective)}
        result.update(self._score_and_status(profile))
        return result

    async def get_recommendations(self, subject_id: str) -> Dict[str, Any]:
        self.operation_counts["recommendations"] += 1
        profile = await self._load(subject_id, history_limit=0)
        recommendations = self._recommendations(profile, self.recommendation_limit)
        result = {"recommendations": recommendations, "total": len(recommendations)}
        result.update(self._score_and_status(profile))
        return result

    async def submit_feedback(self, subject_id: str, ratings: Dict[str, Any], comment: Optional[str] = None) -> Dict[str, Any]:
        self.operation_counts["feedback"] += 1
        if not isinstance(ratings, dict):
            raise InvalidInputError("Ratings must be an object")
        parsed = parse_ratings(ratings)
        if comment is not None and not isinstance(comment, str):
            raise InvalidInputError("Comment must be a string")

        async with self._subject_lock(subject_id):
            profile = await self._load(subject_id, history_limit=0)
            now = time.time()
            feedback = dataclasses.replace(profile.feedback, **parsed)
            feedback.last_feedback_date = now
            feedback.submission_count += 1
            if comment:
                feedback.comments = list(feedback.comments) + [comment]
            profile.feedback = feedback
            profile.updated_at = now
            await self._persist(profile)

        submitted = [parsed.get(name, 0) for name in ("performance_rating", "usability_rating", "battery_rating")]
        return {
            "average_rating": sum(submitted) / 3,
            "submitted_at": now,
            "total_feedbacks": profile.feedback.submission_count,
        }

    async def apply_auto_optimizations(self, subject_id: str) -> Dict[str, Any]:
        self.operation_counts["auto_optimize"] += 1
        async with self._subject_lock(subject_id):
            profile = await self._load(subject_id)
            plan = adaptive_optimizer.decide_adaptive(profile)
            entry = adaptive_optimizer.apply_plan(
                profile, plan, action="manual_auto_optimization",
                reason="User requested automatic optimization", trigger=OptimizationTrigger.USER_REQUESTED)
            await self._persist(profile, entry)

        result = {"optimizations_applied": list(plan.actions)}
        result.update(self._score_and_status(profile))
        result["recommendations"] = self._recommendations(profile, INITIALIZE_RECOMMENDATIONS)
        return result

    def list_presets(self) -> List[Dict[str, Any]]:
        return [to_dict(p) for p in presets.list_presets()]

    async def apply_preset(self, subject_id: str, preset_name: str) -> Dict[str, Any]:
        preset = presets.get_preset(preset_name)
        if preset is None:
            raise PresetNotFoundError(preset_name)
        applied = await self.apply_settings(
            subject_id, preset.settings, action=f"preset:{preset.key}",
            reason=f"Applied {preset.name} preset")
        return {
            "preset_name": preset.name,
            "preset_description": preset.description,
            "expected_impact": dict(preset.expected_impact),
            "performance_score": applied["performance_score"],
            "optimization_status": applied["optimization_status"],
        }

    async def compare_optimizations(self, subject_id: str) -> Dict[str, Any]:
        profile = await self._load(subject_id)
        recent = profile.optimization_history[-COMPARE_HISTORY_LIMIT:]
        history = []
        for entry in recent:
            before_score = performance_scorer.snapshot_score(entry.performance_impact.before)
            after_score = performance_scorer.snapshot_score(entry.performance_impact.after)
            history.append({
                "timestamp": entry.timestamp, "action": entry.action, "reason": entry.reason,
                "before_score": before_score, "after_score": after_score,
                "improvement": after_score - before_score,
            })
        compare_trends = trend_analyzer.trends(recent, self._trend_specs, metrics=("score", "battery_usage", "load_time"))
        result = {
            "current_score": performance_scorer.score(profile.performance_metrics),
            "history": history,
            "trends": {
                "performance_trend": compare_trends["score"].value,
                "battery_trend": compare_trends["battery_usage"].value,
                "load_time_trend": compare_trends["load_time"].value,
            },
            "recommendations": self._recommendations(profile, INITIALIZE_RECOMMENDATIONS),
        }
        result["current_status"] = performance_scorer.optimization_status(result["current_score"]).value
        return result

    # --- Operations used by the reassessment scheduler ---

    async def _load_for_sweep(self, subject_id: str) -> Optional[OptimizationProfile]:
        """Snapshot without history; storage errors are logged and the subject is skipped."""
        try:
            return await self._store.get_profile(subject_id, 0)
        except TransientStorageError as e:
            logger_profile_manager.exception(f"Skipping subject '{subject_id}' during sweep: {e}")
            return None

    async def find_optimization_candidates(self, now: Optional[float] = None) -> List[str]:
        """Subjects that need optimization or show degraded metrics and have auto-optimization enabled."""
        now = time.time() if now is None else now
        candidates = []
        for subject_id in await self._store.list_subject_ids():
            profile = await self._load_for_sweep(subject_id)
            if profile is None or not profile.adaptive_behavior.auto_optimization.enabled:
                continue
            if self._needs_optimization(profile, now) or adaptive_optimizer.has_degraded_metrics(profile):
                candidates.append(subject_id)
        return candidates

    async def run_scheduled_optimization(self, subject_id: str) -> bool:
        """Re-check and optimize one subject; False if it no longer qualifies."""
        async with self._subject_lock(subject_id):
            profile = await self._load(subject_id, history_limit=0)
            if not profile.adaptive_behavior.auto_optimization.enabled:
                return False
            if not (self._needs_optimization(profile) or adaptive_optimizer.has_degraded_metrics(profile)):
                return False
            plan = adaptive_optimizer.decide_adaptive(profile)
            entry = adaptive_optimizer.apply_plan(
                profile, plan, action="scheduled_optimization",
                reason="Periodic reassessment", trigger=OptimizationTrigger.SCHEDULED)
            await self._persist(profile, entry)
        return True

    async def find_aggressive_candidates(self, fcp_threshold_ms: float, limit: int) -> List[str]:
        candidates = []
        for subject_id in await self._store.list_subject_ids():
            if len(candidates) >= limit:
                break
            profile = await self._load_for_sweep(subject_id)
            if profile is None:
                continue
            fcp = performance_scorer.metric_value(profile.performance_metrics, "page_load", "first_contentful_paint")
            if fcp is not None and fcp > fcp_threshold_ms:
                candidates.append(subject_id)
        return candidates

    async def run_aggressive_optimization(self, subject_id: str, fcp_threshold_ms: float) -> bool:
        async with self._subject_lock(subject_id):
            profile = await self._load(subject_id, history_limit=0)
            fcp = performance_scorer.metric_value(profile.performance_metrics, "page_load", "first_contentful_paint")
            if fcp is None or fcp <= fcp_threshold_ms:
                return False
            plan = adaptive_optimizer.decide_aggressive(profile)
            entry = adaptive_optimizer.apply_plan(
                profile, plan, action="aggressive_optimization",
                reason=f"First contentful paint {fcp:.0f}ms exceeds {fcp_threshold_ms:.0f}ms",
                trigger=OptimizationTrigger.AGGRESSIVE)
            await self._persist(profile, entry)
        return True

    async def collect_global_stats(self) -> Dict[str, Any]:
        """Population-wide averages and distributions. Read-only."""
        scores: List[float] = []
        load_times: List[float] = []
        battery: List[float] = []
        statuses: Counter = Counter()
        device_types: Counter = Counter()
        operating_systems: Counter = Counter()
        for subject_id in await self._store.list_subject_ids():
            profile = await self._load_for_sweep(subject_id)
            if profile is None:
                continue
            score_value = performance_scorer.score(profile.performance_metrics)
            scores.append(score_value)
            statuses[performance_scorer.optimization_status(score_value).value] += 1
            device_types[profile.device_info.device_type.value] += 1
            operating_systems[profile.device_info.operating_system.value] += 1
            metrics = quick_metrics(profile)
            if metrics["load_time"] is not None:
                load_times.append(metrics["load_time"])
            if metrics["battery_usage"] is not None:
                battery.append(metrics["battery_usage"])
        return {
            "total_profiles": len(scores),
            "average_performance_score": _mean(scores),
            "status_distribution": dict(statuses),
            "device_types": dict(device_types),
            "operating_systems": dict(operating_systems),
            "average_load_time": _mean(load_times),
            "average_battery_usage": _mean(battery),
        }

    # --- OptimizationComponent ---

    async def process(self, input_state: Optional[Dict[str, Any]] = None) -> Optional[Dict[str, Any]]:
        return None

    async def reset(self) -> None:
        self.operation_counts.clear()
        logger_profile_manager.info("ProfileLifecycleManager reset.")

    async def get_status(self) -> Dict[str, Any]:
        return {
            "component": "ProfileLifecycleManager",
            "status": "operational" if self._store is not None else "uninitialized",
            "operation_counts": dict(self.operation_counts),
            "tracked_subjects": len(self._subject_locks),
        }

    async def shutdown(self) -> None:
        logger_profile_manager.info("ProfileLifecycleManager shutting down.")
