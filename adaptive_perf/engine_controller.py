# adaptive_perf/engine_controller.py

import asyncio
import logging
import signal
import time
from pathlib import Path
from typing import Any, Dict, List, Optional, Type, Union

from .engine_config import COMPONENT_INIT_ORDER, ENGINE_ROOT_PATH, STATUS_POLL_INTERVAL_S, load_config
from .engine_helpers.host_stats import host_resource_stats
from .models.enums import EngineState
from .models.exceptions import ComponentInitializationError
from .optimization_modules.content_transformer import ContentTransformer
from .optimization_modules.profile_manager import ProfileLifecycleManager
from .optimization_modules.profile_store import ProfileStore
from .optimization_modules.reassessment_scheduler import ReassessmentScheduler
from .protocols import OptimizationComponent

logger_engine_controller = logging.getLogger(__name__)

component_classes: Dict[str, Type[OptimizationComponent]] = {
    "profile_store": ProfileStore,
    "content_transformer": ContentTransformer,
    "profile_manager": ProfileLifecycleManager,
    "reassessment_scheduler": ReassessmentScheduler,
}


class OptimizationEngine:
    """
    Wires the engine components together and exposes the request-path operations.

    Components are created eagerly, initialized in COMPONENT_INIT_ORDER by
    ``start()`` and shut down in reverse order by ``stop()``. Background sweeps
    run only between ``start()`` and ``stop()``.
    """

    def __init__(self, config: Optional[Dict[str, Any]] = None,
                 config_path: Union[str, Path, None] = None,
                 engine_root_path: Union[str, Path, None] = None):
        logger_engine_controller.info("Initializing OptimizationEngine...")
        if config is None:
            config = load_config(config_path) if config_path is not None else {}
        self.config: Dict[str, Any] = config
        self.engine_root_path = Path(engine_root_path) if engine_root_path else ENGINE_ROOT_PATH
        self.components: Dict[str, OptimizationComponent] = {}
        self.engine_state: EngineState = EngineState.STOPPED
        self.started_at: Optional[float] = None
        self._initialized_components: List[str] = []
        self._stop_event: Optional[asyncio.Event] = None

        self.profile_store: Optional[ProfileStore] = None
        self.content_transformer: Optional[ContentTransformer] = None
        self.profile_manager: Optional[ProfileLifecycleManager] = None
        self.reassessment_scheduler: Optional[ReassessmentScheduler] = None
        self._create_components()

    def _create_components(self) -> None:
        logger_engine_controller.info("Creating engine component instances...")
        for name in COMPONENT_INIT_ORDER:
            ComponentClass = component_classes.get(name)
            if ComponentClass is None:
                logger_engine_controller.warning(f"Component '{name}' in COMPONENT_INIT_ORDER but no class found.")
                continue
            instance = ComponentClass()
            self.components[name] = instance
            setattr(self, name, instance)
            logger_engine_controller.debug(f"Created component instance: {name}")
        logger_engine_controller.info(f"Created {len(self.components)} component instances.")

    def _set_state(self, new_state: EngineState) -> None:
        if self.engine_state != new_state:
            logger_engine_controller.info(f"Engine state changing: {self.engine_state.name} -> {new_state.name}")
            self.engine_state = new_state

    # --- Lifecycle ---

    async def start(self, run_scheduler: bool = True) -> None:
        """Initialize every component; raises ComponentInitializationError on the first failure."""
        if self.engine_state != EngineState.STOPPED:
            logger_engine_controller.warning(f"Start ignored: engine not STOPPED (current: {self.engine_state.name})")
            return
        self._set_state(EngineState.STARTING)
        logger_engine_controller.info("Initializing components...")
        for name in COMPONENT_INIT_ORDER:
            component = self.components.get(name)
            if component is None:
                continue
            try:
                success = await component.initialize(self.config, self)
            except Exception as e:
                logger_engine_controller.exception(f"Exception during {name} initialization: {e}")
                success = False
            if not success:
                logger_engine_controller.error(f"Component {name} initialization failed!")
                await self._shutdown_components()
                self._set_state(EngineState.ERROR)
                raise ComponentInitializationError(f"Component '{name}' failed to initialize")
            self._initialized_components.append(name)
            logger_engine_controller.info(f"Component {name} initialized successfully.")

        if run_scheduler and self.reassessment_scheduler is not None:
            self.reassessment_scheduler.start()
        self.started_at = time.time()
        self._set_state(EngineState.RUNNING)

    async def stop(self) -> None:
        if self.engine_state in (EngineState.STOPPED, EngineState.STOPPING):
            logger_engine_controller.info("Stop ignored: engine is not running.")
            return
        self._set_state(EngineState.STOPPING)
        await self._shutdown_components()
        self.started_at = None
        self._set_state(EngineState.STOPPED)
        if self._stop_event is not None:
            self._stop_event.set()

    async def _shutdown_components(self) -> None:
        logger_engine_controller.info(f"Shutting down {len(self._initialized_components)} components...")
        for name in reversed(self._initialized_components):
            component = self.components[name]
            try:
                await component.shutdown()
                logger_engine_controller.debug(f"Component {name} shutdown complete.")
            except Exception as e:
                logger_engine_controller.exception(f"Error shutting down component {name}: {e}")
        self._initialized_components = []
        logger_engine_controller.info("Component shutdown finished.")

    def request_stop(self, signum: Optional[int] = None) -> None:
        logger_engine_controller.info(f"Stop requested (Signal: {signum})...")
        if self._stop_event is not None:
            self._stop_event.set()

    def _add_signal_handlers(self, loop: asyncio.AbstractEventLoop) -> None:
        try:
            for sig in (signal.SIGINT, signal.SIGTERM):
                loop.add_signal_handler(sig, self.request_stop, sig)
            logger_engine_controller.info("Added signal handlers for SIGINT and SIGTERM.")
        except NotImplementedError:
            logger_engine_controller.warning("Signal handlers not fully supported on this platform.")

    def _remove_signal_handlers(self, loop: asyncio.AbstractEventLoop) -> None:
        if loop.is_closed():
            return
        for sig in (signal.SIGINT, signal.SIGTERM):
            try:
                loop.remove_signal_handler(sig)
            except (NotImplementedError, ValueError, RuntimeError):
                pass

    async def run_forever(self) -> None:
        """Start, run the background sweeps until a stop signal, then shut down."""
        loop = asyncio.get_running_loop()
        self._stop_event = asyncio.Event()
        self._add_signal_handlers(loop)
        try:
            await self.start()
            while not self._stop_event.is_set():
                try:
                    await asyncio.wait_for(self._stop_event.wait(), timeout=STATUS_POLL_INTERVAL_S)
                except asyncio.TimeoutError:
                    status = await self.get_status()
                    logger_engine_controller.debug(f"Engine heartbeat: {status['host']}")
        except asyncio.CancelledError:
            logger_engine_controller.info("Engine run task was cancelled.")
            raise
        finally:
            self._remove_signal_handlers(loop)
            await self.stop()

    async def get_status(self) -> Dict[str, Any]:
        component_status: Dict[str, Any] = {}
        for name in self._initialized_components:
            try:
                component_status[name] = await self.components[name].get_status()
            except Exception as e:
                logger_engine_controller.exception(f"Error getting status for component {name}: {e}")
                component_status[name] = {"status": "error", "error_message": str(e)}
        return {
            "state": self.engine_state.name,
            "uptime_s": (time.time() - self.started_at) if self.started_at else 0.0,
            "components": component_status,
            "host": await host_resource_stats(),
        }

    # --- Request-path operations ---

    async def initialize_profile(self, subject_id: str, device_info: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        return await self.profile_manager.initialize_profile(subject_id, device_info)

    async def get_profile_status(self, subject_id: str) -> Dict[str, Any]:
        return await self.profile_manager.get_profile_status(subject_id)

    async def update_device_info(self, subject_id: str, device_info: Dict[str, Any]) -> Dict[str, Any]:
        return await self.profile_manager.update_device_info(subject_id, device_info)

    async def record_metrics(self, subject_id: str, metrics: Any) -> Dict[str, Any]:
        return await self.profile_manager.record_metrics(subject_id, metrics)

    async def get_optimized_content(self, subject_id: str, content_type: str, payload: Any) -> Dict[str, Any]:
        return await self.profile_manager.get_optimized_content(subject_id, content_type, payload)

    async def get_analytics(self, subject_id: str, period: Optional[str] = None) -> Dict[str, Any]:
        return await self.profile_manager.get_analytics(subject_id, period)

    async def apply_settings(self, subject_id: str, settings: Dict[str, Any]) -> Dict[str, Any]:
        return await self.profile_manager.apply_settings(subject_id, settings)

    async def get_recommendations(self, subject_id: str) -> Dict[str, Any]:
        return await self.profile_manager.get_recommendations(subject_id)

    async def submit_feedback(self, subject_id: str, ratings: Dict[str, Any],
                              comment: Optional[str] = None) -> Dict[str, Any]:
        return await self.profile_manager.submit_feedback(subject_id, ratings, comment)

    async def apply_auto_optimizations(self, subject_id: str) -> Dict[str, Any]:
        return await self.profile_manager.apply_auto_optimizations(subject_id)

    def list_presets(self) -> List[Dict[str, Any]]:
        return self.profile_manager.list_presets()

    async def apply_preset(self, subject_id: str, preset_name: str) -> Dict[str, Any]:
        return await self.profile_manager.apply_preset(subject_id, preset_name)

    async def compare_optimizations(self, subject_id: str) -> Dict[str, Any]:
        return await self.profile_manager.compare_optimizations(subject_id)

    async def run_sweep(self, name: str) -> Optional[Dict[str, Any]]:
        return await self.reassessment_scheduler.run_sweep(name)
