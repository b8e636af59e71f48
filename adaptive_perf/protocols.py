# adaptive_perf/protocols.py

from typing import Protocol, Dict, Any, Optional, List, runtime_checkable

# Forward references using strings for internal types
OptimizationProfile = 'OptimizationProfile'
HistoryEntry = 'HistoryEntry'


@runtime_checkable
class OptimizationComponent(Protocol):
    """Standard interface for all engine components"""

    async def initialize(self, config: Dict[str, Any], controller: Any) -> bool:
        """Initialize component with configuration and controller reference."""
        ...

    async def process(self, input_state: Optional[Dict[str, Any]] = None) -> Optional[Dict[str, Any]]:
        """Process input state and return output. Can be a no-op for some components."""
        ...

    async def reset(self) -> None:
        """Reset component to its initial state."""
        ...

    async def get_status(self) -> Dict[str, Any]:
        """Get the component's current status and key metrics."""
        ...

    async def shutdown(self) -> None:
        """Perform any necessary cleanup before the engine stops."""
        ...


@runtime_checkable
class ProfileRepository(OptimizationComponent, Protocol):
    """Interface for the component persisting optimization profiles (the metric store)."""

    async def get_profile(self, subject_id: str, history_limit: Optional[int] = None) -> Optional[OptimizationProfile]:
        """Load one profile with its most recent ``history_limit`` entries (-1 for all), or None when absent."""
        ...

    async def create_profile(self, profile: OptimizationProfile) -> bool:
        """Insert if absent. Returns False when a profile already existed."""
        ...

    async def save_profile(self, profile: OptimizationProfile, entry: Optional[HistoryEntry] = None) -> None:
        """Overwrite the stored document; ``entry`` is appended to history atomically with it."""
        ...

    async def append_history(self, subject_id: str, entry: HistoryEntry) -> None:
        """Append one history entry without rewriting the document."""
        ...

    async def list_subject_ids(self) -> List[str]:
        ...


@runtime_checkable
class ContentOptimizer(OptimizationComponent, Protocol):
    """Interface for components rewriting outgoing content payloads."""

    def optimize(self, profile: OptimizationProfile, content_type: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        """Return an optimized copy of ``payload``. Must never raise."""
        ...
