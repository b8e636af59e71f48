# adaptive_perf/models/exceptions.py

class OptimizationEngineError(Exception):
    """Base exception for adaptive performance engine errors."""
    pass

class ProfileNotFoundError(OptimizationEngineError):
    """Raised when an operation references a subject with no optimization profile."""

    def __init__(self, subject_id: str, message: str = "Optimization profile not found"):
        super().__init__(f"{message}: {subject_id}")
        self.subject_id = subject_id

class InvalidInputError(OptimizationEngineError):
    """Raised for structurally invalid metrics, device info or out-of-range settings."""
    pass

class TransientStorageError(OptimizationEngineError):
    """Raised when a read or write against the profile store fails."""
    pass

class ContentOptimizationError(OptimizationEngineError):
    """Raised internally when a content transformer fails. Never escapes to callers."""
    pass

class PresetNotFoundError(OptimizationEngineError):
    """Raised when a named optimization preset does not exist."""

    def __init__(self, preset_name: str):
        super().__init__(f"Optimization preset not found: {preset_name}")
        self.preset_name = preset_name

class ComponentInitializationError(OptimizationEngineError):
    """Raised when an engine component fails to initialize."""
    pass
