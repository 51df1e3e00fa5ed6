"""Debounced, cached, race-safe query orchestration for keystroke-driven search."""

from .core.config import OrchestratorOptions, PRESETS, build_orchestrator_options
from .services import (
    CancellationToken,
    FetchMeta,
    InputTrigger,
    OrchestratorState,
    QueryOrchestrator,
    normalize_query,
    should_trigger_search,
)
from .utils.error_handling import FetchCancelledError, OrchestratorError

__version__ = "0.1.0"

__all__ = [
    "CancellationToken",
    "FetchCancelledError",
    "FetchMeta",
    "InputTrigger",
    "OrchestratorError",
    "OrchestratorOptions",
    "OrchestratorState",
    "PRESETS",
    "QueryOrchestrator",
    "build_orchestrator_options",
    "normalize_query",
    "should_trigger_search",
]
