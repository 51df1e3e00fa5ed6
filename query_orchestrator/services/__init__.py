"""Orchestrator building blocks, leaves first."""

from .query_normalizer import normalize_query, passes_length_gate
from .near_duplicate import NearDuplicateFilter, is_prefix_extension
from .result_cache import CacheEntry, ResultCache
from .debounce import DebounceScheduler
from .cancellation import CancellationToken
from .sequence_guard import SequenceGuard
from .callbacks import CallbackDispatcher, FetchMeta
from .orchestrator import OrchestratorState, QueryOrchestrator
from .trigger_policy import should_trigger_search
from .input_trigger import InputTrigger

__all__ = [
    "CacheEntry",
    "CallbackDispatcher",
    "CancellationToken",
    "DebounceScheduler",
    "FetchMeta",
    "InputTrigger",
    "NearDuplicateFilter",
    "OrchestratorState",
    "QueryOrchestrator",
    "ResultCache",
    "SequenceGuard",
    "is_prefix_extension",
    "normalize_query",
    "passes_length_gate",
    "should_trigger_search",
]
