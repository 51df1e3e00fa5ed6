"""Configuration for the query orchestrator."""

from .config import OrchestratorOptions, PRESETS, build_orchestrator_options

__all__ = ["OrchestratorOptions", "PRESETS", "build_orchestrator_options"]
