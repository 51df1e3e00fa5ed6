"""
Orchestrator options and environment overrides.

Options are plain dataclass fields so a live orchestrator can merge partial
updates into them.  Values can be overridden via env vars to tune typing
latency against request volume per deployment.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, fields, replace
from typing import Any, Dict, Optional

import structlog

logger = structlog.get_logger(__name__)


@dataclass(slots=True)
class OrchestratorOptions:
    """Tunable knobs for one orchestrator instance."""

    min_length: int = 3
    debounce_ms: int = 75
    cache_ttl_ms: int = 60_000
    use_cache: bool = True
    refresh_on_cache: bool = False

    # Largest length difference still considered "the same query being
    # typed" by the near-duplicate filter.
    near_duplicate_max_delta: int = 1

    @property
    def debounce_seconds(self) -> float:
        return max(0, self.debounce_ms) / 1000.0

    @property
    def cache_ttl_seconds(self) -> float:
        return self.cache_ttl_ms / 1000.0

    def merged(self, changes: Dict[str, Any]) -> "OrchestratorOptions":
        """Return a copy with the valid entries of ``changes`` applied.

        Unknown keys and values of the wrong type are dropped with a warning,
        never raised.
        """
        accepted = {}
        for key, value in (changes or {}).items():
            expected = _FIELD_TYPES.get(key)
            if expected is None:
                logger.warning("Unknown orchestrator option ignored", option=key)
                continue
            if not _matches(value, expected):
                logger.warning(
                    "Invalid orchestrator option ignored",
                    option=key,
                    raw_value=value,
                )
                continue
            accepted[key] = value
        return replace(self, **accepted) if accepted else replace(self)


_FIELD_TYPES: Dict[str, type] = {
    f.name: (bool if f.type in ("bool", bool) else int) for f in fields(OrchestratorOptions)
}


def _matches(value: Any, expected: type) -> bool:
    # bool is an int subclass; keep the two apart
    if expected is bool:
        return isinstance(value, bool)
    if isinstance(value, bool):
        return False
    return isinstance(value, (int, float))


PRESETS: Dict[str, OrchestratorOptions] = {
    "default": OrchestratorOptions(),
    # Chat-input background search: wait for a settled sentence
    "background_search": OrchestratorOptions(
        min_length=5,
        debounce_ms=400,
        cache_ttl_ms=300_000,
    ),
}


_ENV_INT_OVERRIDES = {
    "QUERY_ORCHESTRATOR_MIN_LENGTH": "min_length",
    "QUERY_ORCHESTRATOR_DEBOUNCE_MS": "debounce_ms",
    "QUERY_ORCHESTRATOR_CACHE_TTL_MS": "cache_ttl_ms",
    "QUERY_ORCHESTRATOR_NEAR_DUPLICATE_DELTA": "near_duplicate_max_delta",
}

_ENV_BOOL_OVERRIDES = {
    "QUERY_ORCHESTRATOR_USE_CACHE": "use_cache",
    "QUERY_ORCHESTRATOR_REFRESH_ON_CACHE": "refresh_on_cache",
}

_TRUE_VALUES = {"1", "true", "yes"}
_FALSE_VALUES = {"0", "false", "no"}


def build_orchestrator_options(
    *,
    base: Optional[OrchestratorOptions] = None,
    preset: Optional[str] = None,
) -> OrchestratorOptions:
    """Resolve options from a preset (or ``base``) plus env overrides."""
    if base is not None:
        cfg = replace(base)
    elif preset is not None:
        if preset not in PRESETS:
            raise ValueError(f"Unknown orchestrator preset: {preset}")
        cfg = replace(PRESETS[preset])
    else:
        cfg = OrchestratorOptions()

    for env_key, attr in _ENV_INT_OVERRIDES.items():
        raw = os.getenv(env_key)
        if not raw:
            continue
        try:
            setattr(cfg, attr, max(0, int(raw)))
        except ValueError as exc:
            logger.warning(
                f"Invalid {env_key} override ignored",
                raw_value=raw,
                error=str(exc),
            )

    for env_key, attr in _ENV_BOOL_OVERRIDES.items():
        raw = os.getenv(env_key)
        if raw is None or not raw.strip():
            continue
        value = raw.strip().lower()
        if value in _TRUE_VALUES:
            setattr(cfg, attr, True)
        elif value in _FALSE_VALUES:
            setattr(cfg, attr, False)
        else:
            logger.warning(f"Invalid {env_key} override ignored", raw_value=raw)

    return cfg
