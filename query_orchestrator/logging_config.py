"""Centralised structured logging setup for the query orchestrator.

Importing this module has the side-effect of configuring *structlog* with a
consistent, JSON-formatted pipeline so that orchestrator events (debounce,
dispatch, stale responses, cancellations) can be correlated per input
surface.

Other modules should call :pyfunc:`structlog.get_logger()` directly and avoid
re-configuring the library.  Subsequent calls to :func:`configure_logging` are
no-ops because *structlog* caches its configuration.
"""

from __future__ import annotations

import logging
import os
from typing import Dict, Optional

import structlog

__all__ = [
    "configure_logging",
    "bind_orchestrator_context",
    "get_logger",
]


def configure_logging(force: bool = False) -> None:  # noqa: D401
    """Setup structlog + stdlib bridging exactly once.

    Args:
        force: When True, reconfigure even if previously configured. Use only
               inside isolated scripts/tests that need a different renderer.
    """

    configured = getattr(structlog, "_query_orchestrator_configured", False)
    if configured and not force:
        return

    log_level = os.getenv("LOG_LEVEL", "INFO").upper()

    # JSON by default, pretty console when LOG_PRETTY=1
    dev_mode = os.getenv("LOG_PRETTY", "0").lower() in {"1", "true", "yes"}
    if dev_mode:
        renderer = structlog.dev.ConsoleRenderer()
    else:
        renderer = structlog.processors.JSONRenderer()

    shared_processors = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
    ]

    # Root handler uses ProcessorFormatter so stdlib logs share processors
    formatter = structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=[structlog.contextvars.merge_contextvars],
        processors=[
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.format_exc_info,
            renderer,
        ],
    )

    root_logger = logging.getLogger()
    for h in list(root_logger.handlers):
        root_logger.removeHandler(h)

    handler = logging.StreamHandler()
    handler.setFormatter(formatter)
    root_logger.addHandler(handler)
    root_logger.setLevel(getattr(logging, log_level, logging.INFO))

    structlog.configure(
        processors=shared_processors + [renderer],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    setattr(structlog, "_query_orchestrator_configured", True)


def bind_orchestrator_context(
    surface: Optional[str] = None,
    provider: Optional[str] = None,
) -> None:
    """Bind the input surface / provider into structlog contextvars.

    Safe to call multiple times; only provided keys are updated.
    """
    payload: Dict[str, str] = {}
    if surface:
        payload["surface"] = surface
    if provider:
        payload["provider"] = provider
    if payload:
        try:
            structlog.contextvars.bind_contextvars(**payload)
        except (TypeError, ValueError) as e:
            logging.getLogger(__name__).debug(
                "Failed to bind context: %s", e, exc_info=True
            )


def get_logger(name: Optional[str] = None):
    """Return a structlog logger; ensures configuration first."""
    configure_logging()
    return structlog.get_logger(name) if name else structlog.get_logger()
