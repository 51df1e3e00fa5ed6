"""
Error types and lightweight logging helpers for the orchestrator boundary.

Every failure raised by an injected fetch is caught by the orchestrator and
routed through :func:`is_cancellation` so that superseded requests are never
reported to callers as errors.
"""

from __future__ import annotations

import asyncio
from typing import Any, Optional

import structlog

_logger = structlog.get_logger(__name__)


class OrchestratorError(Exception):
    """Base class for errors raised by the query orchestrator."""


class FetchCancelledError(OrchestratorError):
    """Raised inside a fetch when its cancellation token was signaled."""

    def __init__(self, reason: Optional[str] = None):
        self.reason = reason
        super().__init__(reason or "fetch cancelled")


def log_exception(context: str, exc: BaseException, **fields: Any) -> None:
    """Log an exception with context; never raises."""
    try:
        _logger.warning(context, error=str(exc), error_type=type(exc).__name__, **fields)
    except Exception:
        # Avoid secondary failures during error handling
        pass


def is_cancellation(error: BaseException, token: Any = None) -> bool:
    """True when ``error`` stems from cooperative cancellation.

    A failure after the attempt's own token was signaled counts as a
    cancellation whatever its type, since transports surface aborts in
    their own exception classes.
    """
    if isinstance(error, (FetchCancelledError, asyncio.CancelledError)):
        return True
    return bool(token is not None and getattr(token, "cancelled", False))


def identify_error_type(error: BaseException) -> str:
    """Heuristic classification of fetch failures for log fields."""
    if isinstance(error, (FetchCancelledError, asyncio.CancelledError)):
        return "cancelled"
    name = type(error).__name__.lower()
    msg = str(error).lower()
    if isinstance(error, asyncio.TimeoutError) or "timeout" in name or "timed out" in msg:
        return "timeout"
    if "rate" in name and "limit" in name:
        return "rate_limit"
    if "quota" in msg or "429" in msg:
        return "rate_limit"
    return "unknown"
