"""
Lifecycle callback delivery for orchestrator attempts.

Callers hand in plain functions or coroutine functions.  Coroutines are
scheduled as tasks on the running loop so that a slow UI handler never
delays the orchestrator's own bookkeeping.  A failing callback is logged and
otherwise ignored: callback errors must not leak into the fetch pipeline.
"""

from __future__ import annotations

import asyncio
import inspect
from dataclasses import dataclass
from typing import Any, Callable, Optional, Set

import structlog

from ..utils.error_handling import log_exception

logger = structlog.get_logger(__name__)


@dataclass(frozen=True, slots=True)
class FetchMeta:
    from_cache: bool = False


class CallbackDispatcher:
    """Delivers start/success/error/finally notifications."""

    def __init__(
        self,
        on_start: Optional[Callable[..., Any]] = None,
        on_success: Optional[Callable[..., Any]] = None,
        on_error: Optional[Callable[..., Any]] = None,
        on_finally: Optional[Callable[..., Any]] = None,
    ):
        self.on_start = on_start
        self.on_success = on_success
        self.on_error = on_error
        self.on_finally = on_finally
        self._pending: Set[asyncio.Task[Any]] = set()

    def start(self, query: str) -> None:
        self._invoke("on_start", self.on_start, query)

    def success(self, query: str, result: Any, *, from_cache: bool) -> None:
        self._invoke("on_success", self.on_success, query, result, FetchMeta(from_cache=from_cache))

    def error(self, query: str, error: BaseException) -> None:
        self._invoke("on_error", self.on_error, query, error)

    def finally_(self, query: str) -> None:
        self._invoke("on_finally", self.on_finally, query)

    async def drain(self) -> None:
        """Wait for callback coroutines that are still running."""
        if self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)

    def _invoke(self, name: str, callback: Optional[Callable[..., Any]], *args: Any) -> None:
        if callback is None:
            return
        try:
            outcome = callback(*args)
        except Exception as exc:
            log_exception("callbacks.failed", exc, callback=name, query=args[0])
            return

        if inspect.isawaitable(outcome):
            task = asyncio.ensure_future(outcome)
            self._pending.add(task)
            task.add_done_callback(lambda done: self._on_task_done(name, done))

    def _on_task_done(self, name: str, task: asyncio.Task[Any]) -> None:
        self._pending.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            log_exception("callbacks.failed", exc, callback=name)
