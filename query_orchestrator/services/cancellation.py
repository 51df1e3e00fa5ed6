"""Cooperative cancellation tokens handed to injected fetch callables.

The orchestrator never kills a fetch; it only signals the token of the
attempt it wants to abandon.  Fetch implementations either poll
``token.cancelled``, register a callback with :meth:`add_callback` (e.g. to
close an HTTP response), or wrap their transport call in :meth:`guard`.
"""

from __future__ import annotations

import asyncio
import inspect
from typing import Any, Awaitable, Callable, List, Optional, TypeVar

import structlog

from ..utils.error_handling import FetchCancelledError, log_exception

logger = structlog.get_logger(__name__)

T = TypeVar("T")


class CancellationToken:
    """One-shot cancellation signal for a single fetch attempt."""

    def __init__(self, query: str = ""):
        self.query = query
        self._cancelled = False
        self._reason: Optional[str] = None
        self._callbacks: List[Callable[["CancellationToken"], Any]] = []
        self._event: Optional[asyncio.Event] = None

    def __repr__(self):
        return f"CancellationToken(query={self.query!r}, cancelled={self._cancelled})"

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    @property
    def reason(self) -> Optional[str]:
        return self._reason

    def cancel(self, reason: Optional[str] = None) -> bool:
        """Signal cancellation. Returns False if already cancelled."""
        if self._cancelled:
            return False
        self._cancelled = True
        self._reason = reason
        if self._event is not None:
            self._event.set()

        callbacks, self._callbacks = self._callbacks, []
        for callback in callbacks:
            try:
                callback(self)
            except Exception as exc:
                log_exception(
                    "cancellation.callback_failed", exc, query=self.query
                )
        logger.debug("cancellation.signaled", query=self.query, reason=reason)
        return True

    def add_callback(self, callback: Callable[["CancellationToken"], Any]) -> None:
        """Run ``callback(token)`` on cancellation (immediately if already cancelled)."""
        if self._cancelled:
            callback(self)
            return
        self._callbacks.append(callback)

    def raise_if_cancelled(self) -> None:
        if self._cancelled:
            raise FetchCancelledError(self._reason)

    async def wait(self) -> None:
        """Block until the token is cancelled."""
        if self._event is None:
            self._event = asyncio.Event()
            if self._cancelled:
                self._event.set()
        await self._event.wait()

    async def guard(self, awaitable: Awaitable[T]) -> T:
        """Await ``awaitable`` unless the token fires first.

        On cancellation the inner work is cancelled and
        :class:`FetchCancelledError` is raised.
        """
        if self._cancelled:
            if inspect.iscoroutine(awaitable):
                awaitable.close()
            raise FetchCancelledError(self._reason)
        work = asyncio.ensure_future(awaitable)
        waiter = asyncio.ensure_future(self.wait())
        try:
            done, _ = await asyncio.wait(
                {work, waiter}, return_when=asyncio.FIRST_COMPLETED
            )
        except asyncio.CancelledError:
            work.cancel()
            raise
        finally:
            waiter.cancel()

        if work in done:
            return work.result()
        work.cancel()
        raise FetchCancelledError(self._reason)
