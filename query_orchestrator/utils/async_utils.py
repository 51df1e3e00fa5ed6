"""Utility helpers for plugging blocking fetch functions into the event loop.

These helpers centralise the anyio thread-offloading logic so that a
synchronous recall client (requests, a vendor SDK, a local index) can serve
as the orchestrator's fetch without blocking keystroke handling.
"""

from __future__ import annotations

from typing import Any, Awaitable, Callable, TypeVar

import anyio

from ..services.cancellation import CancellationToken

T = TypeVar("T")


# ---------------------------------------------------------------------------
# Public helpers
# ---------------------------------------------------------------------------


async def run_in_thread(func: Callable[..., T], *args: Any, **kwargs: Any) -> T:
    """Execute *func* in a worker thread and await the result.

    anyio.to_thread.run_sync only forwards *positional* arguments, therefore
    we capture kwargs in a closure to preserve full signature compatibility.
    """

    if kwargs:
        return await anyio.to_thread.run_sync(lambda: func(*args, **kwargs))
    return await anyio.to_thread.run_sync(func, *args)


def threaded_fetch(
    blocking_fetch: Callable[[str], T],
) -> Callable[..., Awaitable[T]]:
    """Wrap ``blocking_fetch(query)`` as a token-aware async fetch.

    The worker thread cannot be interrupted, so cancellation is honoured
    before the call starts and by abandoning the result when the token fired
    while the thread was running.
    """

    async def _fetch(query: str, *, cancellation_token: CancellationToken) -> T:
        cancellation_token.raise_if_cancelled()
        return await cancellation_token.guard(run_in_thread(blocking_fetch, query))

    return _fetch
