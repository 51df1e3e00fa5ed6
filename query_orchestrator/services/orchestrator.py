"""
Query orchestrator for keystroke-driven recall lookups.

One :class:`QueryOrchestrator` is created per input surface.  It turns the
stream of ``set_text`` calls coming from the surface into a small set of
fetches against the recall service:

* short and near-duplicate queries are dropped before scheduling,
* bursts of input collapse into one trailing debounce timer,
* fresh cache entries answer without touching the network,
* at most one fetch is in flight; a newer query signals the old one's
  cancellation token before starting,
* a sequence guard discards responses that were superseded while in flight.

All state is owned by the instance.  Every method is meant to be called from
the event loop thread; no locking is involved.
"""

from __future__ import annotations

import asyncio
import inspect
import time
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, Optional, Set, Union

import structlog

from ..core.config import OrchestratorOptions
from ..logging_config import configure_logging
from ..utils.error_handling import identify_error_type, is_cancellation
from .callbacks import CallbackDispatcher
from .cancellation import CancellationToken
from .debounce import DebounceScheduler
from .near_duplicate import NearDuplicateFilter
from .query_normalizer import normalize_query, passes_length_gate
from .result_cache import ResultCache
from .sequence_guard import SequenceGuard

configure_logging()
logger = structlog.get_logger(__name__)

FetchFn = Callable[..., Union[Awaitable[Any], Any]]


@dataclass(frozen=True, slots=True)
class OrchestratorState:
    """Read-only snapshot returned by :meth:`QueryOrchestrator.get_state`."""

    latest_text: str
    last_completed_query: str
    last_result: Any
    in_flight_query: Optional[str]
    is_in_flight: bool
    cache_size: int


class QueryOrchestrator:
    """Debounced, cached, race-safe dispatcher around an injected fetch.

    Args:
        fetch: ``fetch(query, *, cancellation_token)`` returning the result
            list or an awaitable of it.  It is responsible for honouring the
            token.
        on_start: ``on_start(query)`` right before fetch is invoked.
        on_success: ``on_success(query, result, meta)``; ``meta.from_cache``
            tells cache hits from live results.
        on_error: ``on_error(query, error)`` for non-cancellation failures.
        on_finally: ``on_finally(query)`` once per dispatched attempt.
        options: Base :class:`OrchestratorOptions`; keyword overrides such as
            ``min_length=5`` are merged on top.
        name: Label bound into every log line of this instance.
        clock: Monotonic seconds source used for cache timestamps.
        loop: Event loop for timers and tasks (defaults to the running loop).
    """

    def __init__(
        self,
        fetch: FetchFn,
        *,
        on_start: Optional[Callable[..., Any]] = None,
        on_success: Optional[Callable[..., Any]] = None,
        on_error: Optional[Callable[..., Any]] = None,
        on_finally: Optional[Callable[..., Any]] = None,
        options: Optional[OrchestratorOptions] = None,
        name: Optional[str] = None,
        clock: Callable[[], float] = time.monotonic,
        loop: Optional[asyncio.AbstractEventLoop] = None,
        **option_overrides: Any,
    ):
        if not callable(fetch):
            raise ValueError(
                "QueryOrchestrator requires fetch(query, *, cancellation_token)"
            )

        self._fetch = fetch
        self._loop = loop
        self._callbacks = CallbackDispatcher(on_start, on_success, on_error, on_finally)
        self._options = (options or OrchestratorOptions()).merged(option_overrides)
        self._filter = NearDuplicateFilter(self._options.near_duplicate_max_delta)
        self._cache = ResultCache(clock)
        self._debouncer = DebounceScheduler(loop)
        self._sequence = SequenceGuard()

        self._latest_text = ""
        self._last_completed_query = ""
        self._last_result: Any = None
        # Last query whose fetch succeeded; reference for near-duplicates
        self._last_searched_query = ""

        self._in_flight_query: Optional[str] = None
        self._token: Optional[CancellationToken] = None
        self._tasks: Set[asyncio.Task[Any]] = set()
        self._closed = False

        self._log = logger.bind(orchestrator=name or f"orchestrator_{id(self):x}")

    def __repr__(self):
        return (
            f"QueryOrchestrator(in_flight={self._in_flight_query!r}, "
            f"cache_size={len(self._cache)}, closed={self._closed})"
        )

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    @property
    def options(self) -> OrchestratorOptions:
        return self._options.merged({})

    @property
    def closed(self) -> bool:
        return self._closed

    def set_text(self, text: Any = None) -> None:
        """Record the latest input and (re)arm the debounce timer."""
        if self._closed:
            return
        self._latest_text = "" if text is None else str(text)
        self._debouncer.cancel()

        query = self._admit(self._latest_text)
        if query is None:
            return
        self._debouncer.schedule(self._options.debounce_seconds, self._on_timer)

    def run_immediate(self, text: Any = None) -> None:
        """Bypass the debounce timer, e.g. for Enter or an explicit button."""
        if self._closed:
            return
        if text is not None:
            self._latest_text = str(text)
        self._debouncer.cancel()

        if self._admit(self._latest_text) is None:
            return
        self._run(self._latest_text)

    def cancel(self) -> None:
        """Drop the pending timer and signal the in-flight fetch, if any."""
        self._debouncer.cancel()
        if self._token is not None:
            self._token.cancel("cancelled")
            self._log.debug("orchestrator.cancelled", query=self._in_flight_query)
        self._in_flight_query = None
        self._token = None

    def get_state(self) -> OrchestratorState:
        return OrchestratorState(
            latest_text=self._latest_text,
            last_completed_query=self._last_completed_query,
            last_result=self._last_result,
            in_flight_query=self._in_flight_query,
            is_in_flight=self._in_flight_query is not None,
            cache_size=len(self._cache),
        )

    def set_options(self, partial: Optional[Dict[str, Any]] = None, **changes: Any) -> None:
        """Merge option changes into the live configuration."""
        merged = dict(partial or {})
        merged.update(changes)
        if not merged:
            return
        self._options = self._options.merged(merged)
        self._filter.max_delta = self._options.near_duplicate_max_delta
        self._log.debug("orchestrator.options_updated", changes=sorted(merged))

    def clear_cache(self) -> None:
        self._cache.clear()

    def get_cache_stats(self) -> Dict[str, Any]:
        return self._cache.get_stats()

    def close(self) -> None:
        """Dispose of the instance; later calls become no-ops."""
        if self._closed:
            return
        self.cancel()
        # Nothing that is still pending may report back after disposal
        self._sequence.advance()
        self._closed = True
        for task in list(self._tasks):
            task.cancel()
        self._cache.clear()
        self._log.debug("orchestrator.closed")

    async def aclose(self) -> None:
        self.close()
        await self.wait_idle()

    async def wait_idle(self) -> None:
        """Wait until every dispatched attempt (and its callbacks) settled."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)
        await self._callbacks.drain()

    async def __aenter__(self) -> "QueryOrchestrator":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.aclose()

    # ------------------------------------------------------------------
    # Internal pipeline
    # ------------------------------------------------------------------

    def _admit(self, text: str) -> Optional[str]:
        """Length gate plus near-duplicate filter; None means skip."""
        query = normalize_query(text)
        if not passes_length_gate(query, self._options.min_length):
            self._log.debug("orchestrator.skipped", reason="too_short", length=len(query))
            return None

        reason = self._filter.skip_reason(
            query, self._last_searched_query, self._in_flight_query
        )
        if reason is not None:
            self._log.debug("orchestrator.skipped", reason=reason, query=query[:50])
            return None
        return query

    def _on_timer(self) -> None:
        if self._closed:
            return
        self._run(self._latest_text)

    def _run(self, text: str) -> None:
        query = normalize_query(text)
        if not passes_length_gate(query, self._options.min_length):
            return

        if self._options.use_cache:
            hit, cached = self._cache.lookup(query, self._options.cache_ttl_seconds)
            if hit:
                self._log.debug("orchestrator.cache_hit", query=query[:50])
                in_flight, ticket = self._in_flight_query, self._sequence.current
                self._callbacks.success(query, cached, from_cache=True)
                if not self._options.refresh_on_cache:
                    # The older fetch would overwrite what was just shown,
                    # unless the callback already replaced it
                    if (
                        in_flight not in (None, query)
                        and self._in_flight_query == in_flight
                        and self._sequence.is_current(ticket)
                    ):
                        self.cancel()
                    return

        if self._in_flight_query == query:
            self._log.debug("orchestrator.skipped", reason="in_flight", query=query[:50])
            return

        if self._in_flight_query is not None and self._token is not None:
            self._log.debug(
                "orchestrator.superseded",
                previous=self._in_flight_query[:50],
                query=query[:50],
            )
            self._token.cancel("superseded")

        self._dispatch(query)

    def _dispatch(self, query: str) -> None:
        token = CancellationToken(query)
        self._in_flight_query = query
        self._token = token
        ticket = self._sequence.advance()

        self._callbacks.start(query)
        self._log.info("orchestrator.fetch_started", query=query[:50], sequence=ticket)

        outcome: Any = None
        sync_error: Optional[BaseException] = None
        try:
            outcome = self._fetch(query, cancellation_token=token)
        except Exception as exc:
            sync_error = exc

        loop = self._loop or asyncio.get_running_loop()
        task = loop.create_task(
            self._settle(query, token, ticket, outcome, sync_error),
            name=f"query_orchestrator:{ticket}",
        )
        self._tasks.add(task)
        task.add_done_callback(lambda done: self._on_settled(done, outcome))

    def _on_settled(self, task: asyncio.Task[Any], outcome: Any) -> None:
        self._tasks.discard(task)
        # A settle task cancelled before its first step never awaited the fetch
        if (
            task.cancelled()
            and inspect.iscoroutine(outcome)
            and inspect.getcoroutinestate(outcome) == inspect.CORO_CREATED
        ):
            outcome.close()

    async def _settle(
        self,
        query: str,
        token: CancellationToken,
        ticket: int,
        outcome: Any,
        sync_error: Optional[BaseException],
    ) -> None:
        result: Any = None
        failure: Optional[BaseException] = sync_error
        if failure is None:
            try:
                result = await outcome if inspect.isawaitable(outcome) else outcome
            except asyncio.CancelledError as exc:
                if self._closed:
                    raise
                failure = exc
            except Exception as exc:
                failure = exc

        if not self._sequence.is_current(ticket):
            self._log.debug("orchestrator.stale_response", query=query[:50], sequence=ticket)
            return

        if failure is None:
            if self._in_flight_query != query:
                # cancel() released the slot; the late result is dropped
                self._log.debug("orchestrator.stale_response", query=query[:50], sequence=ticket)
            else:
                self._cache.set(query, result)
                self._last_completed_query = query
                self._last_searched_query = query
                self._last_result = result
                self._log.info("orchestrator.fetch_completed", query=query[:50], sequence=ticket)
                self._callbacks.success(query, result, from_cache=False)
        elif is_cancellation(failure, token):
            self._log.debug("orchestrator.fetch_cancelled", query=query[:50], sequence=ticket)
        else:
            self._log.warning(
                "orchestrator.fetch_failed",
                query=query[:50],
                sequence=ticket,
                error=str(failure),
                error_type=identify_error_type(failure),
            )
            self._callbacks.error(query, failure)

        if not self._sequence.is_current(ticket):
            # A callback dispatched a newer query; the slot is no longer ours
            return
        self._in_flight_query = None
        self._token = None
        self._callbacks.finally_(query)
