import threading

import pytest

from query_orchestrator import CancellationToken, FetchCancelledError, QueryOrchestrator
from query_orchestrator.utils.async_utils import run_in_thread, threaded_fetch


@pytest.mark.asyncio
async def test_run_in_thread_forwards_kwargs():
    def add(a, b=0):
        return a + b, threading.current_thread() is threading.main_thread()

    total, on_main = await run_in_thread(add, 2, b=3)
    assert total == 5
    assert on_main is False


@pytest.mark.asyncio
async def test_threaded_fetch_refuses_cancelled_token():
    fetch = threaded_fetch(lambda query: [query])
    token = CancellationToken("foo")
    token.cancel()
    with pytest.raises(FetchCancelledError):
        await fetch("foo", cancellation_token=token)


@pytest.mark.asyncio
async def test_threaded_fetch_drives_orchestrator():
    results = []
    orch = QueryOrchestrator(
        threaded_fetch(lambda query: [f"memory about {query}"]),
        on_success=lambda query, result, meta: results.append(result),
    )
    orch.run_immediate("react hooks")
    await orch.wait_idle()

    assert results == [["memory about react hooks"]]
