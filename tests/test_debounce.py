import asyncio

import pytest

from query_orchestrator.services.debounce import DebounceScheduler


@pytest.mark.asyncio
async def test_rearming_replaces_pending_timer():
    fired = []
    debouncer = DebounceScheduler()
    debouncer.schedule(0.02, lambda: fired.append("first"))
    debouncer.schedule(0.02, lambda: fired.append("second"))
    assert debouncer.pending

    await asyncio.sleep(0.06)
    assert fired == ["second"]
    assert not debouncer.pending


@pytest.mark.asyncio
async def test_cancel_prevents_firing():
    fired = []
    debouncer = DebounceScheduler()
    debouncer.schedule(0.01, lambda: fired.append(True))
    assert debouncer.cancel() is True
    assert debouncer.cancel() is False

    await asyncio.sleep(0.03)
    assert fired == []
