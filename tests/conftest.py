"""Shared pytest fixtures for orchestrator tests.

The fetch doubles below never touch the network: each call returns a future
owned by the test, so tests decide exactly when (and in which order)
responses arrive.
"""

from __future__ import annotations

import asyncio
import os
import sys
from typing import Any, Dict, List, Tuple

import pytest

# ---------------------------------------------------------------------------
#  Ensure the package is importable without an editable install
# ---------------------------------------------------------------------------

_REPO_ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
if _REPO_ROOT not in sys.path:
    sys.path.insert(0, _REPO_ROOT)


class ControlledFetch:
    """Fetch double whose responses are resolved by the test."""

    def __init__(self):
        self.calls: List[Tuple[str, Any]] = []
        self.futures: Dict[str, asyncio.Future] = {}
        # Snapshot of earlier tokens' state at the moment of each call
        self.prior_cancelled: List[List[bool]] = []

    def __call__(self, query, *, cancellation_token):
        self.prior_cancelled.append([tok.cancelled for _, tok in self.calls])
        self.calls.append((query, cancellation_token))
        future = asyncio.get_running_loop().create_future()
        self.futures[query] = future
        return future

    @property
    def queries(self) -> List[str]:
        return [q for q, _ in self.calls]

    def token(self, query: str):
        for q, tok in reversed(self.calls):
            if q == query:
                return tok
        raise KeyError(query)

    def resolve(self, query: str, result: Any) -> None:
        self.futures[query].set_result(result)

    def reject(self, query: str, error: BaseException) -> None:
        self.futures[query].set_exception(error)


class CallbackRecorder:
    """Collects lifecycle callbacks in arrival order."""

    def __init__(self):
        self.events: List[Tuple] = []

    def on_start(self, query):
        self.events.append(("start", query))

    def on_success(self, query, result, meta):
        self.events.append(("success", query, result, meta.from_cache))

    def on_error(self, query, error):
        self.events.append(("error", query, error))

    def on_finally(self, query):
        self.events.append(("finally", query))

    def kinds(self, kind: str) -> List[Tuple]:
        return [e for e in self.events if e[0] == kind]

    def callbacks(self) -> Dict[str, Any]:
        return {
            "on_start": self.on_start,
            "on_success": self.on_success,
            "on_error": self.on_error,
            "on_finally": self.on_finally,
        }


class ManualClock:
    def __init__(self, now: float = 1000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


async def settle() -> None:
    """Let scheduled tasks and their done-callbacks run."""
    for _ in range(5):
        await asyncio.sleep(0)


@pytest.fixture
def fetch() -> ControlledFetch:
    return ControlledFetch()


@pytest.fixture
def recorder() -> CallbackRecorder:
    return CallbackRecorder()


@pytest.fixture
def clock() -> ManualClock:
    return ManualClock()


@pytest.fixture
def drain():
    return settle
