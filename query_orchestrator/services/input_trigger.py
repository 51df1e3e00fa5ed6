"""Bridge between raw input events of a text surface and an orchestrator."""

from __future__ import annotations

import time
from typing import Any, Callable

import structlog

from .trigger_policy import should_trigger_search

logger = structlog.get_logger(__name__)


class InputTrigger:
    """Throttle and filter input events before they reach ``set_text``.

    The same text arriving again within ``min_interval_ms`` (editors often
    fire several input events per keystroke) is dropped, as is text the
    trigger policy rejects.
    """

    def __init__(
        self,
        orchestrator: Any,
        *,
        min_interval_ms: int = 100,
        policy: Callable[[str], bool] = should_trigger_search,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.orchestrator = orchestrator
        self.min_interval_ms = min_interval_ms
        self.policy = policy
        self._clock = clock
        self._last_text = ""
        self._last_time = float("-inf")

    def on_input(self, text: str) -> bool:
        """Handle one input event; True when forwarded to the orchestrator."""
        text = text or ""
        now = self._clock()
        if text == self._last_text and (now - self._last_time) * 1000 < self.min_interval_ms:
            return False

        if not self.policy(text):
            return False

        self._last_text = text
        self._last_time = now
        logger.debug("input_trigger.forwarded", length=len(text))
        self.orchestrator.set_text(text)
        return True
