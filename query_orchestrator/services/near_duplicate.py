"""Suppress re-searching while the user is still typing the same query.

The rule is an empirically tuned heuristic, not an edit distance: a new
query is "not enough change" when it differs from the last dispatched query
by at most ``max_delta`` characters in length and the longer of the two
starts with the shorter one.
"""

from __future__ import annotations

from typing import Optional


def is_prefix_extension(candidate: str, previous: str, max_delta: int = 1) -> bool:
    if not candidate or not previous:
        return False
    if abs(len(candidate) - len(previous)) > max_delta:
        return False
    if len(candidate) < len(previous):
        shorter, longer = candidate, previous
    else:
        shorter, longer = previous, candidate
    return longer.startswith(shorter)


class NearDuplicateFilter:
    """Decides whether a normalized query deserves a new dispatch."""

    def __init__(self, max_delta: int = 1):
        self.max_delta = max_delta

    def skip_reason(
        self,
        query: str,
        last_dispatched: str,
        in_flight: Optional[str],
    ) -> Optional[str]:
        """Return why ``query`` should be skipped, or None to let it through."""
        if query == last_dispatched:
            return "duplicate"
        if in_flight is not None and query == in_flight:
            return "in_flight"
        if is_prefix_extension(query, last_dispatched, self.max_delta):
            return "near_duplicate"
        return None

    def should_skip(
        self,
        query: str,
        last_dispatched: str,
        in_flight: Optional[str] = None,
    ) -> bool:
        return self.skip_reason(query, last_dispatched, in_flight) is not None
