from __future__ import annotations


class SequenceGuard:
    """Monotonic counter used to detect superseded responses.

    Each dispatch calls :meth:`advance` and keeps the returned ticket; when the
    response settles, :meth:`is_current` tells whether a later dispatch has
    started in the meantime.
    """

    def __init__(self) -> None:
        self._current = 0

    @property
    def current(self) -> int:
        return self._current

    def advance(self) -> int:
        self._current += 1
        return self._current

    def is_current(self, ticket: int) -> bool:
        return ticket == self._current
