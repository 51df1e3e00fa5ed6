"""Decide whether free-form chat input is worth a background search.

Searching on every keystroke wastes requests on half-typed words, so input
is forwarded only once it looks like a finished sentence or already carries
substantial content.
"""

from __future__ import annotations

import re

MIN_TRIGGER_CHARS = 5
MIN_TRIGGER_WORDS = 2
SUBSTANTIAL_WORDS = 3

_LETTER = re.compile(r"[a-zA-Z]")
_SENTENCE_END = re.compile(r"[.!?]$")
_URL = re.compile(r"https?://|www\.")


def should_trigger_search(text: str) -> bool:
    normalized = (text or "").strip()

    if len(normalized) < MIN_TRIGGER_CHARS or not _LETTER.search(normalized):
        return False

    words = normalized.split()
    if len(words) < MIN_TRIGGER_WORDS:
        return False

    if _SENTENCE_END.search(normalized):
        # "see www.example.com." is a URL, not a sentence end, unless the
        # final period stands apart from it
        if _URL.search(normalized) and not normalized[:-1].endswith(" "):
            return False
        return True

    # Chat-style messages without punctuation, e.g. "explain react hooks"
    return len(words) >= SUBSTANTIAL_WORDS
