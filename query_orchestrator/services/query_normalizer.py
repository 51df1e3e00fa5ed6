from __future__ import annotations

from typing import Any


def normalize_query(text: Any = None) -> str:
    """Canonical cache/dedup key: trimmed, whitespace-collapsed, lowercased."""
    if not text:
        return ""
    return " ".join(str(text).split()).lower()


def passes_length_gate(normalized: str, min_length: int) -> bool:
    return bool(normalized) and len(normalized) >= min_length
