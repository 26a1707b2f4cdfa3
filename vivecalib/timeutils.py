"""Millisecond timestamps and their formatting."""

from __future__ import annotations

import time


def get_timestamp() -> int:
    """Current Unix time in milliseconds."""
    return time.time_ns() // 1_000_000


def get_time_difference(start: int, end: int) -> int:
    """Milliseconds from ``start`` to ``end``, never negative."""
    return end - start if end > start else 0


def timestamp_to_string(timestamp: int) -> str:
    """Local ``MM:SS`` of a millisecond timestamp."""
    if timestamp < 0:
        raise ValueError(f"timestamp must not be negative: {timestamp}")
    local = time.localtime(timestamp // 1000)
    return f"{local.tm_min:02d}:{local.tm_sec:02d}"