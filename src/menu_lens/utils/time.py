# src/menu_lens/utils/time.py
"""Time helpers shared by tokens, rate limiting and persistence."""

from __future__ import annotations

import time
from collections.abc import Callable
from datetime import UTC, datetime

# Millisecond clocks are injectable everywhere a window or expiry is computed.
Clock = Callable[[], int]


def now_ms() -> int:
    """Return the current wall-clock time in milliseconds since the epoch."""
    return int(time.time() * 1000)


def utcnow() -> datetime:
    """Return the current UTC time as a timezone-aware datetime."""
    return datetime.now(UTC)
