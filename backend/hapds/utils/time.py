"""Time helpers."""

from __future__ import annotations

import time
from typing import Callable

Clock = Callable[[], float]


def monotonic_s() -> float:
    """Return a monotonic timestamp in seconds."""
    return time.monotonic()
