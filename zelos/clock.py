"""Wall-clock time in nanoseconds."""

from __future__ import annotations

import time


def now_time_ns() -> int:
    """The current time as nanoseconds since the Unix epoch."""
    return time.time_ns()