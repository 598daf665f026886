"""Wall-clock source shared by the in-memory stores."""

from __future__ import annotations

import time
from typing import Callable

Clock = Callable[[], float]


def epoch_ms() -> int:
    """Return the current UNIX time in whole milliseconds."""
    return int(time.time() * 1000)
