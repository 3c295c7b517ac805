"""Time helpers so services can be driven by a fixed clock in tests."""

from __future__ import annotations

from datetime import datetime
from typing import Callable

Clock = Callable[[], datetime]


def local_now() -> datetime:
    """Current time in the local timezone, timezone-aware."""
    return datetime.now().astimezone()


def today_iso(clock: Clock) -> str:
    """Calendar day of ``clock()`` as ``YYYY-MM-DD``."""
    return clock().date().isoformat()
