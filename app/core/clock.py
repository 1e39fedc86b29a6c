from __future__ import annotations

import time
from typing import Protocol

MS_PER_SECOND = 1000
MS_PER_HOUR = 60 * 60 * MS_PER_SECOND
MS_PER_DAY = 24 * MS_PER_HOUR


class Clock(Protocol):
    def now_ms(self) -> int: ...


class SystemClock:
    def now_ms(self) -> int:
        return int(time.time() * MS_PER_SECOND)


class ManualClock:
    """Clock that only moves when told to; used to drive expiry deterministically."""

    def __init__(self, start_ms: int = 1_700_000_000_000):
        self._now_ms = int(start_ms)

    def now_ms(self) -> int:
        return self._now_ms

    def set(self, now_ms: int) -> None:
        self._now_ms = int(now_ms)

    def advance(self, ms: int = 0, *, hours: float = 0, days: float = 0) -> int:
        self._now_ms += int(ms + hours * MS_PER_HOUR + days * MS_PER_DAY)
        return self._now_ms
