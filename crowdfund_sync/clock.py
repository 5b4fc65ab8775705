"""
Clocks.

Status depends on wall time, and time advances with or without ledger
traffic. Everything that needs "now" takes a Clock so tests can drive
time explicitly.
"""

import time
from typing import Protocol

import structlog

logger = structlog.get_logger()


class Clock(Protocol):
    """Source of the current time in unix seconds."""

    def now(self) -> float:
        ...


class SystemClock:
    """Wall clock."""

    def now(self) -> float:
        return time.time()


class ManualClock:
    """
    Clock that only moves when told to.

    Example:
        clock = ManualClock(start=1_700_000_000)
        clock.advance(15)
        assert clock.now() == 1_700_000_015
    """

    def __init__(self, start: float = 0.0):
        self._now = float(start)

    def now(self) -> float:
        return self._now

    def advance(self, seconds: float) -> float:
        if seconds < 0:
            raise ValueError("ManualClock cannot move backwards")
        self._now += seconds
        return self._now

    def set(self, timestamp: float) -> float:
        if timestamp < self._now:
            raise ValueError("ManualClock cannot move backwards")
        self._now = float(timestamp)
        logger.debug("manual_clock.set", now=self._now)
        return self._now
