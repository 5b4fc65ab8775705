"""Tests for clocks."""

import time

import pytest

from crowdfund_sync.clock import ManualClock, SystemClock


class TestManualClock:

    def test_advance_and_set(self):
        clock = ManualClock(start=100)

        assert clock.now() == 100
        assert clock.advance(15) == 115
        assert clock.set(200) == 200
        assert clock.now() == 200

    def test_never_moves_backwards(self):
        clock = ManualClock(start=100)
        with pytest.raises(ValueError):
            clock.advance(-1)
        with pytest.raises(ValueError):
            clock.set(99)


def test_system_clock_tracks_wall_time():
    before = time.time()
    assert before <= SystemClock().now() <= time.time()
