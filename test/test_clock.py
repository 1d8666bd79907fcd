"""Tests for the pacing wait strategies."""

import sys
import os
from unittest.mock import patch

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import pytest

from common.clock import BusyWait, HybridWait, create_wait_strategy, now_ns
from configuration import HYBRID_SPIN_THRESHOLD_NS


class SteppingClock:
    """Fake clock advancing a fixed step per reading."""

    def __init__(self, start=0, step=1000):
        self.value = start
        self.step = step
        self.readings = 0

    def __call__(self):
        self.value += self.step
        self.readings += 1
        return self.value


def test_busy_wait_reaches_target():
    clock = SteppingClock(step=1000)
    BusyWait(clock=clock).wait_until(50_000)
    assert clock.value >= 50_000
    assert clock.readings == 50


def test_busy_wait_past_target_returns_immediately():
    clock = SteppingClock(start=100_000)
    BusyWait(clock=clock).wait_until(50_000)
    assert clock.readings == 1


def test_busy_wait_never_sleeps():
    with patch('common.clock.time.sleep') as sleep:
        BusyWait(clock=SteppingClock()).wait_until(10_000)
    sleep.assert_not_called()


def test_hybrid_wait_sleeps_then_spins():
    clock = SteppingClock(step=1000)
    with patch('common.clock.time.sleep') as sleep:
        HybridWait(clock=clock, spin_threshold_ns=10_000).wait_until(1_000_000)
    sleep.assert_called_once()
    assert clock.value >= 1_000_000


def test_hybrid_wait_short_gap_only_spins():
    clock = SteppingClock(step=1000)
    with patch('common.clock.time.sleep') as sleep:
        HybridWait(clock=clock, spin_threshold_ns=100_000).wait_until(5_000)
    sleep.assert_not_called()


def test_hybrid_wait_zero_threshold_sleeps_whole_gap():
    clock = SteppingClock(step=1000)
    hybrid = HybridWait(clock=clock, spin_threshold_ns=0)
    assert hybrid.spin_threshold_ns == 0
    with patch('common.clock.time.sleep') as sleep:
        hybrid.wait_until(5_000)
    # First reading is 1000, leaving 4000 ns to sleep
    sleep.assert_called_once_with(4_000 / 1_000_000_000)


def test_hybrid_wait_default_threshold():
    assert HybridWait().spin_threshold_ns == HYBRID_SPIN_THRESHOLD_NS


def test_busy_wait_with_real_clock():
    target = now_ns() + 2_000_000
    BusyWait().wait_until(target)
    assert now_ns() >= target


def test_create_wait_strategy():
    assert isinstance(create_wait_strategy('busy'), BusyWait)
    assert isinstance(create_wait_strategy('Hybrid'), HybridWait)
    with pytest.raises(ValueError):
        create_wait_strategy('sleep')
