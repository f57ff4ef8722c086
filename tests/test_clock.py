"""Tests for the simulation clock.

Automatic mode runs on a real background thread, so those tests use a
very short tick interval and poll for progress with a deadline instead
of sleeping for a fixed time.
"""

import time

import pytest

from py_procsim.clock import ClockError, SimulationClock
from py_procsim.config import SimulationConfig
from py_procsim.simulation import Simulation

FAST_INTERVAL_MS = 5
DEADLINE_SECONDS = 5.0
TARGET_TICKS = 3


def _clock() -> SimulationClock:
    """Return a clock around a fast, seeded simulation."""
    config = SimulationConfig(tick_interval_ms=FAST_INTERVAL_MS)
    return SimulationClock(Simulation(config=config, seed=3))


def _wait_for_ticks(clock: SimulationClock, count: int) -> None:
    """Block until the simulation has reached *count* ticks."""
    deadline = time.monotonic() + DEADLINE_SECONDS
    while clock.simulation.tick_count < count:
        assert time.monotonic() < deadline, "clock made no progress"
        time.sleep(0.005)


class TestManualStepping:
    """Verify manual mode."""

    def test_step_runs_one_tick(self) -> None:
        """Each step advances exactly one tick."""
        clock = _clock()
        snapshot = clock.step()
        assert snapshot.tick == 1
        clock.step()
        assert clock.simulation.tick_count == 2  # noqa: PLR2004

    def test_interval_follows_config(self) -> None:
        """The period comes from tick_interval_ms."""
        clock = _clock()
        assert clock.interval == pytest.approx(FAST_INTERVAL_MS / 1000)  # pyright: ignore[reportUnknownMemberType]
        clock.simulation.configure(tick_interval_ms=250)
        assert clock.interval == pytest.approx(0.25)  # pyright: ignore[reportUnknownMemberType]


class TestAutomaticMode:
    """Verify the background timer."""

    def test_start_ticks_until_stopped(self) -> None:
        """The clock ticks on its own and halts on stop."""
        clock = _clock()
        clock.start()
        try:
            assert clock.running
            _wait_for_ticks(clock, TARGET_TICKS)
        finally:
            clock.stop()
        assert not clock.running
        stopped_at = clock.simulation.tick_count
        time.sleep(FAST_INTERVAL_MS * 4 / 1000)
        assert clock.simulation.tick_count == stopped_at

    def test_cannot_step_while_running(self) -> None:
        """Manual stepping is refused in automatic mode."""
        clock = _clock()
        clock.start()
        try:
            with pytest.raises(ClockError, match="single-step"):
                clock.step()
        finally:
            clock.stop()

    def test_cannot_start_twice(self) -> None:
        """A running clock cannot be started again."""
        clock = _clock()
        clock.start()
        try:
            with pytest.raises(ClockError, match="already running"):
                clock.start()
        finally:
            clock.stop()

    def test_stop_is_idempotent(self) -> None:
        """Stopping a stopped clock does nothing."""
        clock = _clock()
        clock.stop()
        clock.stop()
        assert not clock.running

    def test_resume_after_stop(self) -> None:
        """A stopped clock can step by hand and be restarted."""
        clock = _clock()
        clock.start()
        _wait_for_ticks(clock, 1)
        clock.stop()
        before = clock.simulation.tick_count
        clock.step()
        assert clock.simulation.tick_count == before + 1
        clock.start()
        try:
            _wait_for_ticks(clock, before + 2)
        finally:
            clock.stop()


class TestReset:
    """Verify resetting through the clock."""

    def test_reset_stops_and_wipes(self) -> None:
        """Reset halts automatic mode and returns to tick 0."""
        clock = _clock()
        clock.start()
        _wait_for_ticks(clock, TARGET_TICKS)
        clock.reset()
        assert not clock.running
        assert clock.simulation.tick_count == 0
        assert len(clock.simulation.table) == 0
