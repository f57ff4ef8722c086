"""Simulation clock — automatic and manual stepping.

The simulation itself has no notion of wall-clock time; it only knows
how to advance by one tick.  The clock is the thing that decides *when*
to call ``tick()``:

- **Manual** — ``step()`` runs exactly one tick, right now.
- **Automatic** — ``start()`` launches a background thread that calls
  the same ``tick()`` once every ``tick_interval_ms`` milliseconds
  until ``stop()`` is called.

Both modes run the very same six-phase tick, so a run driven by hand
and a run driven by the timer are indistinguishable tick for tick.

Every call into the simulation goes through one lock.  A tick that has
started always finishes before ``stop()`` returns, so a stopped
simulation is exactly as of its last completed tick and can be resumed
with another ``start()`` or ``step()``.
"""

from __future__ import annotations

import threading
from contextlib import AbstractContextManager
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from py_procsim.events import Snapshot
    from py_procsim.simulation import Simulation

_MS_PER_SECOND = 1000.0
_JOIN_TIMEOUT_SECONDS = 5.0


class ClockError(RuntimeError):
    """Raise when the clock is asked to do something its mode forbids."""


class SimulationClock:
    """Drive a ``Simulation`` by hand or from a background timer thread."""

    def __init__(self, simulation: Simulation) -> None:
        """Create a stopped clock for *simulation*.

        Args:
            simulation: The simulation to advance.

        """
        self._simulation = simulation
        self._lock = threading.RLock()
        self._stop_event = threading.Event()
        self._thread: threading.Thread | None = None

    @property
    def simulation(self) -> Simulation:
        """Return the driven simulation."""
        return self._simulation

    @property
    def running(self) -> bool:
        """Return True while the automatic clock is ticking."""
        return self._thread is not None and self._thread.is_alive()

    @property
    def interval(self) -> float:
        """Return the automatic period in seconds (from the live config)."""
        return self._simulation.config.tick_interval_ms / _MS_PER_SECOND

    def locked(self) -> AbstractContextManager[bool]:
        """Return the lock guarding the simulation.

        Use as ``with clock.locked(): ...`` to read or change the
        simulation consistently while the automatic clock may be running.
        """
        return self._lock

    def step(self) -> Snapshot:
        """Run exactly one tick.

        Raises:
            ClockError: If the automatic clock is running.

        """
        if self.running:
            msg = "Cannot single-step while the clock is running"
            raise ClockError(msg)
        with self._lock:
            return self._simulation.tick()

    def start(self) -> None:
        """Start ticking automatically in a background thread.

        Raises:
            ClockError: If the clock is already running.

        """
        if self.running:
            msg = "Clock is already running"
            raise ClockError(msg)
        self._stop_event.clear()
        self._thread = threading.Thread(target=self._loop, name="procsim-clock", daemon=True)
        self._thread.start()

    def stop(self) -> None:
        """Stop the automatic clock after the tick in progress (if any).

        Stopping a stopped clock is a no-op.
        """
        thread = self._thread
        if thread is None:
            return
        self._stop_event.set()
        if thread is not threading.current_thread():
            thread.join(timeout=_JOIN_TIMEOUT_SECONDS)
        self._thread = None

    def reset(self) -> None:
        """Stop the clock and wipe the simulation."""
        self.stop()
        with self._lock:
            self._simulation.reset()

    def _loop(self) -> None:
        while not self._stop_event.wait(self.interval):
            with self._lock:
                if self._stop_event.is_set():
                    return
                self._simulation.tick()
