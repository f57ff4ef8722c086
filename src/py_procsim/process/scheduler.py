"""CPU scheduler — round robin over a FIFO ready queue.

The scheduler owns the ready queue and the single CPU slot.  It holds
PIDs, not processes: the process table is the source of truth, and any
PID whose process has disappeared is silently dropped when the
scheduler comes across it.

Round robin:
    Dispatch always takes the head of the ready queue and gives it a
    fresh time quantum.  A preempted process goes to the back of the
    queue, so every READY process gets the CPU in turn.  Whether a
    process *should* be preempted (quantum used up while others wait)
    is decided by the tick engine; the scheduler only performs the
    queue bookkeeping.
"""

from __future__ import annotations

from collections import deque
from typing import TYPE_CHECKING

from py_procsim.process.pcb import Process, ProcessState

if TYPE_CHECKING:
    from py_procsim.process.table import ProcessTable


class Scheduler:
    """Manage the ready queue and which PID currently owns the CPU."""

    def __init__(self, *, quantum: int) -> None:
        """Create an idle scheduler.

        Args:
            quantum: Number of ticks a dispatched process may run before
                it becomes eligible for preemption.

        """
        self._quantum = 0
        self.quantum = quantum
        self._ready_queue: deque[int] = deque()
        self._current: int | None = None

    @property
    def quantum(self) -> int:
        """Return the time quantum (ticks per slice)."""
        return self._quantum

    @quantum.setter
    def quantum(self, value: int) -> None:
        """Set the time quantum used by future dispatches.

        Raises:
            ValueError: If the quantum is not positive.

        """
        if value <= 0:
            msg = f"Quantum must be positive, got {value}"
            raise ValueError(msg)
        self._quantum = value

    @property
    def current(self) -> int | None:
        """Return the PID on the CPU, or None when idle."""
        return self._current

    @property
    def is_idle(self) -> bool:
        """Return True if no process holds the CPU."""
        return self._current is None

    @property
    def ready_count(self) -> int:
        """Return the number of PIDs in the ready queue."""
        return len(self._ready_queue)

    @property
    def ready_pids(self) -> list[int]:
        """Return a snapshot of the ready queue, head first."""
        return list(self._ready_queue)

    def add(self, pid: int) -> None:
        """Append a READY process to the tail of the ready queue."""
        self._ready_queue.append(pid)

    def dispatch(self, table: ProcessTable) -> Process | None:
        """Give the CPU to the head of the ready queue if the CPU is idle.

        Stale PIDs at the head are discarded along the way.

        Args:
            table: The process table to resolve PIDs against.

        Returns:
            The dispatched process, or None if nothing was dispatched.

        """
        if self._current is not None:
            return None
        while self._ready_queue:
            pid = self._ready_queue.popleft()
            process = table.get(pid)
            if process is None or process.state is not ProcessState.READY:
                continue
            process.dispatch(quantum=self._quantum)
            self._current = pid
            return process
        return None

    def prune(self, table: ProcessTable) -> int:
        """Drop stale PIDs from the ready queue.

        Returns:
            The number of live READY processes left in the queue.

        """
        live = [pid for pid in self._ready_queue if _is_ready(table, pid)]
        if len(live) != len(self._ready_queue):
            self._ready_queue = deque(live)
        return len(live)

    def running(self, table: ProcessTable) -> Process | None:
        """Return the running process, clearing the CPU slot if it is stale."""
        if self._current is None:
            return None
        process = table.get(self._current)
        if process is None or process.state is not ProcessState.RUNNING:
            self._current = None
            return None
        return process

    def preempt(self, process: Process) -> None:
        """Move the running process back to the tail of the ready queue.

        Raises:
            RuntimeError: If *process* does not hold the CPU.

        """
        self._require_current(process)
        process.preempt()
        self._ready_queue.append(process.pid)
        self._current = None

    def release(self, process: Process) -> None:
        """Free the CPU after the running process blocked or terminated.

        Raises:
            RuntimeError: If *process* does not hold the CPU.

        """
        self._require_current(process)
        self._current = None

    def reset(self) -> None:
        """Empty the ready queue and idle the CPU."""
        self._ready_queue.clear()
        self._current = None

    def _require_current(self, process: Process) -> None:
        if self._current != process.pid:
            msg = f"Process {process.pid} does not hold the CPU (current: {self._current})"
            raise RuntimeError(msg)


def _is_ready(table: ProcessTable, pid: int) -> bool:
    process = table.get(pid)
    return process is not None and process.state is ProcessState.READY
