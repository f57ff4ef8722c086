"""Process and Process Control Block (PCB).

A simulated process is nothing more than a bag of counters: how much
memory it needs, how many CPU ticks it still requires, how much of its
time slice is left, and how long its current I/O wait will last.

Processes follow a strict state machine — each transition method
enforces that the process is in the correct source state before moving
it, and keeps the memory block attached exactly while the process holds
memory (READY, RUNNING, BLOCKED_IO).

State machine::

    NEW ──→ WAITING_MEMORY ──→ READY ⇄ RUNNING ──→ TERMINATED
     └──────────────────────────↑ ↑      │
                                  └ BLOCKED_IO ←┘
"""

from __future__ import annotations

from enum import StrEnum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from py_procsim.memory.allocator import Block


class ProcessState(StrEnum):
    """Lifecycle states of a simulated process.

    - NEW: just created, memory not yet requested.
    - WAITING_MEMORY: no hole was large enough; queued for memory.
    - READY: holds memory, waiting in the ready queue for the CPU.
    - RUNNING: currently executing on the (single) CPU.
    - BLOCKED_IO: waiting for an I/O operation; keeps its memory.
    - TERMINATED: finished, about to be removed from the table.
    """

    NEW = "new"
    WAITING_MEMORY = "waiting_memory"
    READY = "ready"
    RUNNING = "running"
    BLOCKED_IO = "blocked_io"
    TERMINATED = "terminated"


# States in which the process owns a memory block.
MEMORY_RESIDENT_STATES: frozenset[ProcessState] = frozenset(
    {ProcessState.READY, ProcessState.RUNNING, ProcessState.BLOCKED_IO}
)


class Process:
    """A simulated process (the Process Control Block).

    PIDs are handed out by the owning ``ProcessTable`` so that each
    simulation numbers its processes independently.
    """

    def __init__(
        self,
        *,
        pid: int,
        memory: int,
        burst: int,
        created_at: int = 0,
    ) -> None:
        """Create a new process in the NEW state.

        Args:
            pid: Unique process identifier.
            memory: Memory units required for the whole lifetime.
            burst: Total CPU ticks required.
            created_at: Tick at which the process was created.

        Raises:
            ValueError: If memory or burst is not positive.

        """
        if memory <= 0:
            msg = f"Memory requirement must be positive, got {memory}"
            raise ValueError(msg)
        if burst <= 0:
            msg = f"CPU burst must be positive, got {burst}"
            raise ValueError(msg)
        self._pid = pid
        self._memory = memory
        self._total_burst = burst
        self._remaining_burst = burst
        self._state = ProcessState.NEW
        self._quantum_remaining = 0
        self._io_remaining = 0
        self._block: Block | None = None
        self._created_at = created_at
        self._terminated_at: int | None = None

    @property
    def pid(self) -> int:
        """Return the unique process identifier."""
        return self._pid

    @property
    def memory(self) -> int:
        """Return the memory requirement."""
        return self._memory

    @property
    def total_burst(self) -> int:
        """Return the total CPU ticks this process needs."""
        return self._total_burst

    @property
    def remaining_burst(self) -> int:
        """Return the CPU ticks still to execute."""
        return self._remaining_burst

    @property
    def state(self) -> ProcessState:
        """Return the current process state."""
        return self._state

    @property
    def quantum_remaining(self) -> int:
        """Return the ticks left in the current time slice."""
        return self._quantum_remaining

    @property
    def io_remaining(self) -> int:
        """Return the ticks left in the current I/O wait (0 if not blocked)."""
        return self._io_remaining

    @property
    def block(self) -> Block | None:
        """Return the memory block held by the process, or None."""
        return self._block

    @property
    def created_at(self) -> int:
        """Return the tick at which the process was created."""
        return self._created_at

    @property
    def terminated_at(self) -> int | None:
        """Return the tick at which the process terminated, or None."""
        return self._terminated_at

    @property
    def is_finished(self) -> bool:
        """Return True once the whole burst has executed."""
        return self._remaining_burst == 0

    def _transition(self, action: str, expected: ProcessState, target: ProcessState) -> None:
        """Enforce a state transition.

        Raises:
            RuntimeError: If the process is not in the expected state.

        """
        if self._state is not expected:
            msg = f"Cannot {action}: process {self._pid} is {self._state}, expected {expected}"
            raise RuntimeError(msg)
        self._state = target

    def admit(self, block: Block) -> None:
        """Transition NEW → READY with the memory it was just granted."""
        self._transition("admit", ProcessState.NEW, ProcessState.READY)
        self._block = block

    def wait_for_memory(self) -> None:
        """Transition NEW → WAITING_MEMORY. No hole was large enough."""
        self._transition("wait for memory", ProcessState.NEW, ProcessState.WAITING_MEMORY)

    def grant_memory(self, block: Block) -> None:
        """Transition WAITING_MEMORY → READY once memory is available."""
        self._transition("grant memory", ProcessState.WAITING_MEMORY, ProcessState.READY)
        self._block = block

    def dispatch(self, *, quantum: int) -> None:
        """Transition READY → RUNNING with a fresh time slice."""
        self._transition("dispatch", ProcessState.READY, ProcessState.RUNNING)
        self._quantum_remaining = quantum

    def preempt(self) -> None:
        """Transition RUNNING → READY.

        The time slice is not refilled here; it is refilled when the
        process is dispatched again.
        """
        self._transition("preempt", ProcessState.RUNNING, ProcessState.READY)

    def block_on_io(self, *, duration: int) -> None:
        """Transition RUNNING → BLOCKED_IO for *duration* ticks.

        Raises:
            ValueError: If duration is not positive.

        """
        if duration <= 0:
            msg = f"I/O duration must be positive, got {duration}"
            raise ValueError(msg)
        self._transition("block", ProcessState.RUNNING, ProcessState.BLOCKED_IO)
        self._io_remaining = duration

    def advance_io(self) -> bool:
        """Count down one tick of I/O.

        Returns:
            True if the I/O wait is over.

        Raises:
            RuntimeError: If the process is not blocked on I/O.

        """
        if self._state is not ProcessState.BLOCKED_IO:
            msg = f"Cannot advance I/O: process {self._pid} is {self._state}"
            raise RuntimeError(msg)
        self._io_remaining = max(self._io_remaining - 1, 0)
        return self._io_remaining == 0

    def wake(self, *, quantum: int) -> None:
        """Transition BLOCKED_IO → READY. I/O completed."""
        self._transition("wake", ProcessState.BLOCKED_IO, ProcessState.READY)
        self._io_remaining = 0
        self._quantum_remaining = quantum

    def execute_tick(self) -> None:
        """Do one tick of work: burn one burst tick and one quantum tick.

        Raises:
            RuntimeError: If the process is not running.

        """
        if self._state is not ProcessState.RUNNING:
            msg = f"Cannot execute: process {self._pid} is {self._state}"
            raise RuntimeError(msg)
        self._remaining_burst -= 1
        self._quantum_remaining -= 1

    def refresh_quantum(self, quantum: int) -> None:
        """Refill the time slice in place (running alone, no contention)."""
        self._quantum_remaining = quantum

    def terminate(self, *, tick: int) -> None:
        """Transition RUNNING → TERMINATED and drop the memory reference."""
        self._transition("terminate", ProcessState.RUNNING, ProcessState.TERMINATED)
        self._terminated_at = tick
        self._block = None
        self._quantum_remaining = 0

    def __repr__(self) -> str:
        """Return a debug-friendly representation."""
        return (
            f"Process(pid={self._pid}, state={self._state}, memory={self._memory}, "
            f"remaining={self._remaining_burst}/{self._total_burst})"
        )
