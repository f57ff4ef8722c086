"""Tests for the Process (PCB) state machine.

Every transition method checks its source state, so these tests walk
the legal paths and make sure illegal ones raise instead of silently
corrupting the process.
"""

import pytest

from py_procsim.memory.allocator import Block
from py_procsim.process.pcb import MEMORY_RESIDENT_STATES, Process, ProcessState

QUANTUM = 3
BURST = 5
MEMORY = 64
IO_TICKS = 2
BLOCK = Block(0, MEMORY)


def _running() -> Process:
    """Return a process that has been admitted and dispatched."""
    process = Process(pid=1, memory=MEMORY, burst=BURST)
    process.admit(BLOCK)
    process.dispatch(quantum=QUANTUM)
    return process


class TestProcessCreation:
    """Verify a freshly created process."""

    def test_starts_new_without_memory(self) -> None:
        """New processes hold no block and have their full burst left."""
        process = Process(pid=7, memory=MEMORY, burst=BURST, created_at=4)
        assert process.state is ProcessState.NEW
        assert process.block is None
        assert process.remaining_burst == BURST
        assert process.total_burst == BURST
        assert process.created_at == 4  # noqa: PLR2004
        assert process.terminated_at is None

    @pytest.mark.parametrize(("memory", "burst"), [(0, BURST), (MEMORY, 0), (-1, BURST)])
    def test_rejects_non_positive_values(self, memory: int, burst: int) -> None:
        """Memory and burst must both be positive."""
        with pytest.raises(ValueError, match="positive"):
            Process(pid=1, memory=memory, burst=burst)


class TestTransitions:
    """Verify the legal transitions and their side effects."""

    def test_admit_attaches_block(self) -> None:
        """NEW → READY carries the granted block."""
        process = Process(pid=1, memory=MEMORY, burst=BURST)
        process.admit(BLOCK)
        assert process.state is ProcessState.READY
        assert process.block == BLOCK

    def test_wait_then_grant(self) -> None:
        """NEW → WAITING_MEMORY → READY."""
        process = Process(pid=1, memory=MEMORY, burst=BURST)
        process.wait_for_memory()
        assert process.state is ProcessState.WAITING_MEMORY
        assert process.block is None
        process.grant_memory(BLOCK)
        assert process.state is ProcessState.READY
        assert process.block == BLOCK

    def test_dispatch_sets_quantum(self) -> None:
        """READY → RUNNING refills the time slice."""
        process = _running()
        assert process.state is ProcessState.RUNNING
        assert process.quantum_remaining == QUANTUM

    def test_execute_tick_burns_burst_and_quantum(self) -> None:
        """One tick of work decrements both counters."""
        process = _running()
        process.execute_tick()
        assert process.remaining_burst == BURST - 1
        assert process.quantum_remaining == QUANTUM - 1

    def test_preempt_keeps_spent_quantum(self) -> None:
        """The quantum is refilled at the next dispatch, not at preemption."""
        process = _running()
        for _ in range(QUANTUM):
            process.execute_tick()
        process.preempt()
        assert process.state is ProcessState.READY
        assert process.quantum_remaining == 0
        process.dispatch(quantum=QUANTUM)
        assert process.quantum_remaining == QUANTUM

    def test_io_block_and_wake(self) -> None:
        """RUNNING → BLOCKED_IO keeps memory; waking refills the quantum."""
        process = _running()
        process.execute_tick()
        process.block_on_io(duration=IO_TICKS)
        assert process.state is ProcessState.BLOCKED_IO
        assert process.io_remaining == IO_TICKS
        assert process.block == BLOCK
        assert process.advance_io() is False
        assert process.advance_io() is True
        process.wake(quantum=QUANTUM)
        assert process.state is ProcessState.READY
        assert process.io_remaining == 0
        assert process.quantum_remaining == QUANTUM

    def test_terminate_drops_block(self) -> None:
        """RUNNING → TERMINATED releases the memory reference."""
        process = _running()
        for _ in range(BURST):
            process.execute_tick()
        assert process.is_finished
        process.terminate(tick=9)
        assert process.state is ProcessState.TERMINATED
        assert process.block is None
        assert process.terminated_at == 9  # noqa: PLR2004

    def test_refresh_quantum(self) -> None:
        """Refreshing in place restores the full slice."""
        process = _running()
        process.execute_tick()
        process.refresh_quantum(QUANTUM)
        assert process.quantum_remaining == QUANTUM


class TestIllegalTransitions:
    """Verify that transitions from the wrong state raise."""

    def test_cannot_dispatch_new(self) -> None:
        """A NEW process must be admitted first."""
        process = Process(pid=1, memory=MEMORY, burst=BURST)
        with pytest.raises(RuntimeError, match="Cannot dispatch"):
            process.dispatch(quantum=QUANTUM)

    def test_cannot_execute_ready(self) -> None:
        """Only the running process executes."""
        process = Process(pid=1, memory=MEMORY, burst=BURST)
        process.admit(BLOCK)
        with pytest.raises(RuntimeError, match="Cannot execute"):
            process.execute_tick()

    def test_cannot_wake_running(self) -> None:
        """Waking needs a blocked process."""
        with pytest.raises(RuntimeError, match="Cannot wake"):
            _running().wake(quantum=QUANTUM)

    def test_cannot_advance_io_when_not_blocked(self) -> None:
        """Counting down I/O needs a blocked process."""
        with pytest.raises(RuntimeError, match="Cannot advance"):
            _running().advance_io()

    def test_io_duration_must_be_positive(self) -> None:
        """Zero-tick I/O is rejected."""
        with pytest.raises(ValueError, match="positive"):
            _running().block_on_io(duration=0)


class TestMemoryResidency:
    """Memory is held exactly in READY, RUNNING and BLOCKED_IO."""

    def test_resident_states(self) -> None:
        """The resident set is the three memory-holding states."""
        assert {
            ProcessState.READY,
            ProcessState.RUNNING,
            ProcessState.BLOCKED_IO,
        } == MEMORY_RESIDENT_STATES
