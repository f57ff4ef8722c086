"""The simulation — one CPU, one address space, discrete ticks.

A ``Simulation`` owns every piece of mutable state: the process table,
the scheduler (ready queue + CPU slot), the I/O queue, the
waiting-for-memory queue, the memory allocator, the statistics
counters, and the event log.  Nothing is shared between instances, so
any number of simulations can run side by side.

Each call to ``tick()`` advances simulated time by one unit and runs
six phases in a fixed order:

    1. Spawn           — maybe create a process and try to give it memory.
    2. I/O advance     — count down blocked processes; finished ones go READY.
    3. Schedule        — if the CPU is idle, dispatch the head of the ready queue.
    4. Execute         — one unit of work for the running process (or an
                         I/O block, termination, or preemption).
    5. Memory retry    — serve the waiting-for-memory queue in FIFO order.
    6. Snapshot        — publish events and a read-only snapshot to sinks.

Randomness:
    Every probabilistic decision draws from one injected
    ``random.Random``.  Seed it (or pass your own instance) and the
    whole run is reproducible, draw for draw.

FIFO memory fairness:
    The waiting-for-memory queue is always served from the head and
    stops at the first request that does not fit.  A small request at
    the back never jumps ahead of a large one at the front.
"""

from __future__ import annotations

import random
from collections import deque
from typing import TYPE_CHECKING, Any

from py_procsim.config import SimulationConfig
from py_procsim.events import Event, EventKind, MemoryView, ProcessView, Snapshot
from py_procsim.logging import Logger, LogLevel
from py_procsim.memory.allocator import MemoryAllocator
from py_procsim.process.pcb import ProcessState
from py_procsim.process.scheduler import Scheduler
from py_procsim.process.table import ProcessTable
from py_procsim.stats import Statistics, StatisticsCollector

if TYPE_CHECKING:
    from collections.abc import Iterable

    from py_procsim.events import EventSink
    from py_procsim.process.pcb import Process


class ValidationError(ValueError):
    """Raise when a manually requested process is out of bounds."""


class Simulation:
    """A self-contained CPU scheduling and memory management simulation."""

    def __init__(
        self,
        *,
        config: SimulationConfig | None = None,
        rng: random.Random | None = None,
        seed: int | None = None,
        sinks: Iterable[EventSink] = (),
        logger: Logger | None = None,
    ) -> None:
        """Create a simulation at tick 0 with an empty address space.

        Args:
            config: Options to run with (defaults if omitted).
            rng: Random source for every probabilistic branch.
            seed: Seed for a fresh ``random.Random`` when *rng* is omitted.
            sinks: Event sinks to notify.
            logger: Event log (a fresh one if omitted).

        Raises:
            ConfigError: If the configuration is invalid.

        """
        self._config = config if config is not None else SimulationConfig()
        self._config.validate()
        self._rng = rng if rng is not None else random.Random(seed)  # noqa: S311
        self._sinks: list[EventSink] = list(sinks)
        self._logger = logger if logger is not None else Logger()

        self._allocator = MemoryAllocator(total=self._config.total_memory)
        self._table = ProcessTable()
        self._scheduler = Scheduler(quantum=self._config.time_quantum)
        self._io_queue: list[int] = []
        self._waiting_memory: deque[int] = deque()
        self._stats = StatisticsCollector()
        self._tick_count = 0
        self._pending: list[Event] = []

    # -- Accessors -------------------------------------------------------------

    @property
    def config(self) -> SimulationConfig:
        """Return the active configuration."""
        return self._config

    @property
    def tick_count(self) -> int:
        """Return the number of ticks executed since the last reset."""
        return self._tick_count

    @property
    def allocator(self) -> MemoryAllocator:
        """Return the memory allocator."""
        return self._allocator

    @property
    def table(self) -> ProcessTable:
        """Return the process table."""
        return self._table

    @property
    def scheduler(self) -> Scheduler:
        """Return the CPU scheduler."""
        return self._scheduler

    @property
    def stats(self) -> StatisticsCollector:
        """Return the statistics counters."""
        return self._stats

    @property
    def logger(self) -> Logger:
        """Return the event log."""
        return self._logger

    @property
    def running(self) -> int | None:
        """Return the PID on the CPU, or None."""
        return self._scheduler.current

    @property
    def ready_queue(self) -> list[int]:
        """Return the ready queue, head first."""
        return self._scheduler.ready_pids

    @property
    def io_queue(self) -> list[int]:
        """Return the PIDs blocked on I/O."""
        return list(self._io_queue)

    @property
    def waiting_memory(self) -> list[int]:
        """Return the waiting-for-memory queue, head first."""
        return list(self._waiting_memory)

    # -- Subscribers -----------------------------------------------------------

    def subscribe(self, sink: EventSink) -> None:
        """Start notifying *sink* of events and snapshots."""
        self._sinks.append(sink)

    def unsubscribe(self, sink: EventSink) -> None:
        """Stop notifying *sink*. Unknown sinks are ignored."""
        if sink in self._sinks:
            self._sinks.remove(sink)

    # -- Control ---------------------------------------------------------------

    def configure(self, **changes: Any) -> SimulationConfig:
        """Apply configuration changes.

        Probabilities, bounds and the quantum take effect from the next
        tick; ``total_memory`` takes effect at the next reset.

        Raises:
            ConfigError: If a change is unknown or invalid.  Nothing is
                applied in that case.

        """
        if not changes:
            return self._config
        self._config = self._config.updated(**changes)
        self._scheduler.quantum = self._config.time_quantum
        summary = ", ".join(f"{name}={value}" for name, value in sorted(changes.items()))
        self._emit(EventKind.CONFIGURED, LogLevel.INFO, f"Configuration changed: {summary}")
        self._flush_events()
        return self._config

    def reset(self) -> None:
        """Wipe the simulation back to tick 0.

        Empties every queue and the process table, frees the whole
        address space (resized to the configured total), zeroes all
        counters, restarts PIDs at 1, and clears the event log.
        """
        if self._allocator.total == self._config.total_memory:
            self._allocator.reset()
        else:
            self._allocator = MemoryAllocator(total=self._config.total_memory)
        self._table.reset()
        self._scheduler.reset()
        self._scheduler.quantum = self._config.time_quantum
        self._io_queue.clear()
        self._waiting_memory.clear()
        self._stats.reset()
        self._tick_count = 0
        self._pending.clear()
        self._logger.clear()
        self._emit(EventKind.RESET, LogLevel.INFO, "Simulation reset")
        self._publish()

    def create_process(self, *, memory: int, burst: int) -> Process:
        """Create a process by hand, exactly like a spawned one.

        Args:
            memory: Memory requirement, within the configured bounds.
            burst: CPU burst, within the configured bounds.

        Returns:
            The new process (READY or WAITING_MEMORY).

        Raises:
            ValidationError: If either value is outside its bounds.
                Nothing changes in that case.

        """
        cfg = self._config
        _check_bounds("memory requirement", memory, cfg.min_memory, cfg.max_memory)
        _check_bounds("CPU burst", burst, cfg.min_burst, cfg.max_burst)
        process = self._spawn(memory=memory, burst=burst, origin="manual")
        self._flush_events()
        return process

    def spawn_random(self) -> Process:
        """Create one process with sampled memory and burst, unconditionally."""
        process = self._spawn_sampled(origin="random")
        self._flush_events()
        return process

    def run(self, ticks: int) -> Snapshot:
        """Execute *ticks* ticks and return the last snapshot.

        Raises:
            ValueError: If ticks is not positive.

        """
        if ticks <= 0:
            msg = f"ticks must be positive, got {ticks}"
            raise ValueError(msg)
        snapshot = self.tick()
        for _ in range(ticks - 1):
            snapshot = self.tick()
        return snapshot

    def tick(self) -> Snapshot:
        """Advance the simulation by one tick, running all six phases.

        Returns:
            The snapshot published at the end of the tick.

        """
        self._tick_count += 1
        self._spawn_phase()
        self._advance_io()
        self._schedule()
        self._execute()
        self._retry_waiting_memory()
        return self._publish()

    # -- Queries ---------------------------------------------------------------

    def statistics(self) -> Statistics:
        """Return the current metrics."""
        return self._stats.summarize(
            tick=self._tick_count,
            cpu_busy=self._scheduler.current is not None,
            ready_count=self._scheduler.ready_count,
            used_memory=self._allocator.used_space(),
            total_memory=self._allocator.total,
            fragmentation=self._allocator.fragmentation(),
        )

    def snapshot(self) -> Snapshot:
        """Return a read-only picture of the current state."""
        views = tuple(_view(p) for p in self._table.processes())
        memory = MemoryView(
            total=self._allocator.total,
            free=self._allocator.free_space(),
            used=self._allocator.used_space(),
            fragmentation=self._allocator.fragmentation(),
            free_blocks=tuple((b.start, b.size) for b in self._allocator.free_blocks),
            used_blocks=tuple(
                (pid, b.start, b.size) for pid, b in sorted(self._allocator.allocations.items())
            ),
        )
        return Snapshot(
            tick=self._tick_count,
            running=self._scheduler.current,
            processes=views,
            ready_queue=tuple(self._scheduler.ready_pids),
            io_queue=tuple(self._io_queue),
            waiting_memory=tuple(self._waiting_memory),
            memory=memory,
            stats=self.statistics(),
        )

    # -- Phase 1: spawn --------------------------------------------------------

    def _spawn_phase(self) -> None:
        if self._rng.random() < self._config.new_process_probability:
            self._spawn_sampled(origin="generated")

    def _spawn_sampled(self, *, origin: str) -> Process:
        cfg = self._config
        memory = self._rng.randint(cfg.min_memory, cfg.max_memory)
        burst = self._rng.randint(cfg.min_burst, cfg.max_burst)
        return self._spawn(memory=memory, burst=burst, origin=origin)

    def _spawn(self, *, memory: int, burst: int, origin: str) -> Process:
        process = self._table.create(memory=memory, burst=burst, created_at=self._tick_count)
        self._stats.record_spawn()
        self._emit(
            EventKind.SPAWNED,
            LogLevel.INFO,
            f"P{process.pid} created ({origin}): memory={memory}, burst={burst}",
            pid=process.pid,
        )
        block = self._allocator.allocate(process.pid, memory)
        if block is None:
            process.wait_for_memory()
            self._waiting_memory.append(process.pid)
            self._emit(
                EventKind.WAITING_MEMORY,
                LogLevel.WARNING,
                f"P{process.pid} cannot get {memory} units; waiting for memory",
                pid=process.pid,
            )
        else:
            process.admit(block)
            self._scheduler.add(process.pid)
            self._emit(
                EventKind.ADMITTED,
                LogLevel.SUCCESS,
                f"P{process.pid} allocated [{block.start}, {block.end}); ready",
                pid=process.pid,
            )
        return process

    # -- Phase 2: I/O advance --------------------------------------------------

    def _advance_io(self) -> None:
        still_blocked: list[int] = []
        for pid in self._io_queue:
            process = self._table.get(pid)
            if process is None or process.state is not ProcessState.BLOCKED_IO:
                continue
            if not process.advance_io():
                still_blocked.append(pid)
                continue
            process.wake(quantum=self._config.time_quantum)
            self._scheduler.add(pid)
            self._emit(EventKind.IO_COMPLETE, LogLevel.INFO, f"P{pid} finished I/O; ready", pid=pid)
        self._io_queue = still_blocked

    # -- Phase 3: schedule -----------------------------------------------------

    def _schedule(self) -> None:
        process = self._scheduler.dispatch(self._table)
        if process is not None:
            self._emit(
                EventKind.DISPATCHED,
                LogLevel.INFO,
                f"P{process.pid} running (quantum={process.quantum_remaining})",
                pid=process.pid,
            )

    # -- Phase 4: execute ------------------------------------------------------

    def _execute(self) -> None:
        process = self._scheduler.running(self._table)
        if process is None:
            return
        cfg = self._config

        if self._rng.random() < cfg.io_probability:
            duration = self._rng.randint(cfg.min_io, cfg.max_io)
            process.block_on_io(duration=duration)
            self._scheduler.release(process)
            self._io_queue.append(process.pid)
            self._stats.record_context_switch()
            self._emit(
                EventKind.BLOCKED,
                LogLevel.WARNING,
                f"P{process.pid} blocked on I/O for {duration} ticks "
                f"(remaining burst={process.remaining_burst})",
                pid=process.pid,
            )
            return

        process.execute_tick()
        if process.is_finished:
            self._terminate(process)
            return
        if process.quantum_remaining > 0:
            return
        if self._scheduler.prune(self._table) > 0:
            self._scheduler.preempt(process)
            self._stats.record_context_switch()
            self._emit(
                EventKind.PREEMPTED,
                LogLevel.INFO,
                f"P{process.pid} preempted (quantum expired)",
                pid=process.pid,
            )
        else:
            # Alone on the CPU: no one to switch to.
            process.refresh_quantum(cfg.time_quantum)

    def _terminate(self, process: Process) -> None:
        """Release memory, record statistics, drop the PCB, then retry waiters."""
        pid = process.pid
        block = self._allocator.free(pid)
        self._scheduler.release(process)
        process.terminate(tick=self._tick_count)
        wait_time = self._tick_count - process.created_at
        self._stats.record_completion(pid, wait_time=wait_time)
        self._table.remove(pid)
        self._emit(
            EventKind.TERMINATED,
            LogLevel.SUCCESS,
            f"P{pid} finished after {wait_time} ticks",
            pid=pid,
        )
        if block is not None:
            self._emit(
                EventKind.MEMORY_RELEASED,
                LogLevel.INFO,
                f"P{pid} released [{block.start}, {block.end})",
                pid=pid,
            )
        self._retry_waiting_memory()

    # -- Phase 5: memory retry -------------------------------------------------

    def _retry_waiting_memory(self) -> None:
        """Serve waiters from the head; stop at the first one that does not fit."""
        while self._waiting_memory:
            pid = self._waiting_memory[0]
            process = self._table.get(pid)
            if process is None or process.state is not ProcessState.WAITING_MEMORY:
                self._waiting_memory.popleft()
                continue
            block = self._allocator.allocate(pid, process.memory)
            if block is None:
                return
            self._waiting_memory.popleft()
            process.grant_memory(block)
            self._scheduler.add(pid)
            self._emit(
                EventKind.MEMORY_SATISFIED,
                LogLevel.SUCCESS,
                f"P{pid} got memory [{block.start}, {block.end}); ready",
                pid=pid,
            )

    # -- Phase 6: snapshot -----------------------------------------------------

    def _publish(self) -> Snapshot:
        snapshot = self.snapshot()
        self._flush_events()
        for sink in list(self._sinks):
            sink.on_snapshot(snapshot)
        return snapshot

    def _emit(self, kind: EventKind, level: LogLevel, message: str, *, pid: int | None = None) -> None:
        event = Event(kind=kind, level=level, message=message, tick=self._tick_count, pid=pid)
        self._logger.log(level, message, source=kind, tick=self._tick_count)
        self._pending.append(event)

    def _flush_events(self) -> None:
        pending, self._pending = self._pending, []
        for event in pending:
            for sink in list(self._sinks):
                sink.on_event(event)


def _check_bounds(label: str, value: int, low: int, high: int) -> None:
    if isinstance(value, bool) or not isinstance(value, int):
        msg = f"{label} must be an integer, got {value!r}"
        raise ValidationError(msg)
    if not low <= value <= high:
        msg = f"{label} must be between {low} and {high}, got {value}"
        raise ValidationError(msg)


def _view(process: Process) -> ProcessView:
    block = process.block
    return ProcessView(
        pid=process.pid,
        state=str(process.state),
        memory=process.memory,
        total_burst=process.total_burst,
        remaining_burst=process.remaining_burst,
        quantum_remaining=process.quantum_remaining,
        io_remaining=process.io_remaining,
        block_start=block.start if block is not None else None,
        block_size=block.size if block is not None else None,
    )
