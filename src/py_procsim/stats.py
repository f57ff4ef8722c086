"""Performance statistics.

Only four numbers are ever *accumulated*, each bumped exactly once per
qualifying event:

- ``completed`` — a process terminated.
- ``total_wait_time`` — the terminated process's ticks from creation to
  termination.
- ``context_switches`` — a running process lost the CPU (preempted or
  blocked on I/O).
- ``total_created`` — a process was spawned.

Everything else (throughput, success rate, CPU utilisation, memory
efficiency) is derived on demand from those counters plus the current
state of the simulation, so there is nothing to keep in sync.
"""

from dataclasses import asdict, dataclass
from typing import Any

_FULL = 100.0
_HALF = 50.0


@dataclass(frozen=True)
class Statistics:
    """An immutable view of the simulation's metrics at one instant."""

    tick: int
    total_created: int
    completed: int
    context_switches: int
    total_wait_time: int
    avg_wait_time: float
    throughput: float
    success_rate: float
    cpu_utilization: float
    memory_efficiency: float
    fragmentation: float

    def to_dict(self) -> dict[str, Any]:
        """Return the metrics as a plain dict."""
        return asdict(self)


class StatisticsCollector:
    """Monotonic counters plus the formulas that turn them into metrics."""

    def __init__(self) -> None:
        """Create a collector with every counter at zero."""
        self._completed = 0
        self._total_wait_time = 0
        self._context_switches = 0
        self._total_created = 0
        self._wait_times: dict[int, int] = {}

    @property
    def completed(self) -> int:
        """Return the number of terminated processes."""
        return self._completed

    @property
    def total_wait_time(self) -> int:
        """Return the summed wait time of terminated processes."""
        return self._total_wait_time

    @property
    def context_switches(self) -> int:
        """Return the number of times a running process lost the CPU."""
        return self._context_switches

    @property
    def total_created(self) -> int:
        """Return the number of processes ever spawned."""
        return self._total_created

    @property
    def wait_times(self) -> dict[int, int]:
        """Return PID → wait time for every terminated process."""
        return dict(self._wait_times)

    def record_spawn(self) -> None:
        """Count one newly created process."""
        self._total_created += 1

    def record_context_switch(self) -> None:
        """Count one RUNNING → READY or RUNNING → BLOCKED_IO transition."""
        self._context_switches += 1

    def record_completion(self, pid: int, *, wait_time: int) -> None:
        """Count one terminated process and add its wait time."""
        self._completed += 1
        self._total_wait_time += wait_time
        self._wait_times[pid] = wait_time

    def reset(self) -> None:
        """Zero every counter and forget the wait-time history."""
        self._completed = 0
        self._total_wait_time = 0
        self._context_switches = 0
        self._total_created = 0
        self._wait_times.clear()

    def summarize(
        self,
        *,
        tick: int,
        cpu_busy: bool,
        ready_count: int,
        used_memory: int,
        total_memory: int,
        fragmentation: float,
    ) -> Statistics:
        """Derive the full metric set from the counters and current state.

        Args:
            tick: Ticks executed so far.
            cpu_busy: Whether a process is currently running.
            ready_count: Length of the ready queue.
            used_memory: Allocated memory units.
            total_memory: Allocator capacity.
            fragmentation: Current external fragmentation percentage.

        Returns:
            A frozen ``Statistics`` snapshot.

        """
        return Statistics(
            tick=tick,
            total_created=self._total_created,
            completed=self._completed,
            context_switches=self._context_switches,
            total_wait_time=self._total_wait_time,
            avg_wait_time=self._total_wait_time / max(self._completed, 1),
            throughput=self._completed / max(tick, 1),
            success_rate=self._completed / max(self._total_created, 1) * 100,
            cpu_utilization=cpu_utilization(tick=tick, cpu_busy=cpu_busy, ready_count=ready_count),
            memory_efficiency=used_memory / total_memory * 100 if total_memory else 0.0,
            fragmentation=fragmentation,
        )


def cpu_utilization(*, tick: int, cpu_busy: bool, ready_count: int) -> float:
    """Return the coarse CPU occupancy heuristic.

    100 while a process runs, 50 when work is queued but the CPU is
    idle, 0 otherwise (and always 0 before the first tick).  This is a
    point-in-time occupancy reading, not a busy-time integral.
    """
    if tick == 0:
        return 0.0
    if cpu_busy:
        return _FULL
    if ready_count > 0:
        return _HALF
    return 0.0
