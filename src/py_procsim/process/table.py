"""Process table — the keyed store of live processes.

The table is the single source of truth for which processes exist.
Queues elsewhere in the simulation only hold PIDs and look processes
up here; an entry that is no longer in the table is stale and must be
skipped by whoever finds it.

Each table owns its own PID counter, so two simulations never share
numbering and a reset restarts at PID 1.
"""

from collections.abc import Iterator
from itertools import count

from py_procsim.process.pcb import Process


class ProcessTable:
    """Map PIDs to live ``Process`` objects and hand out new PIDs."""

    def __init__(self) -> None:
        """Create an empty table whose first PID will be 1."""
        self._processes: dict[int, Process] = {}
        self._pid_counter = count(start=1)

    def create(self, *, memory: int, burst: int, created_at: int) -> Process:
        """Create a NEW process with the next PID and store it.

        Args:
            memory: Memory requirement of the process.
            burst: CPU burst of the process.
            created_at: Tick of creation.

        Returns:
            The stored process.

        """
        process = Process(
            pid=next(self._pid_counter),
            memory=memory,
            burst=burst,
            created_at=created_at,
        )
        self._processes[process.pid] = process
        return process

    def get(self, pid: int) -> Process | None:
        """Return the process with *pid*, or None if it no longer exists."""
        return self._processes.get(pid)

    def remove(self, pid: int) -> Process | None:
        """Remove and return the process with *pid* (None if absent)."""
        return self._processes.pop(pid, None)

    def processes(self) -> list[Process]:
        """Return all live processes sorted by PID."""
        return [self._processes[pid] for pid in sorted(self._processes)]

    def reset(self) -> None:
        """Forget every process and restart PID numbering at 1."""
        self._processes.clear()
        self._pid_counter = count(start=1)

    def __contains__(self, pid: object) -> bool:
        """Return True if *pid* is a live process."""
        return pid in self._processes

    def __len__(self) -> int:
        """Return the number of live processes."""
        return len(self._processes)

    def __iter__(self) -> Iterator[Process]:
        """Iterate over live processes in PID order."""
        return iter(self.processes())
