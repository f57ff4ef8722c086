"""Events and snapshots — the contract between the engine and its viewers.

The simulation never draws anything.  Instead it talks to any number of
**event sinks** through two calls:

- ``on_event(event)`` — a discrete, log-worthy occurrence (a process
  spawned, blocked, preempted, terminated, or was granted memory),
  tagged with a severity.
- ``on_snapshot(snapshot)`` — once per tick, after all phases have
  finished, a read-only picture of the whole system.

A rendering layer (a terminal table, a web page, a canvas) subscribes
by implementing ``EventSink``; the engine never calls into rendering
code directly.

Design choices:
    - **Protocol, not base class** — any object with the two methods
      is a sink, no inheritance required.
    - **Frozen dataclasses** — a snapshot handed to a viewer can never
      be used to mutate the simulation.
"""

from __future__ import annotations

from collections import deque
from dataclasses import asdict, dataclass
from enum import StrEnum
from typing import TYPE_CHECKING, Any, Protocol

from py_procsim.logging import LogLevel

if TYPE_CHECKING:
    from py_procsim.stats import Statistics

DEFAULT_EVENT_HISTORY = 200


class EventKind(StrEnum):
    """What happened."""

    SPAWNED = "spawned"
    ADMITTED = "admitted"
    WAITING_MEMORY = "waiting_memory"
    MEMORY_SATISFIED = "memory_satisfied"
    DISPATCHED = "dispatched"
    BLOCKED = "blocked"
    IO_COMPLETE = "io_complete"
    PREEMPTED = "preempted"
    TERMINATED = "terminated"
    MEMORY_RELEASED = "memory_released"
    RESET = "reset"
    CONFIGURED = "configured"


@dataclass(frozen=True)
class Event:
    """A single discrete occurrence inside the simulation.

    Attributes:
        kind: What happened.
        level: Severity tag (INFO, SUCCESS, WARNING or ERROR).
        message: Human-readable description.
        tick: Tick during which it happened.
        pid: The process concerned, if any.

    """

    kind: EventKind
    level: LogLevel
    message: str
    tick: int
    pid: int | None = None

    def to_dict(self) -> dict[str, Any]:
        """Return the event as JSON-friendly data."""
        return {
            "kind": str(self.kind),
            "level": self.level.name.lower(),
            "message": self.message,
            "tick": self.tick,
            "pid": self.pid,
        }


@dataclass(frozen=True)
class ProcessView:
    """Read-only picture of one process."""

    pid: int
    state: str
    memory: int
    total_burst: int
    remaining_burst: int
    quantum_remaining: int
    io_remaining: int
    block_start: int | None
    block_size: int | None


@dataclass(frozen=True)
class MemoryView:
    """Read-only picture of the address space."""

    total: int
    free: int
    used: int
    fragmentation: float
    free_blocks: tuple[tuple[int, int], ...]
    used_blocks: tuple[tuple[int, int, int], ...]


@dataclass(frozen=True)
class Snapshot:
    """Read-only picture of the whole simulation after a tick."""

    tick: int
    running: int | None
    processes: tuple[ProcessView, ...]
    ready_queue: tuple[int, ...]
    io_queue: tuple[int, ...]
    waiting_memory: tuple[int, ...]
    memory: MemoryView
    stats: Statistics

    @property
    def ready_count(self) -> int:
        """Return the ready queue length."""
        return len(self.ready_queue)

    @property
    def blocked_count(self) -> int:
        """Return the number of processes blocked on I/O."""
        return len(self.io_queue)

    @property
    def waiting_memory_count(self) -> int:
        """Return the number of processes waiting for memory."""
        return len(self.waiting_memory)

    def to_dict(self) -> dict[str, Any]:
        """Return the snapshot as JSON-friendly data."""
        data = asdict(self)
        data["queues"] = {
            "ready": self.ready_count,
            "blocked": self.blocked_count,
            "waiting_memory": self.waiting_memory_count,
        }
        return data


class EventSink(Protocol):
    """Interface every viewer of the simulation implements."""

    def on_event(self, event: Event) -> None:
        """Receive one discrete event."""
        ...  # pragma: no cover

    def on_snapshot(self, snapshot: Snapshot) -> None:
        """Receive the end-of-tick snapshot."""
        ...  # pragma: no cover


class RecordingSink:
    """An ``EventSink`` that keeps recent events and the latest snapshot.

    Front ends that poll (the web API, the shell) read from a recording
    sink instead of reaching into the simulation.
    """

    def __init__(self, *, history: int = DEFAULT_EVENT_HISTORY) -> None:
        """Create an empty recorder.

        Args:
            history: Maximum number of events retained.

        """
        self._events: deque[Event] = deque(maxlen=history)
        self._latest: Snapshot | None = None
        self._snapshots = 0

    @property
    def events(self) -> list[Event]:
        """Return the retained events, oldest first."""
        return list(self._events)

    @property
    def latest(self) -> Snapshot | None:
        """Return the most recent snapshot, or None before the first tick."""
        return self._latest

    @property
    def snapshot_count(self) -> int:
        """Return how many snapshots have been received."""
        return self._snapshots

    def on_event(self, event: Event) -> None:
        """Store the event."""
        self._events.append(event)

    def on_snapshot(self, snapshot: Snapshot) -> None:
        """Keep the snapshot as the latest one."""
        self._latest = snapshot
        self._snapshots += 1

    def clear(self) -> None:
        """Forget everything recorded so far."""
        self._events.clear()
        self._latest = None
        self._snapshots = 0
