"""Simulation event log.

Every noteworthy thing the simulation does — a process spawned, blocked
on I/O, preempted, terminated, or finally granted memory — is recorded
as a structured log entry.  This is the in-memory equivalent of the
scrolling event panel a visualiser shows next to the process table.

Entries carry the tick they happened in and the kind of event that
produced them, so a viewer can show "what happened at t=12" or "only
the warnings".  A simulation can run forever but the log cannot grow
forever: it keeps the most recent entries and drops the oldest.
"""

from collections import deque
from dataclasses import dataclass
from enum import IntEnum

DEFAULT_MAX_ENTRIES = 500


class LogLevel(IntEnum):
    """Severity levels for log entries.

    SUCCESS sits between INFO and WARNING: it marks a good outcome
    (memory granted, process finished) that is still worth surfacing
    above routine chatter.
    """

    DEBUG = 0
    INFO = 1
    SUCCESS = 2
    WARNING = 3
    ERROR = 4


@dataclass(frozen=True)
class LogEntry:
    """A single structured log record.

    Attributes:
        level: The severity of this event.
        message: A human-readable description of what happened.
        source: The kind of event that produced the entry (e.g. "spawned").
        tick: The simulation tick at which the event happened.

    """

    level: LogLevel
    message: str
    source: str
    tick: int = 0

    def __str__(self) -> str:
        """Format as ``[LEVEL] t=tick source: message``."""
        return f"[{self.level.name}] t={self.tick} {self.source}: {self.message}"


class Logger:
    """Bounded append-only log buffer with filtering."""

    def __init__(self, *, max_entries: int = DEFAULT_MAX_ENTRIES) -> None:
        """Create an empty logger.

        Args:
            max_entries: Maximum number of entries kept; older ones are
                discarded first.

        Raises:
            ValueError: If max_entries is not positive.

        """
        if max_entries <= 0:
            msg = f"max_entries must be positive, got {max_entries}"
            raise ValueError(msg)
        self._entries: deque[LogEntry] = deque(maxlen=max_entries)

    @property
    def max_entries(self) -> int:
        """Return the capacity of the log."""
        maxlen = self._entries.maxlen
        assert maxlen is not None  # noqa: S101
        return maxlen

    @property
    def entries(self) -> list[LogEntry]:
        """Return all retained log entries in chronological order."""
        return list(self._entries)

    def log(
        self,
        level: LogLevel,
        message: str,
        *,
        source: str,
        tick: int = 0,
    ) -> None:
        """Append a new entry to the log.

        Args:
            level: Severity of the event.
            message: Human-readable event description.
            source: Kind of event that generated the entry.
            tick: Simulation tick of the event.

        """
        self._entries.append(LogEntry(level=level, message=message, source=source, tick=tick))

    def filter(
        self,
        *,
        min_level: LogLevel | None = None,
        source: str | None = None,
    ) -> list[LogEntry]:
        """Return retained entries, oldest first, that pass both filters.

        Args:
            min_level: Drop entries less severe than this.
            source: Keep only entries of this event kind.

        """
        return [
            e
            for e in self._entries
            if (min_level is None or e.level >= min_level)
            and (source is None or e.source == source)
        ]

    def clear(self) -> None:
        """Remove all log entries."""
        self._entries.clear()

    def __len__(self) -> int:
        """Return the number of retained entries."""
        return len(self._entries)
