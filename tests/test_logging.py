"""Tests for the simulation event log.

The logger keeps a bounded, chronological record of what the simulation
did.  Levels are ordered so viewers can hide routine chatter.
"""

import pytest

from py_procsim.logging import DEFAULT_MAX_ENTRIES, LogEntry, Logger, LogLevel

SMALL_LOG = 3


class TestLogLevel:
    """Verify log level ordering."""

    def test_levels_are_ordered(self) -> None:
        """DEBUG < INFO < SUCCESS < WARNING < ERROR."""
        assert LogLevel.DEBUG < LogLevel.INFO
        assert LogLevel.INFO < LogLevel.SUCCESS
        assert LogLevel.SUCCESS < LogLevel.WARNING
        assert LogLevel.WARNING < LogLevel.ERROR


class TestLogEntry:
    """Verify log entry structure."""

    def test_entry_has_fields(self) -> None:
        """A log entry stores level, message, source and tick."""
        entry = LogEntry(level=LogLevel.INFO, message="P1 created", source="spawned", tick=4)
        assert entry.level is LogLevel.INFO
        assert entry.message == "P1 created"
        assert entry.source == "spawned"
        assert entry.tick == 4  # noqa: PLR2004

    def test_entry_str(self) -> None:
        """String form shows level, tick, source and message."""
        entry = LogEntry(level=LogLevel.WARNING, message="P2 waiting", source="waiting_memory", tick=7)
        assert str(entry) == "[WARNING] t=7 waiting_memory: P2 waiting"


class TestLogger:
    """Verify logging, filtering and bounding."""

    def test_starts_empty(self) -> None:
        """A new logger has no entries and the default capacity."""
        logger = Logger()
        assert len(logger) == 0
        assert logger.max_entries == DEFAULT_MAX_ENTRIES

    def test_log_appends_in_order(self) -> None:
        """Entries come back oldest first."""
        logger = Logger()
        logger.log(LogLevel.INFO, "first", source="a", tick=1)
        logger.log(LogLevel.ERROR, "second", source="b", tick=2)
        assert [e.message for e in logger.entries] == ["first", "second"]

    def test_filter_by_level(self) -> None:
        """min_level hides anything less severe."""
        logger = Logger()
        logger.log(LogLevel.INFO, "routine", source="dispatched")
        logger.log(LogLevel.SUCCESS, "done", source="terminated")
        logger.log(LogLevel.WARNING, "blocked", source="blocked")
        assert [e.message for e in logger.filter(min_level=LogLevel.SUCCESS)] == ["done", "blocked"]

    def test_filter_by_source(self) -> None:
        """source keeps only one kind of entry."""
        logger = Logger()
        logger.log(LogLevel.INFO, "a", source="spawned")
        logger.log(LogLevel.INFO, "b", source="preempted")
        assert [e.message for e in logger.filter(source="preempted")] == ["b"]

    def test_oldest_entries_fall_off(self) -> None:
        """The log never grows beyond max_entries."""
        logger = Logger(max_entries=SMALL_LOG)
        for i in range(5):
            logger.log(LogLevel.INFO, str(i), source="test")
        assert len(logger) == SMALL_LOG
        assert [e.message for e in logger.entries] == ["2", "3", "4"]

    def test_clear(self) -> None:
        """Clearing empties the log."""
        logger = Logger()
        logger.log(LogLevel.INFO, "x", source="test")
        logger.clear()
        assert logger.entries == []

    def test_rejects_non_positive_capacity(self) -> None:
        """Capacity must be positive."""
        with pytest.raises(ValueError, match="positive"):
            Logger(max_entries=0)
