"""Simulation configuration.

Every tunable knob of the simulation lives in one frozen dataclass.
Frozen means a configuration can be shared and logged without fear of
it changing underneath anyone; to change a setting you build a new
configuration with ``updated()`` and hand it to the simulation.

The defaults reproduce a small, lively workload: roughly one new
process every two to three ticks, memory requests up to about a third
of the address space, and occasional short I/O waits.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import asdict, dataclass, fields, replace
from typing import Any

DEFAULT_TOTAL_MEMORY = 1024
DEFAULT_TICK_INTERVAL_MS = 500
DEFAULT_TIME_QUANTUM = 3


class ConfigError(ValueError):
    """Raise when a configuration value is out of range or unknown."""


@dataclass(frozen=True)
class SimulationConfig:
    """All recognised simulation options.

    Attributes:
        total_memory: Allocator capacity, applied at reset.
        tick_interval_ms: Period of the automatic clock.
        new_process_probability: Chance of spawning a process each tick.
        min_memory: Smallest memory request (sampled and manual).
        max_memory: Largest memory request (sampled and manual).
        min_burst: Shortest CPU burst (sampled and manual).
        max_burst: Longest CPU burst (sampled and manual).
        io_probability: Chance that the running process blocks on I/O
            during an executed tick.
        min_io: Shortest I/O wait in ticks.
        max_io: Longest I/O wait in ticks.
        time_quantum: Ticks a process runs before preemption is possible.

    """

    total_memory: int = DEFAULT_TOTAL_MEMORY
    tick_interval_ms: int = DEFAULT_TICK_INTERVAL_MS
    new_process_probability: float = 0.4
    min_memory: int = 20
    max_memory: int = 300
    min_burst: int = 3
    max_burst: int = 15
    io_probability: float = 0.15
    min_io: int = 2
    max_io: int = 6
    time_quantum: int = DEFAULT_TIME_QUANTUM

    def validate(self) -> None:
        """Check every option, raising on the first problem found.

        Raises:
            ConfigError: If any option is out of range.

        """
        for name in ("total_memory", "tick_interval_ms", "time_quantum"):
            value = getattr(self, name)
            if value <= 0:
                msg = f"{name} must be positive, got {value}"
                raise ConfigError(msg)
        for name in ("new_process_probability", "io_probability"):
            value = getattr(self, name)
            if not 0.0 <= value <= 1.0:
                msg = f"{name} must be between 0 and 1, got {value}"
                raise ConfigError(msg)
        for low_name, high_name in (
            ("min_memory", "max_memory"),
            ("min_burst", "max_burst"),
            ("min_io", "max_io"),
        ):
            low, high = getattr(self, low_name), getattr(self, high_name)
            if low <= 0:
                msg = f"{low_name} must be positive, got {low}"
                raise ConfigError(msg)
            if low > high:
                msg = f"{low_name} ({low}) must not exceed {high_name} ({high})"
                raise ConfigError(msg)
        # Every request must fit in an empty address space.
        if self.max_memory > self.total_memory:
            msg = (
                f"max_memory ({self.max_memory}) must not exceed "
                f"total_memory ({self.total_memory})"
            )
            raise ConfigError(msg)

    def updated(self, **changes: Any) -> SimulationConfig:
        """Return a validated copy with *changes* applied.

        Raises:
            ConfigError: If an option name is unknown or a value is invalid.

        """
        _reject_unknown(changes)
        coerced = {name: _coerce(name, value) for name, value in changes.items()}
        config = replace(self, **coerced)
        config.validate()
        return config

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> SimulationConfig:
        """Build a validated configuration from JSON-like data.

        Missing keys keep their defaults.

        Raises:
            ConfigError: If a key is unknown or a value is invalid.

        """
        return cls().updated(**dict(data))

    def to_dict(self) -> dict[str, Any]:
        """Return the options as a plain dict."""
        return asdict(self)


def option_names() -> list[str]:
    """Return the names of all configuration options."""
    return [f.name for f in fields(SimulationConfig)]


def _reject_unknown(changes: Mapping[str, Any]) -> None:
    unknown = sorted(set(changes) - set(option_names()))
    if unknown:
        msg = f"Unknown option(s): {', '.join(unknown)}"
        raise ConfigError(msg)


def _coerce(name: str, value: Any) -> int | float:
    """Convert *value* to the type of option *name* (e.g. from a shell string)."""
    kind = type(getattr(SimulationConfig(), name))
    if isinstance(value, bool):
        msg = f"{name} must be a number, got {value!r}"
        raise ConfigError(msg)
    try:
        return kind(value)
    except (TypeError, ValueError) as e:
        msg = f"{name} must be a number, got {value!r}"
        raise ConfigError(msg) from e
