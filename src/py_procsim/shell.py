"""The shell — command interpreter for the simulation.

The shell is the console user's interface to a running simulation.  It
reads a command string, splits it into a command name and arguments,
dispatches to the matching handler, and returns a string result.

Design choices:
    - **Returns strings, not prints.**  This keeps the shell fully
      testable; the REPL decides how to display output.
    - **Command dispatch via a dict.**  Adding a command means writing
      a method and adding one dict entry.
    - **Everything goes through the clock.**  The shell never ticks the
      simulation directly, and reads it under the clock's lock, so it
      behaves the same whether the automatic clock is running or not.
    - **Errors become text.**  A rejected process or a bad config value
      is reported as ``Error: ...`` instead of escaping the shell.
"""

from collections.abc import Callable
from typing import TypeAlias

from py_procsim.clock import ClockError, SimulationClock
from py_procsim.config import ConfigError, option_names
from py_procsim.logging import LogLevel
from py_procsim.simulation import ValidationError

# Type alias for a command handler: takes a list of args, returns output.
_Handler: TypeAlias = Callable[[list[str]], str]

# Safety limit for ``step N`` so a typo cannot hang the console.
_MAX_STEPS = 10_000


class Shell:
    """Command interpreter that operates on a clock-driven simulation."""

    EXIT_SENTINEL = "__EXIT__"

    def __init__(self, *, clock: SimulationClock) -> None:
        """Create a shell attached to *clock*.

        Args:
            clock: The clock wrapping the simulation to control.

        """
        self._clock = clock
        self._commands: dict[str, _Handler] = {
            "help": self._cmd_help,
            "step": self._cmd_step,
            "start": self._cmd_start,
            "stop": self._cmd_stop,
            "reset": self._cmd_reset,
            "create": self._cmd_create,
            "spawn": self._cmd_spawn,
            "ps": self._cmd_ps,
            "mem": self._cmd_mem,
            "queues": self._cmd_queues,
            "stats": self._cmd_stats,
            "config": self._cmd_config,
            "log": self._cmd_log,
            "exit": self._cmd_exit,
        }

    @property
    def commands(self) -> list[str]:
        """Return the sorted list of command names."""
        return sorted(self._commands)

    def execute(self, command: str) -> str:
        """Parse and execute one command line.

        Args:
            command: The raw input, e.g. ``"create 64 5"``.

        Returns:
            The command output (empty for a blank line).

        """
        parts = command.strip().split()
        if not parts:
            return ""
        name, args = parts[0], parts[1:]
        handler = self._commands.get(name)
        if handler is None:
            return f"Unknown command: {name}"
        try:
            return handler(args)
        except (ValidationError, ConfigError, ClockError) as e:
            return f"Error: {e}"

    # -- Command handlers ------------------------------------------------

    def _cmd_help(self, _args: list[str]) -> str:
        """List available commands."""
        return "Available commands: " + ", ".join(self.commands)

    def _cmd_step(self, args: list[str]) -> str:
        """Run one tick, or ``step N`` ticks."""
        count = 1
        if args:
            if not args[0].isdigit() or not 1 <= int(args[0]) <= _MAX_STEPS:
                return f"Usage: step [1-{_MAX_STEPS}]"
            count = int(args[0])
        snapshot = self._clock.step()
        for _ in range(count - 1):
            snapshot = self._clock.step()
        return (
            f"Tick {snapshot.tick}: running={_pid(snapshot.running)} "
            f"ready={snapshot.ready_count} blocked={snapshot.blocked_count} "
            f"waiting={snapshot.waiting_memory_count} "
            f"memory={snapshot.memory.used}/{snapshot.memory.total}"
        )

    def _cmd_start(self, _args: list[str]) -> str:
        """Start the automatic clock."""
        self._clock.start()
        return f"Clock started ({self._clock.simulation.config.tick_interval_ms} ms per tick)."

    def _cmd_stop(self, _args: list[str]) -> str:
        """Stop the automatic clock."""
        if not self._clock.running:
            return "Clock is not running."
        self._clock.stop()
        return f"Clock stopped at tick {self._clock.simulation.tick_count}."

    def _cmd_reset(self, _args: list[str]) -> str:
        """Wipe the simulation."""
        self._clock.reset()
        return "Simulation reset."

    def _cmd_create(self, args: list[str]) -> str:
        """Create a process by hand: ``create <memory> <burst>``."""
        usage = "Usage: create <memory> <burst>"
        if len(args) != 2:  # noqa: PLR2004
            return usage
        try:
            memory, burst = int(args[0]), int(args[1])
        except ValueError:
            return usage
        with self._clock.locked():
            process = self._clock.simulation.create_process(memory=memory, burst=burst)
            return f"Created P{process.pid} ({process.state})."

    def _cmd_spawn(self, _args: list[str]) -> str:
        """Create a process with random memory and burst."""
        with self._clock.locked():
            process = self._clock.simulation.spawn_random()
            return (
                f"Created P{process.pid} ({process.state}): "
                f"memory={process.memory}, burst={process.total_burst}."
            )

    def _cmd_ps(self, _args: list[str]) -> str:
        """Show the process table."""
        with self._clock.locked():
            snapshot = self._clock.simulation.snapshot()
        if not snapshot.processes:
            return "No processes."
        lines = ["PID    STATE           MEMORY  BURST   QUANTUM"]
        lines.extend(
            f"P{p.pid:<5} {p.state:<15} {p.memory:<7} "
            f"{p.remaining_burst}/{p.total_burst:<5} {p.quantum_remaining}"
            for p in snapshot.processes
        )
        return "\n".join(lines)

    def _cmd_mem(self, _args: list[str]) -> str:
        """Show the memory map."""
        with self._clock.locked():
            memory = self._clock.simulation.snapshot().memory
        lines = [
            f"Memory: {memory.used}/{memory.total} used, {memory.free} free, "
            f"fragmentation {memory.fragmentation:.1f}%",
        ]
        lines.extend(
            f"  [{start:>5}, {start + size:>5})  P{pid}" for pid, start, size in memory.used_blocks
        )
        lines.extend(f"  [{start:>5}, {start + size:>5})  free" for start, size in memory.free_blocks)
        return "\n".join(lines)

    def _cmd_queues(self, _args: list[str]) -> str:
        """Show the ready, I/O and waiting-for-memory queues."""
        with self._clock.locked():
            snapshot = self._clock.simulation.snapshot()
        return "\n".join(
            [
                f"Running: {_pid(snapshot.running)}",
                f"Ready:   {_pids(snapshot.ready_queue)}",
                f"I/O:     {_pids(snapshot.io_queue)}",
                f"Memory:  {_pids(snapshot.waiting_memory)}",
            ]
        )

    def _cmd_stats(self, _args: list[str]) -> str:
        """Show performance statistics."""
        with self._clock.locked():
            stats = self._clock.simulation.statistics()
        return "\n".join(
            [
                "=== Simulation Statistics ===",
                f"Tick:              {stats.tick}",
                f"Created:           {stats.total_created}",
                f"Completed:         {stats.completed}",
                f"Context switches:  {stats.context_switches}",
                f"Avg wait time:     {stats.avg_wait_time:.1f} ticks",
                f"Throughput:        {stats.throughput:.2f} per tick",
                f"Success rate:      {stats.success_rate:.1f}%",
                f"CPU utilisation:   {stats.cpu_utilization:.1f}%",
                f"Memory efficiency: {stats.memory_efficiency:.1f}%",
                f"Fragmentation:     {stats.fragmentation:.1f}%",
            ]
        )

    def _cmd_config(self, args: list[str]) -> str:
        """Show the configuration, or ``config <option> <value>`` to change it."""
        if not args:
            with self._clock.locked():
                options = self._clock.simulation.config.to_dict()
            return "\n".join(f"{name} = {value}" for name, value in options.items())
        if len(args) != 2:  # noqa: PLR2004
            return f"Usage: config [<option> <value>]  (options: {', '.join(option_names())})"
        name, value = args
        with self._clock.locked():
            config = self._clock.simulation.configure(**{name: value})
        return f"{name} = {getattr(config, name)}"

    def _cmd_log(self, args: list[str]) -> str:
        """Show the event log: ``log``, ``log <min-level>`` or ``log clear``."""
        logger = self._clock.simulation.logger
        if args and args[0] == "clear":
            with self._clock.locked():
                logger.clear()
            return "Log cleared."
        min_level: LogLevel | None = None
        if args:
            try:
                min_level = LogLevel[args[0].upper()]
            except KeyError:
                levels = ", ".join(level.name.lower() for level in LogLevel)
                return f"Unknown level: {args[0]} (levels: {levels})"
        with self._clock.locked():
            entries = logger.filter(min_level=min_level)
        return "\n".join(str(e) for e in entries) if entries else "No log entries."

    def _cmd_exit(self, _args: list[str]) -> str:
        """Stop the clock and signal the REPL to stop."""
        self._clock.stop()
        return self.EXIT_SENTINEL


def _pid(pid: int | None) -> str:
    return f"P{pid}" if pid is not None else "-"


def _pids(pids: tuple[int, ...]) -> str:
    return " ".join(f"P{pid}" for pid in pids) if pids else "(empty)"
