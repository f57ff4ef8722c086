"""Interactive REPL (Read-Eval-Print Loop) for the simulation.

The REPL builds a simulation with default options, wraps it in a clock
and a shell, then reads commands until ``exit`` or end of input.  The
prompt shows the current tick and whether the automatic clock is
running, so the user can see the simulation move between commands.

The helpers (``build_prompt``, ``format_banner``) are pure and testable.
The ``run()`` function is the I/O entrypoint.
"""

import readline

from py_procsim.clock import SimulationClock
from py_procsim.shell import Shell
from py_procsim.simulation import Simulation

_BANNER_WIDTH = 44


def format_banner(simulation: Simulation) -> str:
    """Return the start-up banner for *simulation*."""
    border = "=" * _BANNER_WIDTH
    cfg = simulation.config
    return (
        f"\n  {border}\n"
        f"      py-procsim: CPU and memory simulator\n"
        f"  {border}\n\n"
        f"  memory={cfg.total_memory}  quantum={cfg.time_quantum}  "
        f"tick={cfg.tick_interval_ms}ms\n"
        "\nType 'help' for commands, 'exit' to quit.\n"
    )


def build_prompt(clock: SimulationClock) -> str:
    """Return a prompt showing the tick and whether the clock runs."""
    marker = "▶" if clock.running else "⏸"
    return f"procsim[t={clock.simulation.tick_count}] {marker} $ "


def run() -> None:
    """Run the interactive REPL.

    Handles Ctrl+C and Ctrl+D gracefully and always stops the clock.
    """
    simulation = Simulation()
    clock = SimulationClock(simulation)
    shell = Shell(clock=clock)

    def complete(text: str, state: int) -> str | None:
        matches = [name for name in shell.commands if name.startswith(text)]
        return matches[state] if state < len(matches) else None

    readline.set_completer(complete)
    readline.parse_and_bind("tab: complete")

    print(format_banner(simulation))  # noqa: T201

    try:
        while True:
            try:
                command = input(build_prompt(clock))
            except EOFError:
                # Ctrl+D
                print()  # noqa: T201
                break

            result = shell.execute(command)
            if result == Shell.EXIT_SENTINEL:
                break
            if result:
                print(result)  # noqa: T201

    except KeyboardInterrupt:
        # Ctrl+C
        print("\nInterrupted.")  # noqa: T201

    finally:
        clock.stop()
        print("Simulation stopped.")  # noqa: T201
