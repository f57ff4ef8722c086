"""Flask application factory for the py-procsim web API.

The ``create_app`` function builds a simulation, wraps it in a clock,
subscribes a recording sink, and returns a Flask app whose JSON
endpoints let a browser front end drive and observe it:

- ``GET /api/snapshot`` — the current snapshot.
- ``POST /api/step`` — one manual tick (409 while the clock runs).
- ``POST /api/start`` / ``POST /api/stop`` — automatic clock control.
- ``POST /api/reset`` — wipe the simulation.
- ``POST /api/processes`` — create a process by hand.
- ``POST /api/processes/random`` — create a randomly sized process.
- ``GET /api/stats`` — performance statistics.
- ``GET /api/events`` — recent events from the recording sink.
- ``GET /api/log`` / ``DELETE /api/log`` — read or clear the event log.
- ``GET /api/config`` / ``PATCH /api/config`` — read or change options.
"""

from __future__ import annotations

from flask import Flask, Response, jsonify, request

from py_procsim.clock import ClockError, SimulationClock
from py_procsim.config import ConfigError, SimulationConfig
from py_procsim.events import RecordingSink
from py_procsim.logging import LogLevel
from py_procsim.simulation import Simulation, ValidationError

_HTTP_CREATED = 201
_HTTP_BAD_REQUEST = 400
_HTTP_CONFLICT = 409


def create_app(
    *,
    config: SimulationConfig | None = None,
    seed: int | None = None,
) -> Flask:
    """Create and configure the Flask application.

    Args:
        config: Simulation options (defaults if omitted).
        seed: Seed for the simulation's random source.

    Returns:
        A configured Flask application ready to serve.

    """
    simulation = Simulation(config=config, seed=seed)
    recorder = RecordingSink()
    simulation.subscribe(recorder)
    clock = SimulationClock(simulation)

    app = Flask(__name__)
    app.extensions["procsim_clock"] = clock

    def _error(message: str, status: int) -> tuple[Response, int]:
        return jsonify({"error": message}), status

    @app.route("/api/snapshot")
    def snapshot() -> Response:  # pyright: ignore[reportUnusedFunction]
        """Return the current snapshot."""
        with clock.locked():
            return jsonify(simulation.snapshot().to_dict())

    @app.route("/api/step", methods=["POST"])
    def step() -> tuple[Response, int] | Response:  # pyright: ignore[reportUnusedFunction]
        """Run one tick and return the resulting snapshot."""
        try:
            result = clock.step()
        except ClockError as e:
            return _error(str(e), _HTTP_CONFLICT)
        return jsonify(result.to_dict())

    @app.route("/api/start", methods=["POST"])
    def start() -> tuple[Response, int] | Response:  # pyright: ignore[reportUnusedFunction]
        """Start the automatic clock."""
        try:
            clock.start()
        except ClockError as e:
            return _error(str(e), _HTTP_CONFLICT)
        return jsonify({"running": True})

    @app.route("/api/stop", methods=["POST"])
    def stop() -> Response:  # pyright: ignore[reportUnusedFunction]
        """Stop the automatic clock."""
        clock.stop()
        return jsonify({"running": False, "tick": simulation.tick_count})

    @app.route("/api/reset", methods=["POST"])
    def reset() -> Response:  # pyright: ignore[reportUnusedFunction]
        """Stop the clock and wipe the simulation."""
        recorder.clear()
        clock.reset()
        with clock.locked():
            return jsonify(simulation.snapshot().to_dict())

    @app.route("/api/processes", methods=["POST"])
    def create_process() -> tuple[Response, int]:  # pyright: ignore[reportUnusedFunction]
        """Create a process from ``{"memory": int, "burst": int}``."""
        data = request.get_json(silent=True)
        if not isinstance(data, dict) or "memory" not in data or "burst" not in data:
            return _error("Missing 'memory' or 'burst' field", _HTTP_BAD_REQUEST)
        try:
            with clock.locked():
                process = simulation.create_process(memory=data["memory"], burst=data["burst"])
        except ValidationError as e:
            return _error(str(e), _HTTP_BAD_REQUEST)
        return jsonify({"pid": process.pid, "state": str(process.state)}), _HTTP_CREATED

    @app.route("/api/processes/random", methods=["POST"])
    def create_random_process() -> tuple[Response, int]:  # pyright: ignore[reportUnusedFunction]
        """Create a process with sampled memory and burst."""
        with clock.locked():
            process = simulation.spawn_random()
        body = {
            "pid": process.pid,
            "state": str(process.state),
            "memory": process.memory,
            "burst": process.total_burst,
        }
        return jsonify(body), _HTTP_CREATED

    @app.route("/api/stats")
    def stats() -> Response:  # pyright: ignore[reportUnusedFunction]
        """Return performance statistics."""
        with clock.locked():
            return jsonify(simulation.statistics().to_dict())

    @app.route("/api/events")
    def events() -> Response:  # pyright: ignore[reportUnusedFunction]
        """Return recent events, oldest first."""
        with clock.locked():
            return jsonify([e.to_dict() for e in recorder.events])

    @app.route("/api/log", methods=["GET", "DELETE"])
    def log() -> tuple[Response, int] | Response:  # pyright: ignore[reportUnusedFunction]
        """Return the event log (``?min_level=warning``), or clear it."""
        if request.method == "DELETE":
            with clock.locked():
                simulation.logger.clear()
            return jsonify({"cleared": True})
        min_level: LogLevel | None = None
        level_name = request.args.get("min_level")
        if level_name is not None:
            try:
                min_level = LogLevel[level_name.upper()]
            except KeyError:
                return _error(f"Unknown level: {level_name}", _HTTP_BAD_REQUEST)
        with clock.locked():
            entries = simulation.logger.filter(min_level=min_level)
        return jsonify(
            [
                {
                    "level": e.level.name.lower(),
                    "message": e.message,
                    "source": str(e.source),
                    "tick": e.tick,
                }
                for e in entries
            ]
        )

    @app.route("/api/config", methods=["GET", "PATCH"])
    def config_endpoint() -> tuple[Response, int] | Response:  # pyright: ignore[reportUnusedFunction]
        """Return the configuration, or apply a JSON object of changes."""
        if request.method == "GET":
            return jsonify(simulation.config.to_dict())
        data = request.get_json(silent=True)
        if not isinstance(data, dict):
            return _error("Expected a JSON object of options", _HTTP_BAD_REQUEST)
        try:
            with clock.locked():
                updated = simulation.configure(**data)
        except ConfigError as e:
            return _error(str(e), _HTTP_BAD_REQUEST)
        return jsonify(updated.to_dict())

    return app


def main() -> None:
    """Run the web API development server.

    This is the ``py-procsim-web`` console entry point.
    """
    app = create_app()
    app.run(debug=True, port=8080, use_reloader=False)
