"""Tests for the web API.

The API exposes the simulation through JSON endpoints.  Tests use
``pytest.importorskip`` so they are skipped gracefully when Flask is
not installed.
"""

from __future__ import annotations

from typing import Any

import pytest

flask = pytest.importorskip("flask")

from py_procsim.config import SimulationConfig  # noqa: E402
from py_procsim.web.app import create_app  # noqa: E402

HTTP_OK = 200
HTTP_CREATED = 201
HTTP_BAD_REQUEST = 400
HTTP_CONFLICT = 409


def _create_client() -> Any:
    """Create a test client around a quiet simulation."""
    config = SimulationConfig(
        total_memory=100,
        new_process_probability=0.0,
        io_probability=0.0,
        min_memory=1,
        max_memory=100,
        tick_interval_ms=1000,
    )
    app = create_app(config=config, seed=0)
    app.config["TESTING"] = True
    return app.test_client()


class TestAppCreation:
    """Verify the app factory."""

    def test_create_app_returns_flask(self) -> None:
        """create_app should return a Flask application."""
        assert isinstance(create_app(), flask.Flask)

    def test_initial_snapshot(self) -> None:
        """A new simulation is at tick 0 with all memory free."""
        data = _create_client().get("/api/snapshot").get_json()
        assert data["tick"] == 0
        assert data["memory"]["free_blocks"] == [[0, 100]]
        assert data["queues"] == {"ready": 0, "blocked": 0, "waiting_memory": 0}


class TestProcesses:
    """Verify process creation endpoints."""

    def test_create_process(self) -> None:
        """A valid request returns 201 with the PID and state."""
        response = _create_client().post("/api/processes", json={"memory": 40, "burst": 5})
        assert response.status_code == HTTP_CREATED
        assert response.get_json() == {"pid": 1, "state": "ready"}

    def test_missing_field(self) -> None:
        """Missing fields are a bad request."""
        response = _create_client().post("/api/processes", json={"memory": 40})
        assert response.status_code == HTTP_BAD_REQUEST

    def test_out_of_bounds(self) -> None:
        """Out-of-range values are a bad request and create nothing."""
        client = _create_client()
        response = client.post("/api/processes", json={"memory": 500, "burst": 5})
        assert response.status_code == HTTP_BAD_REQUEST
        assert "memory requirement" in response.get_json()["error"]
        assert client.get("/api/snapshot").get_json()["processes"] == []

    def test_random_process(self) -> None:
        """A random process is created within bounds."""
        response = _create_client().post("/api/processes/random")
        assert response.status_code == HTTP_CREATED
        data = response.get_json()
        assert data["pid"] == 1
        assert 1 <= data["memory"] <= 100  # noqa: PLR2004


class TestClockControl:
    """Verify step, start, stop and reset."""

    def test_step(self) -> None:
        """A step returns the next snapshot."""
        client = _create_client()
        client.post("/api/processes", json={"memory": 40, "burst": 5})
        data = client.post("/api/step").get_json()
        assert data["tick"] == 1
        assert data["running"] == 1

    def test_step_while_running_conflicts(self) -> None:
        """Manual steps are refused while the clock runs."""
        client = _create_client()
        assert client.post("/api/start").get_json() == {"running": True}
        try:
            assert client.post("/api/step").status_code == HTTP_CONFLICT
            assert client.post("/api/start").status_code == HTTP_CONFLICT
        finally:
            data = client.post("/api/stop").get_json()
        assert data["running"] is False

    def test_reset(self) -> None:
        """Reset returns an empty tick-0 snapshot; only the reset event remains."""
        client = _create_client()
        client.post("/api/processes", json={"memory": 40, "burst": 5})
        client.post("/api/step")
        data = client.post("/api/reset").get_json()
        assert data["tick"] == 0
        assert data["processes"] == []
        assert [e["kind"] for e in client.get("/api/events").get_json()] == ["reset"]


class TestObservation:
    """Verify stats, events, log and config endpoints."""

    def test_stats(self) -> None:
        """Stats reflect completed work."""
        client = _create_client()
        client.post("/api/processes", json={"memory": 40, "burst": 1})
        client.post("/api/step")
        data = client.get("/api/stats").get_json()
        assert data["completed"] == 1
        assert data["total_created"] == 1

    def test_events(self) -> None:
        """Events are reported oldest first with lowercase levels."""
        client = _create_client()
        client.post("/api/processes", json={"memory": 40, "burst": 5})
        events = client.get("/api/events").get_json()
        assert [e["kind"] for e in events] == ["spawned", "admitted"]
        assert events[1]["level"] == "success"

    def test_log_filter_and_clear(self) -> None:
        """The log can be filtered by level and cleared."""
        client = _create_client()
        client.post("/api/processes", json={"memory": 90, "burst": 5})
        client.post("/api/processes", json={"memory": 20, "burst": 5})
        warnings = client.get("/api/log?min_level=warning").get_json()
        assert [e["source"] for e in warnings] == ["waiting_memory"]
        assert client.get("/api/log?min_level=loud").status_code == HTTP_BAD_REQUEST
        assert client.delete("/api/log").get_json() == {"cleared": True}
        assert client.get("/api/log").get_json() == []

    def test_config(self) -> None:
        """Config can be read and patched."""
        client = _create_client()
        assert client.get("/api/config").get_json()["time_quantum"] == 3  # noqa: PLR2004
        response = client.patch("/api/config", json={"time_quantum": 5})
        assert response.status_code == HTTP_OK
        assert response.get_json()["time_quantum"] == 5  # noqa: PLR2004

    def test_empty_patch_changes_nothing(self) -> None:
        """An empty object is accepted and logs nothing."""
        client = _create_client()
        response = client.patch("/api/config", json={})
        assert response.status_code == HTTP_OK
        assert response.get_json()["time_quantum"] == 3  # noqa: PLR2004
        assert client.get("/api/log").get_json() == []

    def test_oversized_max_memory(self) -> None:
        """max_memory above total_memory is a bad request."""
        client = _create_client()
        response = client.patch("/api/config", json={"max_memory": 500})
        assert response.status_code == HTTP_BAD_REQUEST
        assert "total_memory" in response.get_json()["error"]

    def test_bad_config(self) -> None:
        """Invalid values and non-object bodies are rejected."""
        client = _create_client()
        assert client.patch("/api/config", json={"time_quantum": 0}).status_code == HTTP_BAD_REQUEST
        assert client.patch("/api/config", json=[1, 2]).status_code == HTTP_BAD_REQUEST
