"""Flask application factory for the simulator web UI.

The ``create_app`` function returns a Flask app with three endpoints:

- ``GET /`` — render the HTML page with a sample workload.
- ``GET /api/policies`` — list the policies and the default settings.
- ``POST /api/simulate`` — run a workload and return JSON results.

Each request builds a fresh Simulation, so the app keeps no state
between requests.
"""

from __future__ import annotations

from typing import Any

from flask import Flask, Response, jsonify, render_template, request

from py_sched.config import (
    DEFAULT_MAX_TICKS,
    DEFAULT_SWITCH_IN_DELAY,
    DEFAULT_SWITCH_OUT_DELAY,
    ConfigError,
    SimulationConfig,
)
from py_sched.process.scheduler import PolicyName
from py_sched.simulation import Simulation
from py_sched.workload import WorkloadError, parse_workload

_HTTP_BAD_REQUEST = 400

SAMPLE_WORKLOAD = """\
# pid, arrival, duration, priority, bursts
1, 0, 8, 2, [(0, CPU), (3, IO), (5, CPU)]
2, 1, 4, 1, [(0, CPU)]
3, 2, 6, 3, [(0, CPU), (2, IO), (4, CPU)]
"""


def _error(message: str) -> tuple[Response, int]:
    """Return a JSON error body with status 400."""
    return jsonify({"error": message}), _HTTP_BAD_REQUEST


def create_app() -> Flask:
    """Create and configure the Flask application.

    Returns:
        A configured Flask application ready to serve.

    """
    app = Flask(__name__)

    @app.route("/")
    def index() -> str:  # pyright: ignore[reportUnusedFunction]
        """Render the simulator HTML page."""
        return render_template(
            "index.html",
            policies=[p.value for p in PolicyName],
            sample=SAMPLE_WORKLOAD,
        )

    @app.route("/api/policies")
    def policies() -> Response:  # pyright: ignore[reportUnusedFunction]
        """Return the policy names and the default settings.

        Returns:
            JSON with ``policies`` and ``defaults`` fields.

        """
        return jsonify(
            {
                "policies": [p.value for p in PolicyName],
                "defaults": {
                    "cores": 1,
                    "max_ticks": DEFAULT_MAX_TICKS,
                    "switch_in_delay": DEFAULT_SWITCH_IN_DELAY,
                    "switch_out_delay": DEFAULT_SWITCH_OUT_DELAY,
                    "interrupt_replay": True,
                },
            }
        )

    @app.route("/api/simulate", methods=["POST"])
    def simulate() -> tuple[Response, int] | Response:  # pyright: ignore[reportUnusedFunction]
        """Run a workload and return its statistics.

        Expects JSON body: ``{"workload": "...", "policy": "rr", ...}``.
        Every key other than ``workload`` is a configuration field.

        Returns:
            JSON with ``completed``, ``ticks``, ``stats``, ``gantt``
            and ``log`` fields, or ``error`` with status 400.

        """
        data = request.get_json(silent=True)
        if not isinstance(data, dict) or "workload" not in data:
            return _error("Missing 'workload' field")

        body: dict[str, Any] = dict(data)  # pyright: ignore[reportUnknownArgumentType]
        workload = body.pop("workload")
        if not isinstance(workload, str):
            return _error("'workload' must be a string")

        try:
            config = SimulationConfig.from_dict(body)
            processes = parse_workload(workload)
        except (ConfigError, WorkloadError) as e:
            return _error(str(e))

        result = Simulation(processes, config).run()
        return jsonify(
            {
                "completed": result.completed,
                "ticks": result.ticks,
                "stats": result.stats.to_dict(),
                "gantt": result.graph.render_gantt(),
                "log": [str(entry) for entry in result.logger.entries],
            }
        )

    return app


def main() -> None:
    """Run the web UI development server.

    This is the ``py-sched-web`` console entry point.
    """
    app = create_app()
    app.run(debug=True, port=8080)
