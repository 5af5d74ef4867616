# concepts_demo/server/app.py
# Health-check, toggle and memory-hog endpoints.

from __future__ import annotations

import logging
import socket

from flask import Flask, Response, request

from concepts_demo.errors import AlreadyRunning, InvalidArgument
from concepts_demo.state.health import HealthState
from concepts_demo.state.pressure import ResourcePressureSimulator, parse_megabytes

log = logging.getLogger(__name__)

DEFAULT_START_HOG_MB = "5"
DEFAULT_ONE_SHOT_MB = "10"
_INVALID_MB = "Invalid mb parameter. Must be > 0.\n"


def _text(body: str, status: int = 200) -> Response:
    return Response(body, status=status, mimetype="text/plain")


def create_app(
    health: HealthState,
    simulator: ResourcePressureSimulator,
    *,
    app_name: str = "container-concepts-demo",
    hostname: str | None = None,
) -> Flask:
    """Build the Flask app bound to ``health`` and ``simulator``."""

    app = Flask(__name__)
    pod = hostname or socket.gethostname()

    @app.route("/healthz", methods=["GET"])
    def healthz() -> Response:
        """Liveness check."""
        log.info("Request to /healthz from %s", request.remote_addr)
        if health.is_alive():
            return _text("ALIVE\n", 200)
        return _text("NOT ALIVE\n", 500)

    @app.route("/ready", methods=["GET"])
    def ready() -> Response:
        """Readiness check."""
        log.info("Request to /ready from %s", request.remote_addr)
        if health.is_ready():
            return _text("READY\n", 200)
        return _text("NOT READY\n", 503)

    @app.route("/toggle-alive", methods=["GET", "POST"])
    def toggle_alive() -> Response:
        alive = health.toggle_alive()
        log.info("Toggled isAlive to %s", alive)
        return _text(f"Liveness is now: {alive} for Pod {pod}\n")

    @app.route("/toggle-ready", methods=["GET", "POST"])
    def toggle_ready() -> Response:
        ready_now = health.toggle_ready()
        log.info("Toggled isReady to %s", ready_now)
        return _text(f"Readiness is now: {ready_now} for Pod {pod}\n")

    @app.route("/start-hog", methods=["GET", "POST"])
    def start_hog() -> Response:
        raw = request.args.get("mb") or DEFAULT_START_HOG_MB
        try:
            mb = parse_megabytes(raw)
            simulator.start_continuous(mb)
        except InvalidArgument:
            return _text(_INVALID_MB, 400)
        except AlreadyRunning:
            return _text(
                f"Already hogging memory on pod {pod}. Stop first or keep going.\n"
            )
        return _text(f"Started allocating {mb} MiB per second on pod {pod}.\n")

    @app.route("/stop-hog", methods=["GET", "POST"])
    def stop_hog() -> Response:
        if simulator.stop_continuous():
            return _text(f"Stopped hogging memory on pod {pod}.\n")
        return _text(f"Not currently hogging on pod {pod}.\n")

    @app.route("/reset-hog", methods=["GET", "POST"])
    def reset_hog() -> Response:
        simulator.reset()
        return _text(f"Memory allocations reset on pod {pod}. (Chunks cleared.)\n")

    @app.route("/hog", methods=["GET", "POST"])
    def one_shot_hog() -> Response:
        raw = request.args.get("mb") or DEFAULT_ONE_SHOT_MB
        try:
            mb = parse_megabytes(raw)
            total = simulator.one_shot_allocate(mb)
        except InvalidArgument:
            return _text(_INVALID_MB, 400)
        return _text(
            f"Allocated {mb} MiB in one shot on pod {pod}. Total chunks: {total}\n"
        )

    @app.route("/", methods=["GET"])
    def root() -> Response:
        log.info("Request to / from %s", request.remote_addr)
        return _text(f"Hello from {app_name} on Pod {pod}\n")

    return app
