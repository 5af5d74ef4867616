# Path: concepts_demo/main.py
from __future__ import annotations

import logging
import sys
from typing import Optional

from dotenv import find_dotenv, load_dotenv

from concepts_demo.config import AppSettings, load_settings
from concepts_demo.lifecycle.shutdown import ShutdownSequencer
from concepts_demo.server.app import create_app
from concepts_demo.server.logging_setup import log_event, setup_root_logger
from concepts_demo.server.transport import ServerTransport
from concepts_demo.state.health import HealthState
from concepts_demo.state.pressure import ResourcePressureSimulator


def _load_env_file() -> Optional[str]:
    """Load a ``.env`` found from the working directory without overriding."""
    found = find_dotenv(usecwd=True)
    if found:
        load_dotenv(found, override=False)
    return found or None


def _log_banner(cfg: AppSettings, host: str, port: int) -> None:
    log_event(
        "app.boot",
        "info",
        app_name=cfg.app_name,
        hostname=cfg.hostname,
        shutdown_delay=cfg.shutdown_delay,
        unready_on_shutdown=cfg.unready_on_shutdown,
        bind=f"{host}:{port}",
    )


def build(
    cfg: AppSettings,
) -> tuple[HealthState, ResourcePressureSimulator, ServerTransport, ShutdownSequencer]:
    """Wire the components for ``cfg`` without starting anything."""
    health = HealthState()
    simulator = ResourcePressureSimulator(
        block_bytes=cfg.hog.block_bytes,
        tick_interval_s=cfg.hog.tick_interval_s,
    )
    app = create_app(health, simulator, app_name=cfg.app_name, hostname=cfg.hostname)
    host, port = cfg.bind_address
    transport = ServerTransport(app, host=host, port=port)
    sequencer = ShutdownSequencer(
        health,
        transport,
        cfg.shutdown_config(),
        drain_timeout_s=cfg.server.drain_timeout_s,
    )
    return health, simulator, transport, sequencer


def main() -> int:
    env_file = _load_env_file()
    cfg = load_settings()
    setup_root_logger(cfg.log_level, cfg.log_format)
    log_event("app.envfile", "info", path=env_file or "not-found")
    logging.getLogger("config").info("settings snapshot: %s", cfg.model_dump())

    _health, _simulator, transport, sequencer = build(cfg)
    _log_banner(cfg, transport.host, transport.port)

    # handlers first: a SIGTERM during bind must not kill the process outright
    sequencer.install_signal_handlers()
    try:
        transport.start()
    except (OSError, SystemExit) as exc:
        # werkzeug exits instead of raising when the address is taken
        logging.getLogger("main").error(
            "Failed to bind %s:%s: %s", transport.host, transport.port, exc
        )
        return 1

    sequencer.wait_for_termination()
    sequencer.run()
    return 0


if __name__ == "__main__":
    try:
        sys.exit(main())
    except Exception as e:
        logging.getLogger("main").exception("Fatal error in main: %s", e)
        sys.exit(1)
