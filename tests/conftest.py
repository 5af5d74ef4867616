"""Global pytest fixtures and environment configuration."""

from __future__ import annotations

import os
import time
from typing import Callable

import pytest

from concepts_demo.server.app import create_app
from concepts_demo.state.health import HealthState
from concepts_demo.state.pressure import ResourcePressureSimulator

# Keep settings resolution independent of the developer's shell.
for _name in (
    "APP_NAME",
    "SHUTDOWN_DELAY",
    "UNREADY_ON_SHUTDOWN",
    "HOST",
    "PORT",
    "HEALTH_HOST",
    "HEALTH_PORT",
):
    os.environ.pop(_name, None)
os.environ.setdefault("LOG_FORMAT", "logfmt")

# Small blocks and fast ticks keep the background-loop tests quick.
TEST_BLOCK_BYTES = 64
TEST_TICK_S = 0.05


def wait_until(predicate: Callable[[], bool], timeout: float = 2.0) -> bool:
    """Poll ``predicate`` until it is true or ``timeout`` elapses."""

    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(0.01)
    return predicate()


@pytest.fixture
def health() -> HealthState:
    return HealthState()


@pytest.fixture
def simulator():
    sim = ResourcePressureSimulator(block_bytes=TEST_BLOCK_BYTES, tick_interval_s=TEST_TICK_S)
    yield sim
    sim.stop_continuous()
    sim.join(1.0)


@pytest.fixture
def client(health: HealthState, simulator: ResourcePressureSimulator):
    app = create_app(health, simulator, app_name="demo", hostname="web-1")
    return app.test_client()
