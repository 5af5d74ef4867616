from __future__ import annotations

from concepts_demo.state.health import HealthState


def test_defaults_alive_and_ready() -> None:
    state = HealthState()
    assert state.is_alive() is True
    assert state.is_ready() is True


def test_toggle_ready_twice_restores_original() -> None:
    state = HealthState()
    assert state.toggle_ready() is False
    assert state.is_ready() is False
    assert state.toggle_ready() is True
    assert state.is_ready() is True


def test_toggle_alive_is_independent_of_ready() -> None:
    state = HealthState()
    state.toggle_alive()
    assert state.is_alive() is False
    assert state.is_ready() is True


def test_force_unready_is_idempotent() -> None:
    state = HealthState()
    state.force_unready()
    state.force_unready()
    assert state.is_ready() is False
    assert state.is_alive() is True
