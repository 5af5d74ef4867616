"""Liveness/readiness flags shared by the health-check handlers and the shutdown path."""

from __future__ import annotations


class HealthState:
    """Two independent boolean flags behind explicit accessors.

    No lock is taken: a health check racing a toggle may see the pre-toggle value,
    which is the same eventual consistency a real orchestrator observes.
    """

    def __init__(self, alive: bool = True, ready: bool = True) -> None:
        self._alive = alive
        self._ready = ready

    def is_alive(self) -> bool:
        return self._alive

    def is_ready(self) -> bool:
        return self._ready

    def toggle_alive(self) -> bool:
        """Flip ``alive`` and return the new value."""
        self._alive = not self._alive
        return self._alive

    def toggle_ready(self) -> bool:
        """Flip ``ready`` and return the new value."""
        self._ready = not self._ready
        return self._ready

    def force_unready(self) -> None:
        self._ready = False

    def __repr__(self) -> str:  # pragma: no cover - debug helper
        return f"HealthState(alive={self._alive}, ready={self._ready})"
