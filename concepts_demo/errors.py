"""Exception types shared by the simulator, sequencer and transport."""

from __future__ import annotations


class DemoError(Exception):
    """Base class for errors raised by this package."""


class InvalidArgument(DemoError, ValueError):
    """A size parameter was missing a positive integer value."""


class AlreadyRunning(DemoError):
    """A continuous allocation loop is already active."""


class DrainTimeout(DemoError, TimeoutError):
    """In-flight requests were still running when the drain budget expired."""

    def __init__(self, in_flight: int, timeout: float) -> None:
        super().__init__(
            f"{in_flight} request(s) still in flight after {timeout:g}s drain"
        )
        self.in_flight = in_flight
        self.timeout = timeout


__all__ = ["DemoError", "InvalidArgument", "AlreadyRunning", "DrainTimeout"]
