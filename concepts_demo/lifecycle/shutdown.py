"""Graceful-shutdown sequencing triggered by a termination signal.

Phases run in order, once per process::

    IDLE -> SIGNAL_RECEIVED -> [MARKING_UNREADY] -> DELAYING -> DRAINING -> EXITED

A negative delay replaces ``DELAYING`` with ``STUCK``: the sequencer parks
forever while the transport keeps answering health checks, so an orchestrator's
force-kill timeout can be observed.
"""

from __future__ import annotations

import signal
import sys
import threading
import time
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Iterable, Optional, Protocol

from concepts_demo.errors import DrainTimeout
from concepts_demo.server.logging_setup import log_event
from concepts_demo.state.health import HealthState

NEVER = -1
DRAIN_TIMEOUT_S = 10.0

_SIGNAL_NAMES = {
    signal.SIGTERM: "SIGTERM",
    signal.SIGKILL: "SIGKILL",
    signal.SIGINT: "SIGINT",
    signal.SIGQUIT: "SIGQUIT",
}


def describe_signal(signum: Optional[int]) -> str:
    """Translate a signal number to its conventional name."""
    if signum is None:
        return "unknown"
    return _SIGNAL_NAMES.get(signum, "unknown")


@dataclass(frozen=True)
class ShutdownConfig:
    """Shutdown policy fixed at process start."""

    mark_unready_on_shutdown: bool = True
    delay_seconds: int = 3

    def __post_init__(self) -> None:
        if self.delay_seconds < NEVER:
            raise ValueError("delay_seconds must be >= 0 or -1 (never)")

    @property
    def never_exits(self) -> bool:
        return self.delay_seconds == NEVER


class Phase(str, Enum):
    IDLE = "idle"
    SIGNAL_RECEIVED = "signal_received"
    MARKING_UNREADY = "marking_unready"
    DELAYING = "delaying"
    STUCK = "stuck"
    DRAINING = "draining"
    EXITED = "exited"


class Transport(Protocol):
    def drain(self, timeout: float) -> None:
        """Stop accepting work and finish in-flight requests within ``timeout``.

        Raises :class:`DrainTimeout` when the budget runs out first.
        """


class ShutdownSequencer:
    """Run the shutdown phases exactly once after the first termination request."""

    def __init__(
        self,
        health: HealthState,
        transport: Transport,
        config: ShutdownConfig,
        *,
        drain_timeout_s: float = DRAIN_TIMEOUT_S,
        sleep: Callable[[float], None] = time.sleep,
        exit_fn: Callable[[int], None] = sys.exit,
    ) -> None:
        self._health = health
        self._transport = transport
        self._config = config
        self._drain_timeout_s = float(drain_timeout_s)
        self._sleep = sleep
        self._exit = exit_fn
        # reentrant: the signal handler runs on the main thread
        self._lock = threading.RLock()
        self._phase = Phase.IDLE
        self._terminate = threading.Event()
        self._signum: Optional[int] = None
        self._started = False
        self.drain_error: Optional[DrainTimeout] = None

    @property
    def phase(self) -> Phase:
        return self._phase

    @property
    def signum(self) -> Optional[int]:
        return self._signum

    def _enter(self, phase: Phase, **fields: object) -> None:
        self._phase = phase
        log_event("shutdown.phase", "info", phase=phase.value, **fields)

    # ------------------------------------------------------------------
    def request_termination(self, signum: Optional[int] = None) -> bool:
        """Record the first termination request; later ones are only logged."""

        with self._lock:
            if self._terminate.is_set():
                first = False
            else:
                self._signum = signum
                self._terminate.set()
                first = True
        if not first:
            log_event(
                "shutdown.signal_ignored",
                "warning",
                signum=signum,
                name=describe_signal(signum),
            )
        return first

    def wait_for_termination(self, timeout: Optional[float] = None) -> bool:
        """Block until a termination request arrives; ``False`` on timeout."""
        return self._terminate.wait(timeout)

    def install_signal_handlers(
        self, signals: Iterable[int] = (signal.SIGINT, signal.SIGTERM)
    ) -> None:
        def _handler(signum, _frame):
            self.request_termination(signum)

        for sig in signals:
            try:
                signal.signal(sig, _handler)
            except (ValueError, OSError) as exc:
                log_event(
                    "shutdown.handler_failed",
                    "warning",
                    signum=int(sig),
                    error=str(exc),
                )

    # ------------------------------------------------------------------
    def run(self) -> None:
        """Execute the shutdown phases; a second call raises ``RuntimeError``."""

        with self._lock:
            if self._started:
                raise RuntimeError("shutdown sequence already started")
            self._started = True

        signum = self._signum
        self._enter(Phase.SIGNAL_RECEIVED, signum=signum, name=describe_signal(signum))

        if self._config.mark_unready_on_shutdown:
            self._enter(Phase.MARKING_UNREADY)
            self._health.force_unready()

        if self._config.never_exits:
            self._park_forever()
            return  # pragma: no cover - unreachable

        self._enter(Phase.DELAYING, delay_s=self._config.delay_seconds)
        if self._config.delay_seconds > 0:
            self._sleep(self._config.delay_seconds)

        self._enter(Phase.DRAINING, timeout_s=self._drain_timeout_s)
        try:
            self._transport.drain(self._drain_timeout_s)
        except DrainTimeout as exc:
            self.drain_error = exc
            log_event(
                "shutdown.drain_timeout",
                "warning",
                in_flight=exc.in_flight,
                timeout_s=exc.timeout,
            )

        self._enter(Phase.EXITED)
        self._exit(0)

    def _park_forever(self) -> None:
        self._enter(Phase.STUCK, delay_s=self._config.delay_seconds)
        threading.Event().wait()
