"""Memory-pressure simulator driven by one-shot and continuous allocations."""

from __future__ import annotations

import re
import threading
from typing import Any, Optional

from concepts_demo.errors import AlreadyRunning, InvalidArgument
from concepts_demo.server.logging_setup import log_event

BLOCK_BYTES = 1_000_000
SENTINEL = 0x01
TICK_INTERVAL_S = 1.0

MemoryBlock = bytearray

_INT_RE = re.compile(r"[+-]?[0-9]+")


def new_block(size: int = BLOCK_BYTES) -> MemoryBlock:
    """Return a ``size``-byte buffer with every byte set to the sentinel.

    Writing every byte commits physical pages instead of relying on a
    lazily mapped zero-filled allocation.
    """

    return bytearray(bytes((SENTINEL,)) * size)


def parse_megabytes(raw: Any) -> int:
    """Return ``raw`` as a positive int or raise :class:`InvalidArgument`."""

    if isinstance(raw, bool):
        raise InvalidArgument(f"invalid size: {raw!r}")
    if isinstance(raw, int):
        value = raw
    else:
        text = "" if raw is None else str(raw).strip()
        # ASCII digits only: no underscores, no non-Latin numerals
        if not _INT_RE.fullmatch(text):
            raise InvalidArgument(f"invalid size: {raw!r}")
        value = int(text)
    if value <= 0:
        raise InvalidArgument(f"size must be > 0, got {value}")
    return value


class ResourcePressureSimulator:
    """Grow a collection of fixed-size blocks on demand or on a timer.

    ``blocks`` and ``running`` are only touched under ``_lock``. At most one
    continuous loop is active; a second start is rejected, not queued.
    """

    def __init__(
        self,
        *,
        block_bytes: int = BLOCK_BYTES,
        tick_interval_s: float = TICK_INTERVAL_S,
    ) -> None:
        self.block_bytes = int(block_bytes)
        self.tick_interval_s = float(tick_interval_s)
        self._lock = threading.Lock()
        self._blocks: list[MemoryBlock] = []
        self._running = False
        self._stop: Optional[threading.Event] = None
        self._thread: Optional[threading.Thread] = None

    # ------------------------------------------------------------------
    def _append_locked(self, count: int) -> int:
        for _ in range(count):
            self._blocks.append(new_block(self.block_bytes))
        return len(self._blocks)

    def one_shot_allocate(self, megabytes: Any) -> int:
        """Append ``megabytes`` blocks synchronously and return the new total."""

        count = parse_megabytes(megabytes)
        with self._lock:
            total = self._append_locked(count)
        log_event("hog.one_shot", "info", mb=count, total_chunks=total)
        return total

    def start_continuous(self, megabytes: Any) -> None:
        """Start the background loop adding ``megabytes`` blocks per tick.

        Raises :class:`InvalidArgument` for a bad size and
        :class:`AlreadyRunning` when a loop is active; neither mutates state.
        """

        count = parse_megabytes(megabytes)
        with self._lock:
            if self._running:
                raise AlreadyRunning("continuous allocation already active")
            stop = threading.Event()
            self._stop = stop
            self._running = True
            self._thread = threading.Thread(
                target=self._run,
                args=(count, stop),
                name="hog-loop",
                daemon=True,
            )
            self._thread.start()
        log_event(
            "hog.start", "info", mb_per_tick=count, interval_s=self.tick_interval_s
        )

    def _run(self, count: int, stop: threading.Event) -> None:
        while not stop.wait(self.tick_interval_s):
            with self._lock:
                total = self._append_locked(count)
            log_event("hog.tick", "info", mb=count, total_chunks=total)
        with self._lock:
            self._running = False
        log_event("hog.stopped", "info")

    def stop_continuous(self) -> bool:
        """Signal the loop to stop; return ``False`` when nothing was running.

        Does not wait for the loop to exit. The token is triggered at most
        once per loop.
        """

        with self._lock:
            stop = self._stop
            if not self._running or stop is None or stop.is_set():
                return False
            stop.set()
        log_event("hog.stop_requested", "info")
        return True

    def reset(self) -> None:
        """Drop every block. A running loop keeps appending on its next tick."""

        with self._lock:
            self._blocks = []
        log_event("hog.reset", "info")

    def current_block_count(self) -> int:
        with self._lock:
            return len(self._blocks)

    @property
    def running(self) -> bool:
        with self._lock:
            return self._running

    def join(self, timeout: float | None = None) -> None:
        """Wait up to ``timeout`` for the most recent loop thread to exit."""

        thread = self._thread
        if thread is not None:
            thread.join(timeout)
