"""Threaded WSGI transport with in-flight tracking and bounded drain."""

from __future__ import annotations

import threading
import time
from typing import Any, Callable, Iterable, Optional

from werkzeug.serving import BaseWSGIServer, make_server
from werkzeug.wsgi import ClosingIterator

from concepts_demo.errors import DrainTimeout
from concepts_demo.server.logging_setup import log_event


class InFlightTracker:
    """WSGI middleware counting requests whose response is not yet closed."""

    def __init__(self, app: Callable[..., Iterable[bytes]]) -> None:
        self.app = app
        self._cond = threading.Condition()
        self._active = 0

    @property
    def active(self) -> int:
        with self._cond:
            return self._active

    def _finished(self) -> None:
        with self._cond:
            self._active -= 1
            if self._active == 0:
                self._cond.notify_all()

    def __call__(self, environ: dict[str, Any], start_response: Callable[..., Any]):
        with self._cond:
            self._active += 1
        try:
            body = self.app(environ, start_response)
        except BaseException:
            self._finished()
            raise
        return ClosingIterator(body, [self._finished])

    def wait_idle(self, timeout: Optional[float]) -> bool:
        """Block until no request is in flight; ``False`` if ``timeout`` ran out."""
        with self._cond:
            return self._cond.wait_for(lambda: self._active == 0, timeout)


class ServerTransport:
    """Serve a WSGI app on a background thread and drain it on request."""

    def __init__(
        self,
        app: Callable[..., Iterable[bytes]],
        host: str = "0.0.0.0",
        port: int = 3000,
    ) -> None:
        self.host = host
        self.port = int(port)
        self.tracker = InFlightTracker(app)
        self._server: Optional[BaseWSGIServer] = None
        self._thread: Optional[threading.Thread] = None
        self._closed = False

    @property
    def bound_port(self) -> int:
        if self._server is None:
            return self.port
        return int(self._server.socket.getsockname()[1])

    def start(self) -> None:
        """Bind the listening socket and serve on a daemon thread.

        Bind failures propagate to the caller.
        """
        if self._server is not None:
            raise RuntimeError("transport already started")
        self._server = make_server(self.host, self.port, self.tracker, threaded=True)
        self._thread = threading.Thread(
            target=self._server.serve_forever,
            name="http-server",
            daemon=True,
        )
        self._thread.start()
        log_event("server.listening", "info", host=self.host, port=self.bound_port)

    def drain(self, timeout: float) -> None:
        """Stop accepting connections and let in-flight requests finish.

        Raises :class:`DrainTimeout` if requests are still running once
        ``timeout`` seconds have passed. The socket is closed either way.
        """
        deadline = time.monotonic() + max(0.0, float(timeout))
        server = self._server
        if server is None or self._closed:
            return
        self._closed = True
        server.shutdown()
        remaining = max(0.0, deadline - time.monotonic())
        idle = self.tracker.wait_idle(remaining)
        server.server_close()
        if not idle:
            raise DrainTimeout(self.tracker.active, float(timeout))
        log_event("server.drained", "info")
