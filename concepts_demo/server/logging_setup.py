"""Utilities for configuring consistent structured logging."""

from __future__ import annotations

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Any

_LOG = logging.getLogger(__name__)

_RESERVED_ATTRS = {
    "name",
    "msg",
    "args",
    "levelname",
    "levelno",
    "pathname",
    "filename",
    "module",
    "exc_info",
    "exc_text",
    "stack_info",
    "lineno",
    "funcName",
    "created",
    "msecs",
    "relativeCreated",
    "thread",
    "threadName",
    "processName",
    "process",
    "message",
    "asctime",
    "taskName",
}

# Third-party loggers routed through the root handler at a quieter level.
_QUIET_LOGGERS = ("werkzeug", "flask")


def _iso_now() -> str:
    """Return an ISO-8601 timestamp for the current moment."""

    return datetime.now(timezone.utc).astimezone().isoformat(timespec="seconds")


def _q(value: Any) -> str:
    """Return a logfmt-safe representation of ``value``."""

    if value is None:
        return "null"
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (int, float)):
        return f"{value}"
    escaped = str(value).replace("\\", "\\\\").replace("\n", "\\n").replace('"', '\\"')
    if " " in escaped or "=" in escaped or escaped == "":
        return f'"{escaped}"'
    return escaped


def _collect_extra(record: logging.LogRecord) -> dict[str, Any]:
    """Collect custom fields from a :class:`logging.LogRecord`."""

    extra: dict[str, Any] = {}
    record_extra = getattr(record, "extra", None)
    if isinstance(record_extra, dict):
        extra.update(record_extra)
    for key, value in record.__dict__.items():
        if key in _RESERVED_ATTRS or key in {"extra", "ts", "tag"}:
            continue
        extra.setdefault(key, value)
    return extra


class LogfmtFormatter(logging.Formatter):
    """Format log records using a minimal logfmt schema."""

    def format(self, record: logging.LogRecord) -> str:  # noqa: D401 - standard logging override
        ts = getattr(record, "ts", None) or _iso_now()
        tag = getattr(record, "tag", None) or record.name
        parts = [f"ts={ts}", f"lvl={record.levelname.lower()}", f"tag={_q(tag)}"]
        for key, value in _collect_extra(record).items():
            parts.append(f"{key}={_q(value)}")
        # Structured events already carry their fields; plain records keep the text.
        if getattr(record, "tag", None) is None:
            msg = record.getMessage()
            if msg:
                parts.append(f"msg={_q(msg)}")
        if record.exc_info:
            parts.append(f"exc={_q(self.formatException(record.exc_info))}")
        return " ".join(parts)


class JsonFormatter(logging.Formatter):
    """Format log records as JSON payloads."""

    def format(self, record: logging.LogRecord) -> str:  # noqa: D401 - standard logging override
        payload: dict[str, Any] = {
            "ts": getattr(record, "ts", None) or _iso_now(),
            "level": record.levelname.lower(),
            "tag": getattr(record, "tag", None) or record.name,
            "msg": record.getMessage() or "",
        }
        payload.update(_collect_extra(record))
        if record.exc_info:
            payload["exc"] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=False, default=str)


def setup_root_logger(level: str = "INFO", fmt: str = "logfmt") -> None:
    """Configure the root logger with a single stdout handler."""

    level_name = str(level or "INFO").upper()
    level_value = getattr(logging, level_name, None)
    if not isinstance(level_value, int):
        level_value = logging.INFO

    fmt = str(fmt or "logfmt").lower()
    root = logging.getLogger()
    root.setLevel(level_value)

    for handler in list(root.handlers):
        root.removeHandler(handler)

    handler = logging.StreamHandler(sys.stdout)
    if fmt == "json":
        handler.setFormatter(JsonFormatter())
    else:
        handler.setFormatter(LogfmtFormatter())
    root.addHandler(handler)

    for noisy in _QUIET_LOGGERS:
        lg = logging.getLogger(noisy)
        lg.handlers.clear()
        lg.propagate = True
        lg.setLevel(logging.WARNING)

    _LOG.info("logging.init", extra={"extra": {"level": level_name, "format": fmt}})


def log_event(tag: str, level: str = "info", **fields: Any) -> None:
    """Emit a structured log line with ``tag`` and arbitrary ``fields``."""

    logger = logging.getLogger(tag)
    msg = " ".join(f"{key}={_q(value)}" for key, value in fields.items()) if fields else tag
    record_extra = {"extra": fields, "ts": _iso_now(), "tag": tag}
    log_fn = getattr(logger, level.lower(), None)
    if not callable(log_fn):
        log_fn = logger.info
    log_fn(msg, extra=record_extra)
