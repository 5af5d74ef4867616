"""Runtime configuration resolved once from the process environment.

- Flat top-level fields keep the historical env names (APP_NAME, SHUTDOWN_DELAY,
  UNREADY_ON_SHUTDOWN) working unchanged.
- Malformed values fall back to documented defaults instead of failing startup.
- Nested groups (``SERVER__*``, ``HOG__*``) cover the transport and the
  memory-pressure simulator. Flat ``HOST``/``PORT`` override the bind address;
  a malformed ``PORT`` falls back to ``SERVER__PORT``.
"""

from __future__ import annotations

import socket
from typing import Any, Literal

from pydantic import AliasChoices, BaseModel, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from concepts_demo.lifecycle.shutdown import NEVER, ShutdownConfig
from concepts_demo.utils.env import parse_flag, parse_int

DEFAULT_APP_NAME = "container-concepts-demo"
DEFAULT_SHUTDOWN_DELAY = 3
DEFAULT_UNREADY_ON_SHUTDOWN = True


class ServerSettings(BaseModel):
    host: str = Field("0.0.0.0", description="Bind address for the HTTP server.")
    port: int = Field(3000, description="Port used by the HTTP server.")
    drain_timeout_s: float = Field(
        10.0,
        description="Budget for in-flight requests to finish during shutdown.",
    )

    @field_validator("drain_timeout_s")
    @classmethod
    def _v_drain(cls, v: float) -> float:
        if v < 0:
            raise ValueError("drain_timeout_s must be >= 0")
        return float(v)


class HogSettings(BaseModel):
    block_bytes: int = 1_000_000
    tick_interval_s: float = 1.0

    @field_validator("block_bytes")
    @classmethod
    def _v_block(cls, v: int) -> int:
        if v <= 0:
            raise ValueError("block_bytes must be > 0")
        return int(v)

    @field_validator("tick_interval_s")
    @classmethod
    def _v_tick(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("tick_interval_s must be > 0")
        return float(v)


class AppSettings(BaseSettings):
    app_name: str = Field(
        DEFAULT_APP_NAME, validation_alias=AliasChoices("APP_NAME", "app_name")
    )
    # -1 (or any negative value) simulates a pod that never finishes shutdown.
    shutdown_delay: int = Field(
        DEFAULT_SHUTDOWN_DELAY,
        validation_alias=AliasChoices("SHUTDOWN_DELAY", "shutdown_delay"),
    )
    unready_on_shutdown: bool = Field(
        DEFAULT_UNREADY_ON_SHUTDOWN,
        validation_alias=AliasChoices("UNREADY_ON_SHUTDOWN", "unready_on_shutdown"),
    )
    log_level: str = Field("INFO", validation_alias=AliasChoices("LOG_LEVEL"))
    log_format: Literal["logfmt", "json"] = Field(
        "logfmt",
        validation_alias=AliasChoices("LOG_FORMAT"),
        description="Output format for structured logs.",
    )

    # Flat bind overrides; win over SERVER__HOST / SERVER__PORT when set.
    bind_host: str | None = Field(
        None, validation_alias=AliasChoices("HOST", "HEALTH_HOST", "bind_host")
    )
    bind_port: int | None = Field(
        None, validation_alias=AliasChoices("PORT", "HEALTH_PORT", "bind_port")
    )

    server: ServerSettings = Field(default_factory=ServerSettings)
    hog: HogSettings = Field(default_factory=HogSettings)

    # ---- lenient parsing of the legacy flat variables ----
    @field_validator("app_name", mode="before")
    @classmethod
    def _v_app_name(cls, v: Any) -> str:
        text = str(v).strip() if v is not None else ""
        return text or DEFAULT_APP_NAME

    @field_validator("shutdown_delay", mode="before")
    @classmethod
    def _v_delay(cls, v: Any) -> int:
        delay = parse_int(v, DEFAULT_SHUTDOWN_DELAY)
        return NEVER if delay < 0 else delay

    @field_validator("unready_on_shutdown", mode="before")
    @classmethod
    def _v_unready(cls, v: Any) -> bool:
        return parse_flag(v, DEFAULT_UNREADY_ON_SHUTDOWN)

    @field_validator("bind_host", mode="before")
    @classmethod
    def _v_bind_host(cls, v: Any) -> str | None:
        text = str(v).strip() if v is not None else ""
        return text or None

    @field_validator("bind_port", mode="before")
    @classmethod
    def _v_bind_port(cls, v: Any) -> int | None:
        port = parse_int(v, -1)
        return port if 0 <= port <= 65535 else None

    @field_validator("log_format", mode="before")
    @classmethod
    def _v_log_format(cls, v: Any) -> str:
        fmt = str(v or "logfmt").strip().lower()
        return fmt if fmt in {"logfmt", "json"} else "logfmt"

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        env_nested_delimiter="__",  # e.g., HOG__TICK_INTERVAL_S
        extra="ignore",
    )

    def shutdown_config(self) -> ShutdownConfig:
        """Return the immutable shutdown policy derived from these settings."""
        return ShutdownConfig(
            mark_unready_on_shutdown=self.unready_on_shutdown,
            delay_seconds=self.shutdown_delay,
        )

    @property
    def bind_address(self) -> tuple[str, int]:
        """Return the effective (host, port), preferring the flat overrides."""
        host = self.bind_host or self.server.host
        port = self.bind_port if self.bind_port is not None else self.server.port
        return host, port

    @property
    def hostname(self) -> str:
        return socket.gethostname()


def load_settings() -> AppSettings:
    """Resolve settings once from the environment and the optional .env file."""
    return AppSettings()


__all__ = [
    "AppSettings",
    "HogSettings",
    "ServerSettings",
    "load_settings",
]
