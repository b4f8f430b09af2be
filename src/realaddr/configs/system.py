import logging
import re
from datetime import timedelta
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, Field, field_validator, model_validator

from realaddr.infra.real_ip import RealIPMode

logger = logging.getLogger(__name__)

_DURATION_RE = re.compile(r"(?:(\d+(?:\.\d*)?|\.\d+)(ns|us|µs|ms|s|m|h))+")
_DURATION_PART_RE = re.compile(r"(\d+(?:\.\d*)?|\.\d+)(ns|us|µs|ms|s|m|h)")
_DURATION_UNITS = {
    "ns": 1e-9,
    "us": 1e-6,
    "µs": 1e-6,
    "ms": 1e-3,
    "s": 1.0,
    "m": 60.0,
    "h": 3600.0,
}

DEFAULT_LISTEN_HOST = "0.0.0.0"


def parse_duration(value: Any) -> Any:
    """Accept ``"10s"`` / ``"1m30s"`` / ``"500ms"`` style durations.

    Non-string values are handed back to pydantic unchanged, so plain
    seconds and ``timedelta`` objects keep working.
    """
    if not isinstance(value, str):
        return value
    text = value.strip()
    if text == "0":
        return timedelta(0)
    if not _DURATION_RE.fullmatch(text):
        # Let pydantic try ISO 8601 / numeric strings and report the error.
        return text
    seconds = sum(
        float(amount) * _DURATION_UNITS[unit]
        for amount, unit in _DURATION_PART_RE.findall(text)
    )
    return timedelta(seconds=seconds)


class HeartbeatMechanism(str, Enum):
    """How connection liveness is checked."""

    RESP = "resp"  # reply to client pings
    TICK = "tick"  # server pings on a fixed interval


class LoggingConfig(BaseModel):
    """Log output settings."""

    level: str = Field(default="INFO", description="Root log level")
    json_output: bool = Field(
        default=True, description="Emit JSON lines instead of coloured dev output"
    )


class MetricsConfig(BaseModel):
    """Prometheus instrumentation settings."""

    enabled: bool = Field(default=True, description="Expose /metrics")
    excluded_handlers: list[str] = Field(
        default_factory=lambda: ["/metrics", "/health"],
        description="Routes left out of HTTP instrumentation",
    )


class RealIPConfig(BaseModel):
    """Client address extraction from proxy headers."""

    enabled: bool = Field(
        default=False,
        description="Resolve the client address from X-Forwarded-For / X-Real-IP",
    )
    mode: RealIPMode = Field(
        default=RealIPMode.RIGHT,
        description="X-Forwarded-For scan direction: 'left' or 'right'",
    )

    @field_validator("mode", mode="before")
    @classmethod
    def coerce_mode(cls, value: Any) -> RealIPMode:
        mode = RealIPMode.parse(value)
        if value is not None and not isinstance(value, RealIPMode):
            if str(value).strip().lower() != mode.value:
                logger.warning(
                    "Unrecognised real_ip.mode %r, falling back to %r",
                    value,
                    mode.value,
                )
        return mode


class ServerConfig(BaseModel):
    """WebSocket server settings."""

    addr: str = Field(default=":3553", description="Listen address, host:port")
    path: str = Field(default="/", description="WebSocket endpoint path")
    max_conn_num: int = Field(
        default=5000, description="Maximum concurrent connections (<= 0: unlimited)"
    )
    origins: list[str] = Field(
        default_factory=lambda: ["*"],
        description="Allowed Origin header values; '*' allows any",
    )
    cert_file: str = Field(default="", description="TLS certificate file")
    key_file: str = Field(default="", description="TLS private key file")
    handshake_timeout: timedelta = Field(
        default=timedelta(seconds=10), description="WebSocket handshake timeout"
    )
    heartbeat_interval: timedelta = Field(
        default=timedelta(seconds=10), description="Heartbeat interval"
    )
    heartbeat_mechanism: HeartbeatMechanism = Field(
        default=HeartbeatMechanism.RESP, description="Heartbeat mechanism"
    )
    authorize_timeout: timedelta = Field(
        default=timedelta(0),
        description="Time allowed for a session to authorize (0: no check)",
    )
    real_ip: RealIPConfig = Field(
        default_factory=RealIPConfig,
        description="Client address extraction settings",
    )

    @field_validator(
        "handshake_timeout",
        "heartbeat_interval",
        "authorize_timeout",
        mode="before",
    )
    @classmethod
    def parse_durations(cls, value: Any) -> Any:
        return parse_duration(value)

    @field_validator("addr")
    @classmethod
    def check_addr(cls, value: str) -> str:
        _, sep, port = value.rpartition(":")
        if not sep or not port.isdigit():
            raise ValueError(f"addr must be 'host:port', got {value!r}")
        return value

    @field_validator("path")
    @classmethod
    def check_path(cls, value: str) -> str:
        if not value.startswith("/"):
            raise ValueError(f"path must start with '/', got {value!r}")
        return value

    @model_validator(mode="after")
    def check_credentials(self) -> "ServerConfig":
        if bool(self.cert_file) != bool(self.key_file):
            raise ValueError("cert_file and key_file must be set together")
        return self

    @property
    def listen_host(self) -> str:
        host = self.addr.rpartition(":")[0]
        if host.startswith("[") and host.endswith("]"):
            host = host[1:-1]
        return host or DEFAULT_LISTEN_HOST

    @property
    def listen_port(self) -> int:
        return int(self.addr.rpartition(":")[2])

    @property
    def tls_enabled(self) -> bool:
        return bool(self.cert_file and self.key_file)

    @property
    def ws_ping_interval(self) -> Optional[float]:
        """Server-side ping interval; only the ``tick`` mechanism pings."""
        if self.heartbeat_mechanism is HeartbeatMechanism.TICK:
            return self.heartbeat_interval.total_seconds()
        return None
