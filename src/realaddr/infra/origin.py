"""Cross-origin check for WebSocket handshakes."""

from __future__ import annotations

from collections.abc import Callable, Iterable
from typing import Annotated

from fastapi import Depends
from fastapi.requests import HTTPConnection

from realaddr.configs.config import get_server_config
from realaddr.configs.system import ServerConfig

ANY_ORIGIN = "*"
_ORIGIN_HEADER = "origin"

CheckOriginFunc = Callable[[HTTPConnection], bool]


def build_check_origin(origins: Iterable[str]) -> CheckOriginFunc:
    """Build a predicate accepting connections whose ``Origin`` is allowed.

    An empty list rejects everything; ``"*"`` accepts everything;
    otherwise the ``Origin`` header must equal one entry exactly.
    """
    allowed = tuple(origins)

    def check_origin(conn: HTTPConnection) -> bool:
        if not allowed:
            return False
        origin = conn.headers.get(_ORIGIN_HEADER, "")
        return any(v == ANY_ORIGIN or v == origin for v in allowed)

    return check_origin


def get_check_origin(
    server: Annotated[ServerConfig, Depends(get_server_config)],
) -> CheckOriginFunc:
    """Per-connection dependency: the origin predicate for the injected config."""
    return build_check_origin(server.origins)
