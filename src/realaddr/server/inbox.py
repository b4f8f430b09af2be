"""Connection inbox: bounded admission control for WebSocket sessions."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncGenerator
from typing import Annotated

from fastapi import Depends, FastAPI
from fastapi.requests import HTTPConnection

from realaddr.configs.config import get_server_config
from realaddr.configs.system import ServerConfig
from realaddr.infra.lifespan import get_app

from .base import TooManyConnections
from .metrics import WS_CONNECTIONS_ACTIVE

logger = logging.getLogger(__name__)


class ConnectionInbox:
    """Tracks open sessions; rejects new ones once ``max_conn_num`` is reached.

    Usage::

        inbox = get_connection_inbox(websocket)

        await inbox.enter()   # TooManyConnections -> close 1013
        try:
            ...  # serve the session
        finally:
            await inbox.leave()

    A limit of zero or less disables the check.
    """

    def __init__(self, max_conn_num: int) -> None:
        self._max_conn_num = max_conn_num
        self._count = 0
        self._lock = asyncio.Lock()

    @property
    def count(self) -> int:
        return self._count

    @property
    def max_conn_num(self) -> int:
        return self._max_conn_num

    async def enter(self) -> int:
        """Admit one session.  Returns the occupancy after entering."""
        async with self._lock:
            if 0 < self._max_conn_num <= self._count:
                logger.info("Connection inbox full (%d)", self._max_conn_num)
                raise TooManyConnections(self._max_conn_num)
            self._count += 1
            WS_CONNECTIONS_ACTIVE.inc()
            return self._count

    async def leave(self) -> None:
        """Release one session (always call, even on error)."""
        async with self._lock:
            if self._count > 0:
                self._count -= 1
                WS_CONNECTIONS_ACTIVE.dec()


# ---------------------------------------------------------------------------
# Lifespan dependency
# ---------------------------------------------------------------------------


async def build_connection_inbox(
    app: Annotated[FastAPI, Depends(get_app)],
    server: Annotated[ServerConfig, Depends(get_server_config)],
) -> AsyncGenerator[None, None]:
    """Create a ``ConnectionInbox`` and attach it to ``app.state``."""
    inbox = ConnectionInbox(max_conn_num=server.max_conn_num)
    app.state.connection_inbox = inbox
    logger.info("Connection inbox: max_conn_num=%d", server.max_conn_num)
    yield
    if inbox.count:
        logger.info("Shutting down with %d open sessions", inbox.count)


# ---------------------------------------------------------------------------
# Per-connection dependency
# ---------------------------------------------------------------------------


def get_connection_inbox(conn: HTTPConnection) -> ConnectionInbox:
    """Return the ``ConnectionInbox`` stored on ``app.state`` by the lifespan."""
    return conn.app.state.connection_inbox
