"""WebSocket session endpoint.

Each handshake goes through three gates before it is accepted:

1. origin check (``server.origins``): refused with 1008,
2. connection inbox (``server.max_conn_num``): refused with 1013,
3. client address attribution (``server.real_ip``): never refuses; an
   unresolved address is logged as ``unknown``.

Accepted sessions receive ``{"type": "hello", "addr": ...}`` and then have
their text frames echoed back until the peer disconnects.
"""

import logging

from fastapi import APIRouter, WebSocket, WebSocketDisconnect, status

from .base import TooManyConnections
from .deps import CheckOriginDep, ClientAddrDep, ConnectionInboxDep
from .metrics import WS_CONNECTIONS_TOTAL, WS_REJECTIONS_TOTAL

logger = logging.getLogger(__name__)

HELLO_EVENT_TYPE = "hello"
_UNKNOWN_ADDR = "unknown"


async def _reject(websocket: WebSocket, code: int, reason: str) -> None:
    WS_REJECTIONS_TOTAL.labels(reason=reason).inc()
    WS_CONNECTIONS_TOTAL.labels(status="rejected").inc()
    await websocket.close(code=code)


async def session(
    websocket: WebSocket,
    client_addr: ClientAddrDep,
    check_origin: CheckOriginDep,
    inbox: ConnectionInboxDep,
) -> None:
    """Serve one WebSocket session."""
    addr_label = client_addr or _UNKNOWN_ADDR

    if not check_origin(websocket):
        logger.info(
            "Rejecting session from %s: origin %r not allowed",
            addr_label,
            websocket.headers.get("origin"),
        )
        await _reject(websocket, status.WS_1008_POLICY_VIOLATION, "origin")
        return

    try:
        occupancy = await inbox.enter()
    except TooManyConnections as exc:
        logger.warning("Rejecting session from %s: %s", addr_label, exc)
        await _reject(websocket, status.WS_1013_TRY_AGAIN_LATER, "capacity")
        return

    try:
        await websocket.accept()
        WS_CONNECTIONS_TOTAL.labels(status="accepted").inc()
        logger.info("Session opened: addr=%s open=%d", addr_label, occupancy)

        await websocket.send_json(
            {"type": HELLO_EVENT_TYPE, "addr": client_addr or None}
        )
        while True:
            message = await websocket.receive_text()
            await websocket.send_text(message)
    except WebSocketDisconnect as exc:
        logger.info("Session closed: addr=%s code=%s", addr_label, exc.code)
    finally:
        await inbox.leave()


async def health() -> dict[str, str]:
    """Liveness probe."""
    return {"status": "ok"}


def build_router(path: str) -> APIRouter:
    """Router serving the session endpoint at *path* plus ``/health``."""
    router = APIRouter(tags=["session"])
    router.add_api_route("/health", health, methods=["GET"])
    router.add_api_websocket_route(path, session)
    return router
