"""Prometheus metrics for the realaddr server.

Custom session metrics that complement the auto-instrumented HTTP
metrics provided by ``prometheus-fastapi-instrumentator``.

All metrics use the ``realaddr_`` prefix.
"""

import logging

from fastapi import FastAPI
from prometheus_client import Counter, Gauge
from prometheus_fastapi_instrumentator import Instrumentator

from realaddr.configs.system import MetricsConfig

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Session metrics
# ---------------------------------------------------------------------------

WS_CONNECTIONS_ACTIVE = Gauge(
    "realaddr_ws_connections_active",
    "Number of WebSocket sessions currently open",
)

WS_CONNECTIONS_TOTAL = Counter(
    "realaddr_ws_connections_total",
    "Total WebSocket handshakes, by outcome",
    ["status"],  # "accepted" | "rejected"
)

WS_REJECTIONS_TOTAL = Counter(
    "realaddr_ws_rejections_total",
    "Total WebSocket handshakes refused before accept",
    ["reason"],  # "origin" | "capacity"
)

# ---------------------------------------------------------------------------
# Address attribution
# ---------------------------------------------------------------------------

CLIENT_ADDR_RESOLUTIONS_TOTAL = Counter(
    "realaddr_client_addr_resolutions_total",
    "Client address attributions, by outcome",
    ["result"],  # "resolved" | "unresolved"
)


def instrument_app(app: FastAPI, config: MetricsConfig) -> None:
    """Attach HTTP instrumentation and the ``/metrics`` endpoint.

    Must run before the app starts serving: the instrumentator adds a
    middleware.
    """
    if not config.enabled:
        logger.info("Prometheus metrics disabled")
        return

    Instrumentator(
        should_instrument_requests_inprogress=True,
        excluded_handlers=config.excluded_handlers,
    ).instrument(app).expose(app, endpoint="/metrics")
    logger.info("Prometheus metrics initialised")
