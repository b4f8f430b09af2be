"""FastAPI application entry point."""

import logging
from typing import Annotated, AsyncGenerator, Optional

import uvicorn
from fastapi import Depends, FastAPI

from realaddr.configs.config import AppConfig, get_app_config
from realaddr.infra.lifespan import inject
from realaddr.infra.logging import setup_logging
from realaddr.server import build_connection_inbox, build_router
from realaddr.server.metrics import instrument_app

logger = logging.getLogger(__name__)


@inject
async def lifespan(
    app: FastAPI,
    _inbox: Annotated[None, Depends(build_connection_inbox)],
) -> AsyncGenerator[None, None]:
    """Application lifespan: dependencies own their setup and teardown."""
    server = app.state.config.server
    logger.info(
        "Serving WebSocket sessions on %s%s (real_ip enabled=%s mode=%s)",
        server.addr,
        server.path,
        server.real_ip.enabled,
        server.real_ip.mode.value,
    )
    yield
    logger.info("Shutting down")


def create_app(config: Optional[AppConfig] = None) -> FastAPI:
    """Create the application with *config* injected into ``app.state``."""
    if config is None:
        config = get_app_config()

    app = FastAPI(
        title="realaddr",
        description="WebSocket server with proxy-aware client addresses",
        version="0.1.0",
        lifespan=lifespan,
    )
    app.state.config = config

    instrument_app(app, config.metrics)
    app.include_router(build_router(config.server.path))

    return app


def run() -> None:
    """Load config, configure logging and serve with uvicorn."""
    config = get_app_config()
    setup_logging(config.logging)
    server = config.server

    uvicorn.run(
        create_app(config),
        host=server.listen_host,
        port=server.listen_port,
        ssl_certfile=server.cert_file or None,
        ssl_keyfile=server.key_file or None,
        ws_ping_interval=server.ws_ping_interval,
        ws_ping_timeout=server.heartbeat_interval.total_seconds() or None,
        log_config=None,
    )


if __name__ == "__main__":
    run()
