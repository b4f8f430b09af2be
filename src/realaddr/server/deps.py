"""Centralized FastAPI dependency type aliases.

Import these ``*Dep`` aliases in route modules instead of writing
``Annotated[T, Depends(get_xxx)]`` everywhere.  Each alias maps to one
``get_*`` factory and can be swapped in tests via
``app.dependency_overrides[get_xxx] = ...``.
"""

from typing import Annotated

from fastapi import Depends
from fastapi.requests import HTTPConnection

from realaddr.configs.config import get_server_config
from realaddr.configs.system import ServerConfig
from realaddr.infra.origin import CheckOriginFunc, get_check_origin
from realaddr.infra.real_ip import format_remote_addr, parse_ip_token, resolve_real_ip

from .inbox import ConnectionInbox, get_connection_inbox
from .metrics import CLIENT_ADDR_RESOLUTIONS_TOTAL

ServerConfigDep = Annotated[ServerConfig, Depends(get_server_config)]


def get_client_addr(conn: HTTPConnection, server: ServerConfigDep) -> str:
    """Attribute a client address to *conn*; ``""`` when unresolved.

    Proxy headers are only consulted when ``real_ip.enabled`` is set;
    otherwise the transport peer is used as-is.
    """
    if server.real_ip.enabled:
        addr = resolve_real_ip(conn, server.real_ip.mode)
    else:
        addr = parse_ip_token(format_remote_addr(conn.client))
    CLIENT_ADDR_RESOLUTIONS_TOTAL.labels(
        result="resolved" if addr else "unresolved"
    ).inc()
    return addr


CheckOriginDep = Annotated[CheckOriginFunc, Depends(get_check_origin)]
ConnectionInboxDep = Annotated[ConnectionInbox, Depends(get_connection_inbox)]
ClientAddrDep = Annotated[str, Depends(get_client_addr)]
