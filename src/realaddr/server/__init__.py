"""WebSocket server around the real-address resolver.

Layers, outermost first:

1. **Origin check**: ``server.origins`` built into a predicate by
   ``realaddr.infra.origin.build_check_origin``.

2. **ConnectionInbox** (``max_conn_num`` slots): admission control.
   Rejects with ``TooManyConnections`` when full.

3. **Client address**: ``get_client_addr`` runs
   ``realaddr.infra.real_ip.resolve_real_ip`` when ``real_ip.enabled``
   and falls back to the transport peer otherwise.
"""

from .base import TooManyConnections
from .deps import get_client_addr
from .inbox import ConnectionInbox, build_connection_inbox, get_connection_inbox
from .ws import build_router

__all__ = [
    "ConnectionInbox",
    "TooManyConnections",
    "build_connection_inbox",
    "build_router",
    "get_client_addr",
    "get_connection_inbox",
]
