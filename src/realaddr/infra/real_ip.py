"""Real client address resolution for reverse-proxy deployments.

Deployment chain: Client -> (proxy ...) -> load balancer -> server.

The transport peer is usually the nearest proxy, so the client address is
taken from proxy headers first, in this order:

1. ``X-Forwarded-For``: scanned right-to-left by default (the nearest hop
   is the only entry the immediate proxy vouches for) or left-to-right when
   the whole chain is trusted (``RealIPMode.LEFT``).
2. ``X-Real-IP``: single value set by some proxy configs.
3. The transport peer address, as a last resort (direct access, local dev).

Every candidate goes through ``parse_ip_token`` which accepts bare IPv4/IPv6,
``ipv4:port``, ``[ipv6]:port``, ``[ipv6]`` and double-quoted variants, and
returns the canonical literal.  An empty string means "unresolved" at every
level; header content is client-controlled, so nothing here raises.
"""

from __future__ import annotations

import ipaddress
from collections.abc import Mapping
from enum import Enum
from typing import Any

X_FORWARDED_FOR_HEADER = "x-forwarded-for"
X_REAL_IP_HEADER = "x-real-ip"

_UNRESOLVED = ""


class RealIPMode(str, Enum):
    """Scan direction over the ``X-Forwarded-For`` chain."""

    LEFT = "left"  # first parseable entry from the client side
    RIGHT = "right"  # first parseable entry from the nearest hop

    @classmethod
    def parse(cls, value: Any) -> RealIPMode:
        """Build a mode from a case-insensitive string.

        Anything other than ``"left"`` or ``"right"`` (including ``None``)
        yields ``RIGHT``.  Existing deployments rely on this default.
        """
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            normalized = value.strip().lower()
            for mode in cls:
                if mode.value == normalized:
                    return mode
        return cls.RIGHT


def _parse_ip(value: str) -> str:
    try:
        ip = ipaddress.ip_address(value)
    except ValueError:
        return _UNRESOLVED
    if isinstance(ip, ipaddress.IPv6Address):
        # zone IDs are free text and never part of a client address
        if ip.scope_id is not None:
            return _UNRESOLVED
        if ip.ipv4_mapped is not None:
            ip = ip.ipv4_mapped
    return str(ip)


def _strip_brackets(value: str) -> str:
    if len(value) >= 2 and value[0] == "[" and value[-1] == "]":
        return value[1:-1]
    return value


def _split_host(token: str) -> str | None:
    """Return the host part of ``host:port`` / ``[host]:port``, else ``None``."""
    if token.startswith("["):
        end = token.find("]")
        if end < 0 or token.rfind(":") != end + 1:
            return None
        host = token[1:end]
    else:
        host, sep, _ = token.rpartition(":")
        if not sep or ":" in host:
            return None
    if "[" in host or "]" in host:
        return None
    return host


def parse_ip_token(token: str | None) -> str:
    """Normalize one candidate token into a canonical IP literal.

    Returns ``""`` when the token is not an address in any accepted form.
    """
    if not token:
        return _UNRESOLVED

    token = token.strip()
    token = token.removeprefix('"').removesuffix('"').strip()
    if not token:
        return _UNRESOLVED

    ip = _parse_ip(token)
    if ip:
        return ip

    host = _split_host(token)
    if host is not None:
        ip = _parse_ip(_strip_brackets(host).strip())
        if ip:
            return ip

    return _parse_ip(_strip_brackets(token))


def parse_x_forwarded_for(value: str | None, mode: RealIPMode | str | None) -> str:
    """Return the first parseable ``X-Forwarded-For`` entry in *mode* order."""
    if not value:
        return _UNRESOLVED

    tokens = value.split(",")
    if RealIPMode.parse(mode) is not RealIPMode.LEFT:
        tokens.reverse()

    for token in tokens:
        ip = parse_ip_token(token)
        if ip:
            return ip
    return _UNRESOLVED


def format_remote_addr(client: Any) -> str:
    """Render a transport peer as ``host:port`` (``[host]:port`` for IPv6).

    *client* is a Starlette ``Address`` (or any ``(host, port)`` pair);
    ``None`` yields ``""``.
    """
    if not isinstance(client, tuple) or len(client) != 2:
        return _UNRESOLVED
    host, port = client
    if not host or not isinstance(host, str):
        return _UNRESOLVED
    if ":" in host:
        host = f"[{host}]"
    if port is None:
        return host
    return f"{host}:{port}"


def resolve_real_ip_values(
    x_forwarded_for: str | None,
    x_real_ip: str | None,
    remote_addr: str | None,
    mode: RealIPMode | str | None,
) -> str:
    """Run the fallback chain over raw header values and the peer address."""
    ip = parse_x_forwarded_for(x_forwarded_for, mode)
    if ip:
        return ip

    ip = parse_ip_token(x_real_ip)
    if ip:
        return ip

    return parse_ip_token(remote_addr)


def resolve_real_ip(conn: Any, mode: RealIPMode | str | None) -> str:
    """Resolve the originating client address of *conn*.

    *conn* is anything shaped like a Starlette ``Request`` / ``WebSocket``:
    a case-insensitive ``headers`` mapping and a ``client`` address.
    Returns ``""`` for a missing or malformed connection object.
    """
    if conn is None:
        return _UNRESOLVED
    headers = getattr(conn, "headers", None)
    if not isinstance(headers, Mapping):
        return _UNRESOLVED

    return resolve_real_ip_values(
        headers.get(X_FORWARDED_FOR_HEADER),
        headers.get(X_REAL_IP_HEADER),
        format_remote_addr(getattr(conn, "client", None)),
        mode,
    )
