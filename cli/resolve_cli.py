"""Run the real-address resolver over header values given on the command line.

Handy when checking what a proxy chain will be attributed to::

    python -m cli --xff "203.0.113.7, 10.0.0.2" --remote-addr 10.0.0.3:5123
"""

import logging
import sys
from typing import TextIO

from realaddr.infra.real_ip import (
    RealIPMode,
    parse_ip_token,
    parse_x_forwarded_for,
    resolve_real_ip_values,
)

logger = logging.getLogger(__name__)

UNRESOLVED_TEXT = "unresolved"


def explain(
    xff: str | None,
    x_real_ip: str | None,
    remote_addr: str | None,
    mode: RealIPMode,
) -> list[tuple[str, str]]:
    """Per-source results, in fallback order (for ``--verbose``)."""
    return [
        ("x-forwarded-for", parse_x_forwarded_for(xff, mode)),
        ("x-real-ip", parse_ip_token(x_real_ip)),
        ("remote-addr", parse_ip_token(remote_addr)),
    ]


def main(
    xff: str | None = None,
    x_real_ip: str | None = None,
    remote_addr: str | None = None,
    mode: str = RealIPMode.RIGHT.value,
    verbose: bool = False,
    output: TextIO = sys.stdout,
) -> int:
    """Print the resolved address; return the process exit code.

    Parameters
    ----------
    xff
        Raw ``X-Forwarded-For`` value.
    x_real_ip
        Raw ``X-Real-IP`` value.
    remote_addr
        Transport peer, ``host:port`` or ``[host]:port``.
    mode
        ``left`` or ``right``; anything else behaves as ``right``.
    verbose
        Also print what each source yields on its own.
    output
        Stream to write to.
    """
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s: %(message)s",
        stream=sys.stderr,
    )

    parsed_mode = RealIPMode.parse(mode)
    if parsed_mode.value != mode.strip().lower():
        logger.warning("Unrecognised mode %r, using %r", mode, parsed_mode.value)

    if verbose:
        for source, value in explain(xff, x_real_ip, remote_addr, parsed_mode):
            output.write(f"{source}: {value or '-'}\n")

    addr = resolve_real_ip_values(xff, x_real_ip, remote_addr, parsed_mode)
    output.write(f"{addr or UNRESOLVED_TEXT}\n")
    output.flush()
    return 0 if addr else 1
