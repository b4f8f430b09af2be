"""Server-side exceptions."""

from __future__ import annotations


class TooManyConnections(Exception):
    """Raised when the server is already holding ``max_conn_num`` sessions."""

    def __init__(self, limit: int) -> None:
        super().__init__(f"Connection limit reached ({limit})")
        self.limit = limit
