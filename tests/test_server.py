"""Tests for the WebSocket server: origin check, inbox, and address attribution."""

from __future__ import annotations

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from starlette.datastructures import Headers
from starlette.websockets import WebSocketDisconnect

from realaddr.app import create_app
from realaddr.configs.config import AppConfig, get_server_config
from realaddr.configs.system import MetricsConfig, RealIPConfig, ServerConfig
from realaddr.infra.origin import build_check_origin
from realaddr.server import ConnectionInbox, TooManyConnections


class _FakeConn:
    """Minimal stand-in for a Starlette ``WebSocket``."""

    def __init__(self, headers: dict[str, str] | None = None) -> None:
        self.headers = Headers(headers or {})


def _app(**server_fields) -> FastAPI:
    config = AppConfig(
        server=ServerConfig(**server_fields),
        metrics=MetricsConfig(enabled=False),
    )
    return create_app(config)


# =========================================================================
# Origin check
# =========================================================================


class TestCheckOrigin:
    def test_wildcard_allows_anything(self):
        check = build_check_origin(["*"])
        assert check(_FakeConn({"origin": "https://evil.example"}))
        assert check(_FakeConn())

    def test_exact_match(self):
        check = build_check_origin(["https://app.example"])
        assert check(_FakeConn({"Origin": "https://app.example"}))
        assert not check(_FakeConn({"Origin": "https://app.example.evil"}))
        assert not check(_FakeConn())

    def test_empty_list_rejects_everything(self):
        check = build_check_origin([])
        assert not check(_FakeConn({"origin": "https://app.example"}))


# =========================================================================
# ConnectionInbox
# =========================================================================


class TestConnectionInbox:
    @pytest.mark.asyncio
    async def test_admits_up_to_limit(self):
        inbox = ConnectionInbox(max_conn_num=2)
        assert await inbox.enter() == 1
        assert await inbox.enter() == 2
        with pytest.raises(TooManyConnections) as exc_info:
            await inbox.enter()
        assert exc_info.value.limit == 2

    @pytest.mark.asyncio
    async def test_leave_frees_a_slot(self):
        inbox = ConnectionInbox(max_conn_num=1)
        await inbox.enter()
        await inbox.leave()
        assert inbox.count == 0
        await inbox.enter()

    @pytest.mark.asyncio
    async def test_leave_never_goes_negative(self):
        inbox = ConnectionInbox(max_conn_num=1)
        await inbox.leave()
        assert inbox.count == 0

    @pytest.mark.asyncio
    async def test_unlimited(self):
        inbox = ConnectionInbox(max_conn_num=0)
        for _ in range(20):
            await inbox.enter()
        assert inbox.count == 20


# =========================================================================
# WebSocket endpoint
# =========================================================================


class TestSessionEndpoint:
    def test_health(self):
        with TestClient(_app()) as client:
            assert client.get("/health").json() == {"status": "ok"}

    def test_hello_carries_resolved_addr(self):
        app = _app(real_ip=RealIPConfig(enabled=True, mode="right"))
        with TestClient(app, client=("10.0.0.1", 12345)) as client:
            with client.websocket_connect(
                "/", headers={"X-Forwarded-For": "1.1.1.1, 2.2.2.2"}
            ) as ws:
                assert ws.receive_json() == {"type": "hello", "addr": "2.2.2.2"}

    def test_left_mode(self):
        app = _app(real_ip=RealIPConfig(enabled=True, mode="left"))
        with TestClient(app, client=("10.0.0.1", 12345)) as client:
            with client.websocket_connect(
                "/", headers={"X-Forwarded-For": "1.1.1.1, 2.2.2.2"}
            ) as ws:
                assert ws.receive_json()["addr"] == "1.1.1.1"

    def test_disabled_uses_transport_peer(self):
        app = _app(real_ip=RealIPConfig(enabled=False))
        with TestClient(app, client=("10.0.0.1", 12345)) as client:
            with client.websocket_connect(
                "/", headers={"X-Forwarded-For": "1.1.1.1", "X-Real-IP": "3.3.3.3"}
            ) as ws:
                assert ws.receive_json()["addr"] == "10.0.0.1"

    def test_unresolved_addr_is_null(self):
        with TestClient(_app(), client=("testclient", 50000)) as client:
            with client.websocket_connect("/") as ws:
                assert ws.receive_json() == {"type": "hello", "addr": None}

    def test_echo_on_custom_path(self):
        with TestClient(_app(path="/ws")) as client:
            with client.websocket_connect("/ws") as ws:
                ws.receive_json()
                ws.send_text("ping")
                assert ws.receive_text() == "ping"

    def test_disallowed_origin_is_refused(self):
        with TestClient(_app(origins=["https://app.example"])) as client:
            with pytest.raises(WebSocketDisconnect) as exc_info:
                with client.websocket_connect(
                    "/", headers={"Origin": "https://other.example"}
                ):
                    pass
        assert exc_info.value.code == 1008

    def test_allowed_origin_is_accepted(self):
        with TestClient(_app(origins=["https://app.example"])) as client:
            with client.websocket_connect(
                "/", headers={"Origin": "https://app.example"}
            ) as ws:
                assert ws.receive_json()["type"] == "hello"

    def test_full_inbox_is_refused(self):
        with TestClient(_app(max_conn_num=1)) as client:
            with client.websocket_connect("/") as first:
                first.receive_json()
                with pytest.raises(WebSocketDisconnect) as exc_info:
                    with client.websocket_connect("/"):
                        pass
                assert exc_info.value.code == 1013

    def test_slot_released_after_disconnect(self):
        app = _app(max_conn_num=1)
        with TestClient(app) as client:
            with client.websocket_connect("/") as ws:
                ws.receive_json()
            with client.websocket_connect("/") as ws:
                assert ws.receive_json()["type"] == "hello"

    def test_server_config_override_drives_attribution(self):
        app = _app(real_ip=RealIPConfig(enabled=False))
        app.dependency_overrides[get_server_config] = lambda: ServerConfig(
            real_ip=RealIPConfig(enabled=True, mode="left")
        )
        with TestClient(app, client=("10.0.0.1", 12345)) as client:
            with client.websocket_connect(
                "/", headers={"X-Forwarded-For": "1.1.1.1, 2.2.2.2"}
            ) as ws:
                assert ws.receive_json()["addr"] == "1.1.1.1"
