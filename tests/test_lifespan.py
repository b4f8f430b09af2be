"""Tests for the lifespan dependency injection bridge."""

from typing import Annotated

from fastapi import Depends, FastAPI
from fastapi.requests import HTTPConnection
from fastapi.testclient import TestClient

from realaddr.infra.lifespan import get_app, inject


class TestInject:
    def test_generator_dependency_runs_setup_and_teardown(self):
        events: list[str] = []

        async def build_resource(conn: HTTPConnection):
            conn.app.state.resource = "ready"
            events.append("setup")
            yield
            events.append("teardown")

        @inject
        async def lifespan(
            app: FastAPI,
            _resource: Annotated[None, Depends(build_resource)],
        ):
            events.append("started")
            yield

        app = FastAPI(lifespan=lifespan)
        with TestClient(app):
            assert app.state.resource == "ready"
            assert events == ["setup", "started"]
        assert events == ["setup", "started", "teardown"]

    def test_get_app_resolves_application(self):
        seen: list[FastAPI] = []

        @inject
        async def lifespan(
            app: FastAPI,
            resolved: Annotated[FastAPI, Depends(get_app)],
        ):
            seen.append(resolved)
            yield

        app = FastAPI(lifespan=lifespan)
        with TestClient(app):
            pass
        assert seen == [app]
