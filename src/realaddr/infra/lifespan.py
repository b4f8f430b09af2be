"""Lifespan dependency injection bridge.

``inject`` lets the FastAPI lifespan declare ``Depends()`` parameters the
same way a WebSocket or HTTP handler does, so startup resources (the
connection inbox, for one) are built by ordinary dependency generators
that own both setup and teardown.

Based on https://github.com/fastapi/fastapi/discussions/11742
"""

from contextlib import AsyncExitStack, asynccontextmanager
from functools import partial
from typing import Any, Callable

from fastapi import FastAPI
from fastapi.dependencies.utils import get_dependant, solve_dependencies
from fastapi.requests import HTTPConnection, Request

LIFESPAN_SCOPE_HEADER = (b"x-request-scope", b"lifespan")

_EXIT_STACK_SCOPE_KEYS = (
    "fastapi_astack",
    "fastapi_inner_astack",
    "fastapi_function_astack",
)


def get_app(conn: HTTPConnection) -> FastAPI:
    """Lifespan dependency that returns the ``FastAPI`` application."""
    return conn.app


def _lifespan_request(app: FastAPI) -> Request:
    return Request(
        scope={
            "type": "http",
            "http_version": "1.1",
            "method": "GET",
            "scheme": "http",
            "path": "/",
            "raw_path": b"/",
            "query_string": b"",
            "root_path": "",
            "headers": (LIFESPAN_SCOPE_HEADER,),
            "client": None,
            "server": None,
            "app": app,
        }
    )


def inject(
    lifespan: Callable[..., Any],
) -> Callable[[FastAPI], Any]:
    """Resolve ``Depends()`` parameters for a lifespan function.

    Usage::

        @inject
        async def lifespan(
            app: FastAPI,
            _inbox: Annotated[None, Depends(build_connection_inbox)],
        ):
            yield

    Cleanups run in reverse resolution order on shutdown, and
    ``app.dependency_overrides`` is honoured.
    """

    @asynccontextmanager
    async def wrapper(app: FastAPI):  # type: ignore[misc]
        request = _lifespan_request(app)
        dependant = get_dependant(path="/", call=partial(lifespan, app))

        async with AsyncExitStack() as stack:
            # newer FastAPI releases look the exit stacks up in the scope
            for key in _EXIT_STACK_SCOPE_KEYS:
                request.scope[key] = stack
            solved = await solve_dependencies(
                request=request,
                dependant=dependant,
                async_exit_stack=stack,
                embed_body_fields=False,
                dependency_overrides_provider=app,
            )
            ctx = asynccontextmanager(lifespan)
            async with ctx(app, **solved.values):
                yield

    return wrapper
