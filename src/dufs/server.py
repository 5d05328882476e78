"""FastAPI application and uvicorn runner for dufs.

The app has no API surface of its own: one catch-all route hands every
request, whatever its method, to :func:`dufs.handlers.dispatch`. Two
middlewares wrap it: the access log (outermost, so it also sees 401s) and the
Basic-auth gate.
"""

from __future__ import annotations

import logging
import sys

from fastapi import FastAPI, Request
from starlette.routing import request_response

from dufs.auth import auth_middleware
from dufs.config import Settings
from dufs.handlers import dispatch

logger = logging.getLogger(__name__)


class DispatchEndpoint:
    """ASGI endpoint that hands every request method to :func:`dispatch`.

    Starlette restricts plain function endpoints to GET and HEAD when no
    methods are given. A class instance is mounted as-is, so PUT, DELETE and
    unknown verbs all reach the dispatcher.
    """

    def __init__(self):
        self._app = request_response(dispatch)

    async def __call__(self, scope, receive, send):
        await self._app(scope, receive, send)


async def access_log_middleware(request: Request, call_next):
    response = await call_next(request)
    uri = request.url.path
    if request.url.query:
        uri = f"{uri}?{request.url.query}"
    logger.info('"%s %s" - %s', request.method, uri, response.status_code)
    return response


def create_app(settings: Settings) -> FastAPI:
    """Build the file server application for *settings*."""
    app = FastAPI(
        title="dufs",
        docs_url=None,
        redoc_url=None,
        openapi_url=None,
    )
    app.state.settings = settings

    # Registration order is inside-out: the last one added runs first.
    app.middleware("http")(auth_middleware)
    app.middleware("http")(access_log_middleware)

    app.add_route("/{path:path}", DispatchEndpoint(), include_in_schema=False)
    return app


def run_server(settings: Settings) -> None:
    """Bind, announce the address on stderr and serve until interrupted."""
    import uvicorn

    app = create_app(settings)
    config = uvicorn.Config(
        app,
        host=settings.address,
        port=settings.port,
        log_config=None,
        access_log=False,
    )
    server = uvicorn.Server(config)

    sock = config.bind_socket()
    bound_port = sock.getsockname()[1]
    print(f"Files served on http://{settings.display_address(bound_port)}", file=sys.stderr)

    server.run(sockets=[sock])
