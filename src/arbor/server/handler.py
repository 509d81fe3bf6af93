"""ASGI handler: translates ASGI scope/messages to arbor types.

The only component that touches raw ASGI HTTP messages. Converts the
scope to a typed Request, dispatches to a built-in endpoint or the
content router, and sends the Response back through ASGI send().

Routing, rendering, and reloads are blocking work and run in worker
threads so the event loop never stalls on a compile pass.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import anyio.to_thread

from arbor._internal.asgi import Receive, Scope, Send
from arbor.errors import HTTPError, MethodNotAllowed, NotFound
from arbor.http.request import Request
from arbor.http.response import Response
from arbor.server.endpoints import (
    ERRORS_PATH,
    GIT_RELOAD_PATH,
    RELOAD_PATH,
    check_secret,
    errors_response,
    trigger,
)
from arbor.server.errors import handle_http_error, handle_internal_error
from arbor.server.sender import send_response

if TYPE_CHECKING:
    from arbor.app import App

_READ = frozenset({"GET", "HEAD"})
_TRIGGER = frozenset({"GET", "POST"})


def _require(request: Request, allowed: frozenset[str]) -> None:
    if request.method not in allowed:
        raise MethodNotAllowed(allowed)


async def dispatch(request: Request, app: App) -> Response:
    """Produce the response for *request*. Raises HTTPError for client errors."""
    path = request.path
    if path == ERRORS_PATH:
        _require(request, _READ)
        return errors_response(app.site.errors)

    if path == RELOAD_PATH:
        _require(request, _TRIGGER)
        check_secret(request, app.secret)
        return await anyio.to_thread.run_sync(trigger, app.reload_limiter, "reload")

    if path == GIT_RELOAD_PATH:
        if app.git_reload_limiter is None:
            raise NotFound()
        _require(request, _TRIGGER)
        check_secret(request, app.secret)
        return await anyio.to_thread.run_sync(trigger, app.git_reload_limiter, "git reload")

    return await anyio.to_thread.run_sync(app.site.route, request)


async def handle_request(scope: Scope, receive: Receive, send: Send, *, app: App) -> None:
    """Process a single HTTP request through the full pipeline."""
    if scope["type"] != "http":
        return

    request = Request.from_asgi(scope)
    try:
        response = await dispatch(request, app)
    except HTTPError as exc:
        response = handle_http_error(exc, request)
    except Exception as exc:
        response = handle_internal_error(exc, request, debug=app.config.debug)

    await send_response(response, send, head=request.method == "HEAD")
