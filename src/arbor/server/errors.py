"""Maps HTTPError exceptions and unexpected failures to plain-text responses."""

import logging

from arbor.errors import HTTPError
from arbor.http.request import Request
from arbor.http.response import Response, text_response

logger = logging.getLogger("arbor.server")


def handle_http_error(exc: HTTPError, request: Request) -> Response:
    """Map an HTTPError to a short plain-text response with its status."""
    logger.debug("%d %s %s: %s", exc.status, request.method, request.path, exc.detail)
    response = text_response(exc.detail or f"Error {exc.status}", exc.status)
    for name, value in exc.headers:
        response = response.with_header(name, value)
    return response


def handle_internal_error(exc: Exception, request: Request, *, debug: bool = False) -> Response:
    """Handle unexpected exceptions as 500 errors."""
    logger.exception("500 %s %s", request.method, request.path)
    body = "500 internal server error"
    if debug:
        body = f"{body}: {type(exc).__name__}: {exc}"
    return text_response(body, 500)
