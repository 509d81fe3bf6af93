"""Built-in operational endpoints: ``/errors``, ``/reload``, ``/git-reload``."""

import hmac
import json
import time

from arbor.compiler import ErrorRecord
from arbor.errors import Unauthorized
from arbor.http.request import Request
from arbor.http.response import Response, text_response
from arbor.limiter import RateLimiter

ERRORS_PATH = "/errors"
RELOAD_PATH = "/reload"
GIT_RELOAD_PATH = "/git-reload"


def errors_response(errors: tuple[ErrorRecord, ...]) -> Response:
    """JSON array of ``{"urlpath", "message"}`` objects."""
    body = json.dumps([error.to_dict() for error in errors])
    return Response(body=body, content_type="application/json")


def check_secret(request: Request, secret: str) -> None:
    """Raise Unauthorized unless the ``secret`` query parameter matches."""
    given = request.query.get("secret", "") or ""
    if not secret or not hmac.compare_digest(given.encode("utf-8"), secret.encode("utf-8")):
        raise Unauthorized()


def trigger(limiter: RateLimiter, label: str = "reload") -> Response:
    """Call a rate-limited reload and describe the outcome.

    Blocks while the reload runs; call it from a worker thread.
    """
    start = time.perf_counter()
    result = limiter()
    if result.executed:
        if result.error is None:
            elapsed = int((time.perf_counter() - start) * 1000)
            return text_response(f"{label} took {elapsed} milliseconds")
        return text_response(f"{label} failed: {result.error}", 500)
    if result.error is None:
        return text_response(f"{label} scheduled")
    return text_response(f"{label} scheduled, last execution returned error: {result.error}", 500)
