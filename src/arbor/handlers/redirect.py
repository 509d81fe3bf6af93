"""Redirect marker files.

A file named ``redirect`` turns its directory into a 303 redirect. The
file holds the target: an absolute URL, an absolute path, or a path
relative to the directory's own URL::

    https://example.org/   ->  Location: https://example.org/
    /elsewhere             ->  Location: /elsewhere
    subpage                ->  Location: /this/dir/subpage
"""

import posixpath
from urllib.parse import urlsplit

from arbor._internal.types import Handler
from arbor.dir import Dir
from arbor.errors import ContentError
from arbor.http.request import Request
from arbor.http.response import see_other
from arbor.routing.result import CONTINUE, HandlerResult, Stop


def redirect_handler(dir: Dir, stem: str, content: bytes) -> Handler:
    """Build a handler redirecting to the target stored in *content*."""
    try:
        target = content.decode("utf-8").strip()
    except UnicodeDecodeError as exc:
        msg = f"redirect target is not UTF-8: {exc}"
        raise ContentError(msg) from exc
    if not target:
        msg = "redirect target is empty"
        raise ContentError(msg)

    parts = urlsplit(target)
    relative = not parts.scheme and not parts.netloc and not parts.path.startswith("/")

    def handle(remaining: tuple[str, ...], request: Request) -> HandlerResult:
        if remaining:
            return CONTINUE
        # Only reached when the request ends at this directory
        location = posixpath.normpath(posixpath.join(request.path, target)) if relative else target
        return Stop(see_other(location))

    return handle
