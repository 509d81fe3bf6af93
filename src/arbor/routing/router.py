"""Path-segment router.

The router walks the compiled ``Dir`` tree with a cursor of
``(current dir, remaining segments)``. At every node the node's handler
sees the segments not yet consumed and either stops with a response or
lets routing continue. Unmatched single trailing segments fall back to
the directory's static files.
"""

import logging
import posixpath

from arbor.dir import Dir
from arbor.errors import NotFound
from arbor.fs import join
from arbor.http.request import Request
from arbor.http.response import Response
from arbor.routing.result import Stop
from arbor.static import serve_file

logger = logging.getLogger("arbor.server")


def split_path(path: str) -> tuple[str, ...]:
    """Clean *path* and split it into non-empty segments."""
    cleaned = posixpath.normpath("/" + path)
    return tuple(segment for segment in cleaned.split("/") if segment)


def route(root: Dir, request: Request, *, hidden_prefix: str = ".") -> Response:
    """Route *request* through the tree rooted at *root*.

    Raises:
        NotFound: If no handler claims the path and no static file matches.
    """
    current = root
    remaining = split_path(request.path)

    while True:
        if current.handler is not None:
            result = current.handler(remaining, request)
            if isinstance(result, Stop):
                return result.response

        if not remaining:
            raise NotFound()

        segment, rest = remaining[0], remaining[1:]
        child = current.subdirs.get(segment)
        if child is not None:
            current, remaining = child, rest
            continue

        if (
            not rest
            and request.is_read
            and segment in current.files
            and not segment.startswith(hidden_prefix)
        ):
            path = join(current.fs_path, segment)
            return serve_file(current.fs, path, head=request.method == "HEAD")

        raise NotFound()
