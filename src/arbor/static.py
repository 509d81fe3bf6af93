"""Static file fallback.

Serves a file from a virtual filesystem by path. The router decides
*which* files are eligible; this module only builds the response.
"""

import mimetypes

from arbor.errors import NotFound
from arbor.fs import FileSystem
from arbor.http.response import Response

CACHE_CONTROL = "public, max-age=3600"


def serve_file(fs: FileSystem, path: str, *, head: bool = False) -> Response:
    """Read *path* from *fs* and build a response.

    For HEAD requests the body is omitted but ``Content-Length`` still
    reflects the file size.

    Raises:
        NotFound: If there is no file at *path*.
    """
    try:
        body = fs.read_bytes(path)
    except (FileNotFoundError, IsADirectoryError, NotADirectoryError):
        raise NotFound() from None

    content_type, _ = mimetypes.guess_type(path)
    if content_type is None:
        content_type = "application/octet-stream"

    return (
        Response(body=b"" if head else body, content_type=content_type)
        .with_header("Content-Length", str(len(body)))
        .with_header("Cache-Control", CACHE_CONTROL)
    )
