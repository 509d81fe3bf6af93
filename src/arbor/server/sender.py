"""Writes an arbor ``Response`` to an ASGI ``send`` callable."""

from arbor._internal.asgi import Send
from arbor.http.response import Response

# Statuses that never carry a message body
_NO_BODY = frozenset({204, 304})


def _encode_headers(response: Response, length: int) -> list[tuple[bytes, bytes]]:
    """Lowercased header pairs with exactly one ``content-length``.

    An explicit ``Content-Length`` on the response wins over *length*;
    static files set it so HEAD can report the size of a body it omits.
    """
    headers = [(b"content-type", response.content_type.encode("latin-1"))]
    explicit = response.header("content-length")
    for name, value in response.headers:
        if name.lower() != "content-length":
            headers.append((name.lower().encode("latin-1"), value.encode("latin-1")))
    headers.append((b"content-length", (explicit or str(length)).encode("latin-1")))
    return headers


async def send_response(response: Response, send: Send, *, head: bool = False) -> None:
    """Send the start and body messages for *response*.

    HEAD responses keep their headers but carry no body.
    """
    status = response.status
    body = b"" if status < 200 or status in _NO_BODY else response.body_bytes
    length = len(body)
    if not head:
        # The body actually sent decides its length
        response = Response(
            body=body,
            status=status,
            content_type=response.content_type,
            headers=tuple(h for h in response.headers if h[0].lower() != "content-length"),
        )
    await send(
        {
            "type": "http.response.start",
            "status": status,
            "headers": _encode_headers(response, length),
        }
    )
    await send({"type": "http.response.body", "body": b"" if head else body})
