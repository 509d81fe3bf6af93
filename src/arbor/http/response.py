"""HTTP response value.

Handlers build a ``Response`` and hand it back inside ``Stop``. Extra
headers are added with ``with_header``, which returns a copy.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from html import escape


@dataclass(frozen=True, slots=True)
class Response:
    """A complete HTTP response: status, content type, headers, body."""

    body: str | bytes = ""
    status: int = 200
    content_type: str = "text/html; charset=utf-8"
    headers: tuple[tuple[str, str], ...] = ()

    def with_header(self, name: str, value: str) -> Response:
        return replace(self, headers=(*self.headers, (name, value)))

    def header(self, name: str) -> str | None:
        """First value of header *name* (case-insensitive), or None."""
        lowered = name.lower()
        for key, value in self.headers:
            if key.lower() == lowered:
                return value
        return None

    @property
    def body_bytes(self) -> bytes:
        if isinstance(self.body, str):
            return self.body.encode("utf-8")
        return self.body

    @property
    def text(self) -> str:
        if isinstance(self.body, bytes):
            return self.body.decode("utf-8")
        return self.body


def text_response(body: str, status: int = 200) -> Response:
    """Short plain-text response used by the operational endpoints."""
    return Response(body=body, status=status, content_type="text/plain; charset=utf-8")


def see_other(location: str) -> Response:
    """303 See Other with a tiny HTML body for clients that do not follow it."""
    return Response(
        body=f'<a href="{escape(location)}">See Other</a>.\n',
        status=303,
    ).with_header("Location", location)
