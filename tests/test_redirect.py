"""Tests for arbor.handlers.redirect."""

import pytest

from arbor.broker import Broker
from arbor.compiler import compile_tree
from arbor.config import SiteConfig
from arbor.content.html import html
from arbor.dir import Dir
from arbor.errors import ContentError, NotFound
from arbor.fs import MemoryFS
from arbor.handlers.redirect import redirect_handler
from arbor.http.request import Request
from arbor.namespace import TemplateNamespace
from arbor.routing import CONTINUE, Stop, route

CONFIG = SiteConfig(content={".html": html}, handlers={"redirect": redirect_handler})


def _dir() -> Dir:
    return Dir("/a/b", MemoryFS(), "a/b", TemplateNamespace())


class TestRedirectHandler:
    def test_relative_target_joins_request_path(self) -> None:
        handler = redirect_handler(_dir(), "", b"path\n")
        result = handler((), Request.synthetic("/a/b"))
        assert isinstance(result, Stop)
        assert result.response.status == 303
        assert result.response.header("Location") == "/a/b/path"
        assert "See Other" in result.response.text

    def test_relative_parent(self) -> None:
        handler = redirect_handler(_dir(), "", b"../c")
        result = handler((), Request.synthetic("/a/b"))
        assert result.response.header("Location") == "/a/c"

    def test_absolute_path(self) -> None:
        handler = redirect_handler(_dir(), "", b"/elsewhere")
        assert handler((), Request.synthetic("/a/b")).response.header("Location") == "/elsewhere"

    def test_absolute_url(self) -> None:
        handler = redirect_handler(_dir(), "", b"https://example.org/x?y=1")
        location = handler((), Request.synthetic("/a/b")).response.header("Location")
        assert location == "https://example.org/x?y=1"

    def test_remaining_path_continues(self) -> None:
        handler = redirect_handler(_dir(), "", b"/elsewhere")
        assert handler(("file.txt",), Request.synthetic("/a/b/file.txt")) is CONTINUE

    def test_empty_target(self) -> None:
        with pytest.raises(ContentError, match="empty"):
            redirect_handler(_dir(), "", b"  \n")

    def test_location_is_escaped_in_body(self) -> None:
        handler = redirect_handler(_dir(), "", b'/x"><script>')
        body = handler((), Request.synthetic("/a/b")).response.text
        assert "<script>" not in body


class TestRedirectRouting:
    def _root(self) -> Dir:
        fs = MemoryFS(
            {
                "index.html": "home",
                "a/b/redirect": "path",
                "a/b/file.txt": "static next to marker",
                "a/b/sub/index.html": "deeper",
            }
        )
        return compile_tree(CONFIG, fs, Broker()).root

    def test_redirect_at_route(self) -> None:
        response = route(self._root(), Request.synthetic("/a/b"))
        assert response.status == 303
        assert response.header("Location") == "/a/b/path"

    def test_static_alongside_marker(self) -> None:
        response = route(self._root(), Request.synthetic("/a/b/file.txt"))
        assert response.body == b"static next to marker"

    def test_deeper_routing_continues(self) -> None:
        assert route(self._root(), Request.synthetic("/a/b/sub")).text == "deeper"

    def test_unknown_below_marker(self) -> None:
        with pytest.raises(NotFound):
            route(self._root(), Request.synthetic("/a/b/missing"))
