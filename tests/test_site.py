"""Tests for arbor.site: reload, atomic swap, error reporting."""

import threading

import pytest

from arbor.errors import CompileError, NotFound
from arbor.fs import Entry, MemoryFS
from arbor.http.request import Request
from arbor.site import Site


class FlakyFS(MemoryFS):
    """MemoryFS whose root can be made unreadable."""

    __slots__ = ("fail_root",)

    def __init__(self, files) -> None:
        super().__init__(files)
        self.fail_root = False

    def list_dir(self, path: str) -> list[Entry]:
        if self.fail_root and path == ".":
            raise PermissionError("root unreadable")
        return super().list_dir(path)


def _text(site: Site, path: str = "/") -> str:
    return site.route(Request.synthetic(path)).text


class TestReload:
    def test_not_loaded_is_not_found(self) -> None:
        site = Site(MemoryFS({"index.html": "x"}))
        assert not site.loaded
        with pytest.raises(NotFound):
            site.route(Request.synthetic("/"))

    def test_markdown_hello(self) -> None:
        site = Site(MemoryFS({"index.md": "# Hello"}))
        site.reload()
        assert "<h1>Hello</h1>" in _text(site)

    def test_edit_and_reload(self) -> None:
        fs = MemoryFS({"index.md": "# Hello"})
        site = Site(fs)
        site.reload()
        fs["index.md"] = "# Updated"
        assert "<h1>Hello</h1>" in _text(site)
        site.reload()
        assert "<h1>Updated</h1>" in _text(site)
        assert "Hello" not in _text(site)

    def test_only_affected_subtree_changes(self) -> None:
        fs = MemoryFS({"a/index.html": "a1", "b/index.html": "b1"})
        site = Site(fs)
        site.reload()
        fs["b/index.html"] = "b2"
        site.reload()
        assert _text(site, "/a") == "a1"
        assert _text(site, "/b") == "b2"

    def test_old_tree_untouched(self) -> None:
        fs = MemoryFS({"index.html": "old"})
        site = Site(fs)
        site.reload()
        old_root = site.root
        fs["index.html"] = "new"
        site.reload()
        assert site.root is not old_root
        assert old_root.template.render("index", {}) == "old"

    def test_returns_and_stores_errors(self) -> None:
        site = Site(MemoryFS({"bad.html": "{% if %}"}))
        errors = site.reload()
        assert errors == site.errors
        assert len(errors) == 1

    def test_errors_replaced_on_reload(self) -> None:
        fs = MemoryFS({"bad.html": "{% if %}"})
        site = Site(fs)
        site.reload()
        fs["bad.html"] = "fixed"
        site.reload()
        assert site.errors == ()

    def test_root_failure_keeps_previous_tree(self) -> None:
        fs = FlakyFS({"index.html": "still here"})
        site = Site(fs)
        site.reload()
        fs.fail_root = True
        with pytest.raises(CompileError):
            site.reload()
        assert _text(site) == "still here"
        assert site.errors[0].url_path == "/"
        assert "root unreadable" in site.errors[0].message

    def test_concurrent_reloads_are_serialized(self) -> None:
        fs = MemoryFS({f"d{i}/index.html": str(i) for i in range(20)})
        site = Site(fs)
        threads = [threading.Thread(target=site.reload) for _ in range(5)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()
        assert len(site.root.subdirs) == 20
