"""End-to-end tests for arbor.app through the ASGI interface."""

import json
import subprocess
from typing import Any

import pytest

from arbor.app import App
from arbor.config import AppConfig
from arbor.errors import ConfigurationError
from arbor.fs import MemoryFS
from arbor.git import GitRepository
from arbor.testing import TestClient


def _app(files: dict[str, str], **config: Any) -> tuple[App, MemoryFS]:
    fs = MemoryFS(files)
    config.setdefault("secret", "s")
    return App(AppConfig(**config), fs=fs), fs


def _git(status: str = "") -> GitRepository:
    def run(command, *, cwd, capture_output, text, check):
        stdout = status if command[1] == "status" else ""
        return subprocess.CompletedProcess(command, 0, stdout, "")

    return GitRepository(".", run=run, interactive=lambda: False)


class TestPages:
    async def test_markdown_page(self) -> None:
        app, _ = _app({"index.md": "# Hello"})
        async with TestClient(app) as client:
            response = await client.get("/")
        assert response.status == 200
        assert "<h1>Hello</h1>" in response.text

    async def test_first_request_compiles_without_lifespan(self) -> None:
        app, _ = _app({"index.html": "lazy"})
        response = await TestClient(app).get("/")
        assert response.text == "lazy"
        assert app.site.loaded

    async def test_unknown_path_is_404(self) -> None:
        app, _ = _app({"index.html": "x"})
        async with TestClient(app) as client:
            response = await client.get("/nope")
        assert response.status == 404
        assert response.content_type.startswith("text/plain")

    async def test_static_head_has_length_but_no_body(self) -> None:
        app, _ = _app({"style.css": "body{}"})
        async with TestClient(app) as client:
            response = await client.head("/style.css")
        assert response.status == 200
        assert response.body == b""
        assert response.header("content-length") == "6"
        assert response.content_type == "text/css"

    async def test_post_to_static_file_is_404(self) -> None:
        app, _ = _app({"style.css": "body{}"})
        async with TestClient(app) as client:
            response = await client.post("/style.css")
        assert response.status == 404


class TestReloadEndpoint:
    async def test_reload_picks_up_edit(self) -> None:
        app, fs = _app({"index.md": "# Hello"})
        async with TestClient(app) as client:
            assert "<h1>Hello</h1>" in (await client.get("/")).text
            fs["index.md"] = "# Updated"
            response = await client.get("/reload?secret=s")
            assert response.status == 200
            assert response.text.startswith("reload took ")
            assert response.text.endswith(" milliseconds")
            assert "<h1>Updated</h1>" in (await client.get("/")).text

    async def test_post_is_accepted(self) -> None:
        app, _ = _app({"index.html": "x"})
        async with TestClient(app) as client:
            response = await client.post("/reload?secret=s")
        assert response.status == 200

    @pytest.mark.parametrize("path", ["/reload", "/reload?secret=wrong", "/reload?secret="])
    async def test_bad_secret(self, path: str) -> None:
        app, _ = _app({"index.html": "x"})
        async with TestClient(app) as client:
            response = await client.get(path)
        assert response.status == 401
        assert response.text == "unauthorized"

    async def test_method_not_allowed(self) -> None:
        app, _ = _app({"index.html": "x"})
        async with TestClient(app) as client:
            response = await client.request("PUT", "/reload?secret=s")
        assert response.status == 405
        assert response.header("allow") == "GET, POST"

    @pytest.mark.parametrize("path", ["/reload?secret=s", "/git-reload?secret=s"])
    async def test_head_does_not_trigger(self, path: str) -> None:
        fs = MemoryFS({"index.html": "v1"})
        app = App(AppConfig(secret="s", git_reload=True), fs=fs, git=_git())
        async with TestClient(app) as client:
            fs["index.html"] = "v2"
            response = await client.head(path)
            assert response.status == 405
            assert (await client.get("/")).text == "v1"
        assert not app.reload_limiter.pending
        assert not app.git_reload_limiter.pending

    async def test_rate_limited_reload_is_scheduled(self) -> None:
        app, fs = _app({"index.html": "v1"}, reload_capacity=1)
        async with TestClient(app) as client:
            first = await client.get("/reload?secret=s")
            assert first.text.startswith("reload took")
            fs["index.html"] = "v2"
            second = await client.get("/reload?secret=s")
            assert second.status == 200
            assert second.text == "reload scheduled"
            assert (await client.get("/")).text == "v1"

            app.reload_limiter.tick()
            assert (await client.get("/")).text == "v2"

    async def test_generated_secret(self) -> None:
        app = App(AppConfig(), fs=MemoryFS({"index.html": "x"}))
        assert app.secret
        async with TestClient(app) as client:
            response = await client.get(f"/reload?secret={app.secret}")
        assert response.status == 200


class TestErrorsEndpoint:
    async def test_clean_site(self) -> None:
        app, _ = _app({"index.html": "x"})
        async with TestClient(app) as client:
            response = await client.get("/errors")
        assert response.status == 200
        assert response.content_type == "application/json"
        assert json.loads(response.text) == []

    async def test_reports_compile_errors(self) -> None:
        app, _ = _app({"docs/broken.html": "{% if %}"})
        async with TestClient(app) as client:
            records = json.loads((await client.get("/errors")).text)
        assert len(records) == 1
        assert records[0]["urlpath"] == "/docs"
        assert "broken.html" in records[0]["message"]

    async def test_errors_follow_reload(self) -> None:
        app, fs = _app({"index.html": "{% if %}"})
        async with TestClient(app) as client:
            assert json.loads((await client.get("/errors")).text)
            fs["index.html"] = "fine"
            await client.get("/reload?secret=s")
            assert json.loads((await client.get("/errors")).text) == []

    async def test_post_not_allowed(self) -> None:
        app, _ = _app({"index.html": "x"})
        async with TestClient(app) as client:
            response = await client.post("/errors")
        assert response.status == 405


class TestGitReloadEndpoint:
    async def test_disabled_is_404(self) -> None:
        app, _ = _app({"index.html": "x"})
        assert app.git_reload_limiter is None
        async with TestClient(app) as client:
            response = await client.get("/git-reload?secret=s")
        assert response.status == 404

    async def test_sync_and_reload(self) -> None:
        fs = MemoryFS({"index.html": "x"})
        app = App(AppConfig(secret="s", git_reload=True), fs=fs, git=_git())
        async with TestClient(app) as client:
            response = await client.get("/git-reload?secret=s")
        assert response.status == 200
        assert response.text.startswith("git reload took ")

    async def test_local_changes_fail(self) -> None:
        fs = MemoryFS({"index.html": "x"})
        app = App(AppConfig(secret="s", git_reload=True), fs=fs, git=_git(" M index.html\n"))
        async with TestClient(app) as client:
            response = await client.get("/git-reload?secret=s")
        assert response.status == 500
        assert response.text == "git reload failed: git working copy has local changes"

    async def test_requires_secret(self) -> None:
        fs = MemoryFS({"index.html": "x"})
        app = App(AppConfig(secret="s", git_reload=True), fs=fs, git=_git())
        async with TestClient(app) as client:
            response = await client.get("/git-reload")
        assert response.status == 401


class TestLifecycle:
    def test_invalid_reload_settings(self) -> None:
        with pytest.raises(ConfigurationError):
            App(AppConfig(reload_capacity=0), fs=MemoryFS())

    async def test_lifespan_protocol(self) -> None:
        app, _ = _app({"index.html": "x"})
        incoming = [{"type": "lifespan.startup"}, {"type": "lifespan.shutdown"}]
        sent: list[dict[str, Any]] = []

        async def receive() -> dict[str, Any]:
            return incoming.pop(0)

        async def send(message: dict[str, Any]) -> None:
            sent.append(message)

        await app({"type": "lifespan"}, receive, send)
        assert [m["type"] for m in sent] == [
            "lifespan.startup.complete",
            "lifespan.shutdown.complete",
        ]
        assert app.site.loaded

    async def test_failed_first_compile_is_reported(self) -> None:
        class Unreadable(MemoryFS):
            def list_dir(self, path: str):
                raise PermissionError("denied")

        app = App(AppConfig(secret="s"), fs=Unreadable())
        async with TestClient(app) as client:
            page = await client.get("/")
            errors = json.loads((await client.get("/errors")).text)
        assert page.status == 404
        assert errors[0]["urlpath"] == "/"
        assert "denied" in errors[0]["message"]
