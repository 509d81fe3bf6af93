"""Arbor application: ASGI entry point around a live ``Site``.

The site is compiled lazily, exactly once, on the first lifespan startup
or HTTP request, whichever comes first. Reload triggers go through
per-endpoint rate limiters whose refill tickers live as long as the
ASGI lifespan.
"""

import logging
import secrets
import threading

import anyio.to_thread

from arbor._internal.asgi import Receive, Scope, Send
from arbor.config import AppConfig, SiteConfig
from arbor.errors import CompileError, ConfigurationError
from arbor.fs import DirFS, FileSystem
from arbor.git import GitRepository
from arbor.limiter import RateLimiter, Ticker
from arbor.server.handler import handle_request
from arbor.site import Site

logger = logging.getLogger("arbor.server")


class App:
    """The arbor application.

    Usage::

        app = App(AppConfig(root_dir="site", secret="s3cr3t"))

    Pass ``fs`` to serve something other than ``config.root_dir`` (tests
    use a ``MemoryFS``) and ``git`` to supply a preconfigured repository
    for ``/git-reload``.
    """

    __slots__ = (
        "_git",
        "_git_reload_limiter",
        "_load_lock",
        "_loaded",
        "_reload_limiter",
        "_secret",
        "_site",
        "_tickers",
        "config",
    )

    def __init__(
        self,
        config: AppConfig | None = None,
        *,
        fs: FileSystem | None = None,
        site_config: SiteConfig | None = None,
        git: GitRepository | None = None,
    ) -> None:
        self.config: AppConfig = config or AppConfig()
        if self.config.reload_capacity < 1 or self.config.reload_interval <= 0:
            msg = "reload_capacity must be at least 1 and reload_interval positive"
            raise ConfigurationError(msg)
        self._site = Site(fs if fs is not None else DirFS(self.config.root_dir), site_config)

        self._secret = self.config.secret
        if not self._secret:
            self._secret = secrets.token_urlsafe(16)
            logger.warning("No secret configured, using temporary secret: %s", self._secret)

        capacity = self.config.reload_capacity
        self._reload_limiter = RateLimiter(capacity, self._site.reload)
        self._git: GitRepository | None = None
        self._git_reload_limiter: RateLimiter | None = None
        if self.config.git_reload:
            self._git = git or GitRepository(self.config.root_dir)
            self._git_reload_limiter = RateLimiter(capacity, self._git_sync_and_reload)

        interval = self.config.reload_interval
        self._tickers = tuple(
            Ticker(interval, limiter.tick)
            for limiter in (self._reload_limiter, self._git_reload_limiter)
            if limiter is not None
        )

        self._loaded = False
        self._load_lock = threading.Lock()

    # -- Public API --

    @property
    def site(self) -> Site:
        return self._site

    @property
    def secret(self) -> str:
        return self._secret

    @property
    def reload_limiter(self) -> RateLimiter:
        return self._reload_limiter

    @property
    def git_reload_limiter(self) -> RateLimiter | None:
        """Limiter behind ``/git-reload``, or None when git reload is disabled."""
        return self._git_reload_limiter

    def ensure_loaded(self) -> None:
        """Thread-safe first compile with double-check locking.

        Several worker threads may hit the app concurrently on its first
        request; exactly one of them compiles. A failed first compile is
        logged and reported through ``/errors`` instead of being retried
        on every request.
        """
        if self._loaded:
            return
        with self._load_lock:
            if self._loaded:
                return
            try:
                self._site.reload()
            except CompileError:
                logger.exception("Initial compile failed")
            self._loaded = True

    async def startup(self) -> None:
        """Compile the site and start the reload tickers."""
        await anyio.to_thread.run_sync(self.ensure_loaded)
        for ticker in self._tickers:
            ticker.start()

    async def shutdown(self) -> None:
        """Stop the reload tickers."""
        for ticker in self._tickers:
            await anyio.to_thread.run_sync(ticker.stop)

    # -- ASGI interface --

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        """ASGI 3.0 entry point."""
        if scope["type"] == "lifespan":
            await self._handle_lifespan(scope, receive, send)
            return

        if not self._loaded:
            await anyio.to_thread.run_sync(self.ensure_loaded)

        await handle_request(scope, receive, send, app=self)

    async def _handle_lifespan(self, scope: Scope, receive: Receive, send: Send) -> None:
        """Run the ASGI lifespan protocol."""
        while True:
            message = await receive()
            msg_type = message["type"]

            if msg_type == "lifespan.startup":
                try:
                    await self.startup()
                    await send({"type": "lifespan.startup.complete"})
                except Exception as exc:
                    await send(
                        {
                            "type": "lifespan.startup.failed",
                            "message": str(exc),
                        }
                    )
                    return

            elif msg_type == "lifespan.shutdown":
                await self.shutdown()
                await send({"type": "lifespan.shutdown.complete"})
                return

    # -- Internal --

    def _git_sync_and_reload(self) -> None:
        assert self._git is not None
        self._git.sync()
        self._site.reload()

    def __repr__(self) -> str:
        return f"App(root_dir={str(self.config.root_dir)!r}, git_reload={self.config.git_reload})"
