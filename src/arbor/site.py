"""The live site: current compiled tree, its errors, and reloading."""

import logging
import threading
import time

from arbor.broker import Broker
from arbor.compiler import ErrorRecord, compile_tree
from arbor.config import SiteConfig, default_site_config
from arbor.dir import Dir
from arbor.errors import CompileError, NotFound
from arbor.fs import FileSystem
from arbor.http.request import Request
from arbor.http.response import Response
from arbor.routing import route

logger = logging.getLogger("arbor.reload")


class Site:
    """Owns the filesystem and the currently served ``Dir`` tree.

    ``reload()`` builds a complete new tree with a fresh broker and only
    then swaps it in, so requests always see one consistent tree. The old
    tree is never mutated. Compile passes are serialized by their own lock;
    the swap takes a second, short-lived lock that readers share.
    """

    __slots__ = ("_config", "_errors", "_fs", "_lock", "_reload_lock", "_root")

    def __init__(self, fs: FileSystem, config: SiteConfig | None = None) -> None:
        self._fs = fs
        self._config = config or default_site_config()
        self._root: Dir | None = None
        self._errors: tuple[ErrorRecord, ...] = ()
        self._lock = threading.Lock()
        self._reload_lock = threading.Lock()

    @property
    def fs(self) -> FileSystem:
        return self._fs

    @property
    def config(self) -> SiteConfig:
        return self._config

    @property
    def root(self) -> Dir | None:
        with self._lock:
            return self._root

    @property
    def errors(self) -> tuple[ErrorRecord, ...]:
        with self._lock:
            return self._errors

    @property
    def loaded(self) -> bool:
        return self.root is not None

    def reload(self) -> tuple[ErrorRecord, ...]:
        """Compile the filesystem and swap in the new tree.

        Returns the error records of the new tree.

        Raises:
            CompileError: If the root directory cannot be read. The
                previous tree stays in service.
        """
        with self._reload_lock:
            start = time.perf_counter()
            broker = Broker()
            try:
                result = compile_tree(self._config, self._fs, broker)
            except CompileError as exc:
                logger.error("reload failed, keeping previous tree: %s", exc)
                with self._lock:
                    self._errors = (ErrorRecord("/", str(exc)),)
                raise
            broker.ready()

            with self._lock:
                self._root = result.root
                self._errors = result.errors

            elapsed = (time.perf_counter() - start) * 1000
            logger.info(
                "compiled %s in %.0f ms with %d error(s)", self._fs, elapsed, len(result.errors)
            )
            return result.errors

    def route(self, request: Request) -> Response:
        """Route *request* through the current tree.

        Raises:
            NotFound: If nothing matches, or no tree has been compiled yet.
        """
        root = self.root
        if root is None:
            raise NotFound()
        return route(root, request, hidden_prefix=self._config.hidden_prefix)
