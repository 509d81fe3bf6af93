"""Runs an arbor App on a pounce ASGI server."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from arbor.app import App


def run_server(app: App, *, host: str, port: int, log_level: str = "info") -> None:
    """Start a single-worker pounce server with the live App object.

    One worker keeps one site in memory, so reload endpoints and the
    served tree always agree.
    """
    from pounce.config import ServerConfig
    from pounce.server import Server

    config = ServerConfig(
        host=host,
        port=port,
        workers=1,
        reload=False,
        log_level=log_level,
    )
    server = Server(config, app)
    server.run()
