"""``arbor serve``: build the App from CLI flags and run it."""

import argparse
import os
import sys
from pathlib import Path

from arbor.app import App
from arbor.config import AppConfig


def config_from_args(args: argparse.Namespace, environ: dict[str, str] | None = None) -> AppConfig:
    """Merge CLI flags over environment and defaults."""
    env = os.environ if environ is None else environ
    defaults = AppConfig()
    return AppConfig(
        host=args.host or defaults.host,
        port=args.port or defaults.port,
        debug=args.debug,
        log_level=args.log_level or defaults.log_level,
        root_dir=Path(args.directory),
        secret=args.secret or env.get("ARBOR_SECRET", ""),
        git_reload=args.git,
    )


def serve(args: argparse.Namespace) -> None:
    """Validate the directory, then start the server."""
    config = config_from_args(args)
    if not Path(config.root_dir).is_dir():
        print(f"Error: not a directory: {config.root_dir}", file=sys.stderr)
        raise SystemExit(1)

    from arbor.server.serve import run_server

    run_server(App(config), host=config.host, port=config.port, log_level=config.log_level)
