"""Arbor CLI: serve a content directory.

Entry point registered as ``arbor`` in ``pyproject.toml``::

    [project.scripts]
    arbor = "arbor.cli:main"
"""

import argparse
import sys


def main(argv: list[str] | None = None) -> None:
    """CLI entry point for the ``arbor`` command."""
    parser = argparse.ArgumentParser(
        prog="arbor",
        description="Arbor: serve a directory tree of content as a website.",
    )
    subparsers = parser.add_subparsers(dest="command")

    # -- arbor serve ------------------------------------------------------
    serve_parser = subparsers.add_parser("serve", help="Compile and serve a content directory")
    serve_parser.add_argument(
        "directory",
        nargs="?",
        default=".",
        help="Content directory (default: current directory)",
    )
    serve_parser.add_argument("--host", default=None, help="Bind host address")
    serve_parser.add_argument("--port", type=int, default=None, help="Bind port number")
    serve_parser.add_argument(
        "--secret",
        default=None,
        help="Secret for /reload and /git-reload (default: $ARBOR_SECRET, else random)",
    )
    serve_parser.add_argument(
        "--git",
        action="store_true",
        help="Enable /git-reload (directory must be a git working copy)",
    )
    serve_parser.add_argument(
        "--log-level",
        default=None,
        choices=["debug", "info", "warning", "error", "critical"],
        help="Log level (default: info)",
    )
    serve_parser.add_argument("--debug", action="store_true", help="Show error details in 500s")

    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        sys.exit(0)

    if args.command == "serve":
        from arbor.cli._serve import serve

        serve(args)
