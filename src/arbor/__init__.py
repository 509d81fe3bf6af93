"""Arbor: compile a directory tree of content into a website.

Every directory becomes a route. Content files (Markdown, HTML templates,
countdowns, post lists) become templates that subdirectories inherit,
marker files such as ``redirect`` or ``miniblog`` attach handlers, and
everything else is served as a static file.

Basic usage::

    from arbor import App, AppConfig

    app = App(AppConfig(root_dir="site", secret="s3cr3t"))

Or from the command line::

    arbor serve site --secret s3cr3t
"""

__version__ = "0.1.0"
__all__ = [
    "App",
    "AppConfig",
    "ArborError",
    "Broker",
    "CompileError",
    "ConfigurationError",
    "ContentError",
    "Dir",
    "DirFS",
    "GitSyncError",
    "HTTPError",
    "MemoryFS",
    "NotFound",
    "Request",
    "Response",
    "Site",
    "SiteConfig",
    "TemplateNamespace",
    "compile_tree",
    "default_site_config",
    "route",
]


def __getattr__(name: str) -> object:
    """Lazy imports for public API.

    Keeps ``import arbor`` fast while providing a clean top-level API.
    """
    if name == "App":
        from arbor.app import App

        return App

    if name in ("AppConfig", "SiteConfig", "default_site_config"):
        from arbor import config as _config

        return getattr(_config, name)

    if name == "Broker":
        from arbor.broker import Broker

        return Broker

    if name == "compile_tree":
        from arbor.compiler import compile_tree

        return compile_tree

    if name == "Dir":
        from arbor.dir import Dir

        return Dir

    if name in ("DirFS", "MemoryFS"):
        from arbor import fs as _fs

        return getattr(_fs, name)

    if name == "Request":
        from arbor.http.request import Request

        return Request

    if name == "Response":
        from arbor.http.response import Response

        return Response

    if name == "TemplateNamespace":
        from arbor.namespace import TemplateNamespace

        return TemplateNamespace

    if name == "route":
        from arbor.routing import route

        return route

    if name == "Site":
        from arbor.site import Site

        return Site

    if name in (
        "ArborError",
        "CompileError",
        "ConfigurationError",
        "ContentError",
        "GitSyncError",
        "HTTPError",
        "NotFound",
    ):
        from arbor import errors as _errors

        return getattr(_errors, name)

    msg = f"module {__name__!r} has no attribute {name!r}"
    raise AttributeError(msg)
