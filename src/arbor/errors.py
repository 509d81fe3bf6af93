"""Arbor exception hierarchy.

Shared across the compiler, router, reload orchestration, and the ASGI
handler so every module raises and catches the same types.
"""

from dataclasses import dataclass


class ArborError(Exception):
    """Base for all arbor-specific errors."""


class ConfigurationError(ArborError):
    """Raised when site or app configuration is invalid."""


class CompileError(ArborError):
    """A directory could not be enumerated during a compile pass.

    Aborts the compilation of that subtree only.
    """


class ContentError(ArborError):
    """A single content or handler file could not be processed.

    Never fatal: the compiler records it and renders an inline notice
    in place of the broken content.
    """


class GitSyncError(ArborError):
    """The git working copy could not be synchronized with its remote."""


@dataclass(frozen=True, slots=True)
class HTTPError(ArborError):
    """An error that maps directly to an HTTP status code.

    Raised by the router and the built-in endpoints. The ASGI handler
    catches these and turns them into a short plain-text response.
    """

    status: int
    detail: str = ""
    headers: tuple[tuple[str, str], ...] = ()

    def __str__(self) -> str:
        if self.detail:
            return f"{self.status}: {self.detail}"
        return str(self.status)


class NotFound(HTTPError):  # noqa: N818
    """404: no directory, handler, or static file matched the request path."""

    def __init__(self, detail: str = "Not Found") -> None:
        super().__init__(status=404, detail=detail)


class Unauthorized(HTTPError):  # noqa: N818
    """401: a protected endpoint was called without the right secret."""

    def __init__(self, detail: str = "unauthorized") -> None:
        super().__init__(status=401, detail=detail)


class MethodNotAllowed(HTTPError):  # noqa: N818
    """405: the endpoint exists but not for this HTTP method.

    Includes an ``Allow`` header listing the valid methods.
    """

    def __init__(self, allowed: frozenset[str], detail: str = "") -> None:
        allow_value = ", ".join(sorted(allowed))
        default_detail = f"Method not allowed. Allowed methods: {allow_value}"
        super().__init__(
            status=405,
            detail=detail or default_detail,
            headers=(("Allow", allow_value),),
        )
