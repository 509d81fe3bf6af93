"""Immutable HTTP request.

Frozen metadata only. Templates receive this object as ``request``, so it
carries no body stream and no cookies. Header names are lowercased and
repeated headers are folded into one comma-separated value; query
parameters keep their first value.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any
from urllib.parse import parse_qsl

_EMPTY: Mapping[str, str] = MappingProxyType({})


def fold_headers(raw: Iterable[tuple[bytes, bytes]]) -> Mapping[str, str]:
    """ASGI header pairs -> read-only ``{lowercase name: value}``."""
    folded: dict[str, str] = {}
    for name_b, value_b in raw:
        name = name_b.decode("latin-1").lower()
        value = value_b.decode("latin-1")
        folded[name] = f"{folded[name]}, {value}" if name in folded else value
    return MappingProxyType(folded)


def parse_query(query_string: str) -> Mapping[str, str]:
    """Query string -> read-only mapping of each parameter's first value."""
    params: dict[str, str] = {}
    for key, value in parse_qsl(query_string, keep_blank_values=True):
        params.setdefault(key, value)
    return MappingProxyType(params)


@dataclass(frozen=True, slots=True)
class Request:
    """An immutable HTTP request."""

    method: str
    path: str
    query_string: str = ""
    headers: Mapping[str, str] = _EMPTY
    query: Mapping[str, str] = field(init=False)
    http_version: str = "1.1"
    client: tuple[str, int] | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "query", parse_query(self.query_string))

    @property
    def is_read(self) -> bool:
        """True for GET and HEAD, the only methods allowed to reach static files."""
        return self.method in ("GET", "HEAD")

    @property
    def url(self) -> str:
        """Request path plus query string."""
        if self.query_string:
            return f"{self.path}?{self.query_string}"
        return self.path

    @classmethod
    def from_asgi(cls, scope: dict[str, Any]) -> Request:
        """Create a Request from an ASGI scope."""
        client = scope.get("client")
        return cls(
            method=scope["method"],
            path=scope["path"],
            query_string=scope.get("query_string", b"").decode("latin-1"),
            headers=fold_headers(scope.get("headers", ())),
            http_version=scope.get("http_version", "1.1"),
            client=tuple(client) if client else None,
        )

    @classmethod
    def synthetic(cls, path: str, method: str = "GET") -> Request:
        """Build a request that did not come from a client (compile-time rendering)."""
        path, _, query = path.partition("?")
        return cls(method=method, path=path or "/", query_string=query)
