"""Copy-on-write template namespaces backed by kida.

Every compiled directory owns a ``TemplateNamespace``: a clone of its
parent's namespace plus the templates its own content files define.
Cloning is O(1); storage is shared until either side defines something,
so a child can never change what its parent renders.

Inside a template, ``template("name")`` embeds another template of the
same namespace with the same data. Undefined names render as nothing,
which lets a layout offer optional slots::

    <main>{{ template("main") }}</main>
"""

from __future__ import annotations

import html as html_module
import threading
from collections.abc import Iterator, Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any

from kida import DictLoader, Environment
from kida.template import Markup

from arbor.errors import ContentError

# Embedding deeper than this is treated as a template cycle
MAX_DEPTH = 32

_ERROR_STYLE = "border: solid red 2px; border-radius: 8px; padding: 12px"


def error_block(title: str, message: str) -> Markup:
    """Visually distinct inline error notice, safe to embed in any page."""
    return Markup(
        f'<p class="arbor-error" style="{_ERROR_STYLE}">'
        f"{html_module.escape(title)}: {html_module.escape(message)}</p>"
    )


def is_template_error(exc: BaseException) -> bool:
    """Check if an exception originates from the kida template engine."""
    module = type(exc).__module__ or ""
    return "kida" in module


@dataclass(frozen=True, slots=True)
class Contribution:
    """What a content processor adds to a namespace: one template.

    ``context`` holds variables visible only while this template renders,
    such as the defining directory's URL path or data accessor functions.
    """

    source: str
    context: Mapping[str, Any] = field(default_factory=dict)


@dataclass(frozen=True, slots=True)
class _Entry:
    source: str
    context: Mapping[str, Any]
    static: bool = False  # pre-rendered HTML, bypasses kida


_parser_lock = threading.Lock()
_parser: Environment | None = None


def _check_syntax(name: str, source: str) -> None:
    """Parse *source* once so syntax errors surface at compile time."""
    global _parser
    with _parser_lock:
        if _parser is None:
            _parser = Environment(autoescape=True)
        parser = _parser
    try:
        parser.from_string(source)
    except Exception as exc:
        if not is_template_error(exc):
            raise
        msg = f"template {name!r}: {exc}"
        raise ContentError(msg) from exc


class TemplateNamespace:
    """Named templates with inherited, copy-on-write storage."""

    __slots__ = ("_entries", "_env", "_env_lock", "_shared")

    def __init__(self) -> None:
        self._entries: dict[str, _Entry] = {}
        self._shared = False
        self._env: Environment | None = None
        self._env_lock = threading.Lock()

    # -- Structure --

    def clone(self) -> TemplateNamespace:
        """Return a namespace with the same templates. Writes never leak across."""
        other = TemplateNamespace()
        other._entries = self._entries
        other._shared = True
        self._shared = True
        return other

    def _own(self) -> None:
        if self._shared:
            self._entries = dict(self._entries)
            self._shared = False
        self._env = None

    def define(self, name: str, source: str, context: Mapping[str, Any] | None = None) -> None:
        """Add or replace template *name*.

        Raises:
            ContentError: If *source* is not a valid kida template.
        """
        _check_syntax(name, source)
        self._own()
        self._entries[name] = _Entry(source, MappingProxyType(dict(context or {})))

    def define_static(self, name: str, html: str) -> None:
        """Add or replace *name* with pre-rendered HTML (no template syntax)."""
        self._own()
        self._entries[name] = _Entry(html, MappingProxyType({}), static=True)

    def define_error(self, name: str, message: str) -> None:
        """Replace *name* with an inline parse-error notice."""
        self.define_static(name, str(error_block("Error parsing template", message)))

    def contribute(self, name: str, contribution: Contribution) -> None:
        """Define *name* from a content processor's contribution."""
        self.define(name, contribution.source, contribution.context)

    def copy(self, dst: str, src: str) -> None:
        """Make *dst* a duplicate of *src*, overwriting any previous *dst*."""
        entry = self._entries.get(src)
        if entry is None:
            msg = f"template {src!r} not defined"
            raise ContentError(msg)
        self._own()
        self._entries[dst] = entry

    def rename(self, dst: str, src: str) -> None:
        """Move *src* to *dst*, overwriting any previous *dst*."""
        self.copy(dst, src)
        if dst != src:
            del self._entries[src]

    # -- Lookup --

    def __contains__(self, name: object) -> bool:
        return name in self._entries

    def __iter__(self) -> Iterator[str]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    # -- Rendering --

    def render(self, name: str, data: Mapping[str, Any]) -> str:
        """Render template *name* with *data*.

        Raises:
            KeyError: If *name* is not defined.
            Exception: Whatever kida raises while executing the template.
        """
        if name not in self._entries:
            raise KeyError(name)
        return str(self._render(name, dict(data), 0))

    def _render(self, name: str, data: dict[str, Any], depth: int) -> Markup:
        entry = self._entries.get(name)
        if entry is None:
            return Markup("")
        if entry.static:
            return Markup(entry.source)
        if depth >= MAX_DEPTH:
            msg = f"template {name!r} nested deeper than {MAX_DEPTH} levels"
            raise ContentError(msg)

        def embed(child: str) -> Markup:
            return self._render(child, data, depth + 1)

        ctx = {**data, **entry.context, "template": embed}
        return Markup(self._environment().get_template(name).render(ctx))

    def _environment(self) -> Environment:
        with self._env_lock:
            if self._env is None:
                sources = {
                    name: entry.source
                    for name, entry in self._entries.items()
                    if not entry.static
                }
                self._env = Environment(loader=DictLoader(sources), autoescape=True)
            return self._env

    def __repr__(self) -> str:
        return f"TemplateNamespace({sorted(self._entries)!r})"
