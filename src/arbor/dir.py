"""Compiled directory node."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from kida.template import Markup

from arbor.namespace import TemplateNamespace, error_block

if TYPE_CHECKING:
    from arbor.broker import Broker
    from arbor._internal.types import Handler
    from arbor.fs import FileSystem
    from arbor.http.request import Request

logger = logging.getLogger("arbor.compiler")


@dataclass(slots=True)
class Dir:
    """One filesystem directory after compilation.

    Built once per compile pass and never mutated after the pass ends.
    ``handler`` is assigned last, once every subdirectory is compiled,
    so handler generators can inspect the finished subtree.
    """

    url_path: str
    fs: FileSystem
    fs_path: str
    template: TemplateNamespace
    subdirs: dict[str, Dir] = field(default_factory=dict)
    files: frozenset[str] = frozenset()
    own_templates: tuple[str, ...] = ()
    root_template: str = "html"
    broker: Broker | None = None
    handler: Handler | None = None

    @property
    def dirpath(self) -> str:
        """URL path usable as a link prefix (``""`` at the root)."""
        return self.url_path.rstrip("/")

    def data(self, request: Request | None = None, **extra: Any) -> dict[str, Any]:
        """Data object passed to templates rendered for this directory."""
        return {"dir": self, "request": request, "dirpath": self.dirpath, **extra}

    def execute_template(self, name: str, request: Request | None = None) -> Markup:
        """Render template *name* as markup, or an inline error block on failure."""
        if request is None:
            from arbor.http.request import Request

            request = Request.synthetic(self.url_path)
        if name not in self.template:
            return Markup("")
        try:
            return Markup(self.template.render(name, self.data(request)))
        except Exception as exc:
            logger.warning("%s: executing template %r: %s", self.url_path, name, exc)
            return error_block("Error executing template", str(exc))

    def __repr__(self) -> str:
        return f"Dir({self.url_path!r}, subdirs={sorted(self.subdirs)!r})"
