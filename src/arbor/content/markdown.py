"""Markdown content rendered by patitas.

After conversion, every ``{name}`` command (lowercase letters and dashes)
becomes an embed of template ``name``, so Markdown pages can pull in
layouts and widgets::

    # Upcoming

    {next-event}

Headings are emitted bare (``<h1>Upcoming</h1>``), without the anchor ids
patitas adds by default.
"""

from __future__ import annotations

import re
from typing import Any

from patitas import Markdown, create_default_registry, create_default_role_registry
from patitas.nodes import Heading
from patitas.renderers.html import HtmlRenderer

from arbor.broker import Broker
from arbor.content.html import decode, html
from arbor.namespace import Contribution

_COMMAND = re.compile(r"\{([a-z-]{1,32})\}")


class _BareHeadingRenderer(HtmlRenderer):
    __slots__ = ()

    def _render_heading(self, heading: Heading, sb: Any, ctx: Any) -> None:
        sb.append(f"<h{heading.level}>")
        self._render_inlines(heading.children, sb, ctx)
        sb.append(f"</h{heading.level}>\n")


def to_html(md: Markdown, source: str, **registries: Any) -> str:
    """Parse *source* with *md* and render it with bare headings."""
    if not source:
        return ""
    doc = md.parse(source)
    return _BareHeadingRenderer(source=source, **registries).render(doc)


def expand_commands(html_text: str) -> str:
    """Replace ``{name}`` commands with template embeds."""
    return _COMMAND.sub(r'{{ template("\1") }}', html_text)


class MarkdownProcessor:
    """Content processor for ``.md`` files, with every patitas plugin enabled."""

    __slots__ = ("_md", "_registries")

    def __init__(self) -> None:
        self._registries = {
            "directive_registry": create_default_registry(),
            "role_registry": create_default_role_registry(),
        }
        self._md = Markdown(plugins=["all"], **self._registries)

    def render(self, source: str) -> str:
        return to_html(self._md, source, **self._registries)

    def __call__(self, url_path: str, stem: str, content: bytes, broker: Broker) -> Contribution:
        converted = expand_commands(self.render(decode(content)))
        return html(url_path, stem, converted.encode("utf-8"), broker)
