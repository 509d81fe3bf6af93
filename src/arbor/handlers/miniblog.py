"""Minimal blog: a ``miniblog`` marker file turns its directory into a blog.

Content files whose stem starts with an ISO date (``2024-05-01-launch.md``)
are posts, listed newest first. Other content files of the directory are
shown above the post list. Every post is reachable at its slug below the
blog URL.

The post previews are published on the compile pass's broker under the
blog's URL path, where ``.latest`` files anywhere in the tree pick them
up::

    /blog:5
"""

import logging
import posixpath
import re
from dataclasses import dataclass
from html.parser import HTMLParser
from typing import Any

from arbor._internal.types import Handler
from arbor.broker import Broker
from arbor.compiler import slugify
from arbor.dir import Dir
from arbor.errors import ContentError
from arbor.http.request import Request
from arbor.http.response import Response
from arbor.namespace import Contribution, TemplateNamespace, error_block
from arbor.routing.result import CONTINUE, HandlerResult, Stop

logger = logging.getLogger("arbor.compiler")

_ISO_DATE = re.compile(r"[0-9]{4}-[0-9]{2}-[0-9]{2}")

DEFAULT_LATEST = 10

# Only the beginning of a post is searched for its title
_HEADING_SCAN_LIMIT = 4096

POST_LIST = """\
<ul>
{% for post in posts %}  <li id="{{ post.anchor }}"><a href="{{ post.url }}">{{ post.date }} {{ post.title }}</a></li>
{% end %}</ul>
"""

INDEX_TEMPLATE = (
    """{% for name in intro %}{{ template(name) }}{% end %}\n""" + POST_LIST
)

POST_TEMPLATE = """\
<p><a href="{{ back_url }}">Back to Blog</a></p>
<p>{{ post_date }}</p>
{{ template("post") }}
"""

LATEST_TEMPLATE = (
    """{% set posts = latest_posts() %}{% if posts %}\n""" + POST_LIST + """{% end %}"""
)


@dataclass(frozen=True, slots=True)
class PostPreview:
    """What a post list shows about one post."""

    anchor: str
    date: str
    title: str
    url: str


class _HeadingParser(HTMLParser):
    def __init__(self) -> None:
        super().__init__(convert_charrefs=True)
        self.tag: str | None = None
        self.parts: list[str] = []
        self.done = False

    def handle_starttag(self, tag: str, attrs: list[tuple[str, str | None]]) -> None:
        if self.tag is None and not self.done and tag in ("h1", "h2", "h3", "h4"):
            self.tag = tag

    def handle_endtag(self, tag: str) -> None:
        if tag == self.tag:
            self.tag = None
            self.done = True

    def handle_data(self, data: str) -> None:
        if self.tag is not None:
            self.parts.append(data)


def first_heading(html: str) -> str:
    """Text of the first ``h1``-``h4`` element near the start of *html*."""
    parser = _HeadingParser()
    parser.feed(html[:_HEADING_SCAN_LIMIT])
    parser.close()
    if not parser.done:
        return ""
    return " ".join("".join(parser.parts).split())


def is_post(name: str) -> bool:
    return len(name) >= 10 and _ISO_DATE.fullmatch(name[:10]) is not None


def _render(dir: Dir, namespace: TemplateNamespace, request: Request) -> Response:
    name = dir.root_template if dir.root_template in namespace else "main"
    try:
        body = namespace.render(name, dir.data(request))
    except Exception as exc:
        logger.warning("%s: executing template: %s", dir.url_path, exc)
        body = str(error_block("Error executing template", str(exc)))
    return Response(body=body)


def miniblog_handler(dir: Dir, stem: str, content: bytes) -> Handler:
    """Turn *dir* into a blog and publish its post previews."""
    posts = sorted((name for name in dir.own_templates if is_post(name)), reverse=True)
    intro = tuple(
        name
        for name in dir.own_templates
        if not is_post(name) and name != dir.root_template
    )

    previews: list[PostPreview] = []
    pages: dict[str, TemplateNamespace] = {}
    for name in posts:
        slug = slugify(name)
        title = first_heading(str(dir.execute_template(name))) or name
        previews.append(
            PostPreview(
                anchor=slug,
                date=name[:10],
                title=title,
                url=posixpath.join(dir.url_path, slug),
            )
        )
        page = dir.template.clone()
        page.rename("post", name)
        page.define(
            "main",
            POST_TEMPLATE,
            {"back_url": f"{dir.url_path}#{slug}", "post_date": name[:10]},
        )
        pages[slug] = page

    index = dir.template.clone()
    index.define("main", INDEX_TEMPLATE, {"posts": tuple(previews), "intro": intro})

    if dir.broker is not None:
        dir.broker.publish(dir.url_path, tuple(previews))
    logger.debug("%s: blog with %d posts", dir.url_path, len(previews))

    def handle(remaining: tuple[str, ...], request: Request) -> HandlerResult:
        if not remaining:
            return Stop(_render(dir, index, request))
        if len(remaining) == 1 and remaining[0] in pages:
            return Stop(_render(dir, pages[remaining[0]], request))
        return CONTINUE

    return handle


def _parse_latest(content: bytes) -> tuple[str, int]:
    try:
        text = content.decode("utf-8").strip()
    except UnicodeDecodeError as exc:
        msg = f"latest: not UTF-8: {exc}"
        raise ContentError(msg) from exc
    blog, _, quantity = text.partition(":")
    if not blog.strip():
        msg = "latest: missing blog path"
        raise ContentError(msg)
    try:
        count = int(quantity)
    except ValueError:
        count = DEFAULT_LATEST
    if count <= 0:
        count = DEFAULT_LATEST
    return posixpath.normpath("/" + blog.strip().strip("/")), count


def latest(url_path: str, stem: str, content: bytes, broker: Broker) -> Contribution:
    """Content processor listing the newest posts of a blog.

    The file holds ``<blog url path>[:<count>]``; count defaults to 10.
    """
    key, count = _parse_latest(content)
    received: list[PostPreview] = []

    def receive(data: Any) -> None:
        received[:] = list(data or ())[:count]

    broker.subscribe(key, receive)
    return Contribution(LATEST_TEMPLATE, {"latest_posts": lambda: tuple(received)})
