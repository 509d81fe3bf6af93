"""Default directory handler: render the compiled template."""

import logging

from arbor._internal.types import Handler
from arbor.dir import Dir
from arbor.http.request import Request
from arbor.http.response import Response
from arbor.namespace import error_block
from arbor.routing.result import CONTINUE, HandlerResult, Stop

logger = logging.getLogger("arbor.server")


def render_page(dir: Dir, request: Request) -> str:
    """Render *dir* as a full page.

    Uses the root template when the namespace has one, otherwise the
    directory's own content templates in file order.

    Raises:
        Exception: Whatever the template engine raises during execution.
    """
    data = dir.data(request)
    if dir.root_template in dir.template:
        return dir.template.render(dir.root_template, data)
    return "".join(dir.template.render(name, data) for name in dir.own_templates)


def template_handler(dir: Dir) -> Handler:
    """Handler that renders *dir* when the request path ends at it."""

    def handle(remaining: tuple[str, ...], request: Request) -> HandlerResult:
        if remaining:
            return CONTINUE
        try:
            body = render_page(dir, request)
        except Exception as exc:
            logger.warning("%s: executing template: %s", dir.url_path, exc)
            body = str(error_block("Error executing template", str(exc)))
        return Stop(Response(body=body))

    return handle


def check_render(dir: Dir) -> str | None:
    """Trial-render *dir* with a synthetic request; return the error message, if any."""
    try:
        render_page(dir, Request.synthetic(dir.url_path))
    except Exception as exc:
        return f"executing template: {exc}"
    return None
