"""Shared type aliases used across arbor modules."""

from collections.abc import Callable
from typing import TYPE_CHECKING, TypeAlias

if TYPE_CHECKING:
    from arbor.broker import Broker
    from arbor.dir import Dir
    from arbor.http.request import Request
    from arbor.namespace import Contribution
    from arbor.routing.result import HandlerResult

# Per-directory request handler: receives the path segments not yet consumed
# by the router and decides whether routing continues.
Handler: TypeAlias = Callable[[tuple[str, ...], "Request"], "HandlerResult"]

# (url_path, file_root, file_content, broker) -> template contribution
ContentProcessor: TypeAlias = Callable[[str, str, bytes, "Broker"], "Contribution"]

# (dir, file_stem, file_content) -> handler, called once the subtree is compiled
HandlerGenerator: TypeAlias = Callable[["Dir", str, bytes], Handler]
