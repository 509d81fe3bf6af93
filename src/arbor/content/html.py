"""HTML content: the file is a kida template."""

from arbor.broker import Broker
from arbor.errors import ContentError
from arbor.namespace import Contribution


def dirpath_of(url_path: str) -> str:
    """Link prefix for a directory: ``""`` at the root, else the URL path."""
    return url_path.rstrip("/")


def decode(content: bytes) -> str:
    try:
        return content.decode("utf-8")
    except UnicodeDecodeError as exc:
        msg = f"not valid UTF-8: {exc}"
        raise ContentError(msg) from exc


def html(url_path: str, stem: str, content: bytes, broker: Broker) -> Contribution:
    """Use *content* as template source; ``dirpath`` links relative to its directory."""
    return Contribution(decode(content), {"dirpath": dirpath_of(url_path)})
