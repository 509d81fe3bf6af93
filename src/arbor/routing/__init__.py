"""Request routing over the compiled directory tree."""

from arbor.routing.result import CONTINUE, Continue, HandlerResult, Stop
from arbor.routing.router import route, split_path

__all__ = ["CONTINUE", "Continue", "HandlerResult", "Stop", "route", "split_path"]
