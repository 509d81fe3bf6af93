"""Handler results: stop with a response, or let routing continue."""

from dataclasses import dataclass

from arbor.http.response import Response


@dataclass(frozen=True, slots=True)
class Stop:
    """The handler produced the response; routing ends here."""

    response: Response


@dataclass(frozen=True, slots=True)
class Continue:
    """The handler declined; the router consumes the next segment."""


CONTINUE = Continue()

type HandlerResult = Stop | Continue
