"""Two-phase route resolution against a compiled ``RouteTable``.

Phase A picks the controller with the longest base path that is a
literal, case-sensitive prefix of the request path. Phase B filters
that controller's routes by verb and tries them longest sub-path first,
matching the full pattern segment by segment.

Only the chosen controller is searched: a shorter controller whose
prefix also matches is never consulted, even if its routes would fit.
"""

import logging

from wren.http.request import Request
from wren.routing import route as outcome
from wren.routing.route import MatchedRoute, ResolutionOutcome
from wren.routing.table import RouteTable
from wren.security.gate import AuthGate

logger = logging.getLogger("wren.routing")


def split_path(path: str) -> list[str]:
    """Split a path or pattern into ``/``-delimited segments.

    Leading and trailing slashes are discarded::

        "/api/user/"      -> ["api", "user"]
        "api/user/{id}"   -> ["api", "user", "{id}"]
        "/"               -> []
    """
    stripped = path.strip("/")
    if not stripped:
        return []
    return stripped.split("/")


def match_pattern(pattern: str, path: str) -> dict[str, str] | None:
    """Match *path* against *pattern*, returning captures or ``None``.

    Segment counts must be equal. ``{name}`` segments capture the request
    segment verbatim; other segments compare case-insensitively.
    """
    pattern_segments = split_path(pattern)
    path_segments = split_path(path)
    if len(pattern_segments) != len(path_segments):
        return None

    captures: dict[str, str] = {}
    for expected, actual in zip(pattern_segments, path_segments, strict=True):
        if len(expected) >= 2 and expected.startswith("{") and expected.endswith("}"):
            captures[expected[1:-1]] = actual
        elif expected.lower() != actual.lower():
            return None
    return captures


class Resolver:
    """Resolve requests to exactly one ``ResolutionOutcome``.

    Holds only immutable state (the table and a stateless gate), so one
    instance serves every concurrent request.
    """

    __slots__ = ("_gate", "_table")

    def __init__(self, table: RouteTable, gate: AuthGate) -> None:
        self._table = table
        self._gate = gate

    @property
    def table(self) -> RouteTable:
        return self._table

    def match(self, method: str, path: str) -> MatchedRoute | None:
        """Pure path/verb matching, without consulting the auth gate."""
        controller = next(
            (c for c in self._table.controllers if path.startswith(c.prefix)),
            None,
        )
        if controller is None:
            logger.debug("No controller prefix matches %r", path)
            return None

        verb = method.upper()
        for candidate in self._table.routes_for(controller, verb):
            captures = match_pattern(candidate.pattern, path)
            if captures is not None:
                return MatchedRoute(controller=controller, route=candidate, captures=captures)

        logger.debug("No %s route of %s matches %r", verb, controller.name, path)
        return None

    async def resolve(self, request: Request) -> ResolutionOutcome:
        """Resolve *request*, consulting the auth gate for protected routes."""
        matched = self.match(request.method, request.path)
        if matched is None:
            return outcome.NotFound()

        if matched.route.requires_auth and not await self._gate.is_authorized(request):
            logger.debug("Denied %s %s (%s)", request.method, request.path, matched.route.handler_name)
            return outcome.Unauthorized()

        logger.debug(
            "Resolved %s %s -> %s %r",
            request.method,
            request.path,
            matched.route.handler_name,
            matched.captures,
        )
        return outcome.Matched(matched)
