"""Response dispatcher — turns a resolution outcome into a Response.

``NotFound`` and ``Unauthorized`` are answered directly. ``Matched``
instantiates the controller, binds arguments, calls the handler and
normalizes whatever it returns. isinstance-based dispatch, no magic.

Exceptions raised by the handler are not caught here; they propagate
to the server error pipeline.
"""

import dataclasses
from collections.abc import Mapping
from typing import Any

from wren._internal.invoke import invoke
from wren.http.request import Request
from wren.http.response import Response
from wren.responses import JSON_CONTENT_TYPE, ActionResult, encode_json
from wren.routing import route as outcome
from wren.routing.binder import bind_arguments
from wren.routing.route import MatchedRoute, ResolutionOutcome

OCTET_STREAM = "application/octet-stream"


def normalize(value: Any) -> Response:
    """Convert a handler's return value to a Response.

    Dispatch order:

    1. ``ActionResult``                  -> its own ``to_response()``
    2. ``Response``                      -> pass through
    3. mapping / list / tuple / set      -> 200, application/json
    4. dataclass instance                -> 200, application/json
    5. ``bytes``                         -> 200, application/octet-stream
    6. ``None``                          -> 200, empty text/plain
    7. anything else                     -> 200, ``str(value)`` as text/plain
    """
    match value:
        case ActionResult():
            return value.to_response()
        case Response():
            return value
        case Mapping() | list() | tuple() | set() | frozenset():
            return Response(body=encode_json(value), content_type=JSON_CONTENT_TYPE)
        case bytes() | bytearray() | memoryview():
            return Response(body=bytes(value), content_type=OCTET_STREAM)
        case None:
            return Response()
        case _ if dataclasses.is_dataclass(value) and not isinstance(value, type):
            return Response(body=encode_json(value), content_type=JSON_CONTENT_TYPE)
        case _:
            return Response(body=str(value))


async def call_handler(matched: MatchedRoute, request: Request) -> Any:
    """Instantiate the controller, bind arguments and call the route's method."""
    instance = matched.controller.instantiate()
    method = getattr(instance, matched.route.method_name)
    args = await bind_arguments(matched.route, matched.captures, request)
    return await invoke(method, *args)


async def dispatch(
    resolved: ResolutionOutcome,
    request: Request,
    *,
    not_found_body: str = "No result",
) -> Response:
    """Produce the Response for one resolution outcome."""
    match resolved:
        case outcome.Matched(match=matched):
            return normalize(await call_handler(matched, request))
        case outcome.Unauthorized():
            return Response(status=401, content_type=None)
        case outcome.NotFound():
            return Response(body=not_found_body, status=404)
    msg = f"Unknown resolution outcome: {resolved!r}"
    raise TypeError(msg)
