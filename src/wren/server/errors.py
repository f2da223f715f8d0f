"""Error handling pipeline for wren requests.

Maps ``HTTPError`` exceptions and unexpected handler failures to
Responses, using handlers registered with ``@app.error()`` or plain
text defaults.
"""

import inspect
import logging
import traceback
from collections.abc import Callable
from typing import Any

from wren.errors import HTTPError
from wren.http.request import Request
from wren.http.response import Response
from wren.server.dispatcher import normalize

logger = logging.getLogger("wren.server")

type ErrorHandlers = dict[int | type[BaseException], Callable[..., Any]]


def find_error_handler(handlers: ErrorHandlers, exc: BaseException, status: int) -> Callable[..., Any] | None:
    """Exact exception type first, then its bases, then the status code."""
    for klass in type(exc).__mro__:
        if klass in handlers:
            return handlers[klass]
    return handlers.get(status)


async def call_error_handler(
    handler: Callable[..., Any],
    request: Request,
    exc: BaseException,
) -> Response:
    """Invoke a registered error handler with introspected arguments.

    Error handlers may accept zero, one (request), or two (request, exc)
    arguments, and may be sync or async. Their return value is
    normalized like a route handler's.
    """
    params = list(inspect.signature(handler).parameters.values())

    if len(params) >= 2:
        result = handler(request, exc)
    elif len(params) == 1:
        result = handler(request)
    else:
        result = handler()

    if inspect.isawaitable(result):
        result = await result
    return normalize(result)


async def handle_http_error(
    exc: HTTPError,
    request: Request,
    error_handlers: ErrorHandlers,
) -> Response:
    """Map an HTTPError to a Response."""
    logger.debug("%d %s %s: %s", exc.status, request.method, request.path, exc.detail)

    handler = find_error_handler(error_handlers, exc, exc.status)
    if handler is not None:
        response = await call_error_handler(handler, request, exc)
        # Keep the exception's status unless the handler chose its own
        if response.status == 200:
            response = response.with_status(exc.status)
        return response

    body = exc.detail if exc.status != 401 else ""
    response = Response(body=body, status=exc.status)
    for name, value in exc.headers:
        response = response.with_header(name, value)
    return response


async def handle_internal_error(
    exc: Exception,
    request: Request,
    error_handlers: ErrorHandlers,
    debug: bool,
) -> Response:
    """Answer an unexpected exception with a 500."""
    logger.exception("500 %s %s", request.method, request.path)

    handler = find_error_handler(error_handlers, exc, 500)
    if handler is not None:
        response = await call_error_handler(handler, request, exc)
        if response.status == 200:
            response = response.with_status(500)
        return response

    if debug:
        body = "".join(traceback.format_exception(exc))
        return Response(body=body, status=500)
    return Response(body="Internal Server Error", status=500)
