"""ASGI handler — translates ASGI scope/messages to wren types.

The only component that touches raw ASGI directly. Converts the scope
to a typed Request, runs it through the middleware chain (CORS first)
into resolution and dispatch, and sends the Response back through
ASGI ``send()``.
"""

from collections.abc import Callable
from typing import Any

from wren._internal.asgi import Receive, Scope, Send
from wren.config import AppConfig
from wren.errors import HTTPError
from wren.http.request import Request
from wren.http.response import Response
from wren.middleware.protocol import Next
from wren.routing.resolver import Resolver
from wren.server.dispatcher import dispatch
from wren.server.errors import ErrorHandlers, handle_http_error, handle_internal_error
from wren.server.sender import send_response


def build_pipeline(
    middleware: tuple[Callable[..., Any], ...],
    endpoint: Next,
) -> Next:
    """Wrap *endpoint* in *middleware*, first entry outermost."""
    handler = endpoint
    for mw in reversed(middleware):

        async def make_next(req: Request, _mw: Any = mw, _next: Next = handler) -> Response:
            return await _mw(req, _next)

        handler = make_next
    return handler


async def handle_request(
    scope: Scope,
    receive: Receive,
    send: Send,
    *,
    resolver: Resolver,
    middleware: tuple[Callable[..., Any], ...],
    error_handlers: ErrorHandlers,
    config: AppConfig,
) -> None:
    """Process a single HTTP request through the full pipeline."""
    if scope["type"] != "http":
        return

    request = Request.from_asgi(scope, receive)

    async def endpoint(req: Request) -> Response:
        # Errors are answered here, inside the middleware chain, so CORS
        # and session middleware still see the error response.
        try:
            length = req.content_length
            if length is not None and length > config.max_content_length:
                raise HTTPError(status=413, detail="Payload Too Large")
            resolved = await resolver.resolve(req)
            return await dispatch(resolved, req, not_found_body=config.not_found_body)
        except HTTPError as exc:
            return await handle_http_error(exc, req, error_handlers)
        except Exception as exc:
            return await handle_internal_error(exc, req, error_handlers, config.debug)

    try:
        response = await build_pipeline(middleware, endpoint)(request)
    except HTTPError as exc:
        response = await handle_http_error(exc, request, error_handlers)
    except Exception as exc:
        response = await handle_internal_error(exc, request, error_handlers, config.debug)

    await send_response(response, send)
