"""Wren — controller-based routing and dispatch for ASGI.

Controllers are plain classes; decorators record their base path,
verbs, authorization requirements and parameter sources. The app
compiles that metadata once into a route table, then per request
negotiates CORS, resolves one handler, binds its arguments and turns
its return value into a response.

Basic usage::

    from typing import Annotated

    from wren import App, FromQuery, api_controller, http_get

    @api_controller("/api/user")
    class UserController:
        @http_get("")
        def index(self, page: Annotated[str, FromQuery()]):
            return {"users": [], "page": page}

        @http_get("/{id}")
        def show(self, id):
            return {"user": id}

    app = App()
    app.add_controller(UserController)
    app.run()

Action results with their own status and encoding live in
``wren.responses`` (``Ok``, ``NoContent``, ``NotFound``,
``Unauthorized``, ``File``, ``Json``).
"""

__version__ = "0.1.0"
__all__ = [
    "App",
    "AppConfig",
    "ConfigurationError",
    "CorsPolicy",
    "File",
    "Forbidden",
    "FromBody",
    "FromForm",
    "FromQuery",
    "FromRoute",
    "HTTPError",
    "Json",
    "Middleware",
    "Next",
    "NoContent",
    "Ok",
    "Request",
    "Response",
    "WrenError",
    "api_controller",
    "authorize",
    "discover_controllers",
    "http_delete",
    "http_get",
    "http_patch",
    "http_post",
    "http_put",
]


def __getattr__(name: str) -> object:
    """Lazy imports for public API.

    Keeps ``import wren`` fast while providing a clean top-level API.
    """
    if name == "App":
        from wren.app import App

        return App

    if name == "AppConfig":
        from wren.config import AppConfig

        return AppConfig

    if name == "Request":
        from wren.http.request import Request

        return Request

    if name == "Response":
        from wren.http.response import Response

        return Response

    if name == "CorsPolicy":
        from wren.middleware.cors import CorsPolicy

        return CorsPolicy

    if name in ("Middleware", "Next"):
        from wren.middleware import protocol as _mw

        return getattr(_mw, name)

    if name in (
        "api_controller",
        "authorize",
        "discover_controllers",
        "http_delete",
        "http_get",
        "http_patch",
        "http_post",
        "http_put",
        "FromBody",
        "FromForm",
        "FromQuery",
        "FromRoute",
    ):
        from wren import controllers as _controllers

        return getattr(_controllers, name)

    if name in ("File", "Json", "NoContent", "Ok"):
        from wren import responses as _responses

        return getattr(_responses, name)

    if name in ("WrenError", "ConfigurationError", "HTTPError", "Forbidden"):
        from wren import errors as _errors

        return getattr(_errors, name)

    msg = f"module {__name__!r} has no attribute {name!r}"
    raise AttributeError(msg)
