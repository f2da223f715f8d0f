"""Serve a wren App with uvicorn."""

from typing import Any


def run_server(
    app: Any,
    host: str,
    port: int,
    *,
    log_level: str = "info",
    reload: bool = False,
    app_path: str | None = None,
    factory: bool = False,
) -> None:
    """Start uvicorn with the given app.

    uvicorn can only reload when it imports the app itself, so with
    *reload* set the ``"module:attribute"`` string in *app_path* is
    served instead of the live object.

    Args:
        app: ASGI callable (wren App instance).
        host: Bind host address.
        port: Bind port number.
        log_level: uvicorn log level (``AppConfig.log_level``).
        reload: Restart on code changes (requires *app_path*).
        app_path: Optional ``"module:attribute"`` import string.
        factory: *app_path* names a zero-argument callable returning
            the App (only used when reloading).
    """
    import uvicorn

    reloading = bool(reload and app_path)
    target = app_path if reloading else app
    uvicorn.run(
        target,
        host=host,
        port=port,
        log_level=log_level,
        reload=reloading,
        factory=reloading and factory,
        lifespan="on",
    )
