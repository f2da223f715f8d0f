"""Wren application class.

Mutable during setup (controllers, middleware, error handlers).
Frozen at runtime when app.run() or __call__() is first invoked.
"""

import inspect
import logging
import threading
from collections.abc import Callable, Iterable
from typing import Any

from wren._internal.asgi import Receive, Scope, Send
from wren.config import AppConfig
from wren.errors import ConfigurationError
from wren.middleware.cors import CORSMiddleware, CorsPolicy
from wren.middleware.protocol import Middleware
from wren.middleware.sessions import SessionMiddleware
from wren.routing.resolver import Resolver
from wren.routing.route import ControllerDescriptor
from wren.routing.table import RouteTable, build_route_table, describe_controller
from wren.security.authentication import SessionAuthenticator
from wren.security.gate import AuthCheck, AuthGate
from wren.server.errors import ErrorHandlers
from wren.server.handler import handle_request

logger = logging.getLogger("wren.server")

type ErrorHandler = Callable[..., Any]


class App:
    """The wren application.

    Usage::

        app = App(
            AppConfig(secret_key="..."),
            cors=CorsPolicy().allow_origin("http://localhost:8081").with_credentials(),
            authenticator=SessionAuthenticator(),
        )
        app.add_middleware(SessionMiddleware(SessionConfig(secret_key="...")))
        app.add_controller(UserController)
        app.add_controllers(discover_controllers("myapp.controllers"))

    CORS is always negotiated. Without *cors* the default
    ``CorsPolicy()`` applies (any origin, no credentials, max-age 600).

    Thread safety:
        The setup phase is single-threaded (module import time). The
        freeze transition uses a Lock + double-check so exactly one
        thread compiles the route table, even when several workers
        receive their first request at once.
    """

    __slots__ = (
        "_authenticator",
        "_controllers",
        "_cors",
        "_error_handlers",
        "_freeze_lock",
        "_frozen",
        "_middleware",
        "_middleware_list",
        # Compiled state (populated by _freeze)
        "_resolver",
        "_shutdown_hooks",
        "_startup_hooks",
        "config",
    )

    def __init__(
        self,
        config: AppConfig | None = None,
        *,
        cors: CorsPolicy | None = None,
        authenticator: AuthCheck | None = None,
    ) -> None:
        self.config: AppConfig = config or AppConfig()
        self._cors: CorsPolicy = cors or CorsPolicy()
        self._authenticator: AuthCheck | None = authenticator
        self._controllers: list[ControllerDescriptor] = []
        self._middleware_list: list[Middleware] = []
        self._error_handlers: ErrorHandlers = {}
        self._startup_hooks: list[Callable[..., Any]] = []
        self._shutdown_hooks: list[Callable[..., Any]] = []
        self._frozen: bool = False
        self._freeze_lock: threading.Lock = threading.Lock()

        # Compiled state, set during _freeze()
        self._resolver: Resolver | None = None
        self._middleware: tuple[Callable[..., Any], ...] = ()

    # -- Controller registration --

    def add_controller(self, controller: type, *, factory: Callable[[], Any] | None = None) -> type:
        """Register an ``@api_controller`` class.

        Controllers are instantiated per request, by calling *factory*
        if given or the class with no arguments otherwise. Returns the
        class, so this also works as a decorator.
        """
        self._check_not_frozen()
        if any(c.controller is controller for c in self._controllers):
            msg = f"Controller {controller.__qualname__} is already registered."
            raise ConfigurationError(msg)
        self._controllers.append(describe_controller(controller, factory=factory))
        return controller

    def add_controllers(self, controllers: Iterable[type]) -> None:
        """Register several controllers, e.g. from ``discover_controllers()``."""
        for controller in controllers:
            self.add_controller(controller)

    @property
    def controllers(self) -> tuple[ControllerDescriptor, ...]:
        return tuple(self._controllers)

    # -- Error handlers --

    def error(
        self,
        code_or_exception: int | type[BaseException],
    ) -> Callable[[ErrorHandler], ErrorHandler]:
        """Register an error handler via decorator.

        Usage::

            @app.error(404)
            def missing(request):
                return Json({"error": "not found"}, status=404)
        """

        def decorator(func: ErrorHandler) -> ErrorHandler:
            self._check_not_frozen()
            self._error_handlers[code_or_exception] = func
            return func

        return decorator

    # -- Middleware --

    def add_middleware(self, middleware: Middleware) -> None:
        """Add a middleware to the pipeline.

        User middleware runs in registration order, inside CORS
        negotiation and around route resolution.
        """
        self._check_not_frozen()
        self._middleware_list.append(middleware)

    # -- Lifecycle hooks --

    def on_startup(self, func: Callable[..., Any]) -> Callable[..., Any]:
        """Register an async or sync hook run during ASGI lifespan startup."""
        self._check_not_frozen()
        self._startup_hooks.append(func)
        return func

    def on_shutdown(self, func: Callable[..., Any]) -> Callable[..., Any]:
        """Register an async or sync hook run during ASGI lifespan shutdown."""
        self._check_not_frozen()
        self._shutdown_hooks.append(func)
        return func

    # -- Introspection --

    @property
    def route_table(self) -> RouteTable:
        """The compiled route table (freezes the app)."""
        self._ensure_frozen()
        assert self._resolver is not None
        return self._resolver.table

    # -- Serving --

    def run(
        self,
        host: str | None = None,
        port: int | None = None,
        *,
        reload: bool = False,
        app_path: str | None = None,
    ) -> None:
        """Compile the app and serve it with uvicorn.

        Args:
            host: Override bind host.
            port: Override bind port.
            reload: Restart on code changes (needs *app_path*).
            app_path: ``"module:attribute"`` import string for reload.
        """
        self._ensure_frozen()

        from wren.server.dev import run_server

        run_server(
            self,
            host or self.config.host,
            port or self.config.port,
            log_level=self.config.log_level,
            reload=reload,
            app_path=app_path,
        )

    # -- ASGI interface --

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        """ASGI 3.0 entry point."""
        if scope["type"] == "lifespan":
            await self._handle_lifespan(receive, send)
            return

        self._ensure_frozen()
        assert self._resolver is not None

        await handle_request(
            scope,
            receive,
            send,
            resolver=self._resolver,
            middleware=self._middleware,
            error_handlers=self._error_handlers,
            config=self.config,
        )

    async def _handle_lifespan(self, receive: Receive, send: Send) -> None:
        """Run the ASGI lifespan protocol.

        Freezes the app at startup, so configuration errors surface
        before the first request.
        """
        while True:
            message = await receive()
            msg_type = message["type"]

            if msg_type == "lifespan.startup":
                try:
                    self._ensure_frozen()
                    for hook in self._startup_hooks:
                        result = hook()
                        if inspect.isawaitable(result):
                            await result
                except Exception as exc:
                    logger.exception("Startup failed")
                    await send({"type": "lifespan.startup.failed", "message": str(exc)})
                    return
                await send({"type": "lifespan.startup.complete"})

            elif msg_type == "lifespan.shutdown":
                for hook in self._shutdown_hooks:
                    result = hook()
                    if inspect.isawaitable(result):
                        await result
                await send({"type": "lifespan.shutdown.complete"})
                return

    # -- Internal --

    def _ensure_frozen(self) -> None:
        """Thread-safe freeze with double-check locking."""
        if self._frozen:
            return
        with self._freeze_lock:
            if self._frozen:
                return
            self._freeze()

    def _freeze(self) -> None:
        """Compile the app into its frozen runtime state.

        MUST only be called while holding _freeze_lock.
        """
        # 1. Validate collaborators
        if isinstance(self._authenticator, SessionAuthenticator) and not any(
            isinstance(mw, SessionMiddleware) for mw in self._middleware_list
        ):
            msg = (
                "SessionAuthenticator needs SessionMiddleware. "
                "Add it with app.add_middleware(SessionMiddleware(SessionConfig(secret_key=...)))."
            )
            raise ConfigurationError(msg)

        # 2. Compile route table
        table = build_route_table(self._controllers)
        self._resolver = Resolver(table, AuthGate(self._authenticator))

        # 3. Capture middleware as immutable tuple, CORS outermost
        middleware_list: list[Callable[..., Any]] = list(self._middleware_list)
        middleware_list.insert(0, CORSMiddleware(self._cors))
        self._middleware = tuple(middleware_list)

        self._frozen = True
        logger.debug(
            "App frozen: %d controller(s), %d route(s)", len(table.controllers), len(table)
        )

    def _check_not_frozen(self) -> None:
        if self._frozen:
            msg = (
                "Cannot modify the app after it has started serving requests. "
                "Register controllers, middleware, and error handlers before calling app.run()."
            )
            raise RuntimeError(msg)
