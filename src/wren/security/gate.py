"""Auth gate — the single yes/no question the resolver asks.

The gate holds no state. It forwards to the configured authenticator
once per protected resolution, before any argument is bound.
"""

import logging
from collections.abc import Awaitable, Callable
from typing import Protocol, runtime_checkable

from wren._internal.invoke import invoke
from wren.http.request import Request
from wren.security.audit import AUTH_GATE_DENIED, emit_security_event

logger = logging.getLogger("wren.security")


@runtime_checkable
class Authenticator(Protocol):
    """Anything that can tell whether a request's caller is signed in.

    ``is_authenticated`` may be ``def`` or ``async def``.
    """

    def is_authenticated(self, request: Request) -> bool | Awaitable[bool]: ...


type AuthCheck = Authenticator | Callable[[Request], bool | Awaitable[bool]]


class AuthGate:
    """Delegate authorization checks to an authenticator.

    Accepts an ``Authenticator`` object or a bare callable taking the
    request. With neither configured every protected route is denied.
    """

    __slots__ = ("_check",)

    def __init__(self, authenticator: AuthCheck | None = None) -> None:
        if authenticator is None:
            self._check = None
        elif isinstance(authenticator, Authenticator):
            self._check = authenticator.is_authenticated
        elif callable(authenticator):
            self._check = authenticator
        else:
            msg = f"Authenticator must be callable or define is_authenticated(), got {authenticator!r}"
            raise TypeError(msg)

    @property
    def configured(self) -> bool:
        return self._check is not None

    async def is_authorized(self, request: Request) -> bool:
        if self._check is None:
            allowed = False
        else:
            allowed = bool(await invoke(self._check, request))

        if not allowed:
            logger.debug("Auth gate denied %s %s", request.method, request.path)
            emit_security_event(AUTH_GATE_DENIED, request=request)
        return allowed
