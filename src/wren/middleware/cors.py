"""CORS negotiation and middleware.

``negotiate_cors`` is a pure function from a static ``CorsPolicy`` and
the request's CORS inputs to a ``CorsDecision``. ``CORSMiddleware``
applies the decision: it answers preflights itself and decorates every
other response on the way out.

Two rules matter for security:

- a wildcard policy never emits ``*`` together with credentials; the
  literal request origin is reflected instead;
- an origin that is not granted receives no ``Access-Control-Allow-Origin``
  at all. There is no fallback to some other configured origin.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass, replace

from wren.http.request import Request
from wren.http.response import Response
from wren.middleware.protocol import Next
from wren.responses import JSON_CONTENT_TYPE, encode_json
from wren.security.audit import CORS_PREFLIGHT_REJECTED, emit_security_event

logger = logging.getLogger("wren.cors")

PREFLIGHT_METHOD = "OPTIONS"
DEFAULT_METHODS: tuple[str, ...] = ("GET", "POST", "PUT", "DELETE", "PATCH", "OPTIONS")
DEFAULT_HEADERS: tuple[str, ...] = ("Content-Type", "Authorization")
WILDCARD_HEADERS = "Content-Type, Authorization"
REJECTED_BODY: dict[str, str] = {"error": "Origin not allowed"}


@dataclass(frozen=True, slots=True)
class CorsPolicy:
    """Static CORS configuration. Never mutated at request time.

    The chainable helpers return new policies::

        policy = (
            CorsPolicy()
            .allow_origin("http://localhost:8081")
            .allow_methods("GET", "POST", "PUT", "DELETE")
            .with_credentials()
        )
    """

    allowed_origins: tuple[str, ...] = ("*",)
    allowed_methods: tuple[str, ...] = DEFAULT_METHODS
    allowed_headers: tuple[str, ...] = DEFAULT_HEADERS
    allow_credentials: bool = False
    max_age: int | None = 600

    @property
    def allows_any_origin(self) -> bool:
        return "*" in self.allowed_origins

    def allow_origin(self, *origins: str | Iterable[str]) -> CorsPolicy:
        return replace(self, allowed_origins=_flatten(origins))

    def allow_methods(self, *methods: str | Iterable[str]) -> CorsPolicy:
        return replace(self, allowed_methods=_flatten(methods))

    def allow_headers(self, *headers: str | Iterable[str]) -> CorsPolicy:
        return replace(self, allowed_headers=_flatten(headers))

    def with_credentials(self, allow: bool = True) -> CorsPolicy:
        return replace(self, allow_credentials=allow)

    def with_max_age(self, seconds: int | None) -> CorsPolicy:
        return replace(self, max_age=seconds)


@dataclass(frozen=True, slots=True)
class CorsDecision:
    """Per-request outcome of CORS negotiation.

    ``status`` is set only for preflights, which never reach routing:
    204 when the origin was granted (or absent), 403 when it was refused.
    """

    allow_origin: str | None
    allow_credentials: bool
    allow_methods: tuple[str, ...]
    allow_headers: str | None
    max_age: int | None
    is_preflight: bool = False
    status: int | None = None

    @property
    def vary_origin(self) -> bool:
        return self.allow_origin is not None

    @property
    def short_circuits(self) -> bool:
        return self.is_preflight

    def headers(self) -> dict[str, str]:
        """The response headers this decision grants, in wire order."""
        headers: dict[str, str] = {}
        if self.allow_origin is not None:
            headers["Access-Control-Allow-Origin"] = self.allow_origin
            headers["Vary"] = "Origin"
        if self.allow_credentials:
            headers["Access-Control-Allow-Credentials"] = "true"
        headers["Access-Control-Allow-Methods"] = ", ".join(self.allow_methods)
        if self.allow_headers:
            headers["Access-Control-Allow-Headers"] = self.allow_headers
        if self.max_age is not None:
            headers["Access-Control-Max-Age"] = str(int(self.max_age))
        return headers


def _flatten(values: tuple[str | Iterable[str], ...]) -> tuple[str, ...]:
    # Accept allow_origin("a", "b") as well as allow_origin(["a", "b"]).
    return tuple(v for item in values for v in ((item,) if isinstance(item, str) else item))


def _allowed_origin(policy: CorsPolicy, origin: str | None) -> str | None:
    if origin is None:
        return None
    if policy.allows_any_origin:
        return origin if policy.allow_credentials else "*"
    if origin in policy.allowed_origins:
        return origin
    return None


def _allowed_methods(policy: CorsPolicy) -> tuple[str, ...]:
    methods = list(dict.fromkeys(m.strip().upper() for m in policy.allowed_methods if m.strip()))
    if PREFLIGHT_METHOD not in methods:
        methods.append(PREFLIGHT_METHOD)
    return tuple(methods)


def _allowed_headers(policy: CorsPolicy, is_preflight: bool, requested: str | None) -> str | None:
    if is_preflight and requested:
        return requested
    if "*" in policy.allowed_headers:
        return WILDCARD_HEADERS
    return ", ".join(policy.allowed_headers) or None


def negotiate_cors(
    policy: CorsPolicy,
    method: str,
    origin: str | None,
    requested_headers: str | None = None,
) -> CorsDecision:
    """Decide the CORS headers for one request.

    Args:
        policy: The app's CORS policy.
        method: Request method; ``OPTIONS`` marks a preflight.
        origin: The ``Origin`` header, ``None`` when absent.
        requested_headers: The ``Access-Control-Request-Headers`` value.
    """
    is_preflight = method.upper() == PREFLIGHT_METHOD
    allow_origin = _allowed_origin(policy, origin)

    status = None
    if is_preflight:
        status = 403 if origin is not None and allow_origin is None else 204

    return CorsDecision(
        allow_origin=allow_origin,
        allow_credentials=policy.allow_credentials and allow_origin is not None,
        allow_methods=_allowed_methods(policy),
        allow_headers=_allowed_headers(policy, is_preflight, requested_headers),
        max_age=policy.max_age,
        is_preflight=is_preflight,
        status=status,
    )


def apply_cors(response: Response, decision: CorsDecision) -> Response:
    """Return *response* with the decision's headers added."""
    return response.with_headers(decision.headers())


def preflight_response(decision: CorsDecision) -> Response:
    """The complete short-circuit response for a preflight."""
    if decision.status == 403:
        response = Response(body=encode_json(REJECTED_BODY), status=403, content_type=JSON_CONTENT_TYPE)
    else:
        response = Response(status=204, content_type=None)
    return apply_cors(response, decision)


class CORSMiddleware:
    """Negotiate CORS for every request.

    Installed outermost by every ``App``, so preflights are
    answered before user middleware or routing runs. Non-preflight
    requests always continue; a refused origin simply gets no CORS
    headers and the browser enforces the same-origin policy.
    """

    __slots__ = ("policy",)

    def __init__(self, policy: CorsPolicy | None = None) -> None:
        self.policy = policy or CorsPolicy()

    def decide(self, request: Request) -> CorsDecision:
        return negotiate_cors(
            self.policy,
            request.method,
            request.origin,
            request.headers.get("access-control-request-headers"),
        )

    async def __call__(self, request: Request, next: Next) -> Response:
        decision = self.decide(request)
        logger.debug(
            "CORS %s %s origin=%r -> allow_origin=%r",
            request.method,
            request.path,
            request.origin,
            decision.allow_origin,
        )

        if decision.short_circuits:
            if decision.status == 403:
                logger.info("Rejected preflight from origin %r for %s", request.origin, request.path)
                emit_security_event(CORS_PREFLIGHT_REJECTED, request=request)
            return preflight_response(decision)

        response = await next(request)
        return apply_cors(response, decision)
