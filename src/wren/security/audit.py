"""Security audit events.

Opt-in, process-wide event channel for authentication, authorization
and CORS telemetry. Nothing is delivered until a sink is registered::

    from wren.security.audit import logging_sink, set_security_event_sink

    set_security_event_sink(logging_sink())

Event names emitted by wren:

- ``auth.login.success`` — ``SessionAuthenticator.login()``
- ``auth.logout.success`` — ``SessionAuthenticator.logout()``
- ``auth.gate.denied`` — a protected route was resolved for an
  unauthenticated caller
- ``cors.preflight.rejected`` — a preflight came from an origin the
  policy does not grant
"""

import logging
import threading
from collections.abc import Callable
from dataclasses import dataclass, field
from time import time
from typing import Any

AUTH_LOGIN_SUCCESS = "auth.login.success"
AUTH_LOGOUT_SUCCESS = "auth.logout.success"
AUTH_GATE_DENIED = "auth.gate.denied"
CORS_PREFLIGHT_REJECTED = "cors.preflight.rejected"


@dataclass(frozen=True, slots=True)
class SecurityEvent:
    """A structured security event."""

    name: str
    timestamp: float = field(default_factory=time)
    path: str | None = None
    method: str | None = None
    origin: str | None = None
    user_id: str | None = None
    details: dict[str, Any] = field(default_factory=dict)


type SecurityEventSink = Callable[[SecurityEvent], None]


_sink_lock = threading.Lock()
_sink: SecurityEventSink | None = None


def set_security_event_sink(sink: SecurityEventSink | None) -> None:
    """Register the process-wide sink. ``None`` disables delivery."""
    global _sink
    with _sink_lock:
        _sink = sink


def emit_security_event(
    name: str,
    *,
    request: Any | None = None,
    user_id: str | None = None,
    details: dict[str, Any] | None = None,
) -> None:
    """Deliver an event to the registered sink, if any.

    *request* is read duck-typed (``path``, ``method``, ``origin``) so
    callers can pass a ``Request`` or nothing at all.
    """
    with _sink_lock:
        sink = _sink
    if sink is None:
        return

    sink(
        SecurityEvent(
            name=name,
            path=getattr(request, "path", None),
            method=getattr(request, "method", None),
            origin=getattr(request, "origin", None),
            user_id=user_id,
            details=details or {},
        )
    )


def logging_sink(logger: logging.Logger | None = None, level: int = logging.INFO) -> SecurityEventSink:
    """A sink that writes each event to *logger* (``wren.security`` by default)."""
    target = logger or logging.getLogger("wren.security")

    def sink(event: SecurityEvent) -> None:
        target.log(
            level,
            "%s method=%s path=%s origin=%s user=%s %s",
            event.name,
            event.method,
            event.path,
            event.origin,
            event.user_id,
            event.details,
        )

    return sink
