"""Security — the auth gate, session authentication, and audit events.

The resolver asks the ``AuthGate`` one question per protected route;
the gate forwards it to an authenticator. ``SessionAuthenticator`` is
the built-in one::

    from wren.security import AuthUser, SessionAuthenticator

    auth = SessionAuthenticator()
    app = App(authenticator=auth)

    auth.login(AuthUser(id="1", email="a@example.com", roles=("admin",)))
    auth.has_role("admin")
    auth.logout()
"""

from wren.security.audit import SecurityEvent, emit_security_event, set_security_event_sink
from wren.security.gate import AuthGate, Authenticator
from wren.security.authentication import AuthConfig, AuthUser, SessionAuthenticator

__all__ = [
    "AuthConfig",
    "AuthGate",
    "AuthUser",
    "Authenticator",
    "SecurityEvent",
    "SessionAuthenticator",
    "emit_security_event",
    "set_security_event_sink",
]
