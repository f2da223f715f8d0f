"""Session-backed authentication.

``SessionAuthenticator`` is the authentication collaborator behind the
auth gate. It keeps the signed-in user inside the signed cookie session
(``wren.middleware.sessions``), under two keys: the user id, and a
small snapshot of the user (id, email, roles) so handlers can read the
current user without a database round trip.

Usage::

    auth = SessionAuthenticator()
    app = App(AppConfig(secret_key="..."), authenticator=auth)
    app.add_middleware(SessionMiddleware(SessionConfig(secret_key="...")))

    @api_controller("/api/session")
    class SessionController:
        @http_post("/login")
        def login(self, credentials: Annotated[dict, FromBody()]):
            user = users.verify(credentials)
            if user is None:
                return Unauthorized()
            auth.login(AuthUser(id=user.id, email=user.email, roles=user.roles))
            return NoContent()
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import Any

from wren.errors import ConfigurationError
from wren.http.request import Request
from wren.middleware.sessions import get_session, regenerate_session
from wren.security.audit import AUTH_LOGIN_SUCCESS, AUTH_LOGOUT_SUCCESS, emit_security_event


@dataclass(frozen=True, slots=True)
class AuthUser:
    """The signed-in user, as stored in the session."""

    id: str
    email: str = ""
    roles: tuple[str, ...] = field(default=())

    @property
    def is_authenticated(self) -> bool:
        return True

    def to_session(self) -> dict[str, Any]:
        return {"id": self.id, "email": self.email, "roles": list(self.roles)}

    @classmethod
    def from_session(cls, data: dict[str, Any]) -> AuthUser:
        roles: Iterable[str] = data.get("roles") or ()
        return cls(id=str(data["id"]), email=str(data.get("email", "")), roles=tuple(roles))


@dataclass(frozen=True, slots=True)
class AuthConfig:
    """Session keys used by ``SessionAuthenticator``."""

    user_id_key: str = "auth_user_id"
    user_data_key: str = "auth_user_data"


class SessionAuthenticator:
    """Authenticate callers by the user id stored in their session.

    Requires ``SessionMiddleware``; the app refuses to start with a
    ``SessionAuthenticator`` and no session middleware.
    """

    __slots__ = ("_config",)

    def __init__(self, config: AuthConfig | None = None) -> None:
        self._config = config or AuthConfig()

    @property
    def config(self) -> AuthConfig:
        return self._config

    def _session(self) -> dict[str, Any]:
        try:
            return get_session()
        except LookupError:
            msg = "SessionAuthenticator requires SessionMiddleware to be active."
            raise ConfigurationError(msg) from None

    async def is_authenticated(self, request: Request) -> bool:
        return self._config.user_id_key in self._session()

    def login(self, user: AuthUser) -> None:
        """Sign *user* in. The session is regenerated first."""
        self._session()
        session = regenerate_session()
        session[self._config.user_id_key] = user.id
        session[self._config.user_data_key] = user.to_session()
        emit_security_event(AUTH_LOGIN_SUCCESS, user_id=user.id)

    def logout(self) -> None:
        """Sign the current user out and drop all session data."""
        session = self._session()
        user_id = session.get(self._config.user_id_key)
        session.clear()
        emit_security_event(AUTH_LOGOUT_SUCCESS, user_id=user_id)

    def get_current_user(self) -> AuthUser | None:
        session = self._session()
        if self._config.user_id_key not in session:
            return None
        data = session.get(self._config.user_data_key)
        if not isinstance(data, dict) or "id" not in data:
            return None
        return AuthUser.from_session(data)

    def has_role(self, role: str) -> bool:
        user = self.get_current_user()
        return user is not None and role in user.roles
