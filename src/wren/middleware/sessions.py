"""Signed cookie sessions.

Session data is serialized as JSON and signed with ``itsdangerous``;
it is signed, not encrypted. The dict for the current request lives in
a ContextVar, so concurrent requests never see each other's session.

A session is written back only when it holds data. An empty session
that arrived with a cookie (after ``logout()`` or expiry) gets the
cookie deleted instead.
"""

from contextvars import ContextVar
from dataclasses import dataclass
from time import time
from typing import Any

from itsdangerous import BadData, URLSafeTimedSerializer

from wren.errors import ConfigurationError
from wren.http.request import Request
from wren.http.response import Response
from wren.middleware.protocol import Next

_session_var: ContextVar[dict[str, Any] | None] = ContextVar("wren_session", default=None)


def get_session() -> dict[str, Any]:
    """Return the current session dict.

    Raises ``LookupError`` outside a request handled by
    ``SessionMiddleware``.
    """
    session = _session_var.get()
    if session is None:
        msg = "No active session. Add SessionMiddleware to the app before using sessions."
        raise LookupError(msg)
    return session


def regenerate_session() -> dict[str, Any]:
    """Discard everything in the current session and return it empty.

    The middleware signs the new contents into a fresh cookie value, so
    an identifier captured before login is worthless afterwards.
    """
    session = get_session()
    session.clear()
    return session


@dataclass(frozen=True, slots=True)
class SessionConfig:
    """Session middleware configuration.

    ``idle_timeout_seconds`` drops a session that has not been used for
    that long; ``absolute_timeout_seconds`` caps its total lifetime.
    ``None`` disables either check.
    """

    secret_key: str
    cookie_name: str = "wren_session"
    max_age: int = 86400  # 24 hours
    path: str = "/"
    domain: str | None = None
    secure: bool = False
    httponly: bool = True
    samesite: str = "lax"
    idle_timeout_seconds: int | None = 3600
    absolute_timeout_seconds: int | None = None
    created_at_key: str = "__created_at"
    last_seen_at_key: str = "__last_seen_at"


class SessionMiddleware:
    """Load the signed session cookie, expose it, and write it back.

    Usage::

        from wren.middleware.sessions import SessionConfig, SessionMiddleware

        app.add_middleware(SessionMiddleware(SessionConfig(secret_key="...")))
    """

    __slots__ = ("_config", "_serializer")

    def __init__(self, config: SessionConfig) -> None:
        if not config.secret_key:
            msg = "SessionConfig.secret_key must not be empty."
            raise ConfigurationError(msg)
        self._config = config
        self._serializer = URLSafeTimedSerializer(config.secret_key, salt="wren.session")

    @property
    def config(self) -> SessionConfig:
        return self._config

    def _expired(self, data: dict[str, Any], now: float) -> bool:
        cfg = self._config
        try:
            created = float(data.get(cfg.created_at_key, now))
            last_seen = float(data.get(cfg.last_seen_at_key, now))
        except (TypeError, ValueError):
            return True
        if cfg.absolute_timeout_seconds is not None and now - created > cfg.absolute_timeout_seconds:
            return True
        return cfg.idle_timeout_seconds is not None and now - last_seen > cfg.idle_timeout_seconds

    def _load(self, cookie_value: str | None) -> dict[str, Any]:
        if not cookie_value:
            return {}
        try:
            data = self._serializer.loads(cookie_value, max_age=self._config.max_age)
        except BadData:
            return {}
        if not isinstance(data, dict) or self._expired(data, time()):
            return {}
        return data

    def _has_payload(self, session: dict[str, Any]) -> bool:
        stamps = (self._config.created_at_key, self._config.last_seen_at_key)
        return any(key not in stamps for key in session)

    def _save(self, response: Response, session: dict[str, Any]) -> Response:
        cfg = self._config
        now = time()
        session.setdefault(cfg.created_at_key, now)
        session[cfg.last_seen_at_key] = now
        return response.with_cookie(
            name=cfg.cookie_name,
            value=self._serializer.dumps(session),
            max_age=cfg.max_age,
            path=cfg.path,
            domain=cfg.domain,
            secure=cfg.secure,
            httponly=cfg.httponly,
            samesite=cfg.samesite,
        )

    async def __call__(self, request: Request, next: Next) -> Response:
        cookie_value = request.cookies.get(self._config.cookie_name)
        session = self._load(cookie_value)
        token = _session_var.set(session)
        try:
            response = await next(request)
        finally:
            _session_var.reset(token)

        if self._has_payload(session):
            # Re-signed on every request: sliding expiration.
            return self._save(response, session)
        if cookie_value:
            return response.without_cookie(self._config.cookie_name, path=self._config.path)
        return response
