"""Tests for the auth gate and session-backed authentication."""

from typing import Annotated

import pytest

from wren.app import App
from wren.controllers import FromBody, api_controller, authorize, http_get, http_post
from wren.errors import ConfigurationError
from wren.http.headers import Headers
from wren.http.query import QueryParams
from wren.http.request import Request
from wren.middleware.sessions import SessionConfig, SessionMiddleware
from wren.responses import NoContent, Unauthorized
from wren.security.authentication import AuthConfig, AuthUser, SessionAuthenticator
from wren.security.gate import AuthGate, Authenticator
from wren.testing import TestClient

SECRET = "test-secret-key"

USERS = {"ada@example.com": AuthUser(id="1", email="ada@example.com", roles=("admin",))}


def _request(path: str = "/api/account/me") -> Request:
    return Request(method="GET", path=path, headers=Headers(), query=QueryParams(), cookies={})


def _make_app(auth: SessionAuthenticator) -> tuple[App, list[str]]:
    calls: list[str] = []

    @api_controller("/api/account")
    class AccountController:
        @http_post("/login")
        def login(self, credentials: Annotated[dict, FromBody()]):
            user = USERS.get((credentials or {}).get("email", ""))
            if user is None:
                return Unauthorized()
            auth.login(user)
            return NoContent()

        @http_post("/logout")
        def logout(self):
            auth.logout()
            return NoContent()

        @authorize
        @http_get("/me")
        def me(self):
            calls.append("me")
            user = auth.get_current_user()
            return {"id": user.id, "email": user.email, "admin": auth.has_role("admin")}

        @http_get("/public")
        def public(self):
            return "public"

    app = App(authenticator=auth)
    app.add_middleware(SessionMiddleware(SessionConfig(secret_key=SECRET)))
    app.add_controller(AccountController)
    return app, calls


# -- Gate --


class TestAuthGate:
    def test_accepts_authenticator_object(self) -> None:
        assert AuthGate(SessionAuthenticator()).configured

    def test_accepts_callable(self) -> None:
        assert AuthGate(lambda request: True).configured

    def test_unconfigured(self) -> None:
        assert not AuthGate().configured

    def test_rejects_other_values(self) -> None:
        with pytest.raises(TypeError, match="is_authenticated"):
            AuthGate(42)  # type: ignore[arg-type]

    def test_session_authenticator_satisfies_protocol(self) -> None:
        assert isinstance(SessionAuthenticator(), Authenticator)

    async def test_result_is_coerced_to_bool(self) -> None:
        assert await AuthGate(lambda request: "yes").is_authorized(_request()) is True
        assert await AuthGate(lambda request: None).is_authorized(_request()) is False

    async def test_object_with_async_method(self) -> None:
        class TokenAuthenticator:
            async def is_authenticated(self, request: Request) -> bool:
                return request.headers.get("authorization") == "Bearer t"

        gate = AuthGate(TokenAuthenticator())
        assert await gate.is_authorized(_request()) is False

    async def test_unconfigured_denies(self) -> None:
        assert await AuthGate().is_authorized(_request()) is False


# -- AuthUser --


class TestAuthUser:
    def test_session_round_trip(self) -> None:
        user = AuthUser(id="7", email="a@b.c", roles=("admin", "editor"))
        assert AuthUser.from_session(user.to_session()) == user

    def test_from_session_defaults(self) -> None:
        assert AuthUser.from_session({"id": 3}) == AuthUser(id="3")

    def test_is_authenticated(self) -> None:
        assert AuthUser(id="1").is_authenticated


# -- SessionAuthenticator --


class TestSessionAuthenticatorWithoutSessions:
    async def test_is_authenticated_needs_middleware(self) -> None:
        with pytest.raises(ConfigurationError, match="SessionMiddleware"):
            await SessionAuthenticator().is_authenticated(_request())

    def test_login_needs_middleware(self) -> None:
        with pytest.raises(ConfigurationError, match="SessionMiddleware"):
            SessionAuthenticator().login(AuthUser(id="1"))

    def test_app_refuses_to_freeze(self) -> None:
        app = App(authenticator=SessionAuthenticator())
        with pytest.raises(ConfigurationError, match="SessionMiddleware"):
            _ = app.route_table


class TestProtectedRoutes:
    async def test_anonymous_caller_gets_401(self) -> None:
        app, calls = _make_app(SessionAuthenticator())
        async with TestClient(app) as client:
            response = await client.get("/api/account/me")
            assert response.status == 401
            assert response.body == b""
            assert response.content_type is None
        assert calls == []

    async def test_public_route_open(self) -> None:
        app, _ = _make_app(SessionAuthenticator())
        async with TestClient(app) as client:
            response = await client.get("/api/account/public")
            assert response.status == 200

    async def test_login_then_access(self) -> None:
        app, calls = _make_app(SessionAuthenticator())
        async with TestClient(app) as client:
            response = await client.post(
                "/api/account/login", json={"email": "ada@example.com"}
            )
            assert response.status == 204

            response = await client.get("/api/account/me")
            assert response.status == 200
            assert response.content_type == "application/json"
            assert response.text == '{"id": "1", "email": "ada@example.com", "admin": true}'
        assert calls == ["me"]

    async def test_failed_login(self) -> None:
        app, _ = _make_app(SessionAuthenticator())
        async with TestClient(app) as client:
            response = await client.post("/api/account/login", json={"email": "nobody"})
            assert response.status == 401
            assert client.cookies == {}

    async def test_malformed_login_body(self) -> None:
        app, _ = _make_app(SessionAuthenticator())
        async with TestClient(app) as client:
            response = await client.post("/api/account/login", body=b"not-json")
            assert response.status == 401

    async def test_logout(self) -> None:
        app, _ = _make_app(SessionAuthenticator())
        async with TestClient(app) as client:
            await client.post("/api/account/login", json={"email": "ada@example.com"})
            response = await client.post("/api/account/logout")
            assert response.status == 204
            assert client.cookies == {}

            response = await client.get("/api/account/me")
            assert response.status == 401

    async def test_login_regenerates_session(self) -> None:
        app, _ = _make_app(SessionAuthenticator())
        async with TestClient(app) as client:
            await client.post("/api/account/login", json={"email": "ada@example.com"})
            first = client.cookies["wren_session"]
            await client.post("/api/account/login", json={"email": "ada@example.com"})
            assert client.cookies["wren_session"] != first

    async def test_custom_session_keys(self) -> None:
        auth = SessionAuthenticator(AuthConfig(user_id_key="uid", user_data_key="user"))
        app, _ = _make_app(auth)
        async with TestClient(app) as client:
            await client.post("/api/account/login", json={"email": "ada@example.com"})
            response = await client.get("/api/account/me")
            assert response.status == 200
        assert auth.config.user_id_key == "uid"


class TestControllerLevelAuthorize:
    async def test_every_route_protected(self) -> None:
        @authorize
        @api_controller("/api/admin")
        class AdminController:
            @http_get("")
            def index(self):
                return "admin"

            @http_get("/{id}")
            def show(self, id):
                return id

        app = App(authenticator=lambda request: request.headers.get("x-admin") == "1")
        app.add_controller(AdminController)
        async with TestClient(app) as client:
            assert (await client.get("/api/admin")).status == 401
            assert (await client.get("/api/admin/3")).status == 401
            response = await client.get("/api/admin/3", headers={"X-Admin": "1"})
            assert response.status == 200
            assert response.text == "3"
