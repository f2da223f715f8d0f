"""Tests for wren.routing.resolver — two-phase resolution and the auth gate."""

from typing import Any

import pytest

from wren.controllers import api_controller, authorize, http_get, http_post, http_put
from wren.http.headers import Headers
from wren.http.query import QueryParams
from wren.http.request import Request
from wren.routing.resolver import Resolver, match_pattern, split_path
from wren.routing.route import Matched, NotFound, Unauthorized
from wren.routing.table import build_route_table, describe_controller
from wren.security.gate import AuthGate


def _request(method: str, path: str) -> Request:
    return Request(method=method, path=path, headers=Headers(), query=QueryParams(), cookies={})


def _resolver(*controllers: type, authenticator: Any = None) -> Resolver:
    table = build_route_table([describe_controller(c) for c in controllers])
    return Resolver(table, AuthGate(authenticator))


@api_controller("/api/user")
class UserController:
    @http_get("/{id}")
    def show(self, id):
        return id

    @http_post("/login/user")
    def login(self):
        return "login"

    @http_post("/{id}")
    def update(self, id):
        return id


@api_controller("/api/user/admin")
class AdminController:
    @http_get("/{id}")
    def show(self, id):
        return id


@api_controller("/api")
class ApiController:
    @http_get("/user/{id}/posts")
    def posts(self, id):
        return id

    @http_get("/status")
    def status(self):
        return "ok"


# -- Path helpers --


class TestSplitPath:
    def test_strips_outer_slashes(self) -> None:
        assert split_path("/api/user/") == ["api", "user"]

    def test_pattern_without_leading_slash(self) -> None:
        assert split_path("api/user/{id}") == ["api", "user", "{id}"]

    def test_root(self) -> None:
        assert split_path("/") == []
        assert split_path("") == []


class TestMatchPattern:
    def test_literal_path(self) -> None:
        assert match_pattern("/api/user/login/user", "/api/user/login/user") == {}

    def test_capture(self) -> None:
        assert match_pattern("/api/user/{id}", "/api/user/42") == {"id": "42"}

    def test_capture_keeps_case(self) -> None:
        assert match_pattern("/api/user/{id}", "/api/user/AbC") == {"id": "AbC"}

    def test_literals_compare_case_insensitively(self) -> None:
        assert match_pattern("/api/User", "/API/user") == {}

    def test_segment_count_mismatch(self) -> None:
        assert match_pattern("/api/user/{id}", "/api/user/42/extra") is None
        assert match_pattern("/api/user/{id}", "/api/user") is None

    def test_literal_mismatch(self) -> None:
        assert match_pattern("/api/user/{id}", "/api/post/42") is None

    def test_trailing_slash_tolerated(self) -> None:
        assert match_pattern("/api/user/{id}", "/api/user/42/") == {"id": "42"}

    def test_several_captures(self) -> None:
        assert match_pattern("/api/{kind}/{id}", "/api/post/7") == {"kind": "post", "id": "7"}

    def test_half_braced_segment_is_literal(self) -> None:
        assert match_pattern("/api/{id", "/api/{ID") == {}
        assert match_pattern("/api/{id", "/api/7") is None


# -- Phase A: controller selection --


class TestControllerSelection:
    def test_longest_prefix_wins(self) -> None:
        resolver = _resolver(UserController, AdminController)
        matched = resolver.match("GET", "/api/user/admin/5")
        assert matched is not None
        assert matched.controller.controller is AdminController
        assert matched.captures == {"id": "5"}

    def test_shorter_prefix_for_other_paths(self) -> None:
        resolver = _resolver(UserController, AdminController)
        matched = resolver.match("GET", "/api/user/5")
        assert matched is not None
        assert matched.controller.controller is UserController

    def test_registration_order_does_not_matter(self) -> None:
        resolver = _resolver(AdminController, UserController)
        matched = resolver.match("GET", "/api/user/admin/5")
        assert matched is not None
        assert matched.controller.controller is AdminController

    def test_prefix_is_case_sensitive(self) -> None:
        resolver = _resolver(UserController)
        assert resolver.match("GET", "/API/USER/5") is None

    def test_no_prefix_match(self) -> None:
        resolver = _resolver(UserController)
        assert resolver.match("GET", "/other/5") is None

    def test_chosen_controller_is_the_only_one_searched(self) -> None:
        # /api/user is the longest prefix, so ApiController's posts route
        # is never consulted even though its pattern would match.
        resolver = _resolver(ApiController, UserController)
        assert resolver.match("GET", "/api/user/5/posts") is None

    def test_prefix_is_not_segment_aware(self) -> None:
        resolver = _resolver(UserController, ApiController)
        # "/api/users" starts with "/api/user", so UserController is picked
        # and none of its routes match.
        assert resolver.match("GET", "/api/users/5") is None

    def test_base_path_without_leading_slash(self) -> None:
        @api_controller("api/user")
        class BareController:
            @http_get("/{id}")
            def show(self, id):
                return id

        resolver = _resolver(ApiController, BareController)
        matched = resolver.match("GET", "/api/user/7")
        assert matched is not None
        assert matched.controller.controller is BareController
        assert matched.captures == {"id": "7"}


# -- Phase B: route selection --


class TestRouteSelection:
    def test_verb_filter(self) -> None:
        resolver = _resolver(UserController)
        matched = resolver.match("GET", "/api/user/7")
        assert matched is not None
        assert matched.route.method_name == "show"

    def test_lowercase_method(self) -> None:
        resolver = _resolver(UserController)
        matched = resolver.match("get", "/api/user/7")
        assert matched is not None
        assert matched.route.method_name == "show"

    def test_unmapped_verb(self) -> None:
        resolver = _resolver(UserController)
        assert resolver.match("DELETE", "/api/user/7") is None

    def test_longer_literal_beats_capture(self) -> None:
        resolver = _resolver(UserController)
        matched = resolver.match("POST", "/api/user/login/user")
        assert matched is not None
        assert matched.route.method_name == "login"
        assert matched.captures == {}

    def test_capture_route_for_single_segment(self) -> None:
        resolver = _resolver(UserController)
        matched = resolver.match("POST", "/api/user/9")
        assert matched is not None
        assert matched.route.method_name == "update"
        assert matched.captures == {"id": "9"}

    def test_segment_count_mismatch_is_not_found(self) -> None:
        resolver = _resolver(UserController)
        assert resolver.match("GET", "/api/user/7/extra") is None

    def test_empty_sub_path(self) -> None:
        @api_controller("/api/posts")
        class Posts:
            @http_get("")
            def index(self):
                return []

        resolver = _resolver(Posts)
        matched = resolver.match("GET", "/api/posts")
        assert matched is not None
        assert matched.captures == {}

    def test_first_matching_candidate_wins_on_ties(self) -> None:
        @api_controller("/api/doc")
        class Docs:
            @http_put("/{id}")
            def first(self, id):
                return id

            @http_put("/{key}")
            def second(self, key):
                return key

        resolver = _resolver(Docs)
        matched = resolver.match("PUT", "/api/doc/3")
        assert matched is not None
        assert matched.route.method_name == "first"


# -- Full resolution --


class TestResolve:
    async def test_matched(self) -> None:
        resolver = _resolver(UserController)
        result = await resolver.resolve(_request("GET", "/api/user/42"))
        assert isinstance(result, Matched)
        assert result.match.captures == {"id": "42"}

    async def test_not_found(self) -> None:
        resolver = _resolver(UserController)
        assert await resolver.resolve(_request("GET", "/nowhere")) == NotFound()

    async def test_open_route_skips_gate(self) -> None:
        calls: list[Request] = []

        def authenticator(request: Request) -> bool:
            calls.append(request)
            return False

        resolver = _resolver(UserController, authenticator=authenticator)
        result = await resolver.resolve(_request("GET", "/api/user/1"))
        assert isinstance(result, Matched)
        assert calls == []


class TestAuthorizationGate:
    @staticmethod
    def _secure_controller() -> type:
        @api_controller("/api/account")
        class Account:
            @authorize
            @http_get("/me")
            def me(self):
                return "me"

        return Account

    async def test_denied(self) -> None:
        resolver = _resolver(self._secure_controller(), authenticator=lambda request: False)
        result = await resolver.resolve(_request("GET", "/api/account/me"))
        assert result == Unauthorized()

    async def test_allowed(self) -> None:
        resolver = _resolver(self._secure_controller(), authenticator=lambda request: True)
        result = await resolver.resolve(_request("GET", "/api/account/me"))
        assert isinstance(result, Matched)

    async def test_async_authenticator(self) -> None:
        async def authenticator(request: Request) -> bool:
            return request.path.endswith("/me")

        resolver = _resolver(self._secure_controller(), authenticator=authenticator)
        assert isinstance(await resolver.resolve(_request("GET", "/api/account/me")), Matched)

    async def test_no_authenticator_denies(self) -> None:
        resolver = _resolver(self._secure_controller())
        result = await resolver.resolve(_request("GET", "/api/account/me"))
        assert result == Unauthorized()

    async def test_gate_not_consulted_when_nothing_matches(self) -> None:
        calls: list[Request] = []

        def authenticator(request: Request) -> bool:
            calls.append(request)
            return True

        resolver = _resolver(self._secure_controller(), authenticator=authenticator)
        result = await resolver.resolve(_request("GET", "/api/account/other"))
        assert result == NotFound()
        assert calls == []


class TestResolverState:
    def test_table_property(self) -> None:
        table = build_route_table([describe_controller(UserController)])
        resolver = Resolver(table, AuthGate())
        assert resolver.table is table

    def test_slots(self) -> None:
        resolver = _resolver(UserController)
        with pytest.raises(AttributeError):
            resolver.extra = 1  # type: ignore[attr-defined]
