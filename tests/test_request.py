"""Tests for wren.http.request — frozen Request with async body access."""

import json

import pytest

from wren.http.request import Request


def _make_scope(**overrides: object) -> dict[str, object]:
    """Build a minimal valid ASGI HTTP scope."""
    base: dict[str, object] = {
        "type": "http",
        "asgi": {"version": "3.0"},
        "http_version": "1.1",
        "method": "GET",
        "path": "/",
        "raw_path": b"/",
        "query_string": b"",
        "root_path": "",
        "headers": [],
        "server": ("localhost", 8000),
        "client": ("127.0.0.1", 54321),
    }
    base.update(overrides)
    return base


def _make_receive(*bodies: bytes):
    """Create an ASGI receive callable that yields bodies."""
    messages = []
    for i, body in enumerate(bodies):
        is_last = i == len(bodies) - 1
        messages.append({"type": "http.request", "body": body, "more_body": not is_last})
    if not messages:
        messages.append({"type": "http.request", "body": b"", "more_body": False})
    it = iter(messages)

    async def receive():
        return next(it)

    return receive


class TestRequestFromASGI:
    def test_basic_fields(self) -> None:
        scope = _make_scope(method="post", path="/api/user")
        req = Request.from_asgi(scope, _make_receive())

        assert req.method == "POST"
        assert req.path == "/api/user"
        assert req.http_version == "1.1"
        assert req.client == ("127.0.0.1", 54321)

    def test_headers_case_insensitive(self) -> None:
        scope = _make_scope(headers=[(b"Content-Type", b"application/json"), (b"X-Token", b"t")])
        req = Request.from_asgi(scope, _make_receive())

        assert req.headers["content-type"] == "application/json"
        assert req.headers.get("X-TOKEN") == "t"
        assert req.content_type == "application/json"

    def test_origin(self) -> None:
        scope = _make_scope(headers=[(b"origin", b"http://localhost:8081")])
        assert Request.from_asgi(scope, _make_receive()).origin == "http://localhost:8081"
        assert Request.from_asgi(_make_scope(), _make_receive()).origin is None

    def test_query(self) -> None:
        scope = _make_scope(query_string=b"q=5&tag=a&tag=b")
        req = Request.from_asgi(scope, _make_receive())

        assert req.query.get("q") == "5"
        assert req.query.get_list("tag") == ["a", "b"]
        assert req.query.get("missing") is None

    def test_cookies(self) -> None:
        scope = _make_scope(headers=[(b"cookie", b"a=1; wren_session=abc.def")])
        req = Request.from_asgi(scope, _make_receive())
        assert req.cookies == {"a": "1", "wren_session": "abc.def"}

    def test_content_length(self) -> None:
        scope = _make_scope(headers=[(b"content-length", b"12")])
        assert Request.from_asgi(scope, _make_receive()).content_length == 12

    def test_invalid_content_length(self) -> None:
        scope = _make_scope(headers=[(b"content-length", b"twelve")])
        assert Request.from_asgi(scope, _make_receive()).content_length is None

    def test_no_client(self) -> None:
        scope = _make_scope()
        del scope["client"]
        assert Request.from_asgi(scope, _make_receive()).client is None

    def test_frozen(self) -> None:
        req = Request.from_asgi(_make_scope(), _make_receive())
        with pytest.raises(AttributeError):
            req.path = "/other"  # type: ignore[misc]


class TestRequestBody:
    async def test_body_chunks_joined(self) -> None:
        req = Request.from_asgi(_make_scope(), _make_receive(b"hel", b"lo"))
        assert await req.body() == b"hello"

    async def test_body_cached(self) -> None:
        req = Request.from_asgi(_make_scope(), _make_receive(b"once"))
        assert await req.body() == b"once"
        # The receive iterator is exhausted; a second read must come from cache.
        assert await req.body() == b"once"

    async def test_json(self) -> None:
        payload = {"name": "wren", "tags": [1, 2]}
        req = Request.from_asgi(_make_scope(), _make_receive(json.dumps(payload).encode()))
        assert await req.json() == payload

    async def test_malformed_json_raises(self) -> None:
        req = Request.from_asgi(_make_scope(), _make_receive(b"not-json"))
        with pytest.raises(ValueError):
            await req.json()

    async def test_text(self) -> None:
        req = Request.from_asgi(_make_scope(), _make_receive("héllo".encode()))
        assert await req.text() == "héllo"

    async def test_form(self) -> None:
        scope = _make_scope(headers=[(b"content-type", b"application/x-www-form-urlencoded")])
        req = Request.from_asgi(scope, _make_receive(b"title=Hi&body=There"))
        form = await req.form()
        assert form["title"] == "Hi"
        assert form["body"] == "There"
        assert await req.form() is form

    async def test_json_and_text_share_body(self) -> None:
        req = Request.from_asgi(_make_scope(), _make_receive(b'{"a": 1}'))
        assert await req.text() == '{"a": 1}'
        assert await req.json() == {"a": 1}

    async def test_no_receive(self) -> None:
        from wren.http.headers import Headers
        from wren.http.query import QueryParams

        req = Request(method="GET", path="/", headers=Headers(), query=QueryParams(), cookies={})
        assert await req.body() == b""
