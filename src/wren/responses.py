"""Action results — return values that carry their own status and encoding.

A handler that returns an ``ActionResult`` decides its status code and
body framing itself. Anything else is auto-encoded by the dispatcher
(composites to JSON, scalars to plain text).

Usage::

    @http_get("/{id}")
    def show(self, id):
        post = self.posts.get(id)
        if post is None:
            return NotFound()
        return Ok(post)
"""

from __future__ import annotations

import dataclasses
import json as json_module
from collections.abc import Mapping
from dataclasses import dataclass
from email.utils import formatdate
from time import time
from typing import Any

from wren.http.response import Response

JSON_CONTENT_TYPE = "application/json"


def _json_default(value: Any) -> Any:
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return dataclasses.asdict(value)
    if isinstance(value, Mapping):
        return dict(value)
    if isinstance(value, (set, frozenset)):
        return list(value)
    msg = f"Object of type {type(value).__name__} is not JSON serializable"
    raise TypeError(msg)


def encode_json(value: Any) -> str:
    """Serialize *value* to JSON, accepting dataclasses, mappings and sets."""
    return json_module.dumps(value, default=_json_default)


class ActionResult:
    """Base for structured handler results.

    Subclasses build the complete wire response in ``to_response()``.
    """

    __slots__ = ()

    def to_response(self) -> Response:
        raise NotImplementedError


@dataclass(frozen=True, slots=True)
class Json(ActionResult):
    """JSON body with an explicit status code."""

    data: Any = None
    status: int = 200

    def to_response(self) -> Response:
        return Response(body=encode_json(self.data), status=self.status, content_type=JSON_CONTENT_TYPE)


@dataclass(frozen=True, slots=True)
class Ok(ActionResult):
    """200 with the data JSON-encoded."""

    data: Any = None

    def to_response(self) -> Response:
        return Response(body=encode_json(self.data), content_type=JSON_CONTENT_TYPE)


@dataclass(frozen=True, slots=True)
class NoContent(ActionResult):
    """204, no body."""

    def to_response(self) -> Response:
        return Response(status=204, content_type=None)


@dataclass(frozen=True, slots=True)
class Unauthorized(ActionResult):
    """401, no body."""

    def to_response(self) -> Response:
        return Response(status=401, content_type=None)


@dataclass(frozen=True, slots=True)
class NotFound(ActionResult):
    """404 with a short plain-text body."""

    detail: str = "Not Found"

    def to_response(self) -> Response:
        return Response(body=self.detail, status=404)


@dataclass(frozen=True, slots=True)
class File(ActionResult):
    """Raw bytes with a content type and public cache headers.

    The body is sent as-is, never JSON-encoded::

        return File(png_bytes, "image/png", cache_max_age=3600)
    """

    data: bytes | str
    content_type: str = "application/octet-stream"
    cache_max_age: int = 86400

    def to_response(self) -> Response:
        body = self.data.encode("utf-8") if isinstance(self.data, str) else self.data
        return (
            Response(body=body, content_type=self.content_type)
            .with_header("Cache-Control", f"public, max-age={self.cache_max_age}")
            .with_header("Expires", formatdate(time() + self.cache_max_age, usegmt=True))
        )
