"""ASGI response sending — translates a wren Response into ASGI messages."""

from wren._internal.asgi import Send
from wren.http.response import Response


def body_allowed(status: int) -> bool:
    """Whether an HTTP status code permits a response body."""
    # RFC 9110: 1xx, 204, and 304 responses carry no content.
    return not (100 <= status < 200 or status in {204, 304})


def encode_headers(response: Response, content_length: int | None) -> list[tuple[bytes, bytes]]:
    """Raw ASGI header pairs for *response*.

    ``Content-Type`` is omitted when the response's content type is
    ``None`` (empty-body results such as 204 and 401).
    """
    raw: list[tuple[bytes, bytes]] = []
    if response.content_type is not None:
        raw.append((b"content-type", response.content_type.encode("latin-1")))
    raw.extend(
        (name.lower().encode("latin-1"), value.encode("latin-1")) for name, value in response.headers
    )
    raw.extend(
        (b"set-cookie", cookie.to_header_value().encode("latin-1")) for cookie in response.cookies
    )
    if content_length is not None:
        raw.append((b"content-length", str(content_length).encode("latin-1")))
    return raw


async def send_response(response: Response, send: Send) -> None:
    """Send *response* as one start message and one body message."""
    if body_allowed(response.status):
        body = response.body_bytes
        headers = encode_headers(response, len(body))
    else:
        body = b""
        headers = encode_headers(response, None)

    await send({"type": "http.response.start", "status": response.status, "headers": headers})
    await send({"type": "http.response.body", "body": body})
