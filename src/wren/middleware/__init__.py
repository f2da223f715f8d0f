"""Middleware — Protocol-based, no inheritance required.

A middleware is any callable matching:
    async def mw(request: Request, next: Next) -> Response

Built-in middleware:
    CORSMiddleware -- CORS negotiation (installed by ``App(cors=...)``)
    SessionMiddleware -- Signed cookie sessions (itsdangerous)
"""

from wren.middleware.cors import CorsDecision, CORSMiddleware, CorsPolicy, negotiate_cors
from wren.middleware.protocol import Middleware, Next
from wren.middleware.sessions import SessionConfig, SessionMiddleware, get_session

__all__ = [
    "CORSMiddleware",
    "CorsDecision",
    "CorsPolicy",
    "Middleware",
    "Next",
    "SessionConfig",
    "SessionMiddleware",
    "get_session",
    "negotiate_cors",
]
