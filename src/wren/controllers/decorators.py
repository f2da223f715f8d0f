"""Controller and route declaration decorators.

Decorators only record metadata on the class or function; nothing is
registered globally. The route table builder reads the metadata once
when the app freezes.

Usage::

    @api_controller("/api/user")
    class UserController:
        @http_get("")
        def index(self):
            return {"users": []}

        @authorize
        @http_get("/{id}")
        def show(self, id):
            return {"user": id}
"""

from collections.abc import Callable
from dataclasses import dataclass
from typing import Any, TypeVar

T = TypeVar("T", bound=type)
F = TypeVar("F", bound=Callable[..., Any])
A = TypeVar("A")

SUPPORTED_VERBS: tuple[str, ...] = ("GET", "POST", "PUT", "DELETE", "PATCH")

_CONTROLLER_ATTR = "__wren_controller__"
_ROUTES_ATTR = "__wren_routes__"
_AUTHORIZE_ATTR = "__wren_authorize__"


@dataclass(frozen=True, slots=True)
class VerbMapping:
    """One HTTP-verb decorator applied to a controller method."""

    verb: str
    path: str = ""


def api_controller(base_path: str) -> Callable[[T], T]:
    """Mark a class as a controller whose routes live under *base_path*.

    ``"api/user"`` and ``"/api/user"`` select the same requests; the
    path is matched as a case-sensitive prefix of the request path.
    """

    def decorator(cls: T) -> T:
        if not isinstance(cls, type):
            msg = f"@api_controller expects a class, got {cls!r}"
            raise TypeError(msg)
        setattr(cls, _CONTROLLER_ATTR, base_path)
        return cls

    return decorator


def _make_verb_mapping(verb: str) -> Callable[..., Any]:
    """Factory that creates an HTTP verb decorator."""

    def mapping(path: str = "") -> Callable[[F], F]:
        def decorator(func: F) -> F:
            # Decorators apply bottom-up; prepend to keep source order.
            existing = getattr(func, _ROUTES_ATTR, ())
            setattr(func, _ROUTES_ATTR, (VerbMapping(verb, path), *existing))
            return func

        return decorator

    mapping.__name__ = f"http_{verb.lower()}"
    mapping.__qualname__ = f"http_{verb.lower()}"
    mapping.__doc__ = f"Map the decorated method to ``{verb}`` requests on *path*."
    return mapping


http_get = _make_verb_mapping("GET")
http_post = _make_verb_mapping("POST")
http_put = _make_verb_mapping("PUT")
http_delete = _make_verb_mapping("DELETE")
http_patch = _make_verb_mapping("PATCH")


def authorize(target: A) -> A:
    """Require an authenticated caller for a method, or for every route of a controller."""
    setattr(target, _AUTHORIZE_ATTR, True)
    return target


# -- Metadata readers --


def controller_base_path(cls: type) -> str | None:
    """The base path declared on *cls* itself (not inherited), or ``None``."""
    return cls.__dict__.get(_CONTROLLER_ATTR)


def is_controller(obj: Any) -> bool:
    return isinstance(obj, type) and controller_base_path(obj) is not None


def verb_mappings(func: Any) -> tuple[VerbMapping, ...]:
    """Verb mappings declared on a controller method, in source order."""
    return getattr(func, _ROUTES_ATTR, ())


def requires_authorization(obj: Any) -> bool:
    """Whether a method or class carries the ``@authorize`` marker."""
    if isinstance(obj, type):
        return bool(obj.__dict__.get(_AUTHORIZE_ATTR, False))
    return bool(getattr(obj, _AUTHORIZE_ATTR, False))
