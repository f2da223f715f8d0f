"""Route table records and the resolution outcome union.

All frozen: descriptors are built once when the app freezes and are
never mutated; outcomes are produced fresh per request.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum
from typing import Any


class ParamSource(Enum):
    """Where a handler argument is read from."""

    BODY = "body"
    QUERY = "query"
    FORM = "form"
    ROUTE = "route"
    IMPLICIT = "implicit"


@dataclass(frozen=True, slots=True)
class ParamDescriptor:
    """One handler parameter: lookup key plus source."""

    name: str
    source: ParamSource = ParamSource.IMPLICIT


@dataclass(frozen=True, slots=True)
class ControllerDescriptor:
    """A controller class and the base path its routes hang off.

    ``base_path`` is kept exactly as declared; leading and trailing
    slashes are tolerated by the segment matcher. Prefix selection uses
    :attr:`prefix`, which adds the leading slash request paths carry.
    """

    controller: type
    base_path: str
    requires_auth: bool = False
    factory: Callable[[], Any] | None = None

    @property
    def prefix(self) -> str:
        return self.base_path if self.base_path.startswith("/") else f"/{self.base_path}"

    @property
    def name(self) -> str:
        return self.controller.__qualname__

    def instantiate(self) -> Any:
        """Create the per-request controller instance."""
        if self.factory is not None:
            return self.factory()
        return self.controller()


@dataclass(frozen=True, slots=True)
class RouteDescriptor:
    """One (method, verb mapping) pair of a controller."""

    controller: ControllerDescriptor
    method_name: str
    verb: str
    sub_path: str
    requires_auth: bool = False
    params: tuple[ParamDescriptor, ...] = ()

    @property
    def pattern(self) -> str:
        """The full pattern matched against request paths."""
        return self.controller.base_path + self.sub_path

    @property
    def handler_name(self) -> str:
        return f"{self.controller.name}.{self.method_name}"


@dataclass(frozen=True, slots=True)
class MatchedRoute:
    """Result of a successful resolution."""

    controller: ControllerDescriptor
    route: RouteDescriptor
    captures: dict[str, str]


# -- Resolution outcome --


@dataclass(frozen=True, slots=True)
class Matched:
    """A route matched and any authorization requirement was satisfied."""

    match: MatchedRoute


@dataclass(frozen=True, slots=True)
class Unauthorized:
    """A route matched but the auth gate denied the caller."""


@dataclass(frozen=True, slots=True)
class NotFound:
    """No controller prefix, or no route pattern, matched."""


type ResolutionOutcome = Matched | Unauthorized | NotFound
