"""Route table builder.

Reads controller metadata once and compiles it into an immutable
``RouteTable``: controllers ordered by descending base-path length,
and per controller and verb, routes ordered by descending sub-path
length. Both sorts are stable, so equal lengths keep registration
order (controllers) and declaration order (methods).
"""

from __future__ import annotations

import inspect
import logging
from collections.abc import Callable, Iterable, Iterator
from dataclasses import dataclass, field
from typing import Annotated, Any, get_args, get_origin

from wren.controllers.decorators import (
    SUPPORTED_VERBS,
    controller_base_path,
    requires_authorization,
    verb_mappings,
)
from wren.controllers.params import as_marker
from wren.errors import ConfigurationError
from wren.routing.route import ControllerDescriptor, ParamDescriptor, ParamSource, RouteDescriptor

logger = logging.getLogger("wren.routing")

_POSITIONAL = (inspect.Parameter.POSITIONAL_ONLY, inspect.Parameter.POSITIONAL_OR_KEYWORD)


def describe_controller(
    cls: type,
    *,
    factory: Callable[[], Any] | None = None,
) -> ControllerDescriptor:
    """Build the descriptor for an ``@api_controller`` class.

    Raises ``ConfigurationError`` if *cls* is not decorated.
    """
    base_path = controller_base_path(cls)
    if base_path is None:
        msg = f"{cls.__qualname__} is not a controller. Decorate it with @api_controller(base_path)."
        raise ConfigurationError(msg)
    return ControllerDescriptor(
        controller=cls,
        base_path=base_path,
        requires_auth=requires_authorization(cls),
        factory=factory,
    )


@dataclass(frozen=True, slots=True)
class RouteTable:
    """Compiled, read-only route table shared by every request."""

    controllers: tuple[ControllerDescriptor, ...] = ()
    _by_verb: dict[tuple[int, str], tuple[RouteDescriptor, ...]] = field(
        default_factory=dict, repr=False
    )

    def routes_for(self, controller: ControllerDescriptor, verb: str) -> tuple[RouteDescriptor, ...]:
        """Candidate routes of *controller* for *verb*, longest sub-path first."""
        return self._by_verb.get((id(controller), verb.upper()), ())

    @property
    def routes(self) -> list[RouteDescriptor]:
        """Every route, in the order the resolver would try them."""
        return [
            route
            for controller in self.controllers
            for verb in SUPPORTED_VERBS
            for route in self.routes_for(controller, verb)
        ]

    def __iter__(self) -> Iterator[RouteDescriptor]:
        return iter(self.routes)

    def __len__(self) -> int:
        return sum(len(routes) for routes in self._by_verb.values())


def build_route_table(controllers: Iterable[ControllerDescriptor]) -> RouteTable:
    """Compile controller descriptors into a ``RouteTable``.

    Pure function of the descriptors: reads class metadata, performs
    no other I/O.
    """
    ordered = tuple(sorted(controllers, key=lambda c: len(c.prefix), reverse=True))
    by_verb: dict[tuple[int, str], tuple[RouteDescriptor, ...]] = {}

    for controller in ordered:
        routes = list(_controller_routes(controller))
        for verb in SUPPORTED_VERBS:
            candidates = [r for r in routes if r.verb == verb]
            if candidates:
                candidates.sort(key=lambda r: len(r.sub_path), reverse=True)
                by_verb[(id(controller), verb)] = tuple(candidates)
        logger.debug(
            "Compiled %s at %r: %d route(s)", controller.name, controller.base_path, len(routes)
        )

    return RouteTable(controllers=ordered, _by_verb=by_verb)


def _controller_routes(controller: ControllerDescriptor) -> Iterator[RouteDescriptor]:
    """One RouteDescriptor per (method, verb mapping) pair, in declaration order."""
    cls = controller.controller
    for name, attr in _handler_attributes(cls):
        func = attr.__func__ if isinstance(attr, (staticmethod, classmethod)) else attr
        params = _param_descriptors(cls, name, attr)
        requires_auth = controller.requires_auth or requires_authorization(func)
        for mapping in verb_mappings(func):
            verb = mapping.verb.upper()
            if verb not in SUPPORTED_VERBS:
                msg = f"{cls.__qualname__}.{name}: unsupported HTTP verb {mapping.verb!r}"
                raise ConfigurationError(msg)
            yield RouteDescriptor(
                controller=controller,
                method_name=name,
                verb=verb,
                sub_path=mapping.path,
                requires_auth=requires_auth,
                params=params,
            )


def _handler_attributes(cls: type) -> Iterator[tuple[str, Any]]:
    """Methods carrying verb mappings: the class's own first, then its bases.

    A name overridden in a subclass hides the base definition, mappings
    included.
    """
    seen: set[str] = set()
    for klass in cls.__mro__:
        if klass is object:
            continue
        for name, attr in vars(klass).items():
            if name in seen:
                continue
            seen.add(name)
            func = attr.__func__ if isinstance(attr, (staticmethod, classmethod)) else attr
            if callable(func) and verb_mappings(func):
                yield name, attr


def _param_descriptors(cls: type, name: str, attr: Any) -> tuple[ParamDescriptor, ...]:
    where = f"{cls.__qualname__}.{name}"
    try:
        sig = inspect.signature(getattr(cls, name), eval_str=True)
    except NameError as exc:
        msg = f"{where}: cannot resolve parameter annotations ({exc})"
        raise ConfigurationError(msg) from exc

    parameters = list(sig.parameters.values())
    if inspect.isfunction(attr):
        # Plain method looked up on the class: first parameter is the instance.
        parameters = parameters[1:]

    descriptors: list[ParamDescriptor] = []
    for param in parameters:
        if param.kind not in _POSITIONAL:
            msg = f"{where}: parameter {param.name!r} must be positional (no *args, **kwargs or keyword-only)"
            raise ConfigurationError(msg)
        descriptors.append(_describe_param(param))
    return tuple(descriptors)


def _describe_param(param: inspect.Parameter) -> ParamDescriptor:
    annotation = param.annotation
    if get_origin(annotation) is Annotated:
        for meta in get_args(annotation)[1:]:
            marker = as_marker(meta)
            if marker is not None:
                return ParamDescriptor(name=marker.name or param.name, source=marker.source)
    return ParamDescriptor(name=param.name, source=ParamSource.IMPLICIT)
