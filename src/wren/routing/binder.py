"""Parameter binding: one positional value per declared handler parameter.

Binding is permissive. No parameter is ever rejected; anything missing
or unparseable binds ``None`` and the handler validates what it needs.
"""

import json
from typing import Any

from wren.http.forms import FormData
from wren.http.request import Request
from wren.routing.route import ParamDescriptor, ParamSource, RouteDescriptor


async def bind_arguments(
    route: RouteDescriptor,
    captures: dict[str, str],
    request: Request,
) -> list[Any]:
    """Build the argument list for *route*, in declaration order."""
    return [await bind_parameter(param, captures, request) for param in route.params]


async def bind_parameter(
    param: ParamDescriptor,
    captures: dict[str, str],
    request: Request,
) -> Any:
    """Bind a single parameter from its declared source."""
    match param.source:
        case ParamSource.IMPLICIT | ParamSource.ROUTE:
            return captures.get(param.name)
        case ParamSource.QUERY:
            return request.query.get(param.name)
        case ParamSource.BODY:
            return await _json_body(request)
        case ParamSource.FORM:
            return await _form_body(request)
    return None


async def _json_body(request: Request) -> Any:
    # Malformed or empty bodies bind None rather than failing the request.
    try:
        return await request.json()
    except (ValueError, UnicodeDecodeError):
        return None


async def _form_body(request: Request) -> FormData:
    try:
        return await request.form()
    except ValueError:
        return FormData()
