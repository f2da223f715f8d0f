"""Parameter source markers for ``typing.Annotated``.

Declare where a handler argument comes from::

    @http_post("/{id}/comments")
    def comment(
        self,
        id,                                       # route capture (implicit)
        payload: Annotated[dict, FromBody()],     # JSON body
        page: Annotated[str, FromQuery()],        # ?page=...
        form: Annotated[FormData, FromForm()],    # whole form
        slug: Annotated[str, FromRoute("id")],    # capture under another name
    ): ...

The bare class (``Annotated[dict, FromBody]``) works as well.
"""

from dataclasses import dataclass
from typing import Any

from wren.routing.route import ParamSource


@dataclass(frozen=True, slots=True)
class FromBody:
    """Bind the JSON-decoded request body (``None`` if it does not parse)."""

    name: str | None = None
    source = ParamSource.BODY


@dataclass(frozen=True, slots=True)
class FromQuery:
    """Bind one query-string value, looked up by parameter name or *name*."""

    name: str | None = None
    source = ParamSource.QUERY


@dataclass(frozen=True, slots=True)
class FromForm:
    """Bind the entire decoded form collection, whatever the parameter is called."""

    name: str | None = None
    source = ParamSource.FORM


@dataclass(frozen=True, slots=True)
class FromRoute:
    """Bind a ``{capture}`` segment, looked up by parameter name or *name*."""

    name: str | None = None
    source = ParamSource.ROUTE


SOURCE_MARKERS: tuple[type, ...] = (FromBody, FromQuery, FromForm, FromRoute)


def as_marker(value: Any) -> FromBody | FromQuery | FromForm | FromRoute | None:
    """Normalize ``Annotated`` metadata to a marker instance, or ``None``."""
    if isinstance(value, SOURCE_MARKERS):
        return value
    if isinstance(value, type) and value in SOURCE_MARKERS:
        return value()
    return None
