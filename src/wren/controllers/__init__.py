"""Controllers — declarative route metadata on plain classes.

Decorators:
    api_controller -- Base path for a controller class
    http_get, http_post, http_put, http_delete, http_patch -- Verb mappings
    authorize -- Require an authenticated caller (method or class)

Parameter sources (``typing.Annotated`` metadata):
    FromBody, FromQuery, FromForm, FromRoute
"""

from wren.controllers.decorators import (
    api_controller,
    authorize,
    http_delete,
    http_get,
    http_patch,
    http_post,
    http_put,
)
from wren.controllers.discovery import discover_controllers
from wren.controllers.params import FromBody, FromForm, FromQuery, FromRoute

__all__ = [
    "FromBody",
    "FromForm",
    "FromQuery",
    "FromRoute",
    "api_controller",
    "authorize",
    "discover_controllers",
    "http_delete",
    "http_get",
    "http_patch",
    "http_post",
    "http_put",
]
