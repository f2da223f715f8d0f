"""App import resolution — ``"module:attribute"`` strings to App instances.

Shared by ``wren run`` and ``wren routes``.
"""

import importlib
from typing import Any

from wren.app import App


def normalize_import_string(import_string: str) -> str:
    """Return *import_string* as ``"module:attribute"``.

    A missing attribute defaults to ``app``, the same default
    :func:`resolve_app` applies.
    """
    module_path, _, attr_name = import_string.partition(":")
    return f"{module_path}:{attr_name or 'app'}"


def _load_target(import_string: str) -> Any:
    module_path, _, attr_name = normalize_import_string(import_string).partition(":")
    module = importlib.import_module(module_path)
    return getattr(module, attr_name)


def is_factory(import_string: str) -> bool:
    """True when *import_string* names a callable that builds the App."""
    obj = _load_target(import_string)
    return callable(obj) and not isinstance(obj, App)


def resolve_app(import_string: str) -> App:
    """Resolve an import string to a wren App instance.

    Accepts ``"module:attribute"``; a missing attribute defaults to
    ``app``. A callable that is not an App is treated as a factory and
    called with no arguments.

    Raises:
        ModuleNotFoundError: If the module cannot be imported.
        AttributeError: If the attribute does not exist on the module.
        TypeError: If the resolved object is not a wren ``App``.
    """
    obj = _load_target(import_string)

    if callable(obj) and not isinstance(obj, App):
        try:
            obj = obj()
        except Exception as exc:
            msg = f"Factory function {import_string!r} raised an error: {exc}"
            raise TypeError(msg) from exc

    if not isinstance(obj, App):
        msg = f"{import_string!r} resolved to {type(obj).__name__}, not a wren.App instance"
        raise TypeError(msg)

    return obj
