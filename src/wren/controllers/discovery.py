"""Controller discovery — find ``@api_controller`` classes in a package.

Optional convenience for apps that keep their controllers in a package.
The route table itself never scans anything; it only consumes the list
this returns (or the classes passed to ``App.add_controller``).
"""

from __future__ import annotations

import importlib
import logging
import pkgutil
from types import ModuleType

from wren.controllers.decorators import is_controller

logger = logging.getLogger("wren.routing")


def discover_controllers(package: str | ModuleType) -> list[type]:
    """Import *package* and every module below it, returning controller classes.

    Only classes defined in the walked modules are returned (a controller
    imported into another module is reported once, from its own module).
    Order is module name order, then definition order within a module.

    Args:
        package: Dotted package name or an already imported package.

    Raises:
        ModuleNotFoundError: If the package or one of its modules cannot
            be imported.
    """
    root = importlib.import_module(package) if isinstance(package, str) else package

    modules = [root]
    search_path = getattr(root, "__path__", None)
    if search_path is not None:
        prefix = f"{root.__name__}."
        names = sorted(info.name for info in pkgutil.walk_packages(search_path, prefix))
        modules.extend(importlib.import_module(name) for name in names)

    controllers: list[type] = []
    for module in modules:
        for obj in vars(module).values():
            if is_controller(obj) and obj.__module__ == module.__name__:
                controllers.append(obj)

    logger.debug("Discovered %d controller(s) in %s", len(controllers), root.__name__)
    return controllers
