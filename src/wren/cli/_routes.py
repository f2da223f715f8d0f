"""``wren routes`` — print the compiled route table.

Rows appear in the order the resolver tries them: controllers by
descending base-path length, then per verb by descending sub-path
length.
"""

import argparse
import sys

from wren.cli._resolve import resolve_app
from wren.errors import ConfigurationError


def format_routes(rows: list[tuple[str, str, str, str]]) -> list[str]:
    """Align (verb, pattern, auth, handler) rows under a header."""
    header = ("VERB", "PATTERN", "AUTH", "HANDLER")
    widths = [max(len(row[i]) for row in (header, *rows)) for i in range(3)]
    fmt = f"{{:<{widths[0]}}}  {{:<{widths[1]}}}  {{:<{widths[2]}}}  {{}}"
    lines = [fmt.format(*header)]
    lines.append("-" * min(sum(widths) + 6 + max(len(r[3]) for r in (header, *rows)), 80))
    lines.extend(fmt.format(*row) for row in rows)
    return lines


def run_routes(args: argparse.Namespace) -> None:
    """Resolve ``args.app``, freeze it, and print its routes."""
    try:
        app = resolve_app(args.app)
        table = app.route_table
    except (ModuleNotFoundError, AttributeError, TypeError, ConfigurationError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        raise SystemExit(1) from exc

    routes = table.routes
    if not routes:
        print("No routes registered.")
        return

    rows = [
        (route.verb, route.pattern or "/", "yes" if route.requires_auth else "", route.handler_name)
        for route in routes
    ]
    for line in format_routes(rows):
        print(line)
