"""``wren run`` — serve an app with uvicorn."""

import argparse
import sys

from wren.cli._resolve import is_factory, normalize_import_string, resolve_app
from wren.server.dev import run_server as serve


def run_server(args: argparse.Namespace) -> None:
    """Resolve ``args.app`` and serve it.

    ``--host`` and ``--port`` override the app's ``AppConfig``. With
    ``--reload`` uvicorn re-imports the app from its normalized
    ``"module:attribute"`` string, calling it first when it is a factory.
    """
    try:
        app = resolve_app(args.app)
    except (ModuleNotFoundError, AttributeError, TypeError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        raise SystemExit(1) from exc

    app._ensure_frozen()
    app_path = normalize_import_string(args.app)
    serve(
        app,
        args.host or app.config.host,
        args.port or app.config.port,
        log_level=app.config.log_level,
        reload=args.reload,
        app_path=app_path,
        factory=is_factory(app_path),
    )
