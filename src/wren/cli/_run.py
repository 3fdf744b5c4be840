"""``wren run`` — serve a Server through pounce."""

import argparse
import sys

from wren.cli._resolve import resolve_server


def run_server(args: argparse.Namespace) -> None:
    """Resolve ``args.server`` and serve it; CLI flags override config."""
    try:
        server = resolve_server(args.server)
    except (ModuleNotFoundError, AttributeError, TypeError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        raise SystemExit(1) from exc

    from wren.server.dev import run_server as serve

    serve(
        server,
        server.config,
        host=args.host,
        port=args.port,
        app_path=args.server,
    )
