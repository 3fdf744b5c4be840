"""``wren routes`` — list mounted routes.

Resolves an import string to a wren Server and prints every mounted
route with its method, path, name, and handler chain.
"""

import argparse
import sys

from wren.cli._resolve import resolve_server
from wren.middleware.registry import handler_name


def run_routes(args: argparse.Namespace) -> None:
    try:
        server = resolve_server(args.server)
    except (ModuleNotFoundError, AttributeError, TypeError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        raise SystemExit(1) from exc

    if args.verbose:
        print(server, end="")
        return

    routes = getattr(server.router, "routes", None)
    if not routes:
        print("No routes registered.")
        return

    chains = server.routes
    # Build rows: (method, path, name, handlers)
    rows: list[tuple[str, str, str, str]] = []
    for spec in routes:
        chain = chains.get(spec.name or "", ())
        handlers = ", ".join(handler_name(h, i) for i, h in enumerate(chain))
        rows.append((spec.method, spec.path, spec.name or "", handlers))

    max_method = max(max(len(r[0]) for r in rows), 6)  # "METHOD" header
    max_path = max(max(len(r[1]) for r in rows), 4)  # "PATH" header
    max_name = max(max(len(r[2]) for r in rows), 4)  # "NAME" header

    fmt = f"{{:<{max_method}}}  {{:<{max_path}}}  {{:<{max_name}}}  {{}}"
    print(fmt.format("METHOD", "PATH", "NAME", "HANDLERS"))
    sep_len = max_method + max_path + max_name + 6 + max(len(r[3]) for r in rows)
    print("-" * min(sep_len, 80))
    for row in rows:
        print(fmt.format(*row))
