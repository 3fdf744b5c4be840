"""Routing — the resolver contract and a mutable trie implementation.

The server only depends on ``Resolver``; ``Router`` is the bundled
implementation supporting ``{param}``/``:param`` segments, typed params,
versions via ``Accept-Version``, and content-type restrictions.
"""

from wren.routing.protocol import Resolver
from wren.routing.route import RouteSpec, coerce_spec, normalize_method, parse_path, route_name
from wren.routing.router import Router

__all__ = [
    "Resolver",
    "RouteSpec",
    "Router",
    "coerce_spec",
    "normalize_method",
    "parse_path",
    "route_name",
]
