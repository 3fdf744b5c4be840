"""Mutable trie router.

Routes can be mounted and unmounted at any time; lookups walk the trie
by path segment, then narrow by method, version, and content type.
"""

import logging
import re
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Literal

from wren.errors import (
    ConfigurationError,
    InvalidVersion,
    MethodNotAllowed,
    NotFound,
    UnsupportedMediaType,
)
from wren.events import EventEmitter
from wren.routing.route import CONVERTERS, PathSegment, RouteSpec, parse_path
from wren.routing.versions import max_satisfying, satisfies, version_key

if TYPE_CHECKING:
    from wren.http.request import Request
    from wren.http.response import Response

logger = logging.getLogger("wren.routing")


class _TrieNode:
    """A node in the route trie."""

    __slots__ = ("catch_alls", "children", "param_children", "routes_by_method")

    def __init__(self) -> None:
        # Static segment children: "users" -> node
        self.children: dict[str, _TrieNode] = {}
        # Parameter edges, tried in mount order
        self.param_children: list[_ParamEdge] = []
        # Catch-all edges ({name:path}), consume the rest of the path
        self.catch_alls: list[_ParamEdge] = []
        # Routes terminating here, keyed by HTTP method
        self.routes_by_method: dict[str, list[RouteSpec]] = {}

    def has_routes(self) -> bool:
        return any(self.routes_by_method.values())


@dataclass(slots=True)
class _ParamEdge:
    """A parameter edge in the trie."""

    param_name: str
    param_type: str
    regex: re.Pattern[str]
    node: _TrieNode


def _edge_for(edges: list[_ParamEdge], seg: PathSegment) -> _ParamEdge:
    name = seg.param_name or ""
    for edge in edges:
        if edge.param_name == name and edge.param_type == seg.param_type:
            return edge
    pattern, _ = CONVERTERS[seg.param_type]
    edge = _ParamEdge(
        param_name=name,
        param_type=seg.param_type,
        regex=re.compile(f"^{pattern}$"),
        node=_TrieNode(),
    )
    edges.append(edge)
    return edge


def _versions_overlap(a: tuple[str, ...], b: tuple[str, ...]) -> bool:
    if not a and not b:
        return True
    return bool(set(a) & set(b))


class Router:
    """Trie router implementing the ``Resolver`` protocol.

    Usage::

        router = Router()
        name = router.mount(RouteSpec("/users/{id:int}", "GET", name="getuser"))
        handle, params = router.find(request, response)   # ("getuser", {"id": "42"})
        router.unmount(name)
    """

    __slots__ = ("_root", "_routes", "_versions", "events")

    def __init__(self) -> None:
        self._root = _TrieNode()
        self._routes: dict[str, tuple[RouteSpec, _TrieNode]] = {}
        self._versions: tuple[str, ...] = ()
        self.events = EventEmitter()

    # -- Registration --

    def mount(self, spec: RouteSpec) -> str | None:
        """Register *spec*. Returns its name, or ``None`` on conflict.

        Conflicts are a duplicate name, or the same method and path shape
        with an overlapping version set.
        """
        if spec.name is None:
            msg = f"Route {spec.method} {spec.path!r} has no name; normalize it with coerce_spec() first."
            raise ConfigurationError(msg)
        if spec.name in self._routes:
            logger.debug("route name %r already mounted", spec.name)
            return None

        segments = parse_path(spec.path)
        node = self._root
        for index, seg in enumerate(segments):
            if seg.is_param and seg.param_type == "path":
                if index != len(segments) - 1:
                    msg = f"Catch-all segment must be last in route {spec.path!r}."
                    raise ConfigurationError(msg)
                node = _edge_for(node.catch_alls, seg).node
            elif seg.is_param:
                node = _edge_for(node.param_children, seg).node
            else:
                node = node.children.setdefault(seg.value, _TrieNode())

        existing = node.routes_by_method.setdefault(spec.method, [])
        for other in existing:
            if _versions_overlap(other.versions, spec.versions):
                logger.debug(
                    "route %r conflicts with %r (%s %s)",
                    spec.name,
                    other.name,
                    spec.method,
                    spec.path,
                )
                return None

        existing.append(spec)
        self._routes[spec.name] = (spec, node)
        self._refresh_versions()
        self.events.emit("mount", spec.method, spec.path, spec)
        return spec.name

    def unmount(self, handle: str) -> str | None:
        """Remove the route named *handle*. Returns the name, or ``None``."""
        entry = self._routes.pop(handle, None)
        if entry is None:
            return None
        spec, node = entry
        routes = node.routes_by_method.get(spec.method, [])
        node.routes_by_method[spec.method] = [r for r in routes if r.name != handle]
        self._refresh_versions()
        return handle

    def _refresh_versions(self) -> None:
        seen = {v for spec, _ in self._routes.values() for v in spec.versions}
        self._versions = tuple(sorted(seen, key=version_key))

    # -- Introspection --

    @property
    def versions(self) -> tuple[str, ...]:
        return self._versions

    @property
    def routes(self) -> list[RouteSpec]:
        """Mounted routes in mount order."""
        return [spec for spec, _ in self._routes.values()]

    def get(self, handle: str) -> RouteSpec | None:
        entry = self._routes.get(handle)
        return entry[0] if entry is not None else None

    def __str__(self) -> str:
        lines = [f"{spec.method} {spec.path} ({spec.name})" for spec in self.routes]
        return "; ".join(lines) or "(no routes)"

    # -- Resolution --

    def find(
        self, request: "Request", response: "Response"
    ) -> tuple[str | Literal[True], dict[str, Any]]:
        """Resolve *request* to ``(route name | True, params)``.

        Raises ``NotFound``, ``MethodNotAllowed``, ``InvalidVersion`` or
        ``UnsupportedMediaType``.
        """
        method = request.method.upper()
        path = request.path
        parts = [p for p in path.strip("/").split("/") if p]
        result = self._match_node(self._root, parts, 0, {})
        if result is None:
            raise NotFound(f"{path} does not exist")

        node, params = result
        candidates = node.routes_by_method.get(method) or []
        if not candidates and method == "HEAD":
            candidates = node.routes_by_method.get("GET") or []
        if not candidates:
            if method == "OPTIONS":
                # Preflight: the path exists, the request is satisfied
                return True, params
            allowed = frozenset(m for m, routes in node.routes_by_method.items() if routes)
            raise MethodNotAllowed(allowed)

        route = self._select_version(candidates, request.version)
        if route is None:
            offered = sorted({v for r in candidates for v in r.versions}, key=version_key)
            raise InvalidVersion(
                f"{method} {path} supports versions: {', '.join(offered)}"
            )

        if route.content_type and request.has_body:
            content_type = request.content_type or "application/octet-stream"
            if content_type not in route.content_type:
                raise UnsupportedMediaType(f"{content_type} is not supported")

        return route.name or "", dict(params)

    @staticmethod
    def _select_version(candidates: list[RouteSpec], requested: str) -> RouteSpec | None:
        best: RouteSpec | None = None
        best_key: tuple[int, ...] | None = None
        fallback: RouteSpec | None = None
        for route in candidates:
            if not route.versions:
                fallback = fallback or route
                continue
            if not any(satisfies(v, requested) for v in route.versions):
                continue
            top = max_satisfying(route.versions, requested)
            key = version_key(top) if top is not None else ()
            if best_key is None or key > best_key:
                best, best_key = route, key
        return best or fallback

    def _match_node(
        self,
        node: _TrieNode,
        parts: list[str],
        index: int,
        params: dict[str, str],
    ) -> tuple[_TrieNode, dict[str, str]] | None:
        """Recursively match path parts against the trie."""
        if index == len(parts):
            if node.has_routes():
                return node, params
            return None

        part = parts[index]

        # 1. Static child first (exact match)
        child = node.children.get(part)
        if child is not None:
            result = self._match_node(child, parts, index + 1, params)
            if result is not None:
                return result

        # 2. Parameter edges
        for edge in node.param_children:
            if edge.regex.match(part):
                result = self._match_node(
                    edge.node, parts, index + 1, {**params, edge.param_name: part}
                )
                if result is not None:
                    return result

        # 3. Catch-all edges
        remaining = "/".join(parts[index:])
        for edge in node.catch_alls:
            if edge.node.has_routes():
                return edge.node, {**params, edge.param_name: remaining}

        return None
