"""Route specs, path segments, and mount-time normalization."""

import re
from collections.abc import Mapping
from dataclasses import dataclass, field, replace
from typing import Any

from wren.errors import ConfigurationError

# (regex_pattern, python_type) for each supported converter
CONVERTERS: dict[str, tuple[str, type]] = {
    "str": (r"[^/]+", str),
    "int": (r"\d+", int),
    "float": (r"\d+(?:\.\d+)?", float),
    "path": (r".+", str),
}

METHODS: frozenset[str] = frozenset(
    {"GET", "HEAD", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"}
)

# Short verb forms accepted by mount()
METHOD_ALIASES: dict[str, str] = {"DEL": "DELETE", "OPTS": "OPTIONS"}

_NON_WORD = re.compile(r"\W")


@dataclass(frozen=True, slots=True)
class PathSegment:
    """A parsed segment of a route path.

    Static:  ``/users``     (is_param=False)
    Param:   ``/{id}``      (is_param=True, param_name="id")
    Typed:   ``/{id:int}``  (is_param=True, param_name="id", param_type="int")
    Colon:   ``/:id``       (same as ``/{id}``)
    """

    value: str
    is_param: bool = False
    param_name: str | None = None
    param_type: str = "str"


@dataclass(frozen=True, slots=True)
class RouteSpec:
    """What to mount: method, path pattern, name, versions, accepted types.

    ``content_type`` restricts the request body types the route accepts;
    empty means any.
    """

    path: str
    method: str = "GET"
    name: str | None = None
    versions: tuple[str, ...] = ()
    content_type: tuple[str, ...] = field(default=())


def parse_path(path: str) -> list[PathSegment]:
    """Parse a route path string into segments.

    Examples::

        "/users"             -> [PathSegment("users")]
        "/users/{id}"        -> [PathSegment("users"), PathSegment("{id}", is_param=True, ...)]
        "/users/:id"         -> [PathSegment("users"), PathSegment(":id", is_param=True, ...)]
        "/files/{path:path}" -> [PathSegment("{path:path}", is_param=True, param_type="path")]
    """
    segments: list[PathSegment] = []
    for part in path.strip("/").split("/"):
        if not part:
            continue
        if part.startswith("<") and part.endswith(">"):
            msg = (
                f"Route {path!r} uses <param> syntax. "
                "Use {param} or :param instead."
            )
            raise ConfigurationError(msg)
        if part.startswith("{") and part.endswith("}"):
            inner = part[1:-1]
            param_name, _, param_type = inner.partition(":")
            param_type = param_type or "str"
            if param_type not in CONVERTERS:
                msg = f"Unknown parameter type {param_type!r} in route {path!r}."
                raise ConfigurationError(msg)
            segments.append(
                PathSegment(value=part, is_param=True, param_name=param_name, param_type=param_type)
            )
        elif part.startswith(":"):
            segments.append(PathSegment(value=part, is_param=True, param_name=part[1:]))
        else:
            segments.append(PathSegment(value=part))
    return segments


def normalize_method(method: str) -> str:
    """Upper-case *method* and expand the short aliases (``del``, ``opts``)."""
    upper = method.strip().upper()
    upper = METHOD_ALIASES.get(upper, upper)
    if upper not in METHODS:
        msg = f"Unsupported HTTP method {method!r}."
        raise ConfigurationError(msg)
    return upper


def route_name(method: str, path: str, versions: tuple[str, ...]) -> str:
    """Derive the default route name: ``get-/users/:id-1.0.0`` -> ``getusersid100``."""
    name = f"{method}-{path}"
    if versions:
        name += "-" + "--".join(versions)
    return sanitize_name(name)


def sanitize_name(name: str) -> str:
    """Strip every non-word character and lower-case the result."""
    return _NON_WORD.sub("", name).lower()


def coerce_spec(
    spec: "RouteSpec | str | Mapping[str, Any]",
    *,
    method: str | None = None,
    default_versions: tuple[str, ...] = (),
) -> RouteSpec:
    """Validate and normalize a route spec at mount time.

    Accepts a ``RouteSpec``, a bare path, or a mapping of ``RouteSpec``
    fields (``url`` and ``version`` are accepted as aliases of ``path``
    and ``versions``). Raises ``ConfigurationError`` on anything else.
    """
    if isinstance(spec, str):
        spec = RouteSpec(path=spec)
    elif isinstance(spec, Mapping):
        fields = dict(spec)
        if "url" in fields and "path" not in fields:
            fields["path"] = fields.pop("url")
        if "version" in fields and "versions" not in fields:
            fields["versions"] = fields.pop("version")
        try:
            spec = RouteSpec(**fields)
        except TypeError as exc:
            msg = f"Invalid route spec: {exc}"
            raise ConfigurationError(msg) from exc
    elif not isinstance(spec, RouteSpec):
        msg = f"path (str) required, got {type(spec).__name__}"
        raise ConfigurationError(msg)

    if not isinstance(spec.path, str) or not spec.path:
        msg = "path (str) required"
        raise ConfigurationError(msg)

    verb = normalize_method(method or spec.method)

    versions: Any = spec.versions or default_versions
    if isinstance(versions, str):
        versions = (versions,)
    versions = tuple(str(v) for v in versions)

    content_type: Any = spec.content_type
    if isinstance(content_type, str):
        content_type = (content_type,)
    content_type = tuple(t.lower() for t in content_type)

    name = spec.name or route_name(verb, spec.path, versions)
    return replace(
        spec,
        method=verb,
        versions=versions,
        content_type=content_type,
        name=sanitize_name(name),
    )
