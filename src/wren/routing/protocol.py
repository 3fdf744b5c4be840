"""Resolver protocol — the contract the server needs from a router.

Any object with this shape can be passed as ``Server(router=...)``. No
base class required; the bundled ``Router`` is one implementation.

``find`` either returns ``(handle, params)`` — where ``handle`` is the
mounted route's name, or ``True`` when the request is already satisfied
(preflight) — or raises. ``NotFound``, ``MethodNotAllowed``,
``InvalidVersion`` and ``UnsupportedMediaType`` map to their named
outcomes; any other exception is a generic resolution failure.
"""

from typing import TYPE_CHECKING, Any, Literal, Protocol

from wren.routing.route import RouteSpec

if TYPE_CHECKING:
    from wren.http.request import Request
    from wren.http.response import Response


class Resolver(Protocol):
    """Protocol for route resolvers."""

    @property
    def versions(self) -> tuple[str, ...]:
        """Every registered version, ascending (most specific last)."""
        ...

    def mount(self, spec: RouteSpec) -> str | None: ...

    def unmount(self, handle: str) -> str | None: ...

    def find(
        self, request: "Request", response: "Response"
    ) -> tuple[str | Literal[True], dict[str, Any]]: ...
