"""Wren exception hierarchy.

Shared across Router, Server, the chain executor, and handlers so every
module raises and catches the same types.
"""

from dataclasses import dataclass
from typing import Any


class WrenError(Exception):
    """Base for all wren-specific errors."""


class ConfigurationError(WrenError):
    """Raised when server configuration is invalid.

    Bad route specs and non-callable handlers fail here, at setup time,
    never while a request is in flight.
    """


@dataclass(frozen=True, slots=True)
class HTTPError(WrenError):
    """An error that maps directly to an HTTP status code.

    Raised by the router, handlers, or passed to ``next(err)``. The
    response's error-send path uses ``status`` and ``body``.
    """

    status: int
    detail: str = ""
    headers: tuple[tuple[str, str], ...] = ()

    def __str__(self) -> str:
        if self.detail:
            return f"{self.status}: {self.detail}"
        return str(self.status)

    @property
    def code(self) -> str:
        """Short machine-readable code, e.g. ``"ResourceNotFound"``."""
        return type(self).__name__

    @property
    def body(self) -> dict[str, Any]:
        """Serializable representation sent to the client."""
        return {"code": self.code, "message": self.detail}


class NotFound(HTTPError):  # noqa: N818
    """404 — no route matched the request path."""

    def __init__(self, detail: str = "Not Found") -> None:
        super().__init__(status=404, detail=detail)

    @property
    def code(self) -> str:
        return "ResourceNotFound"


class MethodNotAllowed(HTTPError):  # noqa: N818
    """405 — route exists but not for this HTTP method.

    Includes an ``Allow`` header listing the valid methods.
    """

    def __init__(self, allowed: frozenset[str], detail: str = "") -> None:
        allow_value = ", ".join(sorted(allowed))
        default_detail = f"Method not allowed. Allowed methods: {allow_value}"
        super().__init__(
            status=405,
            detail=detail or default_detail,
            headers=(("Allow", allow_value),),
        )


class InvalidVersion(HTTPError):  # noqa: N818
    """400 — the path matched but no route satisfies ``Accept-Version``."""

    def __init__(self, detail: str = "Invalid version") -> None:
        super().__init__(status=400, detail=detail)


class UnsupportedMediaType(HTTPError):  # noqa: N818
    """415 — the route does not accept the request's content type."""

    def __init__(self, detail: str = "Unsupported media type") -> None:
        super().__init__(status=415, detail=detail)


class InternalError(HTTPError):
    """500 — an unexpected fault nobody handled."""

    def __init__(self, detail: str = "Internal Server Error") -> None:
        super().__init__(status=500, detail=detail)
