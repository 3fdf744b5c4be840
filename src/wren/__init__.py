"""Wren — an ASGI server framework built around handler chains.

Requests run through a pre chain, route resolution, and the matched
route's chain of ``(request, response, next)`` handlers, with lifecycle
events and tracing probes along the way.

Basic usage::

    from wren import Server

    server = Server()

    def hello(request, response, next):
        response.send({"hello": "world"})
        next()

    server.get("/hello", hello)
    server.run()

Serving with pounce (``pip install wren[server]``); any other ASGI
server works with ``server`` as the application.
"""

# Declare free-threading support (PEP 703)
_Py_mod_gil = 0

__version__ = "0.1.0"
__all__ = [
    "ConfigurationError",
    "HTTPError",
    "InternalError",
    "InvalidVersion",
    "MethodNotAllowed",
    "Next",
    "NotFound",
    "Outcome",
    "Request",
    "Response",
    "RouteSpec",
    "Router",
    "Server",
    "ServerConfig",
    "UnsupportedMediaType",
    "WrenError",
    "probes",
]

_ERRORS = frozenset(
    {
        "ConfigurationError",
        "HTTPError",
        "InternalError",
        "InvalidVersion",
        "MethodNotAllowed",
        "NotFound",
        "UnsupportedMediaType",
        "WrenError",
    }
)


def __getattr__(name: str) -> object:
    """Lazy imports for public API.

    Keeps ``import wren`` fast while providing a clean top-level API.
    """
    if name == "Server":
        from wren.app import Server

        return Server

    if name == "ServerConfig":
        from wren.config import ServerConfig

        return ServerConfig

    if name == "Request":
        from wren.http.request import Request

        return Request

    if name == "Response":
        from wren.http.response import Response

        return Response

    if name in ("Router", "RouteSpec"):
        import wren.routing

        return getattr(wren.routing, name)

    if name == "Next":
        from wren.server.chain import Next

        return Next

    if name == "Outcome":
        from wren.events import Outcome

        return Outcome

    if name == "probes":
        from wren.tracing import probes

        return probes

    if name in _ERRORS:
        import wren.errors

        return getattr(wren.errors, name)

    raise AttributeError(f"module 'wren' has no attribute {name!r}")
