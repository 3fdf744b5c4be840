"""Handler protocol.

A handler is any callable matching::

    def my_handler(request: Request, response: Response, next: Next) -> None: ...

or the ``async def`` equivalent. No base class required. The handler
advances the chain by calling ``next()``, stops it silently with
``next(False)``, or fails it with ``next(err)``.

Example::

    async def load_user(request, response, next):
        user = await db.get(request.params["id"])
        if user is None:
            return next(NotFound("no such user"))
        request.context["user"] = user
        next()
"""

from typing import TYPE_CHECKING, Any, Protocol

if TYPE_CHECKING:
    from wren.http.request import Request
    from wren.http.response import Response
    from wren.server.chain import Next


class Handler(Protocol):
    """Protocol for chain handlers (sync or async)."""

    def __call__(self, request: "Request", response: "Response", next: "Next") -> Any: ...


class ParamHandler(Protocol):
    """Protocol for ``Server.param`` callbacks."""

    def __call__(
        self,
        request: "Request",
        response: "Response",
        next: "Next",
        value: Any,
        name: str,
    ) -> Any: ...
