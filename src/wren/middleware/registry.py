"""Chain registry — which handlers run for which route.

Three chains live here:

- the **pre** chain, consulted fresh for every request before routing;
- the **global** chain, appended to by ``use()``;
- one **route** chain per mounted route: a tuple snapshot of the global
  chain at mount time followed by the route's own handlers.

A route mounted before a ``use()`` call never sees that handler.
"""

from collections.abc import Iterable
from typing import Any

from wren._internal.types import Handler
from wren.errors import ConfigurationError
from wren.middleware.protocol import ParamHandler


def to_chain(handlers: Iterable[Any]) -> list[Handler]:
    """Flatten (nested) lists/tuples of handlers, validating each one."""
    chain: list[Handler] = []
    for handler in handlers:
        if isinstance(handler, list | tuple):
            chain.extend(to_chain(handler))
        elif callable(handler):
            chain.append(handler)
        else:
            msg = f"handler (callable) required, got {type(handler).__name__}"
            raise ConfigurationError(msg)
    return chain


def handler_name(handler: Any, index: int) -> str:
    """Declared name of *handler*, or a positional fallback."""
    name = getattr(handler, "__name__", None)
    if not name or name == "<lambda>":
        return f"handler-{index}"
    return name


class ChainRegistry:
    """Holds the pre, global, and per-route chains."""

    __slots__ = ("_global", "_pre", "_routes")

    def __init__(self) -> None:
        self._pre: list[Handler] = []
        self._global: list[Handler] = []
        self._routes: dict[str, tuple[Handler, ...]] = {}

    # -- Chains --

    @property
    def pre_chain(self) -> tuple[Handler, ...]:
        return tuple(self._pre)

    @property
    def global_chain(self) -> tuple[Handler, ...]:
        return tuple(self._global)

    def pre(self, *handlers: Any) -> None:
        self._pre.extend(to_chain(handlers))

    def use(self, *handlers: Any) -> None:
        self._global.extend(to_chain(handlers))

    def param(self, name: str, fn: ParamHandler) -> None:
        """Run *fn* only for requests whose params carry *name*."""
        if not callable(fn):
            msg = f"param handler for {name!r} must be callable"
            raise ConfigurationError(msg)

        def param_handler(request: Any, response: Any, next: Any) -> Any:
            value = request.params.get(name) if request.params else None
            if value is not None:
                return fn(request, response, next, value, name)
            return next()

        param_handler.__name__ = f"param_{name}"
        self.use(param_handler)

    # -- Route chains --

    def build(self, handlers: Iterable[Any]) -> tuple[Handler, ...]:
        """Snapshot the global chain and append the route's handlers."""
        own = to_chain(handlers)
        if not own:
            msg = "handler (callable) required"
            raise ConfigurationError(msg)
        return (*self._global, *own)

    def store(self, handle: str, chain: tuple[Handler, ...]) -> None:
        self._routes[handle] = chain

    def discard(self, handle: str) -> bool:
        return self._routes.pop(handle, None) is not None

    def get(self, handle: str) -> tuple[Handler, ...] | None:
        return self._routes.get(handle)

    @property
    def routes(self) -> dict[str, tuple[Handler, ...]]:
        return dict(self._routes)
