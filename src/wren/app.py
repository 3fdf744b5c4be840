"""Wren server class.

Mutable during setup (routes, ``use``/``pre`` handlers, listeners).
Route chains are snapshotted at mount time, so mounting and unmounting
stay safe after the first request has been served.
"""

import inspect
import logging
from collections.abc import Callable, Mapping
from typing import Any

from wren._internal.asgi import Receive, Scope, Send
from wren._internal.types import Listener
from wren.config import ServerConfig
from wren.events import EventEmitter
from wren.formatters import merge_formatters
from wren.middleware.protocol import ParamHandler
from wren.middleware.registry import ChainRegistry, handler_name
from wren.routing.protocol import Resolver
from wren.routing.route import RouteSpec, coerce_spec
from wren.routing.router import Router
from wren.server.handler import handle_request
from wren.server.pipeline import Pipeline
from wren.tracing.probes import ProbeProvider, probes as default_probes

RouteLike = RouteSpec | str | Mapping[str, Any]


class Server:
    """The wren server.

    Usage::

        server = Server(ServerConfig(name="api"))

        def hello(request, response, next):
            response.send({"hello": request.params["name"]})
            next()

        server.get("/hello/{name}", hello)

    Any ASGI server can run it (``server`` is the ASGI callable), or
    ``server.run()`` serves it through pounce.
    """

    __slots__ = (
        "_chains",
        "_events",
        "_formatters",
        "_pipeline",
        "_shutdown_hooks",
        "_startup_hooks",
        "config",
        "log",
        "probes",
        "router",
    )

    def __init__(
        self,
        config: ServerConfig | None = None,
        *,
        router: Resolver | None = None,
        log: logging.Logger | None = None,
        probes: ProbeProvider | None = None,
    ) -> None:
        self.config = config or ServerConfig()
        self.router: Resolver = router if router is not None else Router()
        self.log = log or logging.getLogger("wren.server")
        self.probes = probes if probes is not None else default_probes
        self._events = EventEmitter()
        self._chains = ChainRegistry()
        self._formatters = merge_formatters(self.config.formatters)
        self._startup_hooks: list[Callable[..., Any]] = []
        self._shutdown_hooks: list[Callable[..., Any]] = []
        self._pipeline = Pipeline(
            name=self.config.name,
            router=self.router,
            chains=self._chains,
            formatters=self._formatters,
            events=self._events,
            probes=self.probes,
            log=self.log,
        )

        router_events = getattr(self.router, "events", None)
        if isinstance(router_events, EventEmitter):
            router_events.on("mount", self._on_router_mount)

    # -- Introspection --

    @property
    def name(self) -> str:
        return self.config.name

    @property
    def versions(self) -> tuple[str, ...]:
        return self.config.versions

    @property
    def acceptable(self) -> tuple[str, ...]:
        return self._formatters.acceptable

    @property
    def formatters(self) -> Mapping[str, Callable[..., Any]]:
        return self._formatters.formatters

    @property
    def secure(self) -> bool:
        return self.config.secure

    @property
    def url(self) -> str:
        scheme = "https" if self.secure else "http"
        return f"{scheme}://{self.config.host}:{self.config.port}"

    @property
    def routes(self) -> dict[str, tuple[Callable[..., Any], ...]]:
        """Route handle -> the handler chain stored for it."""
        return self._chains.routes

    @property
    def pre_chain(self) -> tuple[Callable[..., Any], ...]:
        return self._chains.pre_chain

    @property
    def global_chain(self) -> tuple[Callable[..., Any], ...]:
        return self._chains.global_chain

    @property
    def pipeline(self) -> Pipeline:
        return self._pipeline

    # -- Route registration --

    def mount(self, spec: RouteLike, *handlers: Any, method: str | None = None) -> str | None:
        """Mount *handlers* under *spec*. Returns the route handle.

        ``None`` means the router rejected the spec (e.g. a duplicate
        route); nothing is recorded in that case.
        """
        route = coerce_spec(spec, method=method, default_versions=self.config.versions)
        chain = self._chains.build(handlers)
        handle = self.router.mount(route)
        if not handle:
            return None
        self._chains.store(handle, chain)
        return handle

    def get(self, spec: RouteLike, *handlers: Any) -> str | None:
        return self.mount(spec, *handlers, method="GET")

    def head(self, spec: RouteLike, *handlers: Any) -> str | None:
        return self.mount(spec, *handlers, method="HEAD")

    def post(self, spec: RouteLike, *handlers: Any) -> str | None:
        return self.mount(spec, *handlers, method="POST")

    def put(self, spec: RouteLike, *handlers: Any) -> str | None:
        return self.mount(spec, *handlers, method="PUT")

    def patch(self, spec: RouteLike, *handlers: Any) -> str | None:
        return self.mount(spec, *handlers, method="PATCH")

    def delete(self, spec: RouteLike, *handlers: Any) -> str | None:
        return self.mount(spec, *handlers, method="DELETE")

    def options(self, spec: RouteLike, *handlers: Any) -> str | None:
        return self.mount(spec, *handlers, method="OPTIONS")

    opts = options

    def rm(self, handle: str) -> str | None:
        """Unmount the route *handle*. Returns the handle if it existed."""
        removed = self.router.unmount(handle)
        if removed:
            self._chains.discard(removed)
        return removed

    def use(self, *handlers: Any) -> "Server":
        """Append handlers to every route mounted from now on."""
        self._chains.use(*handlers)
        return self

    def pre(self, *handlers: Any) -> "Server":
        """Append handlers run before routing, for every request."""
        self._chains.pre(*handlers)
        return self

    def param(self, name: str, fn: ParamHandler) -> "Server":
        """Run ``fn(request, response, next, value, name)`` when *name* is a route param."""
        self._chains.param(name, fn)
        return self

    # -- Events --

    def on(self, event: str, listener: Listener) -> Listener:
        return self._events.on(event, listener)

    def once(self, event: str, listener: Listener) -> Listener:
        return self._events.once(event, listener)

    def off(self, event: str, listener: Listener) -> bool:
        return self._events.off(event, listener)

    def emit(self, event: str, *args: Any) -> bool:
        return self._events.emit(event, *args)

    def listeners(self, event: str) -> list[Listener]:
        return self._events.listeners(event)

    def _on_router_mount(self, method: str, path: str, spec: Any) -> None:
        self._events.emit("mount", method, path, spec)

    # -- Lifecycle hooks --

    def on_startup(self, func: Callable[..., Any]) -> Callable[..., Any]:
        """Register an async or sync startup hook via decorator.

        Hooks run in registration order during ASGI lifespan startup,
        before the server begins accepting HTTP requests.

        Usage::

            @server.on_startup
            async def setup():
                await db.connect()
        """
        self._startup_hooks.append(func)
        return func

    def on_shutdown(self, func: Callable[..., Any]) -> Callable[..., Any]:
        """Register an async or sync shutdown hook via decorator."""
        self._shutdown_hooks.append(func)
        return func

    async def startup(self) -> None:
        for hook in self._startup_hooks:
            result = hook()
            if inspect.isawaitable(result):
                await result

    async def shutdown(self) -> None:
        for hook in self._shutdown_hooks:
            result = hook()
            if inspect.isawaitable(result):
                await result

    # -- Server --

    def run(self, host: str | None = None, port: int | None = None) -> None:
        """Serve through pounce (``pip install wren[server]``)."""
        from wren.server.dev import run_server

        run_server(self, self.config, host=host, port=port)

    # -- ASGI interface --

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        """ASGI 3.0 entry point."""
        if scope["type"] == "lifespan":
            await self._handle_lifespan(scope, receive, send)
            return

        await handle_request(
            scope,
            receive,
            send,
            pipeline=self._pipeline,
            events=self._events,
        )

    async def _handle_lifespan(self, scope: Scope, receive: Receive, send: Send) -> None:
        """Run the ASGI lifespan protocol."""
        while True:
            message = await receive()
            msg_type = message["type"]

            if msg_type == "lifespan.startup":
                try:
                    await self.startup()
                    await send({"type": "lifespan.startup.complete"})
                except Exception as exc:
                    self.log.exception("startup hook failed")
                    await send(
                        {
                            "type": "lifespan.startup.failed",
                            "message": str(exc),
                        }
                    )
                    return

            elif msg_type == "lifespan.shutdown":
                await self.shutdown()
                await send({"type": "lifespan.shutdown.complete"})
                return

    # -- Display --

    def __str__(self) -> str:
        def names(chain: tuple[Any, ...]) -> str:
            return "[" + ", ".join(handler_name(h, i) for i, h in enumerate(chain)) + "]"

        lines = [
            f"\tAccepts: {', '.join(self.acceptable)}",
            f"\tName: {self.name}",
            f"\tPre: {names(self.pre_chain)}",
            f"\tRouter: {self.router}",
            "\tRoutes:",
        ]
        lines.extend(f"\t\t{handle}: {names(chain)}" for handle, chain in self.routes.items())
        lines.extend(
            [
                f"\tSecure: {self.secure}",
                f"\tUrl: {self.url}",
                f"\tVersion: {', '.join(self.versions)}",
            ]
        )
        return "\n".join(lines) + "\n"

    def __repr__(self) -> str:
        return f"<Server {self.name!r} routes={len(self.routes)}>"
