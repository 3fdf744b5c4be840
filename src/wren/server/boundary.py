"""Per-request fault boundary.

Every handler call of a request goes through its ``FaultBoundary``. A
fault (an exception raised by the call, or by the task of an ``async``
handler) is routed back into the chain as if the handler had called
``next(fault)``:

1. the continuation tagged by ``next.if_error(err)``, if any;
2. otherwise the handler's own continuation, if it is still unused.

When neither exists the fault no longer belongs to a chain step; it is
emitted as ``uncaughtException`` (request, response, route, fault).
With no listener, it is logged and a 500 is sent if nothing was sent
yet. Other requests never see it.
"""

from __future__ import annotations

import asyncio
import inspect
import logging
from typing import TYPE_CHECKING, Any

from wren._internal.types import Handler
from wren.errors import InternalError

if TYPE_CHECKING:
    from wren.events import EventEmitter
    from wren.http.request import Request
    from wren.http.response import Response
    from wren.server.chain import ChainRun, Next

logger = logging.getLogger("wren.server")


class FaultBoundary:
    """Intercepts handler faults for one request."""

    __slots__ = ("_tagged", "_tasks", "events", "request", "response")

    def __init__(self, request: Request, response: Response, events: EventEmitter) -> None:
        self.request = request
        self.response = response
        self.events = events
        self._tagged: dict[int, Next] = {}
        self._tasks: set[asyncio.Task[Any]] = set()

    def tag(self, err: BaseException, nxt: Next) -> None:
        self._tagged[id(err)] = nxt

    def call(self, run: ChainRun, handler: Handler, nxt: Next) -> None:
        """Invoke *handler*; faults are redelivered instead of raised."""
        try:
            result = handler(self.request, self.response, nxt)
        except Exception as exc:
            self.intercept(run, exc, nxt)
            return
        if inspect.isawaitable(result):
            self._watch(run, result, nxt)

    def _watch(self, run: ChainRun, awaitable: Any, nxt: Next) -> None:
        task = asyncio.ensure_future(awaitable)
        self._tasks.add(task)

        def _reap(done: asyncio.Task[Any]) -> None:
            self._tasks.discard(done)
            if done.cancelled():
                return
            exc = done.exception()
            if exc is not None:
                self.intercept(run, exc, nxt)

        task.add_done_callback(_reap)

    def intercept(self, run: ChainRun, exc: BaseException, nxt: Next) -> None:
        target = self._tagged.pop(id(exc), None)
        if target is None and not nxt.consumed:
            target = nxt
        if target is not None:
            if run.log.isEnabledFor(logging.DEBUG):
                run.log.debug("redelivering %s to %r", type(exc).__name__, target)
            target(exc)
            return
        self.escalate(run.route, exc)

    def escalate(self, route: str | None, exc: BaseException) -> None:
        """Surface a fault no chain step is waiting for."""
        if self.events.emit("uncaughtException", self.request, self.response, route, exc):
            return
        log = self.request.log or logger
        log.error(
            "uncaught exception in %s %s (route %s)",
            self.request.method,
            self.request.path,
            route,
            exc_info=exc,
        )
        if not self.response.sent:
            self.response.send(InternalError())
