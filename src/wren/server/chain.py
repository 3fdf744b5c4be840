"""Chain executor — runs one ordered handler list for one request.

Each run is an explicit ``ChainRun`` state object: the chain tuple, a
cursor that only moves forward, and the continuation currently in
flight. Handlers receive a fresh single-use ``Next`` bound to the run::

    def handler(request, response, next):
        next()            # advance to the following handler
        next(False)       # stop here, no error
        next(err)         # send err as the response, stop here

Calling a ``Next`` a second time is a handler bug: it is logged and
ignored, the following handler never runs twice.

Probes, in order, for a chain ``[h0, h1]``::

    route-start
    handler-start h0
    handler-done  h0
    handler-start h1
    handler-done  h1
    route-done
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable, Sequence
from typing import TYPE_CHECKING, Any

from wren._internal.types import Handler
from wren.middleware.registry import handler_name
from wren.tracing.probes import ProbeProvider, next_id

if TYPE_CHECKING:
    from wren.events import EventEmitter
    from wren.http.request import Request
    from wren.http.response import Response
    from wren.server.boundary import FaultBoundary

logger = logging.getLogger("wren.server")

# Route-context name of the pre chain
PRE = "pre"


class Next:
    """Single-use continuation handed to one handler invocation."""

    __slots__ = ("_run", "consumed", "index")

    def __init__(self, run: ChainRun, index: int) -> None:
        self._run = run
        self.index = index
        self.consumed = False

    def __call__(self, err: Any = None) -> None:
        if self.consumed:
            self._run.log.warning(
                "next() called more than once by %s; ignoring",
                self._run.name_of(self.index),
            )
            return
        self.consumed = True
        self._run.step(err)

    def if_error(self, err: Any) -> None:
        """Stop the chain with *err* when it is set.

        Exceptions are raised after being tagged with this continuation,
        so the request's fault boundary delivers them here. Other truthy
        values are delivered directly.
        """
        if not err:
            return
        if isinstance(err, Exception):
            self._run.boundary.tag(err, self)
            raise err
        self(err)

    def __repr__(self) -> str:
        state = "consumed" if self.consumed else "pending"
        return f"<Next {self._run.name_of(self.index)} {state}>"


class ChainRun:
    """State of one chain execution."""

    __slots__ = (
        "_driving",
        "_queued",
        "boundary",
        "callback",
        "chain",
        "current",
        "cursor",
        "events",
        "finished",
        "future",
        "id",
        "log",
        "probes",
        "request",
        "response",
        "route",
        "server_name",
    )

    def __init__(
        self,
        chain: Sequence[Handler],
        *,
        request: Request,
        response: Response,
        route: str,
        boundary: FaultBoundary,
        events: EventEmitter,
        probes: ProbeProvider,
        server_name: str,
        callback: Callable[[Any], Any] | None = None,
    ) -> None:
        self.chain = tuple(chain)
        self.request = request
        self.response = response
        self.route = route
        self.boundary = boundary
        self.events = events
        self.probes = probes
        self.server_name = server_name
        self.callback = callback
        self.log: logging.Logger | logging.LoggerAdapter[Any] = request.log or logger
        self.id = next_id()
        self.cursor = -1
        self.current: Next | None = None
        self.finished = False
        self._driving = False
        self._queued: tuple[Any] | None = None
        self.future: asyncio.Future[Any] = asyncio.get_running_loop().create_future()

    def name_of(self, index: int) -> str:
        if 0 <= index < len(self.chain):
            return handler_name(self.chain[index], index)
        return f"handler-{index}"

    @property
    def is_pre(self) -> bool:
        return self.route == PRE

    def start(self) -> None:
        request = self.request
        self.probes["route-start"].fire(
            lambda: (
                self.server_name,
                self.route,
                self.id,
                request.method,
                request.href(),
                request.headers.to_dict(),
            )
        )
        self.step(None)

    def step(self, err: Any) -> None:
        """Advance past the handler at the cursor.

        Runs as a loop: a ``next()`` made while a handler is still being
        called synchronously is queued and picked up once that call
        returns, so the stack depth does not grow with the chain length.
        """
        if self._driving:
            self._queued = (err,)
            return
        self._driving = True
        try:
            while True:
                started = self._advance(err)
                if started is None:
                    return
                self._queued = None
                self.boundary.call(self, *started)
                if self._queued is None:
                    # The handler went async or kept its next for later
                    return
                (err,) = self._queued
        finally:
            self._driving = False
            self._queued = None

    def _advance(self, err: Any) -> tuple[Handler, Next] | None:
        stop = False
        if err is not None and err is not False:
            if self.log.isEnabledFor(logging.DEBUG):
                self.log.debug("next(err=%s)", type(err).__name__)
            # Send before handler-done so the probe sees the error status
            self.response.send(err)
            stop = True
        elif err is False:
            stop = True

        finished = self.cursor
        if 0 <= finished < len(self.chain):
            self.probes["handler-done"].fire(
                lambda: (self.server_name, self.route, self.name_of(finished), self.id)
            )

        if not stop and self.cursor + 1 < len(self.chain):
            self.cursor += 1
            index = self.cursor
            if self.log.isEnabledFor(logging.DEBUG):
                self.log.debug("running %s", self.name_of(index))
            self.probes["handler-start"].fire(
                lambda: (self.server_name, self.route, self.name_of(index), self.id)
            )
            nxt = Next(self, index)
            self.current = nxt
            return self.chain[index], nxt

        self._finish(err)
        return None

    def _finish(self, err: Any) -> None:
        if self.finished:
            return
        self.finished = True
        self.current = None
        response = self.response
        self.probes["route-done"].fire(
            lambda: (
                self.server_name,
                self.route,
                self.id,
                response.status_code or 200,
                response.headers(),
            )
        )
        try:
            if self.is_pre:
                self.events.emit("preDone", self.request, response)
            else:
                self.events.emit("done", self.request, response, self.route)
            if self.callback is not None:
                self.callback(err)
        finally:
            if not self.future.done():
                self.future.set_result(err)


def run_chain(
    chain: Sequence[Handler],
    *,
    request: Request,
    response: Response,
    route: str,
    boundary: FaultBoundary,
    events: EventEmitter,
    probes: ProbeProvider,
    server_name: str,
    callback: Callable[[Any], Any] | None = None,
) -> asyncio.Future[Any]:
    """Start running *chain* and return a future of its terminal state.

    The future resolves to ``None`` when every handler ran, ``False``
    after an explicit stop, or the error that ended the chain.
    Must be called with an event loop running.
    """
    run = ChainRun(
        chain,
        request=request,
        response=response,
        route=route,
        boundary=boundary,
        events=events,
        probes=probes,
        server_name=server_name,
        callback=callback,
    )
    run.start()
    return run.future
