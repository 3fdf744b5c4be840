"""Dispatch pipeline — START → PRE → RESOLVE → ROUTE → DONE.

One ``dispatch()`` per request. The pipeline owns no per-request state
itself: everything lives on the request, the response, and the chain
runs it starts. ``after`` is emitted exactly once on every path.
"""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING, Any

from wren.errors import (
    InternalError,
    InvalidVersion,
    MethodNotAllowed,
    NotFound,
    UnsupportedMediaType,
)
from wren.events import EventEmitter, Outcome
from wren.server.boundary import FaultBoundary
from wren.server.chain import PRE, run_chain

if TYPE_CHECKING:
    from wren.formatters import FormatterTable
    from wren.http.request import Request
    from wren.http.response import Response
    from wren.middleware.registry import ChainRegistry
    from wren.routing.protocol import Resolver
    from wren.tracing.probes import ProbeProvider


def classify(err: BaseException) -> Outcome:
    """Name the outcome of a failed resolution."""
    match err:
        case NotFound():
            return Outcome.NOT_FOUND
        case MethodNotAllowed():
            return Outcome.METHOD_NOT_ALLOWED
        case InvalidVersion():
            return Outcome.VERSION_NOT_ALLOWED
        case UnsupportedMediaType():
            return Outcome.UNSUPPORTED_MEDIA_TYPE
        case _:
            return Outcome.GENERIC


class Pipeline:
    """Runs requests through the server's chains and router."""

    __slots__ = ("chains", "events", "formatters", "log", "name", "probes", "router")

    def __init__(
        self,
        *,
        name: str,
        router: Resolver,
        chains: ChainRegistry,
        formatters: FormatterTable,
        events: EventEmitter,
        probes: ProbeProvider,
        log: logging.Logger,
    ) -> None:
        self.name = name
        self.router = router
        self.chains = chains
        self.formatters = formatters
        self.events = events
        self.probes = probes
        self.log = log

    def setup(self, request: Request, response: Response) -> None:
        """START: attach the request-scoped fields."""
        log = logging.LoggerAdapter(self.log, {"req_id": request.id})
        request.log = response.log = log
        response.time = request.time
        response.request = request
        response.acceptable = self.formatters.acceptable
        response.formatters = self.formatters.formatters
        response.server_name = self.name
        versions = self.router.versions
        response.version = versions[-1] if versions else None

    async def dispatch(self, request: Request, response: Response) -> None:
        self.setup(request, response)
        boundary = FaultBoundary(request, response, self.events)
        route: str | None = None
        error: Any = None
        try:
            route, error = await self._process(request, response, boundary)
        except Exception as exc:
            request.log.exception("dispatch of %s %s failed", request.method, request.path)
            if not response.sent:
                response.send(InternalError())
            error = exc
        self.events.emit("after", request, response, route, error)

    async def _process(
        self, request: Request, response: Response, boundary: FaultBoundary
    ) -> tuple[str | None, Any]:
        log = request.log
        pre_chain = self.chains.pre_chain
        if pre_chain:
            if log.isEnabledFor(logging.DEBUG):
                log.debug("running pre chain")
            state = await self._run(pre_chain, PRE, request, response, boundary)
            if state is not None:
                if log.isEnabledFor(logging.DEBUG):
                    log.debug("pre chain stopped (%r); done", state)
                return None, _error_of(state)

        # RESOLVE
        if log.isEnabledFor(logging.DEBUG):
            log.debug("checking for route")
        try:
            handle, params = self.router.find(request, response)
        except Exception as exc:
            if isinstance(exc, NotFound) and request.method == "OPTIONS" and request.path == "*":
                response.send(200)
                return None, None
            if log.isEnabledFor(logging.DEBUG):
                log.debug("router errored out: %s", exc)
            await self._outcome(classify(exc), exc, request, response)
            return None, exc

        if handle is True:
            # Satisfied by the router itself, e.g. a preflight
            response.send(200)
            return None, None

        chain = self.chains.get(handle) if handle else None
        if chain is None:
            if log.isEnabledFor(logging.DEBUG):
                log.debug("no route found (null route)")
            err = NotFound(f"{request.path} does not exist")
            await self._outcome(Outcome.NOT_FOUND, err, request, response)
            return None, err

        # ROUTE
        if log.isEnabledFor(logging.DEBUG):
            log.debug("route found: %s", handle)
        request.context = params
        state = await self._run(chain, handle, request, response, boundary)
        return handle, _error_of(state)

    def _run(
        self,
        chain: tuple[Any, ...],
        route: str,
        request: Request,
        response: Response,
        boundary: FaultBoundary,
    ) -> asyncio.Future[Any]:
        return run_chain(
            chain,
            request=request,
            response=response,
            route=route,
            boundary=boundary,
            events=self.events,
            probes=self.probes,
            server_name=self.name,
        )

    async def _outcome(
        self, outcome: Outcome, err: BaseException, request: Request, response: Response
    ) -> None:
        """Hand a resolution failure to its listeners, or send it."""
        if not self.events.listener_count(outcome):
            response.send(err)
            return

        resumed: asyncio.Future[None] = asyncio.get_running_loop().create_future()

        def resume(*_: Any) -> None:
            if not resumed.done():
                resumed.set_result(None)

        self.events.emit(outcome, request, response, err, resume)
        await resumed


def _error_of(state: Any) -> Any:
    """Terminal chain state as reported by ``after``: ``False`` is no error."""
    return None if state is False else state
