"""Server event surface — named lifecycle events and overridable outcomes.

Listeners are plain callables invoked synchronously in registration
order. A listener returning an awaitable has it scheduled as a task on
the running loop; the emitter keeps a reference until it finishes.

Lifecycle events::

    mount              (method, path, spec)
    preDone            (request, response)
    done               (request, response, route)
    after              (request, response, route, error)
    uncaughtException  (request, response, route, error)

Resolution outcomes (``Outcome``) are emitted as
``(request, response, error, next)``; when nobody listens the error is
sent as the response.

Free-threading safety:
    The listener table is guarded by a Lock; ``emit`` iterates over a
    snapshot so listeners may (un)subscribe while an event is in flight.
"""

import asyncio
import inspect
import logging
import threading
from enum import StrEnum
from typing import Any

from wren._internal.types import Listener
from wren.errors import ConfigurationError

logger = logging.getLogger("wren.server")


class Outcome(StrEnum):
    """Named result of a failed route resolution.

    The value doubles as the event name, so ``server.on("NotFound", fn)``
    and ``server.on(Outcome.NOT_FOUND, fn)`` register the same listener.
    """

    NOT_FOUND = "NotFound"
    METHOD_NOT_ALLOWED = "MethodNotAllowed"
    VERSION_NOT_ALLOWED = "VersionNotAllowed"
    UNSUPPORTED_MEDIA_TYPE = "UnsupportedMediaType"
    GENERIC = "RouteError"


class EventEmitter:
    """Synchronous publish/subscribe keyed by event name."""

    __slots__ = ("_listeners", "_lock", "_tasks")

    def __init__(self) -> None:
        self._listeners: dict[str, list[tuple[Listener, bool]]] = {}
        self._lock = threading.Lock()
        self._tasks: set[asyncio.Task[Any]] = set()

    def on(self, event: str, listener: Listener) -> Listener:
        """Subscribe *listener* to *event*. Returns the listener."""
        self._add(event, listener, once=False)
        return listener

    def once(self, event: str, listener: Listener) -> Listener:
        """Subscribe *listener* for the next emission only."""
        self._add(event, listener, once=True)
        return listener

    def off(self, event: str, listener: Listener) -> bool:
        """Remove the first registration of *listener*. True if found."""
        with self._lock:
            entries = self._listeners.get(str(event), [])
            for index, (fn, _) in enumerate(entries):
                if fn is listener:
                    del entries[index]
                    return True
        return False

    def listeners(self, event: str) -> list[Listener]:
        with self._lock:
            return [fn for fn, _ in self._listeners.get(str(event), ())]

    def listener_count(self, event: str) -> int:
        with self._lock:
            return len(self._listeners.get(str(event), ()))

    def emit(self, event: str, *args: Any) -> bool:
        """Call every listener of *event* with *args*.

        Returns True if at least one listener was called. Exceptions from
        listeners propagate to the caller, like any other call.
        """
        name = str(event)
        with self._lock:
            entries = list(self._listeners.get(name, ()))
            if any(once for _, once in entries):
                self._listeners[name] = [entry for entry in entries if not entry[1]]
        for listener, _ in entries:
            result = listener(*args)
            if inspect.isawaitable(result):
                self._schedule(name, result)
        return bool(entries)

    def _add(self, event: str, listener: Listener, *, once: bool) -> None:
        if not callable(listener):
            msg = f"Listener for {event!r} must be callable, got {type(listener).__name__}."
            raise ConfigurationError(msg)
        with self._lock:
            self._listeners.setdefault(str(event), []).append((listener, once))

    def _schedule(self, event: str, awaitable: Any) -> None:
        task = asyncio.ensure_future(awaitable)
        self._tasks.add(task)

        def _reap(done: asyncio.Task[Any]) -> None:
            self._tasks.discard(done)
            if not done.cancelled() and done.exception() is not None:
                logger.error(
                    "async listener for %r failed",
                    event,
                    exc_info=done.exception(),
                )

        task.add_done_callback(_reap)
