"""Probe and ProbeProvider.

Free-threading safety:
    Subscriber tuples are replaced, never mutated, under a Lock; ``fire``
    reads the current tuple without locking.
    The id counter is an ``itertools.count`` guarded by a Lock.
"""

import itertools
import logging
import threading
from collections.abc import Callable
from typing import Any

logger = logging.getLogger("wren.tracing")

PROBE_NAMES: tuple[str, ...] = ("route-start", "handler-start", "handler-done", "route-done")

_ids = itertools.count(1)
_ids_lock = threading.Lock()


def next_id() -> int:
    """Monotonically increasing id correlating the probes of one chain run."""
    with _ids_lock:
        return next(_ids)


class Probe:
    """A single named tracing point."""

    __slots__ = ("_lock", "_subscribers", "name")

    def __init__(self, name: str) -> None:
        self.name = name
        self._subscribers: tuple[Callable[..., Any], ...] = ()
        self._lock = threading.Lock()

    @property
    def enabled(self) -> bool:
        return bool(self._subscribers)

    def attach(self, subscriber: Callable[..., Any]) -> None:
        with self._lock:
            self._subscribers = (*self._subscribers, subscriber)

    def detach(self, subscriber: Callable[..., Any]) -> None:
        with self._lock:
            self._subscribers = tuple(s for s in self._subscribers if s is not subscriber)

    def fire(self, args: Callable[[], tuple[Any, ...]]) -> None:
        """Evaluate *args* and deliver them, only if someone is listening.

        A failing subscriber is logged and skipped; tracing never breaks
        the request it observes.
        """
        subscribers = self._subscribers
        if not subscribers:
            return
        values = args()
        for subscriber in subscribers:
            try:
                subscriber(*values)
            except Exception:
                logger.exception("probe subscriber for %r failed", self.name)


class ProbeProvider:
    """The set of probes one server fires.

    The module-level ``probes`` instance is shared process-wide; pass a
    private provider to ``Server`` to isolate a server (handy in tests).
    """

    __slots__ = ("_probes",)

    def __init__(self) -> None:
        self._probes: dict[str, Probe] = {name: Probe(name) for name in PROBE_NAMES}

    def __getitem__(self, name: str) -> Probe:
        return self._probes[name]

    def __iter__(self):
        return iter(self._probes.values())

    def attach(self, name: str, subscriber: Callable[..., Any]) -> None:
        self._probes[name].attach(subscriber)

    def detach(self, name: str, subscriber: Callable[..., Any]) -> None:
        self._probes[name].detach(subscriber)

    @property
    def enabled(self) -> bool:
        return any(probe.enabled for probe in self._probes.values())


probes = ProbeProvider()
