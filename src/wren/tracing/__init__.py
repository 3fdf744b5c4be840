"""Instrumentation probes — fire-if-enabled tracing points.

Four probes bracket every chain run::

    route-start   (server, route, request_id, method, url, headers)
    handler-start (server, route, handler_name, request_id)
    handler-done  (server, route, handler_name, request_id)
    route-done    (server, route, request_id, status, headers)

Arguments are passed to ``fire`` as a zero-argument callable, so a probe
nobody listens to never builds its argument tuple::

    from wren.tracing import probes

    probes.attach("handler-done", lambda *args: print(args))
"""

from wren.tracing.probes import PROBE_NAMES, Probe, ProbeProvider, next_id, probes

__all__ = ["PROBE_NAMES", "Probe", "ProbeProvider", "next_id", "probes"]
