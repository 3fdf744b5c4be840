"""Middleware — handler chains, no inheritance required.

A handler is any callable matching::

    def handler(request: Request, response: Response, next: Next) -> None

Chains:
    pre    -- runs for every request, before routing
    use    -- snapshotted into each route chain at mount time
    route  -- the handlers given to ``mount()`` / ``get()`` / ...
"""

from wren.middleware.protocol import Handler, ParamHandler
from wren.middleware.registry import ChainRegistry, handler_name, to_chain

__all__ = [
    "ChainRegistry",
    "Handler",
    "ParamHandler",
    "handler_name",
    "to_chain",
]
