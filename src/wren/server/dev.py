"""Serve a live wren Server through pounce.

pounce is an optional dependency (``pip install wren[server]``); it is
imported only when ``Server.run()`` is called.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from wren.config import ServerConfig


def run_server(
    app: object,
    config: ServerConfig,
    *,
    host: str | None = None,
    port: int | None = None,
    app_path: str | None = None,
) -> None:
    """Start a pounce server with the given ASGI callable.

    Pounce's ``run()`` takes an import string (e.g., ``"myapi:server"``),
    but here we have a live ``Server`` object, so ``pounce.Server`` is
    used directly. With ``debug`` on, a single worker runs with reload.

    Args:
        app: ASGI callable (wren Server instance).
        config: Server configuration supplying bind, worker, log and TLS
            settings.
        host: Override bind host.
        port: Override bind port.
        app_path: Optional ``"module:attribute"`` import string, used by
            pounce to reimport the server on reload.
    """
    from pounce.config import ServerConfig as PounceConfig
    from pounce.server import Server

    pounce_config = PounceConfig(
        host=host or config.host,
        port=port or config.port,
        workers=1 if config.debug else config.workers,
        reload=config.debug,
        log_level=config.log_level,
        ssl_certfile=config.ssl_certfile,
        ssl_keyfile=config.ssl_keyfile,
    )
    Server(pounce_config, app, app_path=app_path).run()
