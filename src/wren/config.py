"""Server configuration.

ServerConfig is a frozen dataclass — immutable after creation, IDE-autocompletable,
no string-key dict lookups.
"""

from collections.abc import Callable, Mapping
from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True, slots=True)
class ServerConfig:
    """Server configuration. Immutable after creation.

    All fields have sensible defaults. Override what you need::

        config = ServerConfig(name="api", versions=("1.0.0", "2.0.0"), port=3000)
    """

    # Identity
    name: str = "wren"

    # Versions assigned to routes mounted without an explicit version
    versions: tuple[str, ...] = ()

    # Custom formatters, merged over the defaults ("type[;q=weight]" -> fn)
    formatters: Mapping[str, Callable[..., Any]] | None = None

    # Server
    host: str = "127.0.0.1"
    port: int = 8080
    debug: bool = False
    workers: int = 1
    log_level: str = "info"

    # TLS (optional)
    ssl_certfile: str | None = None
    ssl_keyfile: str | None = None

    @property
    def secure(self) -> bool:
        """True when both a certificate and a key are configured."""
        return bool(self.ssl_certfile and self.ssl_keyfile)
