"""Typed ASGI definitions.

Raw aliases matching the ASGI 3 spec, plus a helper for decoding the
scope's header pairs. Users never see these.
"""

from collections.abc import Awaitable, Callable, MutableMapping
from typing import Any, TypeAlias

# Raw ASGI types (matching the spec)
Scope: TypeAlias = MutableMapping[str, Any]
Receive: TypeAlias = Callable[[], Awaitable[MutableMapping[str, Any]]]
Send: TypeAlias = Callable[[MutableMapping[str, Any]], Awaitable[None]]


def encode_headers(headers: dict[str, str]) -> list[tuple[bytes, bytes]]:
    """Encode a header dict into ASGI raw byte pairs (lower-cased names)."""
    return [
        (name.lower().encode("latin-1"), str(value).encode("latin-1"))
        for name, value in headers.items()
    ]
