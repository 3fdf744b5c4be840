"""HTTP request.

Metadata is fixed at creation; ``params``/``context`` are filled in by
route resolution and belong to this request alone. Body is accessed
asynchronously via ``.body()``, ``.json()``, ``.text()``.
"""

from __future__ import annotations

import logging
import time
import uuid
from collections.abc import AsyncGenerator, Sequence
from dataclasses import dataclass, field
from typing import Any
from urllib.parse import parse_qs

from wren._internal.asgi import Receive
from wren.http.headers import Headers
from wren.http.negotiation import negotiate_type


async def _empty_receive() -> dict[str, Any]:
    return {"type": "http.request", "body": b"", "more_body": False}


@dataclass(slots=True)
class Request:
    """An incoming HTTP request.

    ``params`` and ``context`` are the same dict once a route is
    resolved; before that (pre chain) they are empty.
    """

    method: str
    path: str
    headers: Headers = field(default_factory=Headers)
    query_string: bytes = b""
    http_version: str = "1.1"
    scheme: str = "http"
    server: tuple[str, int] | None = None
    client: tuple[str, int] | None = None

    # Filled in by START and RESOLVE
    params: dict[str, Any] = field(default_factory=dict)
    log: logging.Logger | logging.LoggerAdapter[Any] | None = field(default=None, repr=False)
    time: float = field(default_factory=time.time)

    _receive: Receive = field(default=_empty_receive, repr=False)
    _id: str | None = field(default=None, repr=False)
    _cache: dict[str, Any] = field(default_factory=dict, repr=False, compare=False)

    # -- Identity --

    @property
    def id(self) -> str:
        """Stable per-request id (``x-request-id`` header or a fresh uuid)."""
        if self._id is None:
            self._id = self.headers.get("x-request-id") or uuid.uuid4().hex
        return self._id

    def get_id(self) -> str:
        return self.id

    # -- Resolution context --

    @property
    def context(self) -> dict[str, Any]:
        return self.params

    @context.setter
    def context(self, value: dict[str, Any]) -> None:
        self.params = value

    # -- Computed properties --

    @property
    def url(self) -> str:
        """Request target (path + query string)."""
        if self.query_string:
            return f"{self.path}?{self.query_string.decode('latin-1')}"
        return self.path

    def href(self) -> str:
        """Full URL including scheme and host."""
        host = self.headers.get("host")
        if host is None and self.server is not None:
            host = f"{self.server[0]}:{self.server[1]}"
        if host is None:
            return self.url
        return f"{self.scheme}://{host}{self.url}"

    @property
    def query(self) -> dict[str, list[str]]:
        if "_query" not in self._cache:
            self._cache["_query"] = parse_qs(
                self.query_string.decode("latin-1"), keep_blank_values=True
            )
        return self._cache["_query"]

    @property
    def version(self) -> str:
        """Requested API version (``Accept-Version``), ``"*"`` when absent."""
        return self.headers.get("accept-version") or self.headers.get("x-api-version") or "*"

    @property
    def content_type(self) -> str | None:
        """Media type of the body, without parameters."""
        value = self.headers.get("content-type")
        if not value:
            return None
        return value.split(";", 1)[0].strip().lower()

    @property
    def content_length(self) -> int | None:
        value = self.headers.get("content-length")
        if value is None:
            return None
        try:
            return int(value)
        except ValueError:
            return None

    @property
    def has_body(self) -> bool:
        return bool(self.content_length) or "transfer-encoding" in self.headers

    def accepts(self, types: str | Sequence[str]) -> str | None:
        """Return the best of *types* according to ``Accept``, or ``None``."""
        if isinstance(types, str):
            types = [types]
        return negotiate_type(self.headers.get("accept"), types)

    # -- Async body access --

    async def body(self) -> bytes:
        """Read the full request body (cached after the first read)."""
        if "_body" in self._cache:
            return self._cache["_body"]
        chunks = [chunk async for chunk in self.stream()]
        result = b"".join(chunks)
        self._cache["_body"] = result
        return result

    async def stream(self) -> AsyncGenerator[bytes]:
        """Stream the request body in chunks."""
        while True:
            message = await self._receive()
            chunk = message.get("body", b"")
            if chunk:
                yield chunk
            if not message.get("more_body", False):
                break

    async def json(self) -> Any:
        import json as json_module

        raw = await self.body()
        return json_module.loads(raw)

    async def text(self) -> str:
        raw = await self.body()
        return raw.decode("utf-8")

    # -- Factory --

    @classmethod
    def from_asgi(cls, scope: dict[str, Any], receive: Receive) -> Request:
        """Create a Request from an ASGI scope and receive callable."""
        server = scope.get("server")
        client = scope.get("client")
        return cls(
            method=scope["method"],
            path=scope["path"],
            headers=Headers(scope.get("headers", ())),
            query_string=scope.get("query_string", b""),
            http_version=scope.get("http_version", "1.1"),
            scheme=scope.get("scheme", "http"),
            server=tuple(server) if server else None,
            client=tuple(client) if client else None,
            _receive=receive,
        )
