"""HTTP response with a ``send()`` error path.

Unlike the request, the response is built up by handlers: headers and
status are set incrementally, and ``send()`` formats the body once,
through the formatter negotiated from ``Accept``. The ASGI layer writes
it out as soon as it is sent.
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Mapping, Sequence
from typing import TYPE_CHECKING, Any

from wren._internal.types import Formatter
from wren.errors import HTTPError

if TYPE_CHECKING:
    from wren.http.request import Request

logger = logging.getLogger("wren.server")

_MISSING: Any = object()


class Response:
    """A mutable HTTP response.

    ``send()`` accepts these argument shapes::

        response.send(204)                      # status only
        response.send({"ok": True})             # body, status unchanged
        response.send(201, {"id": 7})           # status + body
        response.send(NotFound("no such user")) # error: status from the error
    """

    __slots__ = (
        "_body",
        "_headers",
        "_sent",
        "_sent_event",
        "acceptable",
        "formatters",
        "log",
        "request",
        "server_name",
        "status_code",
        "time",
        "version",
    )

    def __init__(
        self,
        request: Request | None = None,
        *,
        acceptable: Sequence[str] = (),
        formatters: Mapping[str, Formatter] | None = None,
        server_name: str = "wren",
    ) -> None:
        self.request = request
        self.acceptable: tuple[str, ...] = tuple(acceptable)
        self.formatters: Mapping[str, Formatter] = formatters or {}
        self.server_name = server_name
        self.status_code = 200
        self.version: str | None = None
        self.log: logging.Logger | logging.LoggerAdapter[Any] = logger
        self.time = time.time()
        self._headers: dict[str, tuple[str, str]] = {}
        self._body = b""
        self._sent = False
        self._sent_event = asyncio.Event()

    # -- Headers --

    def header(self, name: str, value: Any = _MISSING) -> str | None:
        """Get a header, or set it when *value* is given."""
        if value is _MISSING:
            return self.get_header(name)
        self.set_header(name, value)
        return str(value)

    def set_header(self, name: str, value: Any) -> None:
        self._headers[name.lower()] = (name, str(value))

    def get_header(self, name: str) -> str | None:
        entry = self._headers.get(name.lower())
        return entry[1] if entry is not None else None

    def remove_header(self, name: str) -> None:
        self._headers.pop(name.lower(), None)

    def headers(self) -> dict[str, str]:
        """Snapshot of the response headers as set by handlers."""
        return {name: value for name, value in self._headers.values()}

    @property
    def content_type(self) -> str | None:
        return self.get_header("content-type")

    # -- State --

    @property
    def sent(self) -> bool:
        return self._sent

    @property
    def body_bytes(self) -> bytes:
        return self._body

    async def wait_sent(self) -> None:
        """Block until ``send()`` has been called."""
        await self._sent_event.wait()

    # -- Sending --

    def send(self, code: Any = None, body: Any = _MISSING, headers: Mapping[str, str] | None = None) -> None:
        """Format *body* and mark the response as sent.

        Sending a second time is a handler bug; it is logged and ignored.
        """
        if self._sent:
            self.log.warning("response already sent; ignoring send(%r)", code)
            return

        if isinstance(code, int) and not isinstance(code, bool):
            status: int | None = code
            payload = None if body is _MISSING else body
        else:
            status = None
            payload = code if body is _MISSING else body

        if isinstance(payload, BaseException):
            if isinstance(payload, HTTPError):
                status = payload.status
                for name, value in payload.headers:
                    self.set_header(name, value)
            else:
                status = 500

        if status is not None:
            self.status_code = status

        for name, value in (headers or {}).items():
            self.set_header(name, value)

        if payload is not None:
            self._body = self._format(payload)

        self.set_header("content-length", len(self._body))
        self._sent = True
        self._sent_event.set()

    def json(self, code: Any = None, body: Any = _MISSING) -> None:
        """Send *body* as ``application/json`` regardless of ``Accept``."""
        self.set_header("content-type", "application/json")
        self.send(code, body)

    def _format(self, payload: Any) -> bytes:
        media_type = self._choose_type(payload)
        if media_type is None:
            data: Any = payload
        else:
            formatter = self.formatters[media_type]
            data = formatter(self.request, self, payload)
        if isinstance(data, str):
            return data.encode("utf-8")
        if isinstance(data, bytes | bytearray):
            return bytes(data)
        return str(data).encode("utf-8")

    def _choose_type(self, payload: Any) -> str | None:
        """Decide which formatter to run.

        An explicit ``Content-Type`` wins when a formatter is registered
        for it; an explicit type without a formatter means raw bytes/str
        are written untouched. Otherwise ``Accept`` is negotiated against
        the acceptable list, falling back to the server's first choice.
        """
        explicit = self.content_type
        if explicit is not None:
            media_type = explicit.split(";", 1)[0].strip().lower()
            if media_type in self.formatters:
                return media_type
            if isinstance(payload, str | bytes | bytearray):
                return None

        media_type = None
        if self.request is not None:
            media_type = self.request.accepts(self.acceptable)
        if media_type is None and self.acceptable:
            media_type = self.acceptable[0]
        if media_type is None or media_type not in self.formatters:
            return None
        if explicit is None:
            self.set_header("content-type", media_type)
        return media_type
