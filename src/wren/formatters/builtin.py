"""Default formatters.

Each formatter is called as ``formatter(request, response, body)`` and
returns the bytes (or str) to write. Errors are rendered from their
``body`` (``{"code", "message"}``) so every format carries the same
information.
"""

import json as json_module
import re
from typing import Any

from wren.errors import HTTPError

_CALLBACK_RE = re.compile(r"^[A-Za-z_$][\w$.]*$")


def error_body(err: BaseException) -> dict[str, Any]:
    """Serializable representation of any exception."""
    if isinstance(err, HTTPError):
        return err.body
    return {"code": "InternalError", "message": str(err) or type(err).__name__}


def format_json(request: Any, response: Any, body: Any) -> bytes:
    if isinstance(body, BaseException):
        body = error_body(body)
    elif isinstance(body, bytes | bytearray):
        body = body.decode("utf-8")
    return json_module.dumps(body, default=str).encode("utf-8")


def format_text(request: Any, response: Any, body: Any) -> str:
    if isinstance(body, BaseException):
        return error_body(body)["message"]
    if isinstance(body, bytes | bytearray):
        return bytes(body).decode("utf-8", errors="replace")
    if isinstance(body, dict | list):
        return json_module.dumps(body, default=str)
    return str(body)


def format_binary(request: Any, response: Any, body: Any) -> bytes:
    if isinstance(body, BaseException):
        return format_json(request, response, body)
    if isinstance(body, bytes | bytearray):
        return bytes(body)
    return format_text(request, response, body).encode("utf-8")


def format_jsonp(request: Any, response: Any, body: Any) -> bytes:
    """JSON wrapped in ``callback(...)`` when a callback is requested.

    The callback name comes from the ``callback`` or ``jsonp`` query
    parameter; without one (or with an unsafe name) plain JSON is sent.
    """
    payload = format_json(request, response, body)
    if request is None:
        return payload
    names = request.query.get("callback") or request.query.get("jsonp")
    if not names or not _CALLBACK_RE.match(names[0]):
        return payload
    return names[0].encode("ascii") + b"(" + payload + b");"


DEFAULT_FORMATTERS: dict[str, Any] = {
    "application/javascript; q=0.1": format_jsonp,
    "application/json; q=0.4": format_json,
    "text/plain; q=0.3": format_text,
    "application/octet-stream; q=0.2": format_binary,
}
