"""ASGI response sending — translates a sent wren Response to ASGI messages."""

from wren._internal.asgi import Send, encode_headers
from wren.http.response import Response


def _body_allowed(status: int) -> bool:
    """Whether an HTTP status code permits a response body."""
    # RFC: 1xx, 204, and 304 responses do not include a message body.
    return not (100 <= status < 200 or status in {204, 304})


async def send_response(response: Response, send: Send) -> None:
    """Write *response* out as ``http.response.start`` + one body message.

    HEAD responses keep the ``Content-Length`` of the body they would
    have carried, but send none.
    """
    request = response.request
    status = response.status_code or 200
    headers = response.headers()
    if response.get_header("server") is None:
        headers["Server"] = response.server_name
    if request is not None and response.get_header("x-request-id") is None:
        headers["X-Request-Id"] = request.id

    body = response.body_bytes
    if not _body_allowed(status):
        body = b""
        headers = {k: v for k, v in headers.items() if k.lower() != "content-length"}
        headers["content-length"] = "0"
    elif request is not None and request.method == "HEAD":
        body = b""

    await send(
        {
            "type": "http.response.start",
            "status": status,
            "headers": encode_headers(headers),
        }
    )
    await send(
        {
            "type": "http.response.body",
            "body": body,
        }
    )
