"""ASGI handler — translates ASGI scope/messages to wren types.

The only component that touches raw ASGI directly. Converts the scope
to a ``Request``, runs the dispatch pipeline, and writes the
``Response`` out through ASGI ``send()`` as soon as a handler sends it.
Handlers may keep working after sending (``next()`` is often called
after ``send()``); the pipeline finishes in the background then.
"""

import asyncio
import logging
from typing import Any

from wren._internal.asgi import Receive, Scope, Send
from wren.events import EventEmitter
from wren.http.request import Request
from wren.http.response import Response
from wren.server.pipeline import Pipeline
from wren.server.sender import send_response

logger = logging.getLogger("wren.server")

# Pipelines still running after their response went out
_background: set[asyncio.Task[Any]] = set()


def _expects_continue(request: Request) -> bool:
    return (request.headers.get("expect") or "").lower() == "100-continue"


def _detach(task: asyncio.Task[Any]) -> None:
    _background.add(task)

    def _reap(done: asyncio.Task[Any]) -> None:
        _background.discard(done)
        if not done.cancelled() and done.exception() is not None:
            logger.error("pipeline failed after response", exc_info=done.exception())

    task.add_done_callback(_reap)


async def handle_request(
    scope: Scope,
    receive: Receive,
    send: Send,
    *,
    pipeline: Pipeline,
    events: EventEmitter,
) -> None:
    """Process a single HTTP request through the full pipeline."""
    if scope["type"] != "http":
        return

    request = Request.from_asgi(scope, receive)
    response = Response(request, server_name=pipeline.name)

    if _expects_continue(request) and events.listener_count("checkContinue"):
        # The listener owns the request; the server sends the interim
        # 100 only if it reads the body.
        pipeline.setup(request, response)
        events.emit("checkContinue", request, response)
        await response.wait_sent()
        await send_response(response, send)
        return

    task = asyncio.ensure_future(pipeline.dispatch(request, response))
    sent = asyncio.ensure_future(response.wait_sent())
    await asyncio.wait({task, sent}, return_when=asyncio.FIRST_COMPLETED)

    if not response.sent:
        # Chain ran to the end without sending anything
        sent.cancel()
        response.send()
    await send_response(response, send)

    if task.done():
        task.result()
    else:
        _detach(task)
