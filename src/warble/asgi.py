"""ASGI bridge — ship a ``BufferedResponse`` through an ASGI ``send``.

Rendering is synchronous (template execution and marshalling are CPU
work), so ``render_asgi`` runs the render call in a worker thread via
``anyio.to_thread`` and then sends the buffered result::

    async def app(scope, receive, send):
        await render_asgi(send, renderer.html, 200, "home", {"user": "ana"})
"""

import functools
from collections.abc import Awaitable, Callable, MutableMapping
from typing import Any, TypeAlias

import anyio.to_thread

from warble.http.content import CONTENT_LENGTH
from warble.http.writer import BufferedResponse

Send: TypeAlias = Callable[[MutableMapping[str, Any]], Awaitable[None]]


def _body_allowed(status: int) -> bool:
    """Whether an HTTP status code permits a response body."""
    # RFC: 1xx, 204, and 304 responses do not include a message body.
    return not (100 <= status < 200 or status in {204, 304})


async def send_response(response: BufferedResponse, send: Send) -> None:
    """Translate a ``BufferedResponse`` into ASGI send() calls."""
    body = response.body if _body_allowed(response.status) else b""

    raw_headers = [
        (name, value) for name, value in response.headers.raw if name != b"content-length"
    ]
    raw_headers.append((CONTENT_LENGTH.lower().encode("latin-1"), str(len(body)).encode("latin-1")))

    await send(
        {
            "type": "http.response.start",
            "status": response.status,
            "headers": raw_headers,
        }
    )
    await send(
        {
            "type": "http.response.body",
            "body": body,
        }
    )


async def render_asgi(
    send: Send,
    render: Callable[..., None],
    *args: Any,
    **kwargs: Any,
) -> BufferedResponse:
    """Call ``render(response, *args, **kwargs)`` off the event loop, then send.

    *render* is any renderer method taking the sink first (``html``,
    ``json``, ...). When rendering fails, whatever response it produced
    (normally the error page) is still sent before the error propagates.
    """
    response = BufferedResponse()
    try:
        await anyio.to_thread.run_sync(functools.partial(render, response, *args, **kwargs))
    except Exception:
        if response.wrote_header:
            await send_response(response, send)
        raise
    await send_response(response, send)
    return response
