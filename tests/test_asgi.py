"""Tests for warble.asgi — shipping rendered responses over ASGI."""

from pathlib import Path

import pytest

from warble.asgi import render_asgi, send_response
from warble.config import RenderConfig
from warble.errors import TemplateNotFound
from warble.http.writer import BufferedResponse
from warble.renderer import Renderer


class _Recorder:
    def __init__(self) -> None:
        self.messages: list[dict] = []

    async def __call__(self, message: dict) -> None:
        self.messages.append(message)

    @property
    def headers(self) -> dict[bytes, bytes]:
        return dict(self.messages[0]["headers"])


class TestSendResponse:
    @pytest.mark.anyio
    async def test_200_preserves_body(self) -> None:
        send = _Recorder()
        response = BufferedResponse()
        response.headers["Content-Type"] = "text/plain"
        response.write(b"ok")

        await send_response(response, send)

        assert send.messages[0]["type"] == "http.response.start"
        assert send.messages[0]["status"] == 200
        assert send.headers[b"content-type"] == b"text/plain"
        assert send.headers[b"content-length"] == b"2"
        assert send.messages[1] == {"type": "http.response.body", "body": b"ok"}

    @pytest.mark.anyio
    @pytest.mark.parametrize("status", [204, 304])
    async def test_no_body_statuses(self, status: int) -> None:
        send = _Recorder()
        response = BufferedResponse()
        response.write_header(status)
        response.write(b"unexpected-body")

        await send_response(response, send)

        assert send.headers[b"content-length"] == b"0"
        assert send.messages[1]["body"] == b""

    @pytest.mark.anyio
    async def test_replaces_stale_content_length(self) -> None:
        send = _Recorder()
        response = BufferedResponse()
        response.headers["Content-Length"] = "999"
        response.write(b"abc")

        await send_response(response, send)

        lengths = [v for k, v in send.messages[0]["headers"] if k == b"content-length"]
        assert lengths == [b"3"]


class TestRenderAsgi:
    @pytest.mark.anyio
    async def test_renders_in_worker_thread(self, fixtures_dir: Path) -> None:
        renderer = Renderer(RenderConfig(directory=fixtures_dir / "basic"))
        send = _Recorder()

        response = await render_asgi(send, renderer.html, 200, "hello", "gophers")

        assert response.status == 200
        assert send.headers[b"content-type"] == b"text/html; charset=UTF-8"
        assert send.messages[1]["body"] == b"<h1>Hello gophers</h1>\n"

    @pytest.mark.anyio
    async def test_keyword_arguments(self, fixtures_dir: Path) -> None:
        renderer = Renderer(RenderConfig(directory=fixtures_dir / "basic"))
        send = _Recorder()

        await render_asgi(send, renderer.json, status=201, value={"ok": True})

        assert send.messages[0]["status"] == 201
        assert send.messages[1]["body"] == b'{"ok":true}'

    @pytest.mark.anyio
    async def test_error_page_is_sent_then_raised(self, fixtures_dir: Path) -> None:
        renderer = Renderer(RenderConfig(directory=fixtures_dir / "basic"))
        send = _Recorder()

        with pytest.raises(TemplateNotFound):
            await render_asgi(send, renderer.html, 200, "nope")

        assert send.messages[0]["status"] == 500
        assert send.messages[1]["body"] == b'template "nope" is undefined\n'

    @pytest.mark.anyio
    async def test_nothing_sent_when_error_rendering_disabled(self, fixtures_dir: Path) -> None:
        renderer = Renderer(RenderConfig(directory=fixtures_dir / "basic", disable_http_error_rendering=True))
        send = _Recorder()

        with pytest.raises(TemplateNotFound):
            await render_asgi(send, renderer.html, 200, "nope")

        assert send.messages == []
