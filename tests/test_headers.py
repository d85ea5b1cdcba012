"""Tests for warble.http — case-insensitive headers and response sinks."""

import io

import pytest

from warble.http.headers import MutableHeaders
from warble.http.writer import BufferedResponse, ResponseWriter, Writer, http_error


class TestMutableHeaders:
    def test_case_insensitive(self) -> None:
        h = MutableHeaders()
        h["Content-Type"] = "text/html"
        assert h["content-type"] == "text/html"
        assert h["CONTENT-TYPE"] == "text/html"
        assert "content-TYPE" in h

    def test_missing_key_raises(self) -> None:
        with pytest.raises(KeyError):
            MutableHeaders()["X-Missing"]

    def test_set_replaces_all_values(self) -> None:
        h = MutableHeaders([("Vary", "Accept"), ("vary", "Cookie")])
        h["VARY"] = "Origin"
        assert h.get_list("vary") == ["Origin"]

    def test_add_keeps_existing(self) -> None:
        h = MutableHeaders()
        h["Set-Cookie"] = "a=1"
        h.add("Set-Cookie", "b=2")
        assert h.get_list("set-cookie") == ["a=1", "b=2"]
        assert h["Set-Cookie"] == "a=1"
        assert len(h) == 1

    def test_delete(self) -> None:
        h = MutableHeaders([("X-One", "1")])
        del h["x-one"]
        assert "X-One" not in h
        with pytest.raises(KeyError):
            del h["x-one"]

    def test_contains_rejects_non_str(self) -> None:
        assert 42 not in MutableHeaders([("A", "b")])  # type: ignore[operator]

    def test_raw_is_lowercased_bytes(self) -> None:
        h = MutableHeaders([("Content-Type", "text/plain")])
        assert h.raw == ((b"content-type", b"text/plain"),)


class TestBufferedResponse:
    def test_is_a_response_writer(self) -> None:
        assert isinstance(BufferedResponse(), ResponseWriter)

    def test_write_implies_200(self) -> None:
        r = BufferedResponse()
        r.write(b"hi")
        assert r.status == 200
        assert r.wrote_header
        assert r.body == b"hi"
        assert r.text == "hi"

    def test_superfluous_write_header_is_ignored(self) -> None:
        r = BufferedResponse()
        r.write_header(201)
        r.write_header(500)
        assert r.status == 201

    def test_content_type(self) -> None:
        r = BufferedResponse()
        assert r.content_type is None
        r.headers["Content-Type"] = "text/xml"
        assert r.content_type == "text/xml"


class TestHttpError:
    def test_response_writer(self) -> None:
        r = BufferedResponse()
        http_error(r, "boom", 500)
        assert r.status == 500
        assert r.headers["Content-Type"] == "text/plain; charset=utf-8"
        assert r.headers["X-Content-Type-Options"] == "nosniff"
        assert r.body == b"boom\n"

    def test_plain_writer_gets_body_only(self) -> None:
        buf = io.BytesIO()
        assert isinstance(buf, Writer)
        assert not isinstance(buf, ResponseWriter)
        http_error(buf, "boom", 500)
        assert buf.getvalue() == b"boom\n"
