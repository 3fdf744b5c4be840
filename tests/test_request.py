"""Tests for wren.http.request — request metadata and async body access."""

import json

from wren.http.headers import Headers
from wren.http.request import Request


def _make_scope(**overrides: object) -> dict[str, object]:
    """Build a minimal valid ASGI HTTP scope."""
    base: dict[str, object] = {
        "type": "http",
        "asgi": {"version": "3.0"},
        "http_version": "1.1",
        "method": "GET",
        "scheme": "http",
        "path": "/",
        "query_string": b"",
        "headers": [(b"host", b"localhost:8000")],
        "server": ("localhost", 8000),
        "client": ("127.0.0.1", 50000),
    }
    base.update(overrides)
    return base


def _receive_chunks(*chunks: bytes):
    messages = [
        {"type": "http.request", "body": chunk, "more_body": index < len(chunks) - 1}
        for index, chunk in enumerate(chunks)
    ]

    async def receive() -> dict[str, object]:
        return messages.pop(0)

    return receive


class TestFromAsgi:
    def test_basic_fields(self) -> None:
        request = Request.from_asgi(_make_scope(path="/users", method="POST"), _receive_chunks(b""))
        assert request.method == "POST"
        assert request.path == "/users"
        assert request.server == ("localhost", 8000)
        assert request.client == ("127.0.0.1", 50000)

    def test_url_and_href(self) -> None:
        scope = _make_scope(path="/search", query_string=b"q=wren&page=2")
        request = Request.from_asgi(scope, _receive_chunks(b""))
        assert request.url == "/search?q=wren&page=2"
        assert request.href() == "http://localhost:8000/search?q=wren&page=2"
        assert request.query == {"q": ["wren"], "page": ["2"]}

    def test_href_without_host_header_uses_server(self) -> None:
        scope = _make_scope(headers=[], server=("10.0.0.1", 9000), path="/x")
        request = Request.from_asgi(scope, _receive_chunks(b""))
        assert request.href() == "http://10.0.0.1:9000/x"


class TestIdentity:
    def test_request_id_header(self) -> None:
        request = Request("GET", "/", headers=Headers.from_dict({"X-Request-Id": "abc"}))
        assert request.id == "abc"
        assert request.get_id() == "abc"

    def test_generated_id_is_stable(self) -> None:
        request = Request("GET", "/")
        assert request.id == request.id
        assert len(request.id) == 32

    def test_ids_differ_between_requests(self) -> None:
        assert Request("GET", "/").id != Request("GET", "/").id


class TestContext:
    def test_context_is_params(self) -> None:
        request = Request("GET", "/")
        request.context = {"id": "7"}
        assert request.params == {"id": "7"}
        assert request.context is request.params


class TestNegotiation:
    def test_version_default(self) -> None:
        assert Request("GET", "/").version == "*"

    def test_version_header(self) -> None:
        request = Request("GET", "/", headers=Headers.from_dict({"Accept-Version": "~1.2"}))
        assert request.version == "~1.2"

    def test_accepts(self) -> None:
        request = Request("GET", "/", headers=Headers.from_dict({"Accept": "text/*"}))
        assert request.accepts(["application/json", "text/plain"]) == "text/plain"
        assert request.accepts("application/json") is None

    def test_content_type_strips_parameters(self) -> None:
        headers = Headers.from_dict({"Content-Type": "Application/JSON; charset=utf-8"})
        assert Request("POST", "/", headers=headers).content_type == "application/json"

    def test_has_body(self) -> None:
        assert Request("POST", "/").has_body is False
        with_length = Headers.from_dict({"Content-Length": "3"})
        assert Request("POST", "/", headers=with_length).has_body is True
        chunked = Headers.from_dict({"Transfer-Encoding": "chunked"})
        assert Request("POST", "/", headers=chunked).has_body is True

    def test_bad_content_length(self) -> None:
        headers = Headers.from_dict({"Content-Length": "lots"})
        assert Request("POST", "/", headers=headers).content_length is None


class TestBody:
    async def test_body_joins_chunks(self) -> None:
        request = Request.from_asgi(_make_scope(), _receive_chunks(b"hel", b"lo"))
        assert await request.body() == b"hello"
        # Cached: the receive queue is exhausted but body() still answers
        assert await request.text() == "hello"

    async def test_json(self) -> None:
        payload = json.dumps({"a": [1, 2]}).encode()
        request = Request.from_asgi(_make_scope(), _receive_chunks(payload))
        assert await request.json() == {"a": [1, 2]}

    async def test_empty_default_receive(self) -> None:
        assert await Request("GET", "/").body() == b""
