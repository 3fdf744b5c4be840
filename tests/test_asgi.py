"""Tests for the ASGI surface — raw scopes and a real HTTP client over ASGI."""

from typing import Any

import httpx
import pytest

from wren._internal.asgi import encode_headers
from wren.app import Server
from wren.config import ServerConfig
from wren.errors import NotFound
from wren.tracing.probes import ProbeProvider


def _server() -> Server:
    server = Server(ServerConfig(name="api"), probes=ProbeProvider())

    def list_users(request, response, next):
        response.send([{"id": 1}])
        next()

    async def create_user(request, response, next):
        user = await request.json()
        response.header("Location", f"/users/{user['id']}")
        response.send(201, user)
        next()

    def get_user(request, response, next):
        if request.params["id"] != "1":
            next(NotFound(f"user {request.params['id']} does not exist"))
            return
        response.send({"id": 1})
        next()

    server.get("/users", list_users)
    server.post({"path": "/users", "content_type": "application/json"}, create_user)
    server.get("/users/{id:int}", get_user)
    return server


@pytest.fixture
def client() -> httpx.AsyncClient:
    return httpx.AsyncClient(
        transport=httpx.ASGITransport(app=_server()),
        base_url="http://testserver",
    )


class TestEncodeHeaders:
    def test_lowercases_and_encodes(self) -> None:
        assert encode_headers({"Content-Type": "text/plain", "X-N": 5}) == [  # type: ignore[dict-item]
            (b"content-type", b"text/plain"),
            (b"x-n", b"5"),
        ]


class TestRawScope:
    async def test_non_http_scope_ignored(self) -> None:
        sent: list[Any] = []

        async def receive() -> dict[str, Any]:
            return {"type": "websocket.connect"}

        async def send(message: dict[str, Any]) -> None:
            sent.append(message)

        await _server()({"type": "websocket", "path": "/"}, receive, send)
        assert sent == []


class TestOverHttpx:
    async def test_get(self, client: httpx.AsyncClient) -> None:
        async with client:
            response = await client.get("/users")
        assert response.status_code == 200
        assert response.json() == [{"id": 1}]
        assert response.headers["server"] == "api"
        assert response.headers["x-request-id"]

    async def test_post_json(self, client: httpx.AsyncClient) -> None:
        async with client:
            response = await client.post("/users", json={"id": 2, "name": "ada"})
        assert response.status_code == 201
        assert response.headers["location"] == "/users/2"
        assert response.json() == {"id": 2, "name": "ada"}

    async def test_wrong_content_type(self, client: httpx.AsyncClient) -> None:
        async with client:
            response = await client.post(
                "/users", content=b"id=2", headers={"Content-Type": "text/plain"}
            )
        assert response.status_code == 415
        assert response.json()["code"] == "UnsupportedMediaType"

    async def test_handler_error(self, client: httpx.AsyncClient) -> None:
        async with client:
            response = await client.get("/users/7")
        assert response.status_code == 404
        assert response.json() == {
            "code": "ResourceNotFound",
            "message": "user 7 does not exist",
        }

    async def test_method_not_allowed(self, client: httpx.AsyncClient) -> None:
        async with client:
            response = await client.delete("/users")
        assert response.status_code == 405
        assert response.headers["allow"] == "GET, POST"

    async def test_plain_text(self, client: httpx.AsyncClient) -> None:
        async with client:
            response = await client.get("/users/1", headers={"Accept": "text/plain"})
        assert response.headers["content-type"] == "text/plain"
        assert response.text == '{"id": 1}'

    async def test_head(self, client: httpx.AsyncClient) -> None:
        async with client:
            response = await client.head("/users")
        assert response.status_code == 200
        assert response.content == b""
        assert response.headers["content-length"] == str(len(b'[{"id": 1}]'))
