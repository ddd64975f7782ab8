from __future__ import annotations

import asyncio

import pytest
from aiohttp import web
from aiohttp.test_utils import TestServer

from skyform.infra.http import BearerAuth, HttpClient, HttpError, TokenAuth

pytestmark = [pytest.mark.unit]


def make_app(*, token: str = "valid-token") -> web.Application:
    app = web.Application()

    async def json_echo(request: web.Request) -> web.Response:
        if request.headers.get("X-Auth-Token", "") != token:
            return web.Response(status=401, text="unauthorized")
        body = await request.json() if request.can_read_body else {}
        return web.json_response({
            "method": request.method,
            "echo": body,
            "params": dict(request.query),
        })

    async def bearer(request: web.Request) -> web.Response:
        return web.json_response({"auth": request.headers.get("Authorization", "")})

    async def empty_json(_: web.Request) -> web.Response:
        return web.Response(status=204, body=b"")

    async def error_endpoint(_: web.Request) -> web.Response:
        return web.json_response({"message": "not found"}, status=404)

    async def server_error(_: web.Request) -> web.Response:
        return web.Response(status=500, text="internal server error")

    async def slow(_: web.Request) -> web.Response:
        await asyncio.sleep(0.5)
        return web.json_response({})

    app.router.add_route("*", "/echo", json_echo)
    app.router.add_get("/bearer", bearer)
    app.router.add_get("/empty", empty_json)
    app.router.add_get("/not-found", error_endpoint)
    app.router.add_get("/server-error", server_error)
    app.router.add_get("/slow", slow)
    return app


@pytest.fixture
async def server():
    srv = TestServer(make_app())
    await srv.start_server()
    yield srv
    await srv.close()


@pytest.fixture
def base_url(server: TestServer) -> str:
    return f"http://{server.host}:{server.port}"


# ─── Auth ────────────────────────────────────────────────────────────


def test_token_auth_headers():
    h = TokenAuth("my-token").headers()
    assert h["X-Auth-Token"] == "my-token"
    assert h["Accept"] == "application/json"


def test_bearer_auth_headers():
    assert BearerAuth("t").headers()["Authorization"] == "Bearer t"


# ─── Requests ────────────────────────────────────────────────────────


async def test_get_json(base_url: str):
    async with HttpClient(base_url, TokenAuth("valid-token")) as http:
        result = await http.request("GET", "/echo", params={"a": "1"})
    assert result["params"]["a"] == "1"


@pytest.mark.parametrize("method", ["POST", "PATCH"])
async def test_json_body(base_url: str, method: str):
    async with HttpClient(base_url, TokenAuth("valid-token")) as http:
        result = await http.request(method, "/echo", json={"key": "value"})
    assert result["method"] == method
    assert result["echo"]["key"] == "value"


async def test_bearer_header_sent(base_url: str):
    async with HttpClient(base_url, BearerAuth("abc")) as http:
        result = await http.request("GET", "/bearer")
    assert result["auth"] == "Bearer abc"


async def test_empty_body_returns_none(base_url: str):
    async with HttpClient(base_url) as http:
        assert await http.request("GET", "/empty") is None


async def test_trailing_slash_in_base_url(base_url: str):
    async with HttpClient(base_url + "/", TokenAuth("valid-token")) as http:
        result = await http.request("GET", "/echo")
    assert result["method"] == "GET"


# ─── Errors ──────────────────────────────────────────────────────────


async def test_http_error_on_401(base_url: str):
    async with HttpClient(base_url, TokenAuth("wrong")) as http:
        with pytest.raises(HttpError) as exc_info:
            await http.request("GET", "/echo")
    assert exc_info.value.status == 401


async def test_http_error_on_404_keeps_body(base_url: str):
    async with HttpClient(base_url) as http:
        with pytest.raises(HttpError) as exc_info:
            await http.request("GET", "/not-found")
    assert exc_info.value.status == 404
    assert "not found" in exc_info.value.body


async def test_http_error_on_5xx(base_url: str):
    async with HttpClient(base_url) as http:
        with pytest.raises(HttpError) as exc_info:
            await http.request("GET", "/server-error")
    assert exc_info.value.status == 500


async def test_connection_error_has_status_zero():
    async with HttpClient("http://127.0.0.1:1", timeout=2) as http:
        with pytest.raises(HttpError) as exc_info:
            await http.request("GET", "/anything")
    assert exc_info.value.status == 0


async def test_timeout_has_status_zero(base_url: str):
    async with HttpClient(base_url, timeout=0.1) as http:
        with pytest.raises(HttpError) as exc_info:
            await http.request("GET", "/slow")
    assert exc_info.value.status == 0
    assert "timed out" in exc_info.value.body


def test_http_error_str():
    assert str(HttpError(status=418, body="teapot")) == "HTTP 418: teapot"


async def test_close_is_idempotent(base_url: str):
    http = HttpClient(base_url)
    await http.request("GET", "/empty")
    await http.close()
    await http.close()
