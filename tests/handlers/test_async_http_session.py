from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING

import pytest
from aiohttp import web
from aiohttp.test_utils import TestServer

from handlers.async_comm import AsyncCommError, AsyncCommTimeoutError, AsyncHttp, HttpResponse

if TYPE_CHECKING:
    from collections.abc import AsyncGenerator


async def _completions(request: web.Request) -> web.Response:
    body = await request.json()
    if request.headers.get("Authorization") != "Bearer sk-test":
        return web.json_response({"error": {"message": "invalid key"}}, status=401)
    return web.json_response({"choices": [{"message": {"content": f"echo {body['model']}"}}]})


async def _models(_request: web.Request) -> web.Response:
    return web.Response(text="plain body", content_type="text/plain")


async def _slow(_request: web.Request) -> web.Response:
    await asyncio.sleep(1.0)
    return web.Response(text="late")


@pytest.fixture
async def server() -> AsyncGenerator[TestServer]:
    app = web.Application()
    app.router.add_post("/chat/completions", _completions)
    app.router.add_get("/models", _models)
    app.router.add_get("/slow", _slow)
    test_server = TestServer(app)
    await test_server.start_server()
    yield test_server
    await test_server.close()


@pytest.mark.asyncio
async def test_post_json_returns_status_and_body(server: TestServer) -> None:
    async with AsyncHttp() as http:
        response: HttpResponse = await http.post_json(
            url=str(server.make_url("/chat/completions")),
            payload={"model": "m", "messages": []},
            headers={"Authorization": "Bearer sk-test"},
        )

    assert response.status == 200
    assert response.json() == {"choices": [{"message": {"content": "echo m"}}]}


@pytest.mark.asyncio
async def test_error_status_does_not_raise(server: TestServer) -> None:
    async with AsyncHttp() as http:
        response: HttpResponse = await http.post_json(
            url=str(server.make_url("/chat/completions")),
            payload={"model": "m", "messages": []},
            headers={"Authorization": "Bearer wrong"},
        )

    assert response.status == 401
    assert response.json()["error"]["message"] == "invalid key"


@pytest.mark.asyncio
async def test_get_returns_text_body(server: TestServer) -> None:
    async with AsyncHttp() as http:
        response: HttpResponse = await http.get(url=str(server.make_url("/models")))

    assert response.status == 200
    assert response.text == "plain body"
    with pytest.raises(ValueError):
        response.json()


@pytest.mark.asyncio
async def test_timeout_raises_timeout_error(server: TestServer) -> None:
    async with AsyncHttp() as http:
        with pytest.raises(AsyncCommTimeoutError):
            await http.get(url=str(server.make_url("/slow")), total_timeout=0.1)


@pytest.mark.asyncio
async def test_refused_connection_raises_comm_error(unused_tcp_port: int) -> None:
    async with AsyncHttp() as http:
        with pytest.raises(AsyncCommError):
            await http.get(url=f"http://127.0.0.1:{unused_tcp_port}/models")


@pytest.mark.asyncio
async def test_context_enter_initializes_session(caplog: pytest.LogCaptureFixture) -> None:
    caplog.set_level(logging.DEBUG)

    http = AsyncHttp()
    assert http.closed is True

    async with http:
        assert http.closed is False

    assert http.closed is True
    assert any("AsyncHttp session initialized" in rec.message for rec in caplog.records)
    assert not any("session already initialized" in rec.message for rec in caplog.records)


@pytest.mark.asyncio
async def test_reenter_after_close_reinitializes(caplog: pytest.LogCaptureFixture) -> None:
    caplog.set_level(logging.DEBUG)
    http = AsyncHttp()

    async with http:
        pass
    caplog.clear()
    async with http:
        pass

    assert any("AsyncHttp session initialized" in rec.message for rec in caplog.records)


@pytest.mark.parametrize(
    ("total", "connect", "expected_total"),
    [(0.0, None, None), (0.5, None, 0.5), (30.0, 1.0, 30.0)],
)
def test_build_timeout(total: float, connect: float | None, expected_total: float | None) -> None:
    timeout = AsyncHttp.build_timeout(total)

    assert timeout.total == expected_total
    assert timeout.connect == connect
