from __future__ import annotations

import asyncio
import json

import httpx
import pytest

from paynow_link.transport import TRANSPORT_ERROR, HttpTransport


def test_delete_carries_json_body_and_headers() -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(204)

    async def _run():
        transport = HttpTransport(client=httpx.AsyncClient(transport=httpx.MockTransport(handler)))
        response = await transport.send(
            "https://backend.test/queue",
            "delete",
            [{"attempt_id": "a1"}],
            {"Authorization": "Gameserver t"},
        )
        await transport.close()
        return response

    response = asyncio.run(_run())

    assert response.status_code == 204
    assert response.ok is True
    assert seen[0].method == "DELETE"
    assert json.loads(seen[0].content) == [{"attempt_id": "a1"}]
    assert seen[0].headers["Authorization"] == "Gameserver t"


def test_server_errors_are_returned_not_raised() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(502, text="bad gateway")

    async def _run():
        transport = HttpTransport(client=httpx.AsyncClient(transport=httpx.MockTransport(handler)))
        return await transport.send("https://backend.test/", "GET")

    response = asyncio.run(_run())

    assert response.status_code == 502
    assert response.body == "bad gateway"
    assert response.transport_failed is False


def test_connection_failure_maps_to_transport_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectTimeout("timed out", request=request)

    async def _run():
        transport = HttpTransport(client=httpx.AsyncClient(transport=httpx.MockTransport(handler)))
        return await transport.send("https://backend.test/", "POST", {"a": 1})

    response = asyncio.run(_run())

    assert response.status_code == TRANSPORT_ERROR
    assert response.transport_failed is True
    assert "ConnectTimeout" in (response.error or "")


def test_unsupported_method_is_rejected() -> None:
    async def _run():
        await HttpTransport().send("https://backend.test/", "PATCH")

    with pytest.raises(ValueError):
        asyncio.run(_run())


def test_unencodable_header_maps_to_transport_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200)

    async def _run():
        transport = HttpTransport(client=httpx.AsyncClient(transport=httpx.MockTransport(handler)))
        return await transport.send("https://backend.test/", "POST", {}, {"Authorization": "Gameserver tök"})

    response = asyncio.run(_run())

    assert response.transport_failed is True
    assert response.error
