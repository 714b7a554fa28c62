from __future__ import annotations

import json
from typing import Any

import httpx
import pytest

from paynow_link.api import BackendApi
from paynow_link.transport import HttpTransport

BASE_URL = "https://backend.test"
TRANSPORT_DOWN = "transport_down"


class FakeBackend:
    """Scripted stand-in for the delivery backend behind ``httpx.MockTransport``.

    Each route replays its queued responses in order and then keeps repeating the
    last one.
    """

    def __init__(self) -> None:
        self.requests: list[httpx.Request] = []
        self._routes: dict[tuple[str, str], list[Any]] = {}

    def route(self, method: str, path: str, *responses: Any) -> None:
        self._routes[(method, path)] = list(responses)

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        responses = self._routes.get((request.method, request.url.path))
        if not responses:
            return httpx.Response(404)

        response = responses.pop(0) if len(responses) > 1 else responses[0]
        if response == TRANSPORT_DOWN:
            raise httpx.ConnectError("connection refused", request=request)
        if isinstance(response, int):
            return httpx.Response(response)
        return response

    def transport(self) -> HttpTransport:
        return HttpTransport(client=httpx.AsyncClient(transport=httpx.MockTransport(self.handler)))

    def api(self, token: str = "secret") -> BackendApi:
        return BackendApi(self.transport(), base_url=BASE_URL, token=token)

    def calls(self, method: str, path: str) -> list[httpx.Request]:
        return [req for req in self.requests if req.method == method and req.url.path == path]

    def bodies(self, method: str, path: str) -> list[Any]:
        return [json.loads(req.content) for req in self.calls(method, path)]


@pytest.fixture
def backend() -> FakeBackend:
    return FakeBackend()
