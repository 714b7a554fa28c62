"""Uniform send/response contract over an async HTTP client."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import Any

import httpx

TRANSPORT_ERROR = -1
SUPPORTED_METHODS = frozenset({"GET", "POST", "DELETE"})


@dataclass(slots=True, frozen=True)
class TransportResponse:
    """Outcome of one request.

    ``status_code`` is the HTTP status, or ``TRANSPORT_ERROR`` when no response was
    received, in which case ``error`` describes the connection-level failure.
    """

    status_code: int
    body: str | None = None
    error: str | None = None

    @property
    def transport_failed(self) -> bool:
        return self.status_code == TRANSPORT_ERROR

    @property
    def ok(self) -> bool:
        return 200 <= self.status_code < 300


class HttpTransport:
    """Sends JSON requests and resolves exactly once per call, never raising for network errors."""

    def __init__(
        self,
        *,
        timeout_seconds: float = 10.0,
        client: httpx.AsyncClient | None = None,
        logger: logging.Logger | None = None,
    ) -> None:
        self._http = client or httpx.AsyncClient(timeout=timeout_seconds)
        self._logger = logger or logging.getLogger("paynow_link.transport")

    async def close(self) -> None:
        await self._http.aclose()

    async def send(
        self,
        url: str,
        method: str = "GET",
        body: Any = None,
        headers: dict[str, str] | None = None,
    ) -> TransportResponse:
        method = method.upper()
        if method not in SUPPORTED_METHODS:
            raise ValueError(f"Unsupported HTTP method: {method}")

        content = None if body is None else json.dumps(body)
        try:
            # `content=` rather than `json=` so DELETE can carry a body too.
            response = await self._http.request(method, url, content=content, headers=headers)
        except httpx.HTTPError as exc:
            self._logger.debug("request_transport_error", extra={"url": url, "method": method, "error": str(exc)})
            return TransportResponse(status_code=TRANSPORT_ERROR, error=f"{type(exc).__name__}: {exc}")
        except Exception as exc:  # noqa: BLE001 - e.g. headers that cannot be encoded.
            self._logger.exception("request_build_failed", extra={"url": url, "method": method})
            return TransportResponse(status_code=TRANSPORT_ERROR, error=f"{type(exc).__name__}: {exc}")

        return TransportResponse(status_code=response.status_code, body=response.text or None)
