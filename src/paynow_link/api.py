"""Backend endpoints for linking, command delivery and events."""

from __future__ import annotations

from typing import Iterable

from paynow_link.models import PendingEvent, build_acknowledgement
from paynow_link.transport import HttpTransport, TransportResponse

DEFAULT_API_BASE_URL = "https://api.paynow.gg"
LINK_PATH = "/v1/delivery/gameserver/link"
COMMAND_QUEUE_PATH = "/v1/delivery/command-queue/"
EVENTS_PATH = "/v1/delivery/events"


def build_headers(token: str) -> dict[str, str]:
    return {
        "Content-Type": "application/json",
        "Accept": "application/json",
        "Authorization": f"Gameserver {token}",
    }


class BackendApi:
    """Binds the transport to the backend base URL and the active token."""

    def __init__(self, transport: HttpTransport, *, base_url: str = DEFAULT_API_BASE_URL, token: str = "") -> None:
        self._transport = transport
        self._base_url = base_url.rstrip("/")
        self._token = ""
        self._headers: dict[str, str] = {}
        self.set_token(token)

    @property
    def token(self) -> str:
        return self._token

    @property
    def headers(self) -> dict[str, str]:
        return dict(self._headers)

    def set_token(self, token: str) -> None:
        """Replace the credential and rebuild auth headers in one step."""
        self._token = token
        self._headers = build_headers(token)

    def url(self, path: str) -> str:
        return f"{self._base_url}{path}"

    async def link(self, payload: dict[str, str]) -> TransportResponse:
        return await self._transport.send(self.url(LINK_PATH), "POST", payload, self._headers)

    async def fetch_commands(self, steam_ids: Iterable[str]) -> TransportResponse:
        body = {"steam_ids": sorted(steam_ids)}
        return await self._transport.send(self.url(COMMAND_QUEUE_PATH), "POST", body, self._headers)

    async def acknowledge(self, attempt_ids: Iterable[str]) -> TransportResponse:
        body = build_acknowledgement(list(attempt_ids))
        return await self._transport.send(self.url(COMMAND_QUEUE_PATH), "DELETE", body, self._headers)

    async def send_events(self, events: Iterable[PendingEvent]) -> TransportResponse:
        body = [event.to_payload() for event in events]
        return await self._transport.send(self.url(EVENTS_PATH), "POST", body, self._headers)
