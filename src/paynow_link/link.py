"""Link handshake that registers this server with the backend."""

from __future__ import annotations

import asyncio
import logging
from enum import Enum
from typing import Awaitable, Callable

from paynow_link import __version__
from paynow_link.adapters.game_server import HostIdentity
from paynow_link.api import BackendApi
from paynow_link.errors import ResponseParseError
from paynow_link.models import LinkResponse, parse_link_response
from paynow_link.transport import TransportResponse

DEFAULT_LINK_RETRY_DELAY_SECONDS = 5.0

LinkCallback = Callable[[], Awaitable[None]]


class LinkState(str, Enum):
    """Outcome states of the link handshake."""

    IDLE = "idle"
    LINKING = "linking"
    LINKED = "linked"
    UNAUTHORIZED = "unauthorized"
    RETRY_SCHEDULED = "retry_scheduled"
    REJECTED = "rejected"


class LinkProtocol:
    """Authenticates against the backend and runs ``on_success`` once linked.

    Transient failures (transport errors, 5xx, an unreadable 200 body) retry after a
    fixed delay without limit. Auth failures and backend-confirmed anomalies are
    reported and left for the operator.
    """

    def __init__(
        self,
        api: BackendApi,
        identity: HostIdentity,
        *,
        retry_delay_seconds: float = DEFAULT_LINK_RETRY_DELAY_SECONDS,
        version: str = __version__,
        logger: logging.Logger | None = None,
    ) -> None:
        self._api = api
        self._identity = identity
        self._retry_delay_seconds = retry_delay_seconds
        self._version = version
        self._logger = logger or logging.getLogger("paynow_link.link")

        self._state = LinkState.IDLE
        self._generation = 0
        self._retry_task: asyncio.Task[None] | None = None
        self.last_response: LinkResponse | None = None

    @property
    def state(self) -> LinkState:
        return self._state

    def build_payload(self) -> dict[str, str]:
        return {
            "ip": self._identity.ip,
            "hostname": self._identity.hostname,
            "platform": self._identity.platform,
            "version": self._version,
        }

    async def start_link(self, on_success: LinkCallback) -> LinkState:
        """Run one link attempt and return the state it ended in."""
        if not self._api.token:
            self._logger.warning("link_skipped_no_token")
            return self._state

        generation = self._generation
        self._state = LinkState.LINKING
        self._logger.info("link_started", extra={"hostname": self._identity.hostname})
        try:
            response = await self._api.link(self.build_payload())
        except Exception:  # noqa: BLE001
            self._logger.exception("link_request_failed")
            if generation != self._generation:
                return self._state
            return self._schedule_retry(on_success)

        if generation != self._generation:
            self._logger.debug("link_response_discarded", extra={"status_code": response.status_code})
            return self._state

        try:
            return await self._handle_response(response, on_success)
        except Exception:  # noqa: BLE001 - a link attempt must never crash the process.
            self._logger.exception("link_response_handling_failed", extra={"status_code": response.status_code})
            return self._schedule_retry(on_success)

    def cancel(self) -> None:
        """Invalidate in-flight attempts and drop any pending retry."""
        self._generation += 1
        if self._retry_task and not self._retry_task.done():
            self._retry_task.cancel()
        self._retry_task = None
        self._state = LinkState.IDLE

    async def _handle_response(self, response: TransportResponse, on_success: LinkCallback) -> LinkState:
        status = response.status_code
        if status in (401, 403):
            self._state = LinkState.UNAUTHORIZED
            self._logger.error(
                "link_unauthorized",
                extra={
                    "status_code": status,
                    "hint": "The API token was rejected. Set a valid one with: paynow.token <token>",
                },
            )
            return self._state

        if response.transport_failed or status >= 500:
            self._logger.warning(
                "link_failed_transient",
                extra={"status_code": status, "error": response.error, "body": response.body},
            )
            return self._schedule_retry(on_success)

        if status != 200:
            self._state = LinkState.REJECTED
            self._logger.error("link_rejected", extra={"status_code": status, "body": response.body})
            return self._state

        try:
            link_response = parse_link_response(response.body)
        except ResponseParseError as exc:
            self._logger.warning("link_response_unreadable", extra={"error": str(exc)})
            return self._schedule_retry(on_success)

        if link_response.game_server is None:
            self._state = LinkState.REJECTED
            self._logger.error("link_missing_gameserver", extra={"body": response.body})
            return self._state

        self.last_response = link_response
        self._state = LinkState.LINKED
        self._report_advisories(link_response)
        self._logger.info(
            "link_succeeded",
            extra={"gameserver_id": link_response.game_server.id, "gameserver_name": link_response.game_server.name},
        )
        try:
            await on_success()
        except Exception:  # noqa: BLE001
            self._logger.exception("link_continuation_failed")
        return self._state

    def _report_advisories(self, link_response: LinkResponse) -> None:
        if link_response.update_available:
            self._logger.warning(
                "update_available",
                extra={"current_version": self._version, "latest_version": link_response.latest_version},
            )

        previous = link_response.previously_linked
        if previous is not None:
            self._logger.warning(
                "token_previously_linked",
                extra={
                    "previous_ip": previous.ip,
                    "previous_hostname": previous.hostname,
                    "last_linked_at": previous.last_linked_at,
                },
            )

    def _schedule_retry(self, on_success: LinkCallback) -> LinkState:
        self._state = LinkState.RETRY_SCHEDULED
        self._retry_task = asyncio.create_task(self._retry_later(on_success), name="link-retry")
        self._logger.info("link_retry_scheduled", extra={"delay_seconds": self._retry_delay_seconds})
        return self._state

    async def _retry_later(self, on_success: LinkCallback) -> None:
        await asyncio.sleep(self._retry_delay_seconds)
        self._retry_task = None
        await self.start_link(on_success)
