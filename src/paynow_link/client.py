"""Process-level wiring of link, polling, dispatch and event upload."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass

from paynow_link.adapters.game_server import GameServerHost
from paynow_link.api import DEFAULT_API_BASE_URL, BackendApi
from paynow_link.config import DeliveryConfig, JsonConfigStore
from paynow_link.dispatcher import CommandDispatcher
from paynow_link.events import DEFAULT_EVENT_FLUSH_INTERVAL_SECONDS, EventBatcher
from paynow_link.history import CommandHistory
from paynow_link.link import DEFAULT_LINK_RETRY_DELAY_SECONDS, LinkProtocol, LinkState
from paynow_link.poller import CommandPoller
from paynow_link.transport import HttpTransport

TOKEN_COMMAND = "paynow.token"
TOKEN_USAGE = f"Usage: {TOKEN_COMMAND} <token>"


@dataclass(slots=True)
class OperatorCaller:
    """Who issued an operator command."""

    name: str = "console"
    is_server: bool = False
    is_admin: bool = False

    @property
    def privileged(self) -> bool:
        return self.is_server or self.is_admin


class DeliveryClient:
    """Keeps one game server linked and in sync with the delivery backend."""

    def __init__(
        self,
        host: GameServerHost,
        config_store: JsonConfigStore,
        *,
        transport: HttpTransport | None = None,
        api_base_url: str = DEFAULT_API_BASE_URL,
        link_retry_delay_seconds: float = DEFAULT_LINK_RETRY_DELAY_SECONDS,
        event_flush_interval_seconds: float = DEFAULT_EVENT_FLUSH_INTERVAL_SECONDS,
        logger: logging.Logger | None = None,
    ) -> None:
        self.host = host
        self._config_store = config_store
        self._transport = transport or HttpTransport()
        self._logger = logger or logging.getLogger("paynow_link.client")

        self.config: DeliveryConfig = config_store.load()
        self.api = BackendApi(self._transport, base_url=api_base_url, token=self.config.api_token)
        self.history = CommandHistory()
        self.dispatcher = CommandDispatcher(
            self.api,
            host,
            history=self.history,
            log_command_executions=self.config.log_command_executions,
        )
        self.poller = CommandPoller(
            self.api,
            host,
            self.dispatcher,
            interval_seconds=self.config.poll_interval_seconds,
        )
        self.events = EventBatcher(self.api, interval_seconds=event_flush_interval_seconds)
        self.link = LinkProtocol(self.api, host.identity, retry_delay_seconds=link_retry_delay_seconds)
        self._link_task: asyncio.Task[LinkState] | None = None

    async def start(self) -> asyncio.Task[LinkState] | None:
        if not self.config.api_token:
            self._logger.warning("api_token_missing", extra={"hint": f"Set one with: {TOKEN_USAGE}"})
            return None
        return await self.relink()

    async def relink(self) -> asyncio.Task[LinkState]:
        """Stop the loops, drop pending link work and link again in the background."""
        await self._stop_loops()
        self.link.cancel()
        self._link_task = asyncio.create_task(self.link.start_link(self._on_linked), name="link")
        return self._link_task

    async def set_token(self, token: str) -> asyncio.Task[LinkState]:
        await self._stop_loops()
        self.config = self.config.model_copy(update={"api_token": token})
        self._config_store.save(self.config)
        self.api.set_token(token)
        self._logger.info("api_token_updated")
        return await self.relink()

    async def handle_token_command(self, caller: OperatorCaller, args: list[str]) -> str | None:
        """Operator entry point for ``paynow.token <token>``."""
        if not caller.privileged:
            self._logger.warning("token_command_denied", extra={"caller": caller.name})
            return "You do not have permission to use this command."

        if len(args) != 1:
            return TOKEN_USAGE

        await self.set_token(args[0])
        return "Token set!"

    def on_player_connected(self, steam_id: str, ip_address: str) -> None:
        self.host.player_connected(steam_id)
        self.events.record_player_join(steam_id=steam_id, ip_address=ip_address)

    def on_player_disconnected(self, steam_id: str) -> None:
        self.host.player_disconnected(steam_id)

    async def close(self) -> None:
        await self._stop_loops()
        self.link.cancel()
        if self._link_task and not self._link_task.done():
            self._link_task.cancel()
            try:
                await self._link_task
            except asyncio.CancelledError:
                pass
        self._link_task = None
        await self._transport.close()

    async def _on_linked(self) -> None:
        self.poller.start()
        self.events.start()

    async def _stop_loops(self) -> None:
        await self.poller.stop()
        await self.events.stop()
