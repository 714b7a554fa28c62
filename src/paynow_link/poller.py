"""Fixed-interval retrieval of the pending command queue."""

from __future__ import annotations

import logging

from paynow_link.adapters.game_server import GameServerHost
from paynow_link.api import BackendApi
from paynow_link.dispatcher import CommandDispatcher, DispatchResult
from paynow_link.errors import ResponseParseError
from paynow_link.models import parse_command_queue
from paynow_link.scheduler import RepeatingTimer

DEFAULT_POLL_INTERVAL_SECONDS = 10.0


class CommandPoller:
    """Uploads connected players, fetches pending commands and hands them to the dispatcher.

    A failed fetch is logged and dropped; the next tick is the retry.
    """

    def __init__(
        self,
        api: BackendApi,
        host: GameServerHost,
        dispatcher: CommandDispatcher,
        *,
        interval_seconds: float = DEFAULT_POLL_INTERVAL_SECONDS,
        logger: logging.Logger | None = None,
    ) -> None:
        self._api = api
        self._host = host
        self._dispatcher = dispatcher
        self._logger = logger or logging.getLogger("paynow_link.poller")
        self._timer = RepeatingTimer(
            "command-poller",
            interval_seconds,
            self.tick,
            run_immediately=True,
            logger=self._logger,
        )

    @property
    def running(self) -> bool:
        return self._timer.running

    @property
    def interval_seconds(self) -> float:
        return self._timer.interval_seconds

    @interval_seconds.setter
    def interval_seconds(self, value: float) -> None:
        self._timer.interval_seconds = value

    def start(self) -> None:
        self._timer.start()

    async def stop(self) -> None:
        await self._timer.stop()

    async def tick(self) -> DispatchResult | None:
        if not self._api.token:
            return None

        response = await self._api.fetch_commands(self._host.connected_steam_ids())
        if response.status_code != 200:
            self._logger.warning(
                "command_fetch_failed",
                extra={"status_code": response.status_code, "body": response.body, "error": response.error},
            )
            return None

        try:
            commands = parse_command_queue(response.body)
        except ResponseParseError as exc:
            self._logger.warning("command_fetch_unreadable", extra={"error": str(exc)})
            return None

        return await self._dispatcher.dispatch(commands)
