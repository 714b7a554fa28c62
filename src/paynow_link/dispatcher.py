"""At-most-once execution of queued delivery commands."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from paynow_link.adapters.game_server import GameServerHost
from paynow_link.api import BackendApi
from paynow_link.history import CommandHistory
from paynow_link.models import QueuedCommand


@dataclass(slots=True)
class DispatchResult:
    """Summary of one poll cycle."""

    received: int = 0
    executed: list[str] = field(default_factory=list)
    duplicates: list[str] = field(default_factory=list)
    skipped_offline: list[str] = field(default_factory=list)
    failed: list[str] = field(default_factory=list)
    acknowledged: set[str] = field(default_factory=set)


class CommandDispatcher:
    """Executes each new command once and acknowledges what was handled."""

    def __init__(
        self,
        api: BackendApi,
        host: GameServerHost,
        *,
        history: CommandHistory | None = None,
        log_command_executions: bool = True,
        logger: logging.Logger | None = None,
    ) -> None:
        self._api = api
        self._host = host
        self.history = history or CommandHistory()
        self.log_command_executions = log_command_executions
        self._logger = logger or logging.getLogger("paynow_link.dispatcher")

    async def dispatch(self, commands: list[QueuedCommand]) -> DispatchResult:
        result = DispatchResult(received=len(commands))
        if not commands:
            return result

        online = self._host.connected_steam_ids()
        for queued in commands:
            await self._process(queued, online, result)

        if self.log_command_executions:
            self._logger.info(
                "commands_processed",
                extra={"received": result.received, "executed": len(result.executed)},
            )

        await self.acknowledge(result.acknowledged)
        return result

    async def acknowledge(self, attempt_ids: set[str]) -> bool:
        """Report handled attempts; returns whether the backend accepted the batch."""
        if not attempt_ids:
            return True

        response = await self._api.acknowledge(attempt_ids)
        if response.ok:
            return True

        self._logger.error(
            "acknowledge_failed",
            extra={
                "status_code": response.status_code,
                "body": response.body,
                "error": response.error,
                "attempt_ids": sorted(attempt_ids),
            },
        )
        return False

    async def _process(self, queued: QueuedCommand, online: set[str], result: DispatchResult) -> None:
        attempt_id = queued.attempt_id
        if self.history.contains(attempt_id):
            result.duplicates.append(attempt_id)
            result.acknowledged.add(attempt_id)
            return

        if queued.online_only and queued.steam_id not in online:
            result.skipped_offline.append(attempt_id)
            return

        try:
            accepted = await self._host.execute(queued.command)
        except Exception:  # noqa: BLE001 - one bad command must not abort the batch.
            self._logger.exception(
                "command_execution_error",
                extra={"attempt_id": attempt_id, "command": queued.command},
            )
            result.failed.append(attempt_id)
            return

        if not accepted:
            self._logger.warning(
                "command_rejected",
                extra={"attempt_id": attempt_id, "command": queued.command},
            )
            result.failed.append(attempt_id)
            return

        self.history.add(attempt_id)
        result.executed.append(attempt_id)
        result.acknowledged.add(attempt_id)
