from __future__ import annotations

import asyncio

from paynow_link.adapters import EchoGameServerHost
from paynow_link.api import COMMAND_QUEUE_PATH
from paynow_link.dispatcher import CommandDispatcher
from paynow_link.history import CommandHistory
from paynow_link.models import QueuedCommand


class RejectingHost(EchoGameServerHost):
    async def execute(self, command: str) -> bool:
        self.executed.append(command)
        return False


class ExplodingHost(EchoGameServerHost):
    async def execute(self, command: str) -> bool:
        self.executed.append(command)
        if command == "explode":
            raise RuntimeError("boom")
        return True


def _command(attempt_id: str, command: str = "give item", **kwargs) -> QueuedCommand:
    return QueuedCommand(attempt_id=attempt_id, command=command, **kwargs)


def test_executes_and_acknowledges_new_commands(backend) -> None:
    backend.route("DELETE", COMMAND_QUEUE_PATH, 204)
    host = EchoGameServerHost()

    async def _run():
        dispatcher = CommandDispatcher(backend.api(), host)
        return await dispatcher.dispatch([_command("a1"), _command("a2", "say thanks")])

    result = asyncio.run(_run())

    assert host.executed == ["give item", "say thanks"]
    assert result.executed == ["a1", "a2"]
    acknowledged = backend.bodies("DELETE", COMMAND_QUEUE_PATH)[0]
    assert {entry["attempt_id"] for entry in acknowledged} == {"a1", "a2"}
    assert all(set(entry) == {"attempt_id"} for entry in acknowledged)


def test_cached_attempt_is_acknowledged_without_execution(backend) -> None:
    backend.route("DELETE", COMMAND_QUEUE_PATH, 204)
    host = EchoGameServerHost()
    history = CommandHistory()
    history.add("seen")

    async def _run():
        dispatcher = CommandDispatcher(backend.api(), host, history=history)
        return await dispatcher.dispatch([_command("seen")])

    result = asyncio.run(_run())

    assert host.executed == []
    assert result.acknowledged == {"seen"}
    assert backend.bodies("DELETE", COMMAND_QUEUE_PATH) == [[{"attempt_id": "seen"}]]


def test_online_only_command_for_offline_player_is_left_alone(backend) -> None:
    host = EchoGameServerHost()
    host.player_connected("7656")

    async def _run():
        dispatcher = CommandDispatcher(backend.api(), host)
        result = await dispatcher.dispatch([_command("a1", steam_id="9999", online_only=True)])
        return dispatcher, result

    dispatcher, result = asyncio.run(_run())

    assert host.executed == []
    assert result.skipped_offline == ["a1"]
    assert result.acknowledged == set()
    assert not dispatcher.history.contains("a1")
    assert backend.calls("DELETE", COMMAND_QUEUE_PATH) == []


def test_online_only_command_runs_when_player_connected(backend) -> None:
    backend.route("DELETE", COMMAND_QUEUE_PATH, 204)
    host = EchoGameServerHost()
    host.player_connected("7656")

    async def _run():
        dispatcher = CommandDispatcher(backend.api(), host)
        return await dispatcher.dispatch([_command("a1", steam_id="7656", online_only=True)])

    result = asyncio.run(_run())

    assert host.executed == ["give item"]
    assert result.acknowledged == {"a1"}


def test_rejected_command_is_not_cached_or_acknowledged(backend) -> None:
    host = RejectingHost()

    async def _run():
        dispatcher = CommandDispatcher(backend.api(), host)
        result = await dispatcher.dispatch([_command("a1")])
        return dispatcher, result

    dispatcher, result = asyncio.run(_run())

    assert result.failed == ["a1"]
    assert not dispatcher.history.contains("a1")
    assert backend.calls("DELETE", COMMAND_QUEUE_PATH) == []


def test_execution_error_does_not_abort_batch(backend) -> None:
    backend.route("DELETE", COMMAND_QUEUE_PATH, 204)
    host = ExplodingHost()

    async def _run():
        dispatcher = CommandDispatcher(backend.api(), host)
        return await dispatcher.dispatch([_command("a1", "explode"), _command("a2")])

    result = asyncio.run(_run())

    assert host.executed == ["explode", "give item"]
    assert result.failed == ["a1"]
    assert result.acknowledged == {"a2"}


def test_at_most_once_across_cycles(backend) -> None:
    backend.route("DELETE", COMMAND_QUEUE_PATH, 500)
    host = EchoGameServerHost()

    async def _run():
        dispatcher = CommandDispatcher(backend.api(), host)
        await dispatcher.dispatch([_command("A")])
        return await dispatcher.dispatch([_command("A")])

    second = asyncio.run(_run())

    assert host.executed == ["give item"]
    assert second.duplicates == ["A"]
    assert len(backend.calls("DELETE", COMMAND_QUEUE_PATH)) == 2


def test_empty_batch_sends_nothing(backend) -> None:
    async def _run():
        return await CommandDispatcher(backend.api(), EchoGameServerHost()).dispatch([])

    result = asyncio.run(_run())

    assert result.received == 0
    assert backend.requests == []
