"""Boundary for the game server that executes delivered commands."""

from __future__ import annotations

import platform
import socket
from dataclasses import dataclass, field
from typing import Protocol


@dataclass(slots=True)
class HostIdentity:
    """How the server describes itself to the backend during linking."""

    ip: str = "0.0.0.0"
    hostname: str = field(default_factory=socket.gethostname)
    platform: str = field(default_factory=lambda: f"python-{platform.system().lower()}")


class GameServerHost(Protocol):
    """Capabilities the delivery client needs from the hosting game server."""

    identity: HostIdentity

    async def execute(self, command: str) -> bool:
        """Run a command string against the server and report whether it was accepted."""

    def connected_steam_ids(self) -> set[str]:
        """Snapshot of the ids of currently connected players."""

    def player_connected(self, steam_id: str) -> None:
        """Record that a player joined the server."""

    def player_disconnected(self, steam_id: str) -> None:
        """Record that a player left the server."""


class ConnectedPlayers:
    """Tracks player presence from connect/disconnect notifications."""

    def __init__(self) -> None:
        self._steam_ids: set[str] = set()

    def player_connected(self, steam_id: str) -> None:
        if steam_id:
            self._steam_ids.add(steam_id)

    def player_disconnected(self, steam_id: str) -> None:
        self._steam_ids.discard(steam_id)

    def connected_steam_ids(self) -> set[str]:
        return set(self._steam_ids)
