"""Game server host adapters (command execution and player presence)."""

from .game_server import ConnectedPlayers, GameServerHost, HostIdentity
from .shell_host import EchoGameServerHost, ShellCommandHost

__all__ = [
    "ConnectedPlayers",
    "EchoGameServerHost",
    "GameServerHost",
    "HostIdentity",
    "ShellCommandHost",
]
