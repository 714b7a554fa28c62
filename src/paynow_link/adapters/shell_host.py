"""Concrete game server hosts.

``ShellCommandHost`` hands each delivered command to an external program (an RCON
client, a console bridge script, ...), while ``EchoGameServerHost`` accepts every
command without side effects so the delivery loop can be exercised locally.
"""

from __future__ import annotations

import asyncio
import logging
import shlex

from paynow_link.adapters.game_server import ConnectedPlayers, HostIdentity

COMMAND_PLACEHOLDER = "{command}"


class EchoGameServerHost(ConnectedPlayers):
    """Logs and accepts every command; used for dry runs and tests."""

    def __init__(self, identity: HostIdentity | None = None, logger: logging.Logger | None = None) -> None:
        super().__init__()
        self.identity = identity or HostIdentity()
        self.executed: list[str] = []
        self._logger = logger or logging.getLogger("paynow_link.host")

    async def execute(self, command: str) -> bool:
        self.executed.append(command)
        self._logger.info("host_command_echoed", extra={"command": command})
        return True


class ShellCommandHost(ConnectedPlayers):
    """Runs ``template`` with the command substituted for ``{command}``; exit code 0 means accepted."""

    def __init__(
        self,
        template: str,
        *,
        identity: HostIdentity | None = None,
        timeout_seconds: float = 10.0,
        logger: logging.Logger | None = None,
    ) -> None:
        super().__init__()
        argv = shlex.split(template)
        if not argv:
            raise ValueError("Host command template is empty")
        if not any(COMMAND_PLACEHOLDER in arg for arg in argv):
            argv.append(COMMAND_PLACEHOLDER)
        self._argv = argv
        self._timeout_seconds = timeout_seconds
        self.identity = identity or HostIdentity()
        self._logger = logger or logging.getLogger("paynow_link.host")

    def build_argv(self, command: str) -> list[str]:
        return [arg.replace(COMMAND_PLACEHOLDER, command) for arg in self._argv]

    async def execute(self, command: str) -> bool:
        argv = self.build_argv(command)
        try:
            process = await asyncio.create_subprocess_exec(
                *argv,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except OSError as exc:
            self._logger.error("host_command_spawn_failed", extra={"argv": argv, "error": str(exc)})
            return False

        try:
            stdout, stderr = await asyncio.wait_for(process.communicate(), timeout=self._timeout_seconds)
        except asyncio.TimeoutError:
            process.kill()
            await process.wait()
            self._logger.warning("host_command_timeout", extra={"argv": argv})
            return False
        except asyncio.CancelledError:
            process.kill()
            await process.wait()
            raise

        if process.returncode != 0:
            self._logger.warning(
                "host_command_rejected",
                extra={
                    "argv": argv,
                    "returncode": process.returncode,
                    "stderr": stderr.decode("utf-8", errors="ignore").strip(),
                },
            )
            return False

        self._logger.debug("host_command_accepted", extra={"argv": argv, "stdout": stdout.decode("utf-8", errors="ignore")})
        return True
