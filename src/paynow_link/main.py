"""CLI startup entrypoint for the PayNow delivery client."""

from __future__ import annotations

import asyncio
import contextlib
import sys
import threading

import typer
from rich import print

from paynow_link import __version__
from paynow_link.adapters import EchoGameServerHost, HostIdentity, ShellCommandHost
from paynow_link.client import TOKEN_COMMAND, DeliveryClient, OperatorCaller
from paynow_link.config import JsonConfigStore, Settings, mask_token, settings
from paynow_link.telemetry import configure_logging
from paynow_link.transport import HttpTransport

app = typer.Typer(help="PayNow delivery client")


def _build_identity(current: Settings) -> HostIdentity:
    identity = HostIdentity(ip=current.server_ip)
    if current.server_hostname:
        identity.hostname = current.server_hostname
    if current.server_platform:
        identity.platform = current.server_platform
    return identity


def _build_host(current: Settings) -> EchoGameServerHost | ShellCommandHost:
    identity = _build_identity(current)
    if current.host_command_template:
        return ShellCommandHost(
            current.host_command_template,
            identity=identity,
            timeout_seconds=current.host_command_timeout_seconds,
        )
    return EchoGameServerHost(identity=identity)


def _build_client(current: Settings) -> DeliveryClient:
    return DeliveryClient(
        _build_host(current),
        JsonConfigStore(current.config_path),
        transport=HttpTransport(timeout_seconds=current.request_timeout_seconds),
        api_base_url=current.api_base_url,
        link_retry_delay_seconds=current.link_retry_delay_seconds,
        event_flush_interval_seconds=current.event_flush_interval_seconds,
    )


def _pump_stdin(loop: asyncio.AbstractEventLoop, lines: asyncio.Queue[str | None]) -> None:
    for line in sys.stdin:
        with contextlib.suppress(RuntimeError):
            loop.call_soon_threadsafe(lines.put_nowait, line)
    with contextlib.suppress(RuntimeError):
        loop.call_soon_threadsafe(lines.put_nowait, None)


async def _console_loop(client: DeliveryClient) -> None:
    """Read operator commands from stdin until it closes."""
    console = OperatorCaller(name="console", is_server=True)
    lines: asyncio.Queue[str | None] = asyncio.Queue()
    # Daemon thread: a read blocked on stdin must not hold up shutdown.
    reader = threading.Thread(
        target=_pump_stdin,
        args=(asyncio.get_running_loop(), lines),
        name="operator-console",
        daemon=True,
    )
    reader.start()

    while True:
        line = await lines.get()
        if line is None:
            return

        parts = line.split()
        if not parts:
            continue
        if parts[0] != TOKEN_COMMAND:
            print(f"Unknown command: {parts[0]}")
            continue
        print(await client.handle_token_command(console, parts[1:]))


@app.command()
def run() -> None:
    """Link to the backend and deliver queued commands until interrupted."""
    configure_logging(settings.log_level)

    async def _run() -> None:
        client = _build_client(settings)
        try:
            await client.start()
            await _console_loop(client)
            await asyncio.Event().wait()
        finally:
            await client.close()

    with contextlib.suppress(KeyboardInterrupt):
        asyncio.run(_run())


@app.command("set-token")
def set_token(token: str, config_path: str = typer.Option(None, help="Delivery config file")) -> None:
    """Persist a new API token to the delivery config."""
    store = JsonConfigStore(config_path or settings.config_path)
    config = store.load()
    store.save(config.model_copy(update={"api_token": token}))
    print({"config_path": str(store.path), "api_token": mask_token(token)})


@app.command("show-config")
def show_config(config_path: str = typer.Option(None, help="Delivery config file")) -> None:
    """Show effective settings with the token masked."""
    store = JsonConfigStore(config_path or settings.config_path)
    config = store.load()
    print(
        {
            "app_name": settings.app_name,
            "version": __version__,
            "api_base_url": settings.api_base_url,
            "config_path": str(store.path),
            "api_token": mask_token(config.api_token),
            "poll_interval_seconds": config.poll_interval_seconds,
            "log_command_executions": config.log_command_executions,
            "host": "shell" if settings.host_command_template else "echo",
        }
    )


if __name__ == "__main__":
    app()
