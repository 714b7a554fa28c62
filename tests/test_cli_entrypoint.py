from __future__ import annotations

import asyncio
import io
import json
import sys
from pathlib import Path

import pytest

from paynow_link import main


def test_set_token_persists_masked(tmp_path: Path) -> None:
    typer_testing = pytest.importorskip("typer.testing")

    config_path = tmp_path / "paynow.json"
    result = typer_testing.CliRunner().invoke(
        main.app,
        ["set-token", "abcd1234efgh5678", "--config-path", str(config_path)],
        catch_exceptions=False,
    )

    assert result.exit_code == 0
    assert "abcd1234efgh5678" not in result.stdout
    assert json.loads(config_path.read_text(encoding="utf-8"))["api_token"] == "abcd1234efgh5678"


class _RecordingClient:
    def __init__(self) -> None:
        self.commands: list[list[str]] = []

    async def handle_token_command(self, caller, args: list[str]) -> str:
        self.commands.append(args)
        return "Token set!"


def test_console_loop_forwards_token_command_and_ends_on_eof(monkeypatch) -> None:
    monkeypatch.setattr(sys, "stdin", io.StringIO("\nstatus\npaynow.token abc\n"))
    client = _RecordingClient()

    asyncio.run(asyncio.wait_for(main._console_loop(client), timeout=2))

    assert client.commands == [["abc"]]
