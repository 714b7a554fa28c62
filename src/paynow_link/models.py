"""Wire models exchanged with the delivery backend."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, TypeVar

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, TypeAdapter, ValidationError, field_validator

from paynow_link.errors import ResponseParseError

PLAYER_JOIN_EVENT = "player_join"

_T = TypeVar("_T")


def utc_timestamp(moment: datetime | None = None) -> str:
    moment = moment or datetime.now(timezone.utc)
    return moment.astimezone(timezone.utc).isoformat(timespec="seconds").replace("+00:00", "Z")


class QueuedCommand(BaseModel):
    """One pending delivery command returned by the command queue."""

    model_config = ConfigDict(extra="ignore", coerce_numbers_to_str=True)

    attempt_id: str
    steam_id: str = ""
    command: str
    online_only: bool = False
    queued_at: str = ""

    @field_validator("steam_id", "queued_at", mode="before")
    @classmethod
    def _none_as_empty(cls, value: Any) -> Any:
        return "" if value is None else value


class PreviouslyLinked(BaseModel):
    model_config = ConfigDict(extra="ignore")

    ip: str | None = None
    hostname: str | None = None
    last_linked_at: str | None = None


class GameServer(BaseModel):
    model_config = ConfigDict(extra="ignore", coerce_numbers_to_str=True)

    id: str
    store_id: str | None = None
    name: str | None = None
    created_at: str | None = None
    updated_at: str | None = None


class LinkResponse(BaseModel):
    """Body of a successful link handshake."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    update_available: bool = Field(default=False, validation_alias=AliasChoices("update_available", "updateAvailable"))
    latest_version: str | None = Field(default=None, validation_alias=AliasChoices("latest_version", "latestVersion"))
    previously_linked: PreviouslyLinked | None = Field(
        default=None,
        validation_alias=AliasChoices("previously_linked", "previouslyLinked"),
    )
    game_server: GameServer | None = Field(
        default=None,
        validation_alias=AliasChoices("gameserver", "game_server", "gameServer"),
    )


@dataclass(slots=True, frozen=True)
class PendingEvent:
    """A buffered player_join event awaiting upload."""

    ip_address: str
    steam_id: str
    timestamp: str = field(default_factory=utc_timestamp)

    def to_payload(self) -> dict[str, Any]:
        return {
            "event": PLAYER_JOIN_EVENT,
            PLAYER_JOIN_EVENT: {"ip_address": self.ip_address, "steam_id": self.steam_id},
            "timestamp": self.timestamp,
        }


def _decode(body: str | None) -> Any:
    if body is None:
        raise ResponseParseError("Response body is empty")
    try:
        payload = json.loads(body)
    except json.JSONDecodeError as exc:
        raise ResponseParseError(f"Response body is not valid JSON: {exc}") from exc
    if payload is None:
        raise ResponseParseError("Response body is null")
    return payload


def _validate(adapter: TypeAdapter[_T], payload: Any) -> _T:
    try:
        return adapter.validate_python(payload)
    except ValidationError as exc:
        raise ResponseParseError(f"Unexpected response shape: {exc}") from exc


_COMMAND_LIST = TypeAdapter(list[QueuedCommand])
_LINK_RESPONSE = TypeAdapter(LinkResponse)


def parse_command_queue(body: str | None) -> list[QueuedCommand]:
    return _validate(_COMMAND_LIST, _decode(body))


def parse_link_response(body: str | None) -> LinkResponse:
    return _validate(_LINK_RESPONSE, _decode(body))


def build_acknowledgement(attempt_ids: set[str] | list[str]) -> list[dict[str, str]]:
    return [{"attempt_id": attempt_id} for attempt_id in attempt_ids]
