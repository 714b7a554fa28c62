"""Runtime settings and persisted delivery configuration."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field, ValidationError, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from paynow_link.api import DEFAULT_API_BASE_URL
from paynow_link.errors import ConfigError

# Legacy field names from earlier config files, mapped onto current fields.
LEGACY_FIELD_ALIASES: dict[str, str] = {
    "ApiToken": "api_token",
    "token": "api_token",
    "ApiCheckIntervalSeconds": "poll_interval_seconds",
    "interval": "poll_interval_seconds",
    "LogCommandExecutions": "log_command_executions",
}


class Settings(BaseSettings):
    """Environment-driven process settings."""

    model_config = SettingsConfigDict(env_prefix="PAYNOW_", env_file=".env", extra="ignore")

    app_name: str = "paynow-link"
    log_level: str = "INFO"
    api_base_url: str = DEFAULT_API_BASE_URL
    config_path: str = Field(default="paynow.json", description="JSON file holding token and poll interval.")
    request_timeout_seconds: float = 10.0
    link_retry_delay_seconds: float = 5.0
    event_flush_interval_seconds: float = 60.0
    host_command_template: str = Field(
        default="",
        description="Program used to run delivered commands, e.g. 'rcon-cli {command}'. Empty echoes commands.",
    )
    host_command_timeout_seconds: float = 10.0
    server_ip: str = "0.0.0.0"
    server_hostname: str | None = None
    server_platform: str | None = None


class DeliveryConfig(BaseModel):
    """Operator-owned values persisted between restarts."""

    api_token: str = ""
    poll_interval_seconds: float = Field(default=10.0, gt=0)
    log_command_executions: bool = True

    @model_validator(mode="before")
    @classmethod
    def _apply_legacy_aliases(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        normalized = dict(data)
        for legacy, current in LEGACY_FIELD_ALIASES.items():
            if legacy in normalized:
                normalized[current] = normalized.pop(legacy)
        return normalized


class JsonConfigStore:
    """Reads and writes ``DeliveryConfig`` as a JSON document."""

    def __init__(self, file_path: str | Path, logger: logging.Logger | None = None) -> None:
        self._path = Path(file_path)
        self._logger = logger or logging.getLogger("paynow_link.config")

    @property
    def path(self) -> Path:
        return self._path

    def load(self) -> DeliveryConfig:
        """Return the stored config, writing defaults on first run."""
        if not self._path.exists():
            config = DeliveryConfig()
            self.save(config)
            self._logger.info("config_defaults_written", extra={"path": str(self._path)})
            return config

        try:
            payload = json.loads(self._path.read_text(encoding="utf-8"))
            return DeliveryConfig.model_validate(payload)
        except (OSError, json.JSONDecodeError, ValidationError) as exc:
            raise ConfigError(f"Unable to read delivery config {self._path}: {exc}") from exc

    def save(self, config: DeliveryConfig) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        self._path.write_text(config.model_dump_json(indent=2) + "\n", encoding="utf-8")


def mask_token(token: str) -> str:
    if not token:
        return ""
    if len(token) <= 8:
        return "*" * len(token)
    return f"{token[:4]}{'*' * (len(token) - 8)}{token[-4:]}"


settings = Settings()
