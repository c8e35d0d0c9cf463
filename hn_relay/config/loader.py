"""Configuration loading helpers for HN Relay."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

import yaml

from .models import RelayConfig

RELAY_CONFIG_FILENAME = "relay_config.yaml"
TOKEN_ENV_VARS = ("HN_RELAY_BOT_TOKEN", "BOT_KEY")


def _read_file(path: Path) -> dict:
    data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    if not isinstance(data, dict):
        raise ValueError(f"Configuration file must contain a mapping: {path}")
    return data


def _write_file(path: Path, payload: dict) -> None:
    with path.open("w", encoding="utf-8") as stream:
        yaml.safe_dump(payload, stream, allow_unicode=True, sort_keys=False)


@dataclass(slots=True)
class ConfigLocator:
    """Resolve important paths from project root."""

    project_root: Path | None = None
    data_dir: Path | None = None
    logs_dir: Path | None = None

    def __post_init__(self) -> None:
        env_root = os.environ.get("HN_RELAY_HOME")
        if env_root:
            root = Path(env_root).expanduser().resolve()
        else:
            root = (self.project_root or Path(__file__).resolve().parents[2]).resolve()
        self.project_root = root
        self.data_dir = (root / "data").resolve()
        self.logs_dir = (root / "logs").resolve()
        self.ensure_directories()

    def ensure_directories(self) -> None:
        for directory in (self.data_dir, self.logs_dir):
            directory.mkdir(parents=True, exist_ok=True)

    def config_path(self) -> Path:
        return self.data_dir / RELAY_CONFIG_FILENAME


class ConfigRepository:
    """Repository encapsulating config IO and schema validation."""

    def __init__(self, locator: ConfigLocator | None = None) -> None:
        self.locator = locator or ConfigLocator()
        self._cache: RelayConfig | None = None

    def load(self) -> RelayConfig:
        if self._cache is not None:
            return self._cache
        path = self.locator.config_path()
        if path.exists():
            config = RelayConfig.model_validate(_read_file(path))
        else:
            config = RelayConfig()
            self.save(config)
        config = self._apply_environment(config)
        self._cache = config
        return config

    def save(self, config: RelayConfig) -> Path:
        path = self.locator.config_path()
        payload = config.model_dump(mode="json")
        # The bot token belongs in the environment, not on disk.
        payload["channel"]["bot_token"] = ""
        _write_file(path, payload)
        self._cache = None
        return path

    def store_path(self, config: RelayConfig) -> Path:
        return config.resolved_store_path(self.locator.project_root)

    @staticmethod
    def _apply_environment(config: RelayConfig) -> RelayConfig:
        for name in TOKEN_ENV_VARS:
            token = os.environ.get(name)
            if token:
                channel = config.channel.model_copy(update={"bot_token": token})
                return config.model_copy(update={"channel": channel})
        return config


__all__ = ["ConfigLocator", "ConfigRepository", "TOKEN_ENV_VARS"]
