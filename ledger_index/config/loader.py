"""Configuration loading helpers for the ledger index."""

from __future__ import annotations

import json
import os
from dataclasses import dataclass
from pathlib import Path

import yaml

from ..errors import ConfigError
from .models import IndexConfig

CONFIG_EXTENSIONS = (".yaml", ".yml", ".json")
CONFIG_FILENAME = "index_config.yaml"
API_URL_ENV = "LEDGER_INDEX_API_URL"


def _read_file(path: Path) -> dict:
    text = path.read_text(encoding="utf-8")
    if path.suffix in (".yaml", ".yml"):
        data = yaml.safe_load(text) or {}
    else:
        data = json.loads(text)
    if not isinstance(data, dict):
        raise ConfigError(f"Configuration file must contain a mapping: {path}")
    return data


def _write_file(path: Path, payload: dict) -> None:
    with path.open("w", encoding="utf-8") as stream:
        if path.suffix in (".yaml", ".yml"):
            yaml.safe_dump(payload, stream, allow_unicode=True, sort_keys=False)
        else:
            json.dump(payload, stream, indent=2, ensure_ascii=False)


@dataclass(slots=True)
class ConfigLocator:
    """Resolve important paths from project root."""

    project_root: Path | None = None
    data_dir: Path | None = None
    outputs_dir: Path | None = None
    logs_dir: Path | None = None

    def __post_init__(self) -> None:
        env_root = os.environ.get("LEDGER_INDEX_HOME")
        if env_root:
            root = Path(env_root).expanduser().resolve()
        else:
            root = (self.project_root or Path(__file__).resolve().parents[2]).resolve()
        self.project_root = root
        self.data_dir = (root / "data").resolve()
        self.outputs_dir = (self.data_dir / "outputs").resolve()
        self.logs_dir = (root / "logs").resolve()
        self.ensure_directories()

    def ensure_directories(self) -> None:
        for directory in (self.data_dir, self.outputs_dir, self.logs_dir):
            directory.mkdir(parents=True, exist_ok=True)

    def config_path(self) -> Path:
        return self.data_dir / CONFIG_FILENAME


class ConfigRepository:
    """Repository encapsulating config IO and schema validation."""

    def __init__(self, locator: ConfigLocator | None = None) -> None:
        self.locator = locator or ConfigLocator()
        self._cache: IndexConfig | None = None

    def load_config(self) -> IndexConfig:
        if self._cache is not None:
            return self._cache
        path = self.locator.config_path()
        if path.exists():
            payload = _read_file(path)
            config = IndexConfig.model_validate(payload)
        else:
            config = IndexConfig()
            self.save_config(config)
        # Environment wins over the file so one-off runs can target another service.
        env_url = os.environ.get(API_URL_ENV)
        if env_url:
            config = config.model_copy(update={"api_url": env_url.rstrip("/")})
        self._cache = config
        return config

    def save_config(self, config: IndexConfig) -> None:
        path = self.locator.config_path()
        payload = config.model_dump(mode="json")
        _write_file(path, payload)
        self._cache = config

    def resolved_output_dir(self, config: IndexConfig) -> Path:
        """Return the export directory relative to the project root."""

        if config.output_dir.is_absolute():
            return config.output_dir
        return (self.locator.project_root / config.output_dir).resolve()


__all__ = ["API_URL_ENV", "CONFIG_EXTENSIONS", "ConfigLocator", "ConfigRepository"]
