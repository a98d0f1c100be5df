"""Configuration service - loads and saves config.json and wires the app.

Config lives in the platform config dir; cached state and credentials live in
the platform data dir unless ``data_dir`` overrides it.
"""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Any

from platformdirs import user_config_dir, user_data_dir
from pydantic import BaseModel, ValidationError

from twotab_todo.adapters import FileStateCache, RestApiRemoteStore
from twotab_todo.models import AppConfig
from twotab_todo.repositories import RemoteStore

from .todo_service import TodoService

_APP_NAME = "twotab_todo"


class ConfigService:
    """Single source of truth for configuration."""

    def __init__(self):
        """Initialize the config service."""
        self.config_dir = Path(user_config_dir(_APP_NAME))
        self.config_path = self.config_dir / "config.json"
        self.default_data_dir = Path(user_data_dir(_APP_NAME))

        self._config: AppConfig | None = None

    @property
    def config(self) -> AppConfig:
        """Get or load the current configuration."""
        if self._config is None:
            self._config = self.load_config()
        return self._config

    @property
    def data_dir(self) -> Path:
        if self.config.data_dir:
            return Path(self.config.data_dir).expanduser()
        return self.default_data_dir

    @property
    def credentials_path(self) -> Path:
        return self.data_dir / "credentials.json"

    def load_config(self) -> AppConfig:
        """Load configuration, creating the default file on first run."""
        if self._config is not None:
            return self._config

        try:
            self._config = AppConfig.model_validate_json(self.config_path.read_text(encoding="utf-8"))
        except FileNotFoundError:
            # first run
            self._config = AppConfig()
            self.save_config()
        except (OSError, ValidationError) as e:
            raise RuntimeError(f"Failed to load config: {e}") from e

        return self._config

    def save_config(self) -> None:
        """Save the current configuration to storage."""
        try:
            self.config_path.parent.mkdir(parents=True, exist_ok=True)
            self.config_path.write_text(self.config.model_dump_json(indent=4), encoding="utf-8")
            self.config_path.chmod(0o600)
        except OSError as e:
            raise RuntimeError(f"Failed to save config: {e}") from e

    def reset_config(self) -> None:
        """Reset configuration to defaults."""
        self._config = AppConfig()
        self.save_config()

    def get(self, key: str) -> Any:
        """Get a configuration value by dot-separated key."""
        value: Any = self.config
        for part in key.split("."):
            if not isinstance(value, BaseModel):
                return None
            value = getattr(value, part, None)
        return value

    def set(self, key: str, value: Any) -> None:
        """Set a configuration value by dot-separated key, validating the result.

        Raises:
            ValueError: Unknown key or invalid value
        """
        data = self.config.model_dump()
        *parents, leaf = key.split(".")
        node = data
        for part in parents:
            if not isinstance(node.get(part), dict):
                raise ValueError(f"Unknown config key: {key}")
            node = node[part]
        if leaf not in node:
            raise ValueError(f"Unknown config key: {key}")
        node[leaf] = value
        try:
            self._config = AppConfig.model_validate(data)
        except ValidationError as e:
            raise ValueError(f"Invalid value for {key}: {e.errors()[0]['msg']}") from e
        self.save_config()

    def create_remote_store(self) -> RestApiRemoteStore:
        return RestApiRemoteStore(self.config.remote, credentials_path=self.credentials_path)

    def create_todo_service(self, remote: RemoteStore | None = None) -> TodoService:
        """Build a TodoService backed by the file cache and the REST remote."""
        cache = FileStateCache(self.config.storage_key, data_dir=self.data_dir)
        return TodoService.create(
            cache,
            remote if remote is not None else self.create_remote_store(),
            notice_duration=self.config.notice_duration,
        )


@lru_cache(maxsize=1)
def get_config_service() -> ConfigService:
    """Get a cached ConfigService instance."""
    config_service = ConfigService()
    config_service.load_config()
    return config_service
