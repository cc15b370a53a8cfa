"""
Environment Config Provider - Load configuration from environment variables.

Supports:
- Environment variables (TASKSYNC_API_URL, TASKSYNC_TOKEN, TASKSYNC_DB_PATH, ...)
- .env files
- Command line argument overrides
"""

import os
from pathlib import Path
from typing import Any, Optional
from urllib.parse import urlparse

from ...core.ports.config_provider import (
    ConfigProviderPort,
    AppConfig,
    ApiConfig,
    StoreConfig,
    SyncConfig,
    DEFAULT_API_URL,
    DEFAULT_DB_PATH,
)


def _to_bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in ("true", "1", "yes", "on")


class EnvironmentConfigProvider(ConfigProviderPort):
    """
    Configuration provider that loads from environment variables and .env files.

    Precedence (highest first): CLI overrides, environment, .env file.
    """

    ENV_PREFIX = "TASKSYNC_"

    ENV_MAPPING = {
        "TASKSYNC_API_URL": "api_url",
        "TASKSYNC_TOKEN": "api_token",
        "TASKSYNC_TOKEN_FILE": "token_file",
        "TASKSYNC_DB_PATH": "db_path",
        "TASKSYNC_TIMEOUT": "request_timeout",
        "TASKSYNC_PROBE_INTERVAL": "probe_interval",
        "TASKSYNC_HALT_ON_NETWORK_ERROR": "halt_on_network_error",
        "TASKSYNC_VERBOSE": "verbose",
    }

    def __init__(
        self,
        env_file: Optional[Path] = None,
        cli_overrides: Optional[dict[str, Any]] = None,
    ):
        """
        Initialize the config provider.

        Args:
            env_file: Path to .env file (auto-detected if not specified)
            cli_overrides: Command line argument overrides
        """
        self._values: dict[str, Any] = {}
        self._env_file = env_file
        self._cli_overrides = cli_overrides or {}

        self._load_env_file()
        self._load_environment()
        self._apply_cli_overrides()

    # -------------------------------------------------------------------------
    # ConfigProviderPort Implementation
    # -------------------------------------------------------------------------

    @property
    def name(self) -> str:
        return "Environment"

    def load(self) -> AppConfig:
        """Load complete configuration."""
        api = ApiConfig(
            url=self.get("api_url", DEFAULT_API_URL),
            token=self.get("api_token"),
            token_file=self.get("token_file"),
            timeout=self._get_float("request_timeout", 30.0),
        )

        store = StoreConfig(path=self.get("db_path", DEFAULT_DB_PATH))

        sync = SyncConfig(
            probe_interval=self._get_float("probe_interval", 15.0),
            halt_on_network_error=_to_bool(self.get("halt_on_network_error", True)),
            verbose=_to_bool(self.get("verbose", False)),
        )

        return AppConfig(api=api, store=store, sync=sync)

    def get(self, key: str, default: Any = None) -> Any:
        """Get a configuration value."""
        key = key.lower().replace("-", "_")

        if key in self._cli_overrides and self._cli_overrides[key] is not None:
            return self._cli_overrides[key]

        return self._values.get(key, default)

    def set(self, key: str, value: Any) -> None:
        """Set a configuration value."""
        key = key.lower().replace("-", "_")
        self._values[key] = value

    def validate(self) -> list[str]:
        """Validate configuration."""
        errors = []

        api_url = self.get("api_url", DEFAULT_API_URL)
        if not api_url:
            errors.append("Missing TASKSYNC_API_URL - set in environment or .env file")
        elif urlparse(str(api_url)).scheme not in ("http", "https"):
            errors.append(f"TASKSYNC_API_URL must be an http(s) URL, got: {api_url}")

        for key, env_key in (
            ("request_timeout", "TASKSYNC_TIMEOUT"),
            ("probe_interval", "TASKSYNC_PROBE_INTERVAL"),
        ):
            raw = self.get(key)
            if raw is None:
                continue
            try:
                if float(raw) <= 0:
                    errors.append(f"{env_key} must be positive, got: {raw}")
            except (TypeError, ValueError):
                errors.append(f"{env_key} must be a number, got: {raw}")

        return errors

    # -------------------------------------------------------------------------
    # Private Methods
    # -------------------------------------------------------------------------

    def _get_float(self, key: str, default: float) -> float:
        try:
            return float(self.get(key, default))
        except (TypeError, ValueError):
            return default

    def _load_env_file(self) -> None:
        """Load values from .env file."""
        env_file = self._find_env_file()
        if not env_file:
            return

        for line in env_file.read_text().splitlines():
            line = line.strip()

            if not line or line.startswith("#"):
                continue

            if "=" not in line:
                continue

            key, value = line.split("=", 1)
            key = key.strip()
            value = value.strip().strip('"').strip("'")

            config_key = self.ENV_MAPPING.get(key)
            if config_key:
                self._values[config_key] = value

    def _find_env_file(self) -> Optional[Path]:
        """Find .env file."""
        if self._env_file is not None:
            return self._env_file if self._env_file.exists() else None

        cwd_env = Path.cwd() / ".env"
        if cwd_env.exists():
            return cwd_env

        return None

    def _load_environment(self) -> None:
        """Load values from environment variables."""
        for env_key, config_key in self.ENV_MAPPING.items():
            raw_value = os.environ.get(env_key)
            if raw_value is not None:
                self._values[config_key] = raw_value

    def _apply_cli_overrides(self) -> None:
        """Apply CLI argument overrides."""
        cli_mapping = {
            "api_url": "api_url",
            "token": "api_token",
            "db": "db_path",
            "verbose": "verbose",
        }

        for cli_key, config_key in cli_mapping.items():
            if self._cli_overrides.get(cli_key) is not None:
                self._values[config_key] = self._cli_overrides[cli_key]
