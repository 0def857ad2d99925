"""Configuration service for Optix Flow.

Single source of truth for configuration. It handles:

- Loading and saving config.json (created with defaults on first run)
- Session credential storage for the hosted backend
- Resolving the guest record directory
"""

from __future__ import annotations

import json
from functools import lru_cache
from json import JSONDecodeError
from pathlib import Path

from platformdirs import user_config_dir, user_data_dir

from optix_flow.models.config_models import AppConfig

_APP_NAME = "optix_flow"


class ConfigService:
    """Service for managing application configuration and stored credentials."""

    def __init__(self):
        """Initialize the config service."""

        self.config_dir = Path(user_config_dir(_APP_NAME))
        self.config_path = self.config_dir / "config.json"
        self.credentials_path = self.config_dir / "credentials.json"
        self.data_dir = Path(user_data_dir(_APP_NAME))

        # Ensure directories exist
        self.config_dir.mkdir(parents=True, exist_ok=True)
        self.data_dir.mkdir(parents=True, exist_ok=True)

        self._config: AppConfig | None = None

    @property
    def config(self) -> AppConfig:
        """Get or load the current configuration."""
        if self._config is None:
            self._config = self.load_config()
        return self._config

    @property
    def guest_dir(self) -> Path:
        """Directory holding the guest record."""
        configured = self.config.storage.guest_dir
        return Path(configured).expanduser() if configured else self.data_dir

    def load_config(self) -> AppConfig:
        """Load configuration from storage."""
        if self._config is not None:
            return self._config  # Return cached config if already loaded

        try:
            with open(self.config_path, encoding="utf-8") as f:
                self._config = AppConfig.model_validate_json(f.read())
        except FileNotFoundError:
            # First run - write the defaults
            self._config = AppConfig()
            self.save_config()
        except Exception as e:
            raise RuntimeError(f"Failed to load config: {e}") from e

        return self._config

    def save_config(self):
        """Save the current configuration to storage."""
        if self._config is None:
            raise RuntimeError("No configuration to save")

        try:
            self.config_path.parent.mkdir(parents=True, exist_ok=True)
            with open(self.config_path, "w", encoding="utf-8") as f:
                f.write(self._config.model_dump_json(indent=4))

            self.config_path.chmod(0o600)
        except Exception as e:
            raise RuntimeError(f"Failed to save config: {e}") from e

    def reset_config(self):
        """Reset configuration to defaults and drop stored credentials."""
        self._config = None
        if self.config_path.exists():
            self.config_path.unlink()
        self.clear_credentials()
        self._config = AppConfig()
        self.save_config()

    def get_value(self, key: str):
        """Get a configuration value by dot-separated key (e.g. "backend.url")."""
        value = self.config.model_dump()
        for part in key.split("."):
            if not isinstance(value, dict) or part not in value:
                raise ValueError(f"Unknown config key: {key}")
            value = value[part]
        return value

    def set_value(self, key: str, value: str) -> None:
        """Set a configuration value by dot-separated key (e.g. "backend.url")."""
        data = self.config.model_dump()
        target = data
        parts = key.split(".")
        for part in parts[:-1]:
            if not isinstance(target.get(part), dict):
                raise ValueError(f"Unknown config key: {key}")
            target = target[part]
        if parts[-1] not in target:
            raise ValueError(f"Unknown config key: {key}")
        target[parts[-1]] = value
        self._config = AppConfig.model_validate(data)
        self.save_config()

    def load_credentials(self) -> dict | None:
        """Load stored session credentials.

        Returns:
            dict with 'access_token' and optionally 'refresh_token', 'user_id'
            and 'email', or None if not logged in
        """
        if not self.credentials_path.exists():
            return None

        try:
            with open(self.credentials_path, encoding="utf-8") as f:
                data = json.load(f)
        except JSONDecodeError:
            return None
        if not isinstance(data, dict) or "access_token" not in data:
            return None
        return data

    def save_credentials(
        self,
        access_token: str,
        refresh_token: str | None = None,
        *,
        user_id: str | None = None,
        email: str | None = None,
    ):
        """Save session credentials.

        Args:
            access_token: The access token (JWT)
            refresh_token: Optional refresh token
            user_id: Identity the token belongs to
            email: Email of that identity
        """
        cred_data = {"access_token": access_token}
        if refresh_token:
            cred_data["refresh_token"] = refresh_token
        if user_id:
            cred_data["user_id"] = user_id
        if email:
            cred_data["email"] = email

        self.credentials_path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.credentials_path, "w", encoding="utf-8") as f:
            json.dump(cred_data, f, indent=2)

        # Set secure file permissions
        self.credentials_path.chmod(0o600)

    def clear_credentials(self) -> None:
        """Remove stored session credentials."""
        if self.credentials_path.exists():
            self.credentials_path.unlink()


@lru_cache(maxsize=1)
def get_config_service() -> ConfigService:
    """Get a cached ConfigService instance."""
    config_service = ConfigService()
    config_service.load_config()
    return config_service
