"""Configuration management for the timesheet synchronizer."""

import re
from pathlib import Path
from typing import Any

from timesheet_sync.errors import ConfigurationError
from timesheet_sync.utils.storage import StorageManager

DEFAULT_TIMEOUT = 30.0


class Config:
    """Manages run settings, adapter sections and secrets."""

    def __init__(
        self,
        config_dir: Path | None = None,
        overrides: dict[str, Any] | None = None,
    ) -> None:
        """Initialize configuration.

        Args:
            config_dir: Directory for storing configuration.
            overrides: Values taking precedence over the stored settings,
                typically the command-line options. None values are ignored.
        """
        self.storage = StorageManager(config_dir)
        self._settings = self.storage.load_settings()
        self._overrides = {k: v for k, v in (overrides or {}).items() if v is not None}

    def get(self, key: str, default: Any = None) -> Any:
        """Get a top-level setting, honouring overrides.

        Args:
            key: Setting name.
            default: Value returned when the setting is missing.

        Returns:
            Setting value.
        """
        if key in self._overrides:
            return self._overrides[key]
        return self._settings.get(key, default)

    def section(self, name: str) -> dict[str, Any]:
        """Get the settings of an adapter.

        Args:
            name: Adapter name (e.g., "clockify").

        Returns:
            Adapter settings, empty if not configured.
        """
        return dict(self._settings.get(name) or {})

    def set(self, key: str, value: Any) -> None:
        """Persist a top-level setting.

        Args:
            key: Setting name.
            value: Setting value.
        """
        self._settings[key] = value
        self.storage.save_settings(self._settings)

    def get_token(self, service: str) -> str | None:
        """Get the stored secret of a service.

        Args:
            service: Service name.

        Returns:
            Secret or None if not stored.
        """
        return self.storage.get_token(service)

    def require(self, section: str, key: str) -> Any:
        """Get a mandatory adapter setting.

        Args:
            section: Adapter name.
            key: Setting name inside the adapter section.

        Returns:
            Setting value.

        Raises:
            ConfigurationError: If the setting is missing or empty.
        """
        value = self.section(section).get(key)
        if value in (None, ""):
            raise ConfigurationError(f"{section}: '{key}' must be set in {self.storage.settings_file}")
        return value

    def require_token(self, service: str) -> str:
        """Get a mandatory secret.

        Raises:
            ConfigurationError: If the secret was never stored.
        """
        token = self.get_token(service)
        if not token:
            raise ConfigurationError(
                f"{service}: secret not found. Run: timesheet-sync configure {service}"
            )
        return token

    @property
    def timeout(self) -> float:
        """Deadline in seconds for every network or process call."""
        return float(self.get("timeout", DEFAULT_TIMEOUT))

    def pattern(self, key: str) -> re.Pattern[str] | None:
        """Compile the top-level regular expression setting ``key``."""
        return compile_pattern(self.get(key), key)


def compile_pattern(value: str | None, name: str) -> re.Pattern[str] | None:
    """Compile an optional regular expression.

    Args:
        value: Pattern source. None or empty means "not set".
        name: Setting name, used in the error message.

    Returns:
        Compiled pattern or None.

    Raises:
        ConfigurationError: If the pattern is invalid.
    """
    if not value:
        return None
    try:
        return re.compile(value)
    except re.error as e:
        raise ConfigurationError(f"invalid regular expression for {name}: {e}") from e
