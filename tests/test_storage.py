"""Tests for storage manager."""

import stat
from pathlib import Path

from timesheet_sync.utils import StorageManager


class TestStorageManager:
    """Test StorageManager functionality."""

    def test_init_creates_directory(self, temp_config_dir: Path) -> None:
        """Test that initialization creates the config directory."""
        config_dir = temp_config_dir / "nested"
        storage = StorageManager(config_dir)
        assert config_dir.exists()
        assert storage.settings_file == config_dir / "config.yaml"

    def test_settings_persistence(self, storage_manager: StorageManager) -> None:
        """Test saving and loading settings."""
        settings = {
            "source": "clockify",
            "target": "tempo",
            "tempo": {"url": "https://jira.example.com", "username": "jdoe"},
        }

        storage_manager.save_settings(settings)

        assert storage_manager.load_settings() == settings

    def test_load_missing_files(self, storage_manager: StorageManager) -> None:
        """Test missing files load as empty."""
        assert storage_manager.load_settings() == {}
        assert storage_manager.load_tokens() == {}

    def test_empty_settings_file(self, storage_manager: StorageManager) -> None:
        """Test an empty YAML file loads as empty settings."""
        storage_manager.settings_file.write_text("")
        assert storage_manager.load_settings() == {}

    def test_token_persistence(self, storage_manager: StorageManager) -> None:
        """Test saving and loading secrets per service."""
        storage_manager.set_token("clockify", "key-1")
        storage_manager.set_token("tempo", "password")

        assert storage_manager.get_token("clockify") == "key-1"
        assert storage_manager.get_token("tempo") == "password"
        assert storage_manager.get_token("toggl") is None

    def test_token_file_permissions(self, storage_manager: StorageManager) -> None:
        """Test the token file is readable by its owner only."""
        storage_manager.set_token("harvest", "token")

        mode = stat.S_IMODE(storage_manager.tokens_file.stat().st_mode)
        assert mode == 0o600
