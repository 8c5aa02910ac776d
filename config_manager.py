"""
Centralized configuration management for the fixed asset inventory.
Handles loading, saving, and providing consistent access to configuration data.
"""

import os
import json
from dataclasses import dataclass, asdict, fields


@dataclass
class AppConfig:
    """Configuration data class with type hints and defaults."""
    database_path: str = "assets/asset_database.db"
    log_file: str = "assets/app.log"
    log_level: str = "INFO"
    output_directory: str = "assets/output_files"
    legacy_encoding: str = "gbk"
    import_message_limit: int = 10
    default_asset_code: str = "ZC001"
    enable_wal: bool = True

    def to_dict(self) -> dict:
        """Convert AppConfig to dictionary for JSON serialization."""
        return asdict(self)


class ConfigManager:
    """Loads and saves the JSON configuration file."""

    def __init__(self, config_path: str = os.path.join("assets", "config.json")):
        self.config_path = config_path
        self._config = self._load_config()

    def _load_config(self) -> AppConfig:
        """Load configuration from file or create default."""
        if os.path.exists(self.config_path):
            try:
                with open(self.config_path, 'r', encoding='utf-8') as f:
                    data = json.load(f)
                # Unknown keys from older config files are ignored
                known = {f.name for f in fields(AppConfig)}
                return AppConfig(**{k: v for k, v in data.items() if k in known})
            except (json.JSONDecodeError, TypeError, AttributeError, OSError):
                return AppConfig()

        # Create default config and save it
        config = AppConfig()
        self.save_config(config)
        return config

    def get_config(self) -> AppConfig:
        """Get current configuration."""
        return self._config

    def update_config(self, **kwargs) -> None:
        """Update configuration with new values."""
        for key, value in kwargs.items():
            if hasattr(self._config, key):
                setattr(self._config, key, value)

    def save_config(self, config: AppConfig = None) -> bool:
        """Save configuration to file."""
        if config:
            self._config = config

        try:
            config_dir = os.path.dirname(self.config_path)
            if config_dir:
                os.makedirs(config_dir, exist_ok=True)
            with open(self.config_path, 'w', encoding='utf-8') as f:
                json.dump(self._config.to_dict(), f, indent=4, ensure_ascii=False)
            return True
        except OSError:
            return False

    def get_database_path(self) -> str:
        """Get the current database path."""
        return self._config.database_path

    def ensure_directories(self) -> None:
        """Ensure all configured directories exist."""
        os.makedirs(self._config.output_directory, exist_ok=True)
        os.makedirs(os.path.join(self._config.output_directory, "exports"), exist_ok=True)
        os.makedirs(os.path.join(self._config.output_directory, "reports"), exist_ok=True)

        db_dir = os.path.dirname(self._config.database_path)
        if db_dir:
            os.makedirs(db_dir, exist_ok=True)

    def get_suggested_filepath(self, filename: str, file_type: str = "export") -> str:
        """
        Get a suggested full file path in the output directory.

        Args:
            filename: The base filename (with or without extension)
            file_type: Type of file (export, report, template) for organization

        Returns:
            str: Full suggested file path in output directory
        """
        self.ensure_directories()

        subdir_map = {
            "export": "exports",
            "report": "reports",
            "template": "templates",
        }

        subdir = subdir_map.get(file_type, "")
        if subdir:
            full_output_dir = os.path.join(self._config.output_directory, subdir)
            os.makedirs(full_output_dir, exist_ok=True)
        else:
            full_output_dir = self._config.output_directory

        return os.path.join(full_output_dir, filename)
