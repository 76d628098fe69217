"""
Manages loading, validation, and migration of the INI configuration file.
"""

import configparser
import logging
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from photos_backup_cli.exceptions import ConfigurationError
from photos_backup_cli.models.config import BackupOptions

log = logging.getLogger(__name__)

BOOL_KEYS = {"use_file_name", "include_exif", "fail_fast"}
INT_KEYS = {"max_items", "page_size", "concurrent_downloads"}
FLOAT_KEYS = {"page_delay", "download_throttle"}


class ConfigManager:
    """Handles all operations related to the application's INI config file."""

    def __init__(self, config_file_path: Path):
        self.config_file_path = config_file_path
        self._parser = configparser.ConfigParser(interpolation=None)

    def load_config(self, cli_options: dict[str, Any] | None = None) -> BackupOptions:
        """
        Loads configuration from the INI file, applies CLI overrides, and validates it.

        Args:
            cli_options: A dictionary of options provided via the command line.

        Returns:
            A validated BackupOptions object.

        Raises:
            ConfigurationError: If the config file is missing, invalid, or validation
            fails.
        """
        if not self.config_file_path.is_file():
            raise ConfigurationError(
                f"Configuration file not found at '{self.config_file_path}'. "
                "Please run 'photos-backup init' first."
            )

        try:
            self._parser.read(self.config_file_path, encoding="utf-8")
        except configparser.Error as e:
            raise ConfigurationError(f"Error parsing configuration file: {e}") from e

        if self._migrate_if_needed():
            log.info(
                "[yellow]Configuration file was updated with new default values."
                "[/yellow]"
            )

        try:
            config_from_file = self._get_config_as_dict()
        except ValueError as e:
            raise ConfigurationError(f"Invalid value in configuration file: {e}") from e

        if cli_options:
            config_from_file.update(cli_options)

        try:
            return BackupOptions(**config_from_file)
        except ValidationError as e:
            raise ConfigurationError(f"Configuration validation failed:\n{e}") from e

    @staticmethod
    def _to_ini_value(value: Any) -> str:
        if isinstance(value, bool):
            return "true" if value else "false"
        return str(value)

    def save_new_config(self, settings: dict[str, Any]) -> None:
        """
        Creates and saves a new configuration file.

        Args:
            settings: A dictionary of settings to save; missing keys get defaults.
        """
        try:
            options = BackupOptions(**settings)
        except ValidationError as e:
            raise ConfigurationError(f"Configuration validation failed:\n{e}") from e

        config = configparser.ConfigParser(interpolation=None)
        config["DEFAULT"] = {
            key: self._to_ini_value(getattr(options, key))
            for key in sorted(BackupOptions.get_ini_keys())
        }

        try:
            self.config_file_path.parent.mkdir(parents=True, exist_ok=True)
            with open(self.config_file_path, "w", encoding="utf-8") as configfile:
                config.write(configfile)
        except OSError as e:
            raise ConfigurationError(f"Failed to save configuration file: {e}") from e

    def _get_config_as_dict(self) -> dict[str, Any]:
        """Reads the 'DEFAULT' section of the INI file into a typed dictionary."""
        section = self._parser["DEFAULT"]
        config: dict[str, Any] = {}
        for key in BackupOptions.get_ini_keys():
            if key not in section:
                continue
            if key in BOOL_KEYS:
                config[key] = section.getboolean(key)
            elif key in INT_KEYS:
                config[key] = section.getint(key)
            elif key in FLOAT_KEYS:
                config[key] = section.getfloat(key)
            else:
                config[key] = section.get(key)
        return config

    def get_config_as_dict(self) -> dict[str, Any]:
        """Reads the file without validating it, for display purposes."""
        self._parser.read(self.config_file_path, encoding="utf-8")
        return dict(self._parser["DEFAULT"])

    def _migrate_if_needed(self) -> bool:
        """Adds missing default values to an existing config file."""
        defaults = BackupOptions()
        config_section = self._parser["DEFAULT"]
        needs_saving = False

        for key in sorted(BackupOptions.get_ini_keys()):
            if key not in config_section:
                config_section[key] = self._to_ini_value(getattr(defaults, key))
                needs_saving = True
                log.debug(
                    f"Migrating config: added missing key '{key}' with "
                    f"value '{config_section[key]}'."
                )

        if needs_saving:
            try:
                with open(self.config_file_path, "w", encoding="utf-8") as f:
                    self._parser.write(f)
            except OSError as e:
                log.error(f"Could not save migrated configuration file: {e}")
                return False

        return needs_saving
