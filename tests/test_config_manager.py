#!/usr/bin/env python3

import configparser
import tempfile
import unittest
from pathlib import Path

from photos_backup_cli.exceptions import ConfigurationError
from photos_backup_cli.models.config import BackupOptions
from photos_backup_cli.storage.config_manager import ConfigManager


class TestConfigManager(unittest.TestCase):
    """Test cases for the INI configuration file."""

    def setUp(self):
        self.tmp = tempfile.TemporaryDirectory()
        self.config_file = Path(self.tmp.name) / "photos-backup-cli" / "config.ini"
        self.manager = ConfigManager(self.config_file)

    def tearDown(self):
        self.tmp.cleanup()

    def test_when_file_missing_then_load_raises(self):
        with self.assertRaises(ConfigurationError):
            self.manager.load_config()

    def test_when_saved_then_loads_same_values(self):
        """Should write every option and read it back with its type."""
        self.manager.save_new_config(
            {
                "backup_folder": self.tmp.name,
                "use_file_name": True,
                "concurrent_downloads": 8,
                "download_throttle": 512.5,
            }
        )

        options = ConfigManager(self.config_file).load_config()

        self.assertEqual(options.backup_folder, self.tmp.name)
        self.assertIs(options.use_file_name, True)
        self.assertEqual(options.concurrent_downloads, 8)
        self.assertEqual(options.download_throttle, 512.5)
        self.assertEqual(options.page_size, 50)

    def test_when_cli_overrides_given_then_they_win(self):
        self.manager.save_new_config({"backup_folder": self.tmp.name})
        options = self.manager.load_config({"max_items": 10, "fail_fast": False})
        self.assertEqual(options.max_items, 10)
        self.assertIs(options.fail_fast, False)

    def test_when_keys_missing_then_file_is_migrated(self):
        """Should add defaults for options an older file does not have."""
        self.config_file.parent.mkdir(parents=True)
        self.config_file.write_text(
            f"[DEFAULT]\nbackup_folder = {self.tmp.name}\n", encoding="utf-8"
        )

        options = self.manager.load_config()

        self.assertEqual(options.concurrent_downloads, 5)
        parser = configparser.ConfigParser(interpolation=None)
        parser.read(self.config_file, encoding="utf-8")
        self.assertEqual(set(parser["DEFAULT"]), BackupOptions.get_ini_keys())

    def test_when_value_has_wrong_type_then_raises(self):
        self.manager.save_new_config({"backup_folder": self.tmp.name})
        text = self.config_file.read_text(encoding="utf-8")
        self.config_file.write_text(
            text.replace("page_size = 50", "page_size = lots"), encoding="utf-8"
        )
        with self.assertRaises(ConfigurationError):
            ConfigManager(self.config_file).load_config()

    def test_when_value_out_of_range_then_raises(self):
        self.manager.save_new_config({"backup_folder": self.tmp.name})
        with self.assertRaises(ConfigurationError):
            self.manager.load_config({"concurrent_downloads": 0})

    def test_when_folder_format_contains_percent_then_reads_it_verbatim(self):
        self.manager.save_new_config(
            {"backup_folder": self.tmp.name, "folder_format": "%Y-%m"}
        )
        options = ConfigManager(self.config_file).load_config()
        self.assertEqual(options.folder_format, "%Y-%m")


if __name__ == "__main__":
    unittest.main()
