"""
Manages loading, validation, and migration of the INI configuration file.

    [dezoomify]
    num_threads = 8
    retries = 1
    timeout = 30

    [headers]
    Referer = https://example.com/
"""

import configparser
import logging
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from dezoomify.exceptions import ConfigurationError
from dezoomify.models.config import DezoomConfig

log = logging.getLogger(__name__)

SETTINGS_SECTION = "dezoomify"
HEADERS_SECTION = "headers"

_INT_KEYS = {"max_width", "max_height", "num_threads", "retries", "max_probe_steps"}
_FLOAT_KEYS = {"timeout", "retry_delay"}
_BOOL_KEYS = {"largest"}
# Left empty in new files so that the value is computed at run time
_AUTO_KEYS = {"num_threads"}


class ConfigManager:
    """Handles all operations related to the application's INI config file."""

    def __init__(self, config_file_path: Path):
        self.config_file_path = config_file_path
        self._parser = configparser.ConfigParser(interpolation=None)
        # Header names are case-sensitive on display
        self._parser.optionxform = str

    def load_config(self, cli_options: dict[str, Any] | None = None) -> DezoomConfig:
        """
        Loads configuration from the INI file if there is one, applies CLI
        overrides, and validates it.

        Args:
            cli_options: A dictionary of options provided via the command line.

        Returns:
            A validated DezoomConfig object.

        Raises:
            ConfigurationError: If the config file is invalid or validation fails.
        """
        config_from_file: dict[str, Any] = {}
        if self.config_file_path.is_file():
            try:
                self._parser.read(self.config_file_path, encoding="utf-8")
            except configparser.Error as e:
                raise ConfigurationError(f"Error parsing configuration file: {e}") from e
            if self._migrate_if_needed():
                log.info(
                    "[yellow]Configuration file was updated with new default values."
                    "[/yellow]"
                )
            config_from_file = self._get_config_as_dict()

        cli_options = dict(cli_options or {})
        # Headers given on the command line are added to the configured ones
        if cli_headers := cli_options.pop("headers", None):
            config_from_file["headers"] = {
                **config_from_file.get("headers", {}),
                **cli_headers,
            }
        config_from_file.update(cli_options)

        try:
            return DezoomConfig(
                **config_from_file, config_path=str(self.config_file_path.parent)
            )
        except ValidationError as e:
            raise ConfigurationError(f"Configuration validation failed:\n{e}") from e

    def save_new_config(self, settings: dict[str, Any] | None = None) -> None:
        """
        Creates and saves a new configuration file.

        Args:
            settings: Values that take precedence over the defaults.
        """
        settings = settings or {}
        config = configparser.ConfigParser(interpolation=None)
        config.optionxform = str
        config[SETTINGS_SECTION] = {}
        defaults = DezoomConfig()

        for key in sorted(DezoomConfig.get_ini_keys()):
            default = None if key in _AUTO_KEYS else getattr(defaults, key, None)
            value = settings.get(key, default)
            config[SETTINGS_SECTION][key] = self._to_ini(value)
        config[HEADERS_SECTION] = dict(settings.get("headers", {}))

        try:
            self.config_file_path.parent.mkdir(parents=True, exist_ok=True)
            with open(self.config_file_path, "w", encoding="utf-8") as configfile:
                config.write(configfile)
        except OSError as e:
            raise ConfigurationError(f"Failed to save configuration file: {e}") from e

    @staticmethod
    def _to_ini(value: Any) -> str:
        if value is None:
            return ""
        if isinstance(value, bool):
            return "true" if value else "false"
        return str(value)

    def _get_config_as_dict(self) -> dict[str, Any]:
        """Reads the settings and headers sections into a dictionary."""
        result: dict[str, Any] = {}
        if self._parser.has_section(SETTINGS_SECTION):
            section = self._parser[SETTINGS_SECTION]
            try:
                for key, raw in section.items():
                    if key not in DezoomConfig.get_ini_keys():
                        log.warning(f"Ignoring unknown configuration key '{key}'")
                        continue
                    if raw.strip() == "":
                        continue
                    if key in _INT_KEYS:
                        result[key] = section.getint(key)
                    elif key in _FLOAT_KEYS:
                        result[key] = section.getfloat(key)
                    elif key in _BOOL_KEYS:
                        result[key] = section.getboolean(key)
                    else:
                        result[key] = raw
            except ValueError as e:
                raise ConfigurationError(f"Invalid value in configuration file: {e}") from e
        if self._parser.has_section(HEADERS_SECTION):
            result["headers"] = dict(self._parser[HEADERS_SECTION])
        return result

    def _migrate_if_needed(self) -> bool:
        """Adds missing default values to an existing config file."""
        defaults = DezoomConfig()
        needs_saving = False

        if not self._parser.has_section(SETTINGS_SECTION):
            self._parser.add_section(SETTINGS_SECTION)
        config_section = self._parser[SETTINGS_SECTION]

        for key in sorted(DezoomConfig.get_ini_keys()):
            if key not in config_section:
                default = None if key in _AUTO_KEYS else getattr(defaults, key)
                config_section[key] = self._to_ini(default)
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
