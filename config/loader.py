"""Configuration file loader and validator.

Reads ``askgpt.ini`` into the dataclass sections of ``models.config_models.Config``,
coercing each value to the type of the field's default, then validates the result.
Raises exceptions for any issues encountered during loading.
"""

from __future__ import annotations

import ast
import configparser
from configparser import ConfigParser
from dataclasses import fields
from pathlib import Path
from typing import TYPE_CHECKING, Any
from urllib.parse import urlparse

from models.config_models import Config
from utils.logger_utils import LEVEL_NAMES, LoggerUtils

if TYPE_CHECKING:
    import logging
    from collections.abc import Callable
    from dataclasses import Field as DataclassField

__all__: list[str] = [
    "Config",
    "ConfigFileNotFoundError",
    "ConfigFormatError",
    "ConfigLoader",
    "ConfigLoaderError",
    "ConfigTypeError",
    "ConfigValueError",
]

logger: logging.Logger = LoggerUtils.get_logger(__name__)

ALLOWED_URL_SCHEMES: tuple[str, ...] = ("http", "https")


class ConfigLoaderError(Exception):
    """An error occurred while processing the configuration file."""


class ConfigFileNotFoundError(ConfigLoaderError):
    """The specified configuration file does not exist."""


class ConfigFormatError(ConfigLoaderError):
    """The configuration file is not formatted correctly."""


class ConfigValueError(ConfigFormatError):
    """The configuration file contains an invalid value."""


class ConfigTypeError(ConfigFormatError):
    """The configuration file contains an invalid type."""


class ConfigLoader:
    """Handles loading and validation of configuration settings.

    Keys missing from the file keep their dataclass defaults, so a file only needs the
    settings that differ from the built-in configuration.

    Args:
        config_filename (str | Path): INI file name to load.
        debug (bool | None): Optional override for ``GENERAL.DEBUG``.

    Raises:
        ConfigFileNotFoundError: If the configuration file does not exist.
        ConfigFormatError: If the file cannot be parsed or contains invalid values/types.
    """

    def __init__(self, *, config_filename: str | Path, debug: bool | None = None) -> None:
        config_path = Path(config_filename)
        msg: str
        if not config_path.exists():
            msg = f"Configuration file '{config_filename}' not found."
            raise ConfigFileNotFoundError(msg)

        parser: ConfigParser = ConfigParser()
        # Keep key case; the dataclass fields are upper case.
        parser.optionxform = str  # type: ignore[assignment,method-assign]

        try:
            parser.read(config_path, encoding="utf-8")
        except configparser.Error as err:
            msg = f"Failed to parse configuration file '{config_filename}': {err}"
            raise ConfigFormatError(msg) from None

        self.config = Config()
        self._convert_settings(parser)
        if debug is not None:
            self.config.GENERAL.DEBUG = debug
        self._validate_settings()
        logger.debug("Configuration loaded from '%s'", config_path)

    def _convert_settings(self, parser: ConfigParser) -> None:
        """Copy every defined INI value onto the matching Config field.

        Raises:
            ConfigFormatError: If a value cannot be parsed or coerced to the expected type.
        """
        formatter = _ConfigFormatter(self.config, parser)
        for section in fields(self.config):
            if not parser.has_section(section.name):
                logger.debug("Section '%s' not defined; using defaults", section.name)
                continue
            for key in fields(getattr(self.config, section.name)):
                if not parser.has_option(section.name, key.name):
                    logger.debug("Skipping undefined setting: '%s.%s'", section.name, key.name)
                    continue
                formatted_value: Any = formatter.apply_format(section, key)
                setattr(getattr(self.config, section.name), key.name, formatted_value)

    def _validate_settings(self) -> None:
        """Validate endpoint URLs, numeric limits and the log level.

        Raises:
            ConfigValueError: If a value is out of range.
            ConfigTypeError: If a value has the wrong type.
        """
        self._validate_url("API", "COMPLETIONS_URL")
        self._validate_url("API", "MODELS_URL")
        self._validate_minimum("API", "TIMEOUT", 0)
        self._validate_minimum("CACHE", "SIZE_LIMIT", 1)
        self._validate_non_empty("CACHE", "FILE")
        self._validate_non_empty("SETTINGS", "FILE")
        self._validate_non_empty("SETTINGS", "NAMESPACE")
        self._inspect_log_level()

    def _value(self, section_name: str, key_name: str) -> Any:
        return getattr(getattr(self.config, section_name), key_name)

    def _validate_url(self, section_name: str, key_name: str) -> None:
        value: Any = self._value(section_name, key_name)
        field_name: str = f"{section_name}.{key_name}"
        if not isinstance(value, str):
            msg: str = f"Unsupported type used for '{field_name}': {type(value)}"
            raise ConfigTypeError(msg)

        parsed = urlparse(value)
        if parsed.scheme not in ALLOWED_URL_SCHEMES or not parsed.netloc:
            msg = f"'{field_name}' must be an http(s) URL: '{value}'"
            raise ConfigValueError(msg)

    def _validate_minimum(self, section_name: str, key_name: str, minimum: float) -> None:
        value: Any = self._value(section_name, key_name)
        if value < minimum:
            msg: str = f"'{section_name}.{key_name}' must be at least {minimum}: {value}"
            raise ConfigValueError(msg)

    def _validate_non_empty(self, section_name: str, key_name: str) -> None:
        value: Any = self._value(section_name, key_name)
        field_name: str = f"{section_name}.{key_name}"
        if not isinstance(value, str):
            msg: str = f"Unsupported type used for '{field_name}': {type(value)}"
            raise ConfigTypeError(msg)
        if not value.strip():
            msg = f"'{field_name}' must not be empty"
            raise ConfigValueError(msg)

    def _inspect_log_level(self) -> None:
        """Warn about an unknown log level and fall back to INFO; does not raise."""
        level: Any = self.config.GENERAL.LOG_LEVEL
        if isinstance(level, str) and level.upper() in LEVEL_NAMES:
            self.config.GENERAL.LOG_LEVEL = level.upper()
            return
        logger.warning("Unknown value '%s' is set for 'GENERAL.LOG_LEVEL'; using 'INFO'", level)
        self.config.GENERAL.LOG_LEVEL = "INFO"


class _ConfigFormatter:
    """Converts INI string values to typed Python objects (bool, int, float, str)."""

    def __init__(self, config: Config, parser: ConfigParser) -> None:
        self.config: Config = config
        self.parser: ConfigParser = parser

    def apply_format(self, section: DataclassField[Any], key: DataclassField[Any]) -> Any:
        """Convert an INI value to the type of the field's current (default) value.

        Strings may be written quoted (``"..."``) or bare; quoted values go through
        ``ast.literal_eval`` so escapes work.

        Raises:
            ConfigValueError: If a value cannot be coerced to the expected type.
            ConfigFormatError: If literal evaluation fails due to invalid syntax.
            ConfigTypeError: If an unexpected type is encountered during coercion.
        """
        formatters: dict[type, Callable[[DataclassField[Any], DataclassField[Any]], Any]] = {
            bool: self.parse_as_boolean,
            int: self.parse_as_integer,
            float: self.parse_as_float,
            str: self.parse_as_string,
        }

        default: Any = getattr(getattr(self.config, section.name), key.name)
        formatter: Callable[[DataclassField[Any], DataclassField[Any]], Any] | None = formatters.get(type(default))
        if formatter is None:
            msg = f"Unsupported setting type for {section.name}.{key.name}: {type(default)}"
            raise ConfigTypeError(msg)

        try:
            return formatter(section, key)
        except ValueError as err:
            msg = f"Invalid value for {section.name}.{key.name}: {err}"
            raise ConfigValueError(msg) from err
        except TypeError as err:
            msg = f"Invalid value for {section.name}.{key.name}: {err}"
            raise ConfigTypeError(msg) from err
        except SyntaxError as err:
            msg = f"Invalid literal for {section.name}.{key.name}: {err}"
            raise ConfigFormatError(msg) from err

    def _raw(self, section: DataclassField[Any], key: DataclassField[Any]) -> str:
        value: str = self.parser.get(section.name, key.name).strip()
        for char in ("'", '"'):
            value = value.removeprefix(char).removesuffix(char)
        return value

    def parse_as_float(self, section: DataclassField[Any], key: DataclassField[Any]) -> float:
        return float(self._raw(section, key))

    def parse_as_integer(self, section: DataclassField[Any], key: DataclassField[Any]) -> int:
        return int(float(self._raw(section, key)))

    def parse_as_boolean(self, section: DataclassField[Any], key: DataclassField[Any]) -> bool:
        return self.parser.getboolean(section.name, key.name)

    def parse_as_string(self, section: DataclassField[Any], key: DataclassField[Any]) -> str:
        value: str = self.parser.get(section.name, key.name).strip()
        if len(value) >= 2 and value[0] == value[-1] and value[0] in ("'", '"'):
            parsed: Any = ast.literal_eval(value)
            if not isinstance(parsed, str):
                msg = f"expected a string, got {type(parsed).__name__}"
                raise TypeError(msg)
            return parsed
        return value
