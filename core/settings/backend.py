"""Persistence contract for the settings store and its JSON-file implementation."""

from __future__ import annotations

import json
from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

from utils.file_utils import FileUtils, FileUtilsError
from utils.logger_utils import LoggerUtils

if TYPE_CHECKING:
    import logging
    from pathlib import Path

__all__: list[str] = ["JsonSettingsBackend", "SettingsBackend", "SettingsBackendError"]

logger: logging.Logger = LoggerUtils.get_logger(__name__)


class SettingsBackendError(Exception):
    """The settings backend could not read or write its storage."""


@runtime_checkable
class SettingsBackend(Protocol):
    """Key/value storage provided by the host application."""

    def read_setting(self, key: str) -> Any | None: ...

    def save_setting(self, key: str, value: Any) -> None: ...


class JsonSettingsBackend:
    """Settings backend storing every namespace in one JSON object on disk.

    Args:
        path (Path): The settings file. Created on first save.
    """

    def __init__(self, path: Path) -> None:
        self.path: Path = path

    def _read_all(self) -> dict[str, Any]:
        try:
            content: str | None = FileUtils.read_text(self.path)
        except (OSError, FileUtilsError) as err:
            msg = f"Failed to read settings file '{self.path}': {err}"
            raise SettingsBackendError(msg) from err
        if content is None:
            return {}
        try:
            data: Any = json.loads(content)
        except ValueError as err:
            msg = f"Settings file '{self.path}' is not valid JSON: {err}"
            raise SettingsBackendError(msg) from err
        if not isinstance(data, dict):
            msg = f"Settings file '{self.path}' does not contain a JSON object"
            raise SettingsBackendError(msg)
        return data

    def read_setting(self, key: str) -> Any | None:
        """Return the value stored under ``key``, or None if it is not set.

        Raises:
            SettingsBackendError: If the file exists but cannot be read or decoded.
        """
        return self._read_all().get(key)

    def save_setting(self, key: str, value: Any) -> None:
        """Store ``value`` under ``key``, keeping every other key in the file.

        An unreadable file is replaced rather than merged into.

        Raises:
            SettingsBackendError: If the file cannot be written.
        """
        try:
            data: dict[str, Any] = self._read_all()
        except SettingsBackendError as err:
            logger.warning("Replacing unreadable settings file: %s", err)
            data = {}
        data[key] = value
        try:
            FileUtils.write_text_atomic(self.path, json.dumps(data, ensure_ascii=False, indent=2))
        except OSError as err:
            msg = f"Failed to write settings file '{self.path}': {err}"
            raise SettingsBackendError(msg) from err
        logger.debug("Saved setting '%s' to '%s'", key, self.path)
