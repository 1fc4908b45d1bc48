"""Logging set-up shared by every askgpt module.

All loggers live under one namespace so the host application can silence or redirect
the plugin output without touching its own loggers.
"""

from __future__ import annotations

import logging
import sys
import warnings
from logging import Formatter, NullHandler, StreamHandler
from logging.handlers import RotatingFileHandler
from typing import TYPE_CHECKING, ClassVar, Final, Self, TextIO

if TYPE_CHECKING:
    from pathlib import Path

__all__: list[str] = ["LEVEL_NAMES", "LoggerUtils"]

LEVEL_NAMES: Final[tuple[str, ...]] = ("NOTSET", "DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")

_LOG_FILE_SIZE: Final[int] = 1 * 1024 * 1024  # 1MB
_LOG_BACKUP_COUNT: Final[int] = 3
_FILE_FORMAT: Final[str] = "%(asctime)s %(levelname)-8s %(name)-36s %(funcName)s: %(message)s"

DEFAULT_LOG_LEVEL: Final[int] = logging.INFO
NAMESPACE: Final[str] = "AskGPT"


class LoggerUtils:
    """Singleton that attaches the plugin's log handlers to the ``AskGPT`` logger.

    The first instantiation installs the handlers; later ones return the same object
    without touching them, so ``get_logger`` can be called at import time.
    """

    _configured: ClassVar[bool] = False
    _instance: ClassVar[Self | None] = None

    def __new__(cls, *args, **kwargs) -> Self:
        _ = args, kwargs
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __init__(self, filename: str | Path = "", *, level: str = "INFO", use_null_console: bool = False) -> None:
        """Attach the handlers once.

        Args:
            filename (str | Path): Absolute path of the log file. Empty disables file logging.
            level (str): Initial level name of the namespace logger.
            use_null_console (bool): Install a NullHandler instead of a stderr handler.
        """
        if LoggerUtils._configured:
            return

        self.root_logger: logging.Logger = logging.getLogger(NAMESPACE)
        self.root_logger.setLevel(DEFAULT_LOG_LEVEL)
        if use_null_console or sys.stderr is None:
            self._add_once(NullHandler())
        else:
            console: StreamHandler[TextIO] = StreamHandler(sys.stderr)
            console.setLevel(logging.WARNING)
            console.setFormatter(Formatter("%(levelname)s: %(message)s"))
            self._add_once(console)

        if str(filename).strip():
            self._add_file_handler(str(filename))
        self.set_level(level)

        warnings.showwarning = self.warning_to_log
        LoggerUtils._configured = True

    def _add_once(self, handler: logging.Handler) -> None:
        if any(type(existing) is type(handler) for existing in self.root_logger.handlers):
            return
        self.root_logger.addHandler(handler)

    def _add_file_handler(self, filename: str) -> None:
        try:
            handler = RotatingFileHandler(
                filename=filename,
                maxBytes=_LOG_FILE_SIZE,
                backupCount=_LOG_BACKUP_COUNT,
                encoding="utf-8",
            )
        except OSError as err:
            self.root_logger.error("Cannot open log file '%s'; file logging disabled: %s", filename, err)
            return
        handler.setLevel(logging.DEBUG)
        handler.setFormatter(Formatter(_FILE_FORMAT))
        self._add_once(handler)

    def warning_to_log(
        self,
        message: Warning | str,
        category: type[Warning],
        filename: str,
        lineno: int,
        file: TextIO | None = None,
        line: str | None = None,
    ) -> None:
        """``warnings.showwarning`` replacement that writes to the plugin log."""
        _ = file, line
        self.root_logger.warning("%s:%d: %s: %s", filename, lineno, category.__name__, message)

    def set_level(self, level: str) -> None:
        """Set the namespace logger level, falling back to INFO for unknown names."""
        value: int | None = logging.getLevelNamesMapping().get(level.upper())
        if value is None:
            self.root_logger.setLevel(DEFAULT_LOG_LEVEL)
            self.root_logger.warning("Unknown logging level '%s'; using 'INFO'.", level)
            return
        self.root_logger.setLevel(value)

    @staticmethod
    def get_logger(name: str | None = None) -> logging.Logger:
        """Return ``AskGPT.<name>``, or the namespace logger itself when ``name`` is None."""
        return logging.getLogger(f"{NAMESPACE}.{name}" if name else NAMESPACE)
