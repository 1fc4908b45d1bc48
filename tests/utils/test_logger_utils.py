from __future__ import annotations

import logging
import warnings
from logging.handlers import RotatingFileHandler
from typing import TYPE_CHECKING

import pytest

from utils.logger_utils import LoggerUtils

if TYPE_CHECKING:
    from collections.abc import Generator
    from pathlib import Path


@pytest.fixture
def fresh_logger_utils(monkeypatch: pytest.MonkeyPatch) -> Generator[None]:
    """Allow LoggerUtils to configure itself again and undo its global changes afterwards."""
    monkeypatch.setattr(LoggerUtils, "_configured", False)
    monkeypatch.setattr(LoggerUtils, "_instance", None)
    monkeypatch.setattr(warnings, "showwarning", warnings.showwarning)
    namespace_logger: logging.Logger = logging.getLogger("AskGPT")
    original_handlers: list[logging.Handler] = list(namespace_logger.handlers)
    original_level: int = namespace_logger.level
    yield
    for handler in namespace_logger.handlers:
        if handler not in original_handlers:
            handler.close()
    namespace_logger.handlers = original_handlers
    namespace_logger.setLevel(original_level)


def test_get_logger_uses_namespace() -> None:
    assert LoggerUtils.get_logger("core.query.engine").name == "AskGPT.core.query.engine"
    assert LoggerUtils.get_logger().name == "AskGPT"


@pytest.mark.usefixtures("fresh_logger_utils")
def test_file_logging_writes_debug_records(tmp_path: Path) -> None:
    log_file: Path = tmp_path / "askgpt.log"
    utils = LoggerUtils(log_file, level="debug", use_null_console=True)

    LoggerUtils.get_logger("tests").debug("hello from the test")
    for handler in utils.root_logger.handlers:
        handler.flush()

    assert utils.root_logger.level == logging.DEBUG
    assert any(isinstance(h, RotatingFileHandler) for h in utils.root_logger.handlers)
    assert "hello from the test" in log_file.read_text(encoding="utf-8")


@pytest.mark.usefixtures("fresh_logger_utils")
def test_unknown_level_falls_back_to_info() -> None:
    utils = LoggerUtils(level="chatty", use_null_console=True)

    assert utils.root_logger.level == logging.INFO


@pytest.mark.usefixtures("fresh_logger_utils")
def test_instance_is_singleton() -> None:
    assert LoggerUtils(use_null_console=True) is LoggerUtils()
